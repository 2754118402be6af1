"""
Config editor widgets.
Tree view of a parsed config with inline value editing, plus a raw code view.
"""

import copy
import logging
from typing import Optional

from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QTreeWidget, QTreeWidgetItem,
    QPlainTextEdit, QTabWidget, QLabel, QLineEdit, QMenu, QMessageBox,
    QAbstractItemView
)
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QFont, QColor, QFontDatabase

from comment_extractor import ConfigEntry, extract_config_entries
from config_store import LoadedConfig
from config_values import (
    Dialect, JsonArray, JsonBool, JsonNull, JsonNumber, JsonObject, JsonString,
    JsonValue, from_python, remove_value_at, scalar_from_text, set_value_at,
    to_python, type_name,
)
from key_path import KeyPath, format_path

# Module logger
log = logging.getLogger("modconfigpatcher.ui.config_editor")

COL_KEY = 0
COL_VALUE = 1
COL_TYPE = 2

TYPE_COLORS = {
    "string": "#ce9178",
    "number": "#b5cea8",
    "boolean": "#569cd6",
    "null": "#808080",
}


def display_text(value: JsonValue) -> str:
    """Text shown in the value column."""
    if isinstance(value, JsonNull):
        return "null"
    if isinstance(value, JsonBool):
        return "true" if value.value else "false"
    if isinstance(value, JsonNumber):
        return repr(value.value)
    if isinstance(value, JsonString):
        return value.value
    if isinstance(value, JsonArray):
        return f"[{len(value.items)} items]"
    if isinstance(value, JsonObject):
        return f"{{{len(value.entries)} keys}}"
    return str(value)


class ConfigTreeItem(QTreeWidgetItem):
    """Tree row for one config entry."""

    def __init__(self, entry: ConfigEntry):
        super().__init__()
        self.entry = entry
        self.path: KeyPath = entry.path
        self.value: JsonValue = entry.value
        self.modified = False
        self._update_display()

    @property
    def is_scalar(self) -> bool:
        return not isinstance(self.value, (JsonArray, JsonObject))

    def _update_display(self):
        self.setText(COL_KEY, self.entry.key)
        self.setText(COL_VALUE, display_text(self.value))
        self.setText(COL_TYPE, type_name(self.value))

        flags = self.flags()
        if self.is_scalar:
            self.setFlags(flags | Qt.ItemFlag.ItemIsEditable)
        else:
            self.setFlags(flags & ~Qt.ItemFlag.ItemIsEditable)

        color = TYPE_COLORS.get(type_name(self.value))
        if color:
            self.setForeground(COL_VALUE, QColor(color))

        font = self.font(COL_KEY)
        font.setBold(self.modified)
        self.setFont(COL_KEY, font)

        tooltip = f"<b>{format_path(self.path)}</b>"
        if self.entry.description:
            tooltip += "<br>" + self.entry.description.replace("\n", "<br>")
        for col in (COL_KEY, COL_VALUE):
            self.setToolTip(col, tooltip)

    def set_value(self, value: JsonValue):
        self.value = value
        self.modified = True
        self._update_display()


class ConfigEditorWidget(QWidget):
    """
    Form and code views of one config file.

    The form view edits a copy of the parsed tree; ``edited_data()``
    returns it as plain Python data for the store to diff and save.
    """

    entry_selected = pyqtSignal(str, str, str)  # (path, type, description)
    modified_changed = pyqtSignal(bool)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._loaded: Optional[LoadedConfig] = None
        self._edited: Optional[JsonValue] = None
        self._modified = False
        self._tree_modified = False
        self._updating = False
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        header = QHBoxLayout()
        self.title_label = QLabel("No file open")
        self.title_label.setStyleSheet("font-weight: bold;")
        header.addWidget(self.title_label)
        header.addStretch()

        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Filter keys...")
        self.search_edit.setClearButtonEnabled(True)
        self.search_edit.textChanged.connect(self._filter_tree)
        header.addWidget(self.search_edit)
        layout.addLayout(header)

        self.tabs = QTabWidget()

        # Form view
        self.tree = QTreeWidget()
        self.tree.setHeaderLabels(["Key", "Value", "Type"])
        self.tree.setColumnWidth(COL_KEY, 260)
        self.tree.setColumnWidth(COL_VALUE, 260)
        self.tree.setAlternatingRowColors(True)
        self.tree.setEditTriggers(
            QAbstractItemView.EditTrigger.DoubleClicked |
            QAbstractItemView.EditTrigger.EditKeyPressed
        )
        self.tree.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.tree.customContextMenuRequested.connect(self._show_context_menu)
        self.tree.itemChanged.connect(self._on_item_changed)
        self.tree.currentItemChanged.connect(self._on_current_changed)
        self.tabs.addTab(self.tree, "Form")

        # Code view
        self.code_edit = QPlainTextEdit()
        mono = QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont)
        mono.setStyleHint(QFont.StyleHint.Monospace)
        self.code_edit.setFont(mono)
        self.code_edit.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        self.code_edit.textChanged.connect(self._on_code_changed)
        self.tabs.addTab(self.code_edit, "Code")

        layout.addWidget(self.tabs, 1)

    # -- loading --------------------------------------------------------

    def load(self, loaded: LoadedConfig):
        """Show a freshly loaded file, dropping unsaved edits."""
        self._loaded = loaded
        self._updating = True
        try:
            self.title_label.setText(f"{loaded.path}  ({loaded.dialect.value.upper()})")
            self.code_edit.setPlainText(loaded.content)
            self.tree.clear()

            if loaded.is_valid:
                self._edited = from_python(copy.deepcopy(loaded.parsed))
                self._populate_tree(extract_config_entries(loaded.parsed, loaded.content, loaded.dialect))
                self.tabs.setTabEnabled(0, True)
                self.tabs.setCurrentIndex(0)
            else:
                # Only the code view can fix a file that does not parse
                self._edited = None
                self.tabs.setTabEnabled(0, False)
                self.tabs.setCurrentIndex(1)
        finally:
            self._updating = False
        self._tree_modified = False
        self._set_modified(False)

    def clear(self):
        self._loaded = None
        self._edited = None
        self._updating = True
        self.tree.clear()
        self.code_edit.clear()
        self._updating = False
        self.title_label.setText("No file open")
        self._tree_modified = False
        self._set_modified(False)

    def _populate_tree(self, entries: list[ConfigEntry]):
        parents: dict = {}
        for entry in entries:
            item = ConfigTreeItem(entry)
            parent = parents.get(entry.path[:-1])
            if parent is None:
                self.tree.addTopLevelItem(item)
            else:
                parent.addChild(item)
            parents[entry.path] = item
        self.tree.expandToDepth(0)

    # -- state ----------------------------------------------------------

    @property
    def loaded(self) -> Optional[LoadedConfig]:
        return self._loaded

    @property
    def dialect(self) -> Optional[Dialect]:
        return self._loaded.dialect if self._loaded else None

    def is_modified(self) -> bool:
        return self._modified

    def is_code_view(self) -> bool:
        return self.tabs.currentIndex() == 1

    def code_text(self) -> str:
        return self.code_edit.toPlainText()

    def edited_data(self):
        """The edited tree as plain Python data, or None without a valid file."""
        if self._edited is None:
            return None
        return to_python(self._edited)

    def _set_modified(self, modified: bool):
        if modified != self._modified:
            self._modified = modified
            self.modified_changed.emit(modified)

    # -- editing --------------------------------------------------------

    def _on_item_changed(self, item: QTreeWidgetItem, column: int):
        if self._updating or column != COL_VALUE or not isinstance(item, ConfigTreeItem):
            return

        text = item.text(COL_VALUE)
        try:
            new_value = scalar_from_text(text, item.value)
        except ValueError as e:
            QMessageBox.warning(self, "Invalid Value", str(e))
            self._updating = True
            item.setText(COL_VALUE, display_text(item.value))
            self._updating = False
            return

        if new_value == item.value and type(new_value) is type(item.value):
            return

        set_value_at(self._edited, item.path, new_value)
        self._updating = True
        item.set_value(new_value)
        self._updating = False
        log.debug(f"Edited {format_path(item.path)} = {display_text(new_value)}")
        self._tree_modified = True
        self._set_modified(True)

    def _remove_item(self, item: ConfigTreeItem):
        reply = QMessageBox.question(
            self, "Remove Entry",
            f"Remove '{format_path(item.path)}'?\n\n"
            "Removing entries rewrites the whole file on save; comments will be lost.",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if reply != QMessageBox.StandardButton.Yes:
            return

        try:
            remove_value_at(self._edited, item.path)
        except KeyError as e:
            log.warning(f"Could not remove {format_path(item.path)}: {e}")
            return

        # Array indices shift, so rebuild the rows from the edited tree
        data = to_python(self._edited)
        self._updating = True
        self.tree.clear()
        self._populate_tree(extract_config_entries(data, self._loaded.content, self._loaded.dialect))
        self._updating = False
        self._tree_modified = True
        self._set_modified(True)

    def _show_context_menu(self, pos):
        item = self.tree.itemAt(pos)
        if not isinstance(item, ConfigTreeItem):
            return

        menu = QMenu(self)
        if item.is_scalar:
            edit_action = menu.addAction("Edit Value")
            edit_action.triggered.connect(lambda: self.tree.editItem(item, COL_VALUE))
        copy_action = menu.addAction("Copy Path")
        copy_action.triggered.connect(lambda: self._copy_path(item))
        menu.addSeparator()
        remove_action = menu.addAction("Remove")
        remove_action.triggered.connect(lambda: self._remove_item(item))
        menu.exec(self.tree.viewport().mapToGlobal(pos))

    def _copy_path(self, item: ConfigTreeItem):
        from PyQt6.QtWidgets import QApplication
        QApplication.clipboard().setText(format_path(item.path))

    def _on_code_changed(self):
        if self._updating or self._loaded is None:
            return
        code_changed = self.code_edit.toPlainText() != self._loaded.content
        self._set_modified(self._tree_modified or code_changed)

    def _on_current_changed(self, current: QTreeWidgetItem, previous: QTreeWidgetItem):
        if isinstance(current, ConfigTreeItem):
            self.entry_selected.emit(
                format_path(current.path),
                type_name(current.value),
                current.entry.description or "",
            )

    def _filter_tree(self, text: str):
        needle = text.lower()

        def visit(item: QTreeWidgetItem) -> bool:
            child_match = False
            for i in range(item.childCount()):
                if visit(item.child(i)):
                    child_match = True
            match = not needle or needle in item.text(COL_KEY).lower() or child_match
            item.setHidden(not match)
            return match

        for i in range(self.tree.topLevelItemCount()):
            visit(self.tree.topLevelItem(i))
