"""
Main Window for ModConfigPatcher
Browse a server's config folder and edit mod configs without losing comments.
"""

import html
import logging
import os
import platform
import subprocess
from pathlib import Path
from typing import Optional

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QSplitter,
    QLabel, QPushButton, QComboBox, QLineEdit, QTextEdit,
    QGroupBox, QFileDialog, QMessageBox, QStatusBar,
    QDialog, QDialogButtonBox, QListWidget, QListWidgetItem,
    QCheckBox, QSpinBox
)
from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QAction

from config_handler import ConfigHandler
from config_store import (
    ConfigFileInfo, ConfigFileStore, ConfigStoreError, ConfigValidationError, SaveResult,
)
from logger import get_log_dir
from ui.backups_dialog import BackupsDialog
from ui.config_editor import ConfigEditorWidget

# Module logger
log = logging.getLogger("modconfigpatcher.ui.main_window")


def open_folder(path: Path):
    """Open a folder in the system file manager."""
    system = platform.system().lower()
    try:
        if system == 'windows':
            os.startfile(str(path))
        elif system == 'darwin':
            subprocess.run(["open", str(path)], check=False)
        else:
            subprocess.run(["xdg-open", str(path)], check=False)
    except (OSError, subprocess.SubprocessError) as e:
        log.warning(f"Could not open {path}: {e}")


def entry_details_html(path: str, type_label: str, description: str) -> str:
    """Rich text for the details pane; config comments are shown as plain text."""
    content = f"<b>{html.escape(path)}</b><br><i>{html.escape(type_label)}</i>"
    if description:
        content += "<p>" + html.escape(description).replace("\n", "<br>") + "</p>"
    else:
        content += "<p style='color: #888;'>No description</p>"
    return content


class SettingsDialog(QDialog):
    """Dialog for application settings."""

    def __init__(self, config: ConfigHandler, parent=None):
        super().__init__(parent)
        self.config = config
        self.setWindowTitle("Settings")
        self.setMinimumSize(460, 320)

        self._setup_ui()
        self._load_settings()

    def _setup_ui(self):
        layout = QVBoxLayout(self)

        # Saving
        save_group = QGroupBox("Saving")
        save_layout = QVBoxLayout(save_group)

        self.smart_replace_check = QCheckBox("Keep comments and formatting (smart replace)")
        self.smart_replace_check.setToolTip(
            "Only the changed values are rewritten.\n"
            "When off, the whole file is re-serialized and comments are lost."
        )
        save_layout.addWidget(self.smart_replace_check)

        backups_layout = QHBoxLayout()
        backups_layout.addWidget(QLabel("Backups per file:"))
        self.max_backups_spin = QSpinBox()
        self.max_backups_spin.setRange(1, 100)
        backups_layout.addWidget(self.max_backups_spin)
        backups_layout.addStretch()
        save_layout.addLayout(backups_layout)

        layout.addWidget(save_group)

        # UI Settings
        ui_group = QGroupBox("User Interface")
        ui_layout = QHBoxLayout(ui_group)
        ui_layout.addWidget(QLabel("Theme:"))
        self.theme_combo = QComboBox()
        self.theme_combo.addItems(["System", "Dark", "Light"])
        self.theme_combo.setToolTip("Select application theme (requires restart)")
        ui_layout.addWidget(self.theme_combo)
        ui_layout.addStretch()
        layout.addWidget(ui_group)

        # Settings file location info
        info_group = QGroupBox("Settings Folder")
        info_layout = QVBoxLayout(info_group)

        info_label = QLabel(f"<code>{self.config.config_dir}</code>")
        info_label.setTextFormat(Qt.TextFormat.RichText)
        info_label.setWordWrap(True)
        info_layout.addWidget(info_label)

        btn_layout = QHBoxLayout()
        btn_open_config = QPushButton("Open Settings Folder")
        btn_open_config.clicked.connect(lambda: open_folder(self.config.config_dir))
        btn_layout.addWidget(btn_open_config)

        btn_open_logs = QPushButton("Open Log Folder")
        btn_open_logs.clicked.connect(lambda: open_folder(get_log_dir(self.config.config_dir)))
        btn_layout.addWidget(btn_open_logs)
        btn_layout.addStretch()
        info_layout.addLayout(btn_layout)

        layout.addWidget(info_group)
        layout.addStretch()

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save |
            QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self._save_settings)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _load_settings(self):
        cfg = self.config.config
        self.smart_replace_check.setChecked(cfg.prefer_smart_replace)
        self.max_backups_spin.setValue(cfg.max_backups)
        theme = {None: "System", True: "Dark", False: "Light"}.get(cfg.dark_mode, "System")
        self.theme_combo.setCurrentText(theme)

    def _save_settings(self):
        cfg = self.config.config
        cfg.prefer_smart_replace = self.smart_replace_check.isChecked()
        cfg.max_backups = self.max_backups_spin.value()
        cfg.dark_mode = {"System": None, "Dark": True, "Light": False}[self.theme_combo.currentText()]
        self.config.save()
        self.accept()


class ConfigFileItem(QListWidgetItem):
    """List item for a config file."""

    def __init__(self, info: ConfigFileInfo):
        super().__init__(info.path)
        self.info = info
        self.setToolTip(
            f"{info.path}\n{info.dialect.value.upper()}, {info.size} bytes\nModified {info.modified_at}"
        )


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self):
        super().__init__()

        self.config = ConfigHandler()
        self.store: Optional[ConfigFileStore] = None
        self.current_file: Optional[str] = None
        self._files: list[ConfigFileInfo] = []

        self._setup_ui()
        self._setup_menus()
        self._connect_signals()
        self._restore_geometry()

        QTimer.singleShot(100, self._initial_setup)

    def _setup_ui(self):
        self.setWindowTitle("ModConfigPatcher")
        self.setMinimumSize(900, 600)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(8, 8, 8, 8)

        # Server folder
        server_layout = QHBoxLayout()
        server_layout.addWidget(QLabel("Server:"))
        self.server_edit = QLineEdit()
        self.server_edit.setReadOnly(True)
        self.server_edit.setPlaceholderText("Select the Minecraft server folder (the one containing config/)")
        server_layout.addWidget(self.server_edit, 1)

        self.btn_browse = QPushButton("Browse...")
        server_layout.addWidget(self.btn_browse)

        self.btn_refresh = QPushButton("Refresh")
        server_layout.addWidget(self.btn_refresh)
        layout.addLayout(server_layout)

        self.main_splitter = QSplitter(Qt.Orientation.Horizontal)

        # File list
        files_panel = QWidget()
        files_layout = QVBoxLayout(files_panel)
        files_layout.setContentsMargins(0, 0, 0, 0)

        self.file_filter = QLineEdit()
        self.file_filter.setPlaceholderText("Filter files...")
        self.file_filter.setClearButtonEnabled(True)
        files_layout.addWidget(self.file_filter)

        self.file_list = QListWidget()
        files_layout.addWidget(self.file_list, 1)

        self.files_count_label = QLabel("")
        self.files_count_label.setStyleSheet("color: #888;")
        files_layout.addWidget(self.files_count_label)
        self.main_splitter.addWidget(files_panel)

        # Editor
        editor_panel = QWidget()
        editor_layout = QVBoxLayout(editor_panel)
        editor_layout.setContentsMargins(0, 0, 0, 0)

        self.editor = ConfigEditorWidget()
        editor_layout.addWidget(self.editor, 1)

        btn_layout = QHBoxLayout()
        self.btn_save = QPushButton("Save")
        self.btn_save.setEnabled(False)
        btn_layout.addWidget(self.btn_save)

        self.btn_reset = QPushButton("Reset")
        self.btn_reset.setToolTip("Discard unsaved edits")
        self.btn_reset.setEnabled(False)
        btn_layout.addWidget(self.btn_reset)

        self.btn_backups = QPushButton("Backups...")
        self.btn_backups.setEnabled(False)
        btn_layout.addWidget(self.btn_backups)
        btn_layout.addStretch()
        editor_layout.addLayout(btn_layout)
        self.main_splitter.addWidget(editor_panel)

        # Details
        details_group = QGroupBox("Details")
        details_layout = QVBoxLayout(details_group)
        self.details_text = QTextEdit()
        self.details_text.setReadOnly(True)
        details_layout.addWidget(self.details_text)
        self.main_splitter.addWidget(details_group)

        layout.addWidget(self.main_splitter, 1)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

    def _setup_menus(self):
        menubar = self.menuBar()

        file_menu = menubar.addMenu("File")

        open_action = QAction("Open Server Folder...", self)
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self._browse_server)
        file_menu.addAction(open_action)

        save_action = QAction("Save", self)
        save_action.setShortcut("Ctrl+S")
        save_action.triggered.connect(self._save_current)
        file_menu.addAction(save_action)

        reload_action = QAction("Reload", self)
        reload_action.setShortcut("F5")
        reload_action.triggered.connect(self._reload_current)
        file_menu.addAction(reload_action)

        self.recent_menu = file_menu.addMenu("Recent Files")

        file_menu.addSeparator()

        exit_action = QAction("Exit", self)
        exit_action.setShortcut("Ctrl+Q")
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        tools_menu = menubar.addMenu("Tools")

        backups_action = QAction("Backups...", self)
        backups_action.triggered.connect(self._show_backups)
        tools_menu.addAction(backups_action)

        open_config_action = QAction("Open Config Folder", self)
        open_config_action.triggered.connect(self._open_config_folder)
        tools_menu.addAction(open_config_action)

        open_logs_action = QAction("Open Log Folder", self)
        open_logs_action.triggered.connect(lambda: open_folder(get_log_dir(self.config.config_dir)))
        tools_menu.addAction(open_logs_action)

        tools_menu.addSeparator()

        settings_action = QAction("Settings...", self)
        settings_action.triggered.connect(self._show_settings)
        tools_menu.addAction(settings_action)

        help_menu = menubar.addMenu("Help")
        about_action = QAction("About", self)
        about_action.triggered.connect(self._show_about)
        help_menu.addAction(about_action)

    def _connect_signals(self):
        self.btn_browse.clicked.connect(self._browse_server)
        self.btn_refresh.clicked.connect(self._refresh_files)
        self.file_filter.textChanged.connect(self._filter_files)
        self.file_list.currentItemChanged.connect(self._on_file_selected)
        self.btn_save.clicked.connect(self._save_current)
        self.btn_reset.clicked.connect(self._reload_current)
        self.btn_backups.clicked.connect(self._show_backups)
        self.editor.modified_changed.connect(self._on_modified_changed)
        self.editor.entry_selected.connect(self._show_entry_details)

    def _restore_geometry(self):
        cfg = self.config.config
        self.resize(cfg.window_width, cfg.window_height)
        if cfg.window_x >= 0 and cfg.window_y >= 0:
            self.move(cfg.window_x, cfg.window_y)
        if len(cfg.splitter_sizes) == 3:
            self.main_splitter.setSizes(cfg.splitter_sizes)

    def _initial_setup(self):
        server_path = self.config.get_server_path()
        if server_path is None:
            self.status_bar.showMessage("Select a server folder to begin")
            return
        self._open_server(server_path)

        last = self.config.config.last_opened_file
        if last:
            self._select_file(last)

    # -- server and file list --------------------------------------------

    def _browse_server(self):
        start = self.config.config.server_path or str(Path.home())
        path = QFileDialog.getExistingDirectory(self, "Select Server Folder", start)
        if not path or not self._confirm_discard():
            return

        if not (Path(path) / ConfigFileStore.CONFIG_DIR_NAME).is_dir():
            QMessageBox.warning(
                self, "No Config Folder",
                f"{path} has no config/ folder.\nSelect the server's root folder."
            )
            return

        self.config.set_server_path(path)
        self._open_server(Path(path))

    def _open_server(self, server_path: Path):
        self.store = ConfigFileStore(
            server_path, self.config.backups_dir, max_backups=self.config.config.max_backups
        )
        self.server_edit.setText(str(server_path))
        self.current_file = None
        self.editor.clear()
        self._refresh_files()
        self._update_recent_menu()
        log.info(f"Opened server {server_path}")

    def _refresh_files(self):
        if self.store is None:
            return
        self._files = self.store.list_files()
        self._populate_file_list()
        self.status_bar.showMessage(f"Found {len(self._files)} config files", 3000)

    def _populate_file_list(self):
        self.file_list.blockSignals(True)
        self.file_list.clear()
        selected_row = -1
        for info in self._files:
            item = ConfigFileItem(info)
            self.file_list.addItem(item)
            if info.path == self.current_file:
                selected_row = self.file_list.count() - 1
        if selected_row >= 0:
            self.file_list.setCurrentRow(selected_row)
        self.file_list.blockSignals(False)
        self._filter_files(self.file_filter.text())

    def _filter_files(self, text: str):
        needle = text.lower()
        visible = 0
        for i in range(self.file_list.count()):
            item = self.file_list.item(i)
            hidden = bool(needle) and needle not in item.text().lower()
            item.setHidden(hidden)
            if not hidden:
                visible += 1
        self.files_count_label.setText(f"{visible} of {self.file_list.count()} files")

    def _select_file(self, relative_path: str):
        for i in range(self.file_list.count()):
            item = self.file_list.item(i)
            if isinstance(item, ConfigFileItem) and item.info.path == relative_path:
                self.file_list.setCurrentItem(item)
                return

    def _on_file_selected(self, current: QListWidgetItem, previous: QListWidgetItem):
        if not isinstance(current, ConfigFileItem) or current.info.path == self.current_file:
            return
        if not self._confirm_discard():
            # Put the selection back without reloading
            self.file_list.blockSignals(True)
            self.file_list.setCurrentItem(previous)
            self.file_list.blockSignals(False)
            return
        self._open_file(current.info.path)

    def _open_file(self, relative_path: str):
        if self.store is None:
            return
        try:
            loaded = self.store.load(relative_path)
        except ConfigStoreError as e:
            QMessageBox.critical(self, "Open Failed", str(e))
            return

        self.current_file = relative_path
        self.editor.load(loaded)
        self.details_text.clear()
        self.btn_backups.setEnabled(True)
        self.config.add_recent_file(relative_path)
        self._update_recent_menu()

        if loaded.is_valid:
            self.status_bar.showMessage(f"Opened {relative_path}")
        else:
            self.details_text.setPlainText(f"This file does not parse:\n\n{loaded.parse_error}")
            self.status_bar.showMessage(f"{relative_path} has syntax errors; showing the code view")

    def _update_recent_menu(self):
        self.recent_menu.clear()
        for relative_path in self.config.config.recent_files:
            action = QAction(relative_path, self)
            action.triggered.connect(lambda checked=False, p=relative_path: self._select_file(p))
            self.recent_menu.addAction(action)
        self.recent_menu.setEnabled(bool(self.config.config.recent_files))

    # -- editing ----------------------------------------------------------

    def _on_modified_changed(self, modified: bool):
        self.btn_save.setEnabled(modified)
        self.btn_reset.setEnabled(modified)
        title = "ModConfigPatcher"
        if self.current_file:
            title = f"{self.current_file}{' *' if modified else ''} - {title}"
        self.setWindowTitle(title)

    def _show_entry_details(self, path: str, type_label: str, description: str):
        self.details_text.setHtml(entry_details_html(path, type_label, description))

    def _confirm_discard(self) -> bool:
        """True when there are no unsaved edits or the user agrees to drop them."""
        if not self.editor.is_modified():
            return True
        reply = QMessageBox.question(
            self, "Unsaved Changes",
            f"Discard unsaved changes to {self.current_file}?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        return reply == QMessageBox.StandardButton.Yes

    def _save_current(self):
        if self.store is None or self.current_file is None or not self.editor.is_modified():
            return

        loaded = self.editor.loaded
        try:
            if self.editor.is_code_view() or not loaded.is_valid:
                result = self.store.save_text(self.current_file, self.editor.code_text())
            else:
                result = self.store.save_edited(
                    self.current_file, loaded.parsed, self.editor.edited_data(),
                    smart=self.config.config.prefer_smart_replace,
                )
        except ConfigValidationError as e:
            QMessageBox.critical(
                self, "Save Rejected",
                f"The result would not be valid {loaded.dialect.value.upper()}, "
                f"so the file was not changed.\n\n{e.parser_message}"
            )
            return
        except ConfigStoreError as e:
            QMessageBox.critical(self, "Save Failed", str(e))
            return

        self._after_save(result)

    def _after_save(self, result: SaveResult):
        self.status_bar.showMessage(result.message, 8000)
        if result.notes:
            log.info(f"Skipped changes in {result.path}: {'; '.join(result.notes)}")
            QMessageBox.information(
                self, "Some Changes Skipped",
                "These changes could not be written:\n\n" + "\n".join(result.notes)
            )
        self._reload_current(confirm=False)
        self._refresh_files()

    def _reload_current(self, confirm: bool = True):
        if self.current_file is None:
            return
        if confirm and not self._confirm_discard():
            return
        self._open_file(self.current_file)

    def _show_backups(self):
        if self.store is None or self.current_file is None:
            return
        dialog = BackupsDialog(self.store, self.current_file, self)
        dialog.backup_restored.connect(lambda _: self._reload_current(confirm=False))
        dialog.exec()

    def _open_config_folder(self):
        if self.store is not None:
            open_folder(self.store.config_dir)

    def _show_settings(self):
        dialog = SettingsDialog(self.config, self)
        if dialog.exec() and self.store is not None:
            self.store.backups.max_backups = self.config.config.max_backups

    def _show_about(self):
        from main import __version__
        QMessageBox.about(
            self,
            "About ModConfigPatcher",
            "<h2>ModConfigPatcher</h2>"
            "<p>Edit Minecraft mod configs (JSON, JSON5, TOML) without losing comments.</p>"
            "<ul>"
            "<li>Only changed values are rewritten</li>"
            "<li>Descriptions taken from the config comments</li>"
            "<li>Every save is checked and backed up</li>"
            "</ul>"
            f"<p>Version {__version__}</p>"
        )

    def closeEvent(self, event):
        if not self._confirm_discard():
            event.ignore()
            return

        self.config.config.window_width = self.width()
        self.config.config.window_height = self.height()
        self.config.config.window_x = self.x()
        self.config.config.window_y = self.y()
        self.config.config.splitter_sizes = self.main_splitter.sizes()
        self.config.save()

        event.accept()
