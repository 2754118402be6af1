"""
Backups dialog for ModConfigPatcher
Lists stored versions of a config file and restores or deletes them.
"""

import logging
from datetime import datetime
from typing import Optional

from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QListWidget,
    QListWidgetItem, QMessageBox, QPlainTextEdit, QSplitter, QDialogButtonBox
)
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QFontDatabase

from config_backups import ConfigBackup
from config_store import ConfigFileStore, ConfigStoreError

# Module logger
log = logging.getLogger("modconfigpatcher.ui.backups_dialog")


class BackupListItem(QListWidgetItem):
    """List item for a stored config version."""

    def __init__(self, backup: ConfigBackup):
        super().__init__()
        self.backup = backup
        self._update_display()

    def _update_display(self):
        try:
            dt = datetime.strptime(self.backup.timestamp, "%Y%m%d_%H%M%S_%f")
            time_str = dt.strftime("%Y-%m-%d %H:%M:%S")
        except (ValueError, TypeError):
            time_str = self.backup.timestamp

        self.setText(time_str)
        tooltip = f"<b>{self.backup.relative_path}</b><br>{time_str}"
        if self.backup.reason:
            tooltip += f"<br>{self.backup.reason}"
        self.setToolTip(tooltip)


class BackupsDialog(QDialog):
    """Backups of one config file."""

    backup_restored = pyqtSignal(str)  # relative path

    def __init__(self, store: ConfigFileStore, relative_path: str, parent=None):
        super().__init__(parent)
        self.store = store
        self.relative_path = relative_path
        self.setWindowTitle(f"Backups - {relative_path}")
        self.setMinimumSize(700, 450)

        self._setup_ui()
        self._refresh_list()

    def _setup_ui(self):
        layout = QVBoxLayout(self)

        desc = QLabel(
            "A copy of the file is stored before every save. "
            f"The newest {self.store.backups.max_backups} versions are kept."
        )
        desc.setStyleSheet("color: #888;")
        desc.setWordWrap(True)
        layout.addWidget(desc)

        splitter = QSplitter(Qt.Orientation.Horizontal)

        self.backup_list = QListWidget()
        self.backup_list.currentItemChanged.connect(self._show_preview)
        self.backup_list.itemDoubleClicked.connect(self._restore_selected)
        splitter.addWidget(self.backup_list)

        self.preview = QPlainTextEdit()
        self.preview.setReadOnly(True)
        self.preview.setFont(QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont))
        splitter.addWidget(self.preview)
        splitter.setSizes([220, 480])
        layout.addWidget(splitter, 1)

        actions = QHBoxLayout()

        self.btn_restore = QPushButton("Restore")
        self.btn_restore.clicked.connect(self._restore_selected)
        actions.addWidget(self.btn_restore)

        self.btn_delete = QPushButton("Delete")
        self.btn_delete.clicked.connect(self._delete_selected)
        actions.addWidget(self.btn_delete)

        actions.addStretch()
        layout.addLayout(actions)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _refresh_list(self):
        self.backup_list.clear()
        self.preview.clear()
        for backup in self.store.backups.list_backups(self.relative_path):
            self.backup_list.addItem(BackupListItem(backup))

        has_backups = self.backup_list.count() > 0
        self.btn_restore.setEnabled(has_backups)
        self.btn_delete.setEnabled(has_backups)
        if has_backups:
            self.backup_list.setCurrentRow(0)

    def _get_selected_backup(self) -> Optional[ConfigBackup]:
        item = self.backup_list.currentItem()
        if isinstance(item, BackupListItem):
            return item.backup
        return None

    def _show_preview(self, current: QListWidgetItem, previous: QListWidgetItem = None):
        if not isinstance(current, BackupListItem):
            self.preview.clear()
            return
        content = self.store.backups.read_backup(current.backup)
        self.preview.setPlainText(content if content is not None else "(backup file missing)")

    def _restore_selected(self, item: QListWidgetItem = None):
        backup = self._get_selected_backup()
        if not backup:
            return

        reply = QMessageBox.question(
            self, "Restore Backup",
            f"Restore {self.relative_path} to this version?\n\n"
            "The current file is backed up first.",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if reply != QMessageBox.StandardButton.Yes:
            return

        try:
            self.store.restore_backup(backup)
        except ConfigStoreError as e:
            QMessageBox.critical(self, "Restore Failed", str(e))
            return

        log.info(f"Restored {self.relative_path} from {backup.filename}")
        self.backup_restored.emit(self.relative_path)
        self._refresh_list()

    def _delete_selected(self):
        backup = self._get_selected_backup()
        if not backup:
            return

        reply = QMessageBox.question(
            self, "Delete Backup",
            "Delete this backup?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.store.backups.delete_backup(backup)
            self._refresh_list()
