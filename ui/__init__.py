"""
UI Package for ModConfigPatcher
"""

from .config_editor import ConfigEditorWidget, ConfigTreeItem
from .backups_dialog import BackupsDialog
from .main_window import MainWindow, SettingsDialog

__all__ = [
    'ConfigEditorWidget',
    'ConfigTreeItem',
    'BackupsDialog',
    'MainWindow',
    'SettingsDialog',
]
