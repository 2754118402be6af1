#!/usr/bin/env python3
"""
ModConfigPatcher
Comment-preserving editor for Minecraft server mod configs (JSON, JSON5, TOML).

License: MIT
"""

import argparse
import os
import sys
from pathlib import Path

__version__ = "1.0.0"

# Ensure the project directory is in the path
project_dir = Path(__file__).parent.absolute()
if str(project_dir) not in sys.path:
    sys.path.insert(0, str(project_dir))


def check_dependencies() -> bool:
    """Check if all required dependencies are available."""
    missing = []

    try:
        from PyQt6.QtWidgets import QApplication
    except ImportError:
        missing.append("PyQt6")

    try:
        import json5
    except ImportError:
        missing.append("json5")

    try:
        import toml
    except ImportError:
        missing.append("toml")

    if missing:
        print("Missing required dependencies:")
        for dep in missing:
            print(f"  - {dep}")
        print("\nInstall with:")
        print(f"  pip install {' '.join(missing)}")
        return False

    return True


def setup_environment():
    """Set up environment variables - cross-platform."""
    import platform
    system = platform.system().lower()

    # Suppress Qt portal warnings
    os.environ["QT_LOGGING_RULES"] = "qt.qpa.services=false"

    if system not in ('windows', 'darwin'):
        # Set Qt environment for better theme integration
        if "QT_QPA_PLATFORMTHEME" not in os.environ:
            if os.environ.get("KDE_FULL_SESSION"):
                os.environ["QT_QPA_PLATFORMTHEME"] = "kde"
            elif os.environ.get("DESKTOP_SESSION", "").lower() in ("gnome", "ubuntu"):
                os.environ["QT_QPA_PLATFORMTHEME"] = "gnome"


def apply_dark_palette(app):
    from PyQt6.QtCore import Qt
    from PyQt6.QtGui import QPalette, QColor

    dark_palette = QPalette()
    dark_palette.setColor(QPalette.ColorRole.Window, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ColorRole.WindowText, Qt.GlobalColor.white)
    dark_palette.setColor(QPalette.ColorRole.Base, QColor(35, 35, 35))
    dark_palette.setColor(QPalette.ColorRole.AlternateBase, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ColorRole.ToolTipBase, QColor(25, 25, 25))
    dark_palette.setColor(QPalette.ColorRole.ToolTipText, Qt.GlobalColor.white)
    dark_palette.setColor(QPalette.ColorRole.Text, Qt.GlobalColor.white)
    dark_palette.setColor(QPalette.ColorRole.Button, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ColorRole.ButtonText, Qt.GlobalColor.white)
    dark_palette.setColor(QPalette.ColorRole.BrightText, Qt.GlobalColor.red)
    dark_palette.setColor(QPalette.ColorRole.Link, QColor(42, 130, 218))
    dark_palette.setColor(QPalette.ColorRole.Highlight, QColor(42, 130, 218))
    dark_palette.setColor(QPalette.ColorRole.HighlightedText, Qt.GlobalColor.black)

    # Disabled colors
    dark_palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.WindowText, QColor(127, 127, 127))
    dark_palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.Text, QColor(127, 127, 127))
    dark_palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.ButtonText, QColor(127, 127, 127))

    app.setPalette(dark_palette)


def main():
    """Main application entry point."""
    parser = argparse.ArgumentParser(description="Edit Minecraft mod configs without losing comments")
    parser.add_argument("--debug", action="store_true", help="log every patch decision")
    args, qt_args = parser.parse_known_args()

    if not check_dependencies():
        sys.exit(1)

    setup_environment()

    # Import after dependency check
    from PyQt6.QtWidgets import QApplication, QMessageBox
    from PyQt6.QtGui import QPalette

    from config_handler import ConfigHandler
    from logger import setup_logging
    from ui.main_window import MainWindow

    settings = ConfigHandler()
    log = setup_logging(settings.config_dir, debug=args.debug)
    log.info(f"ModConfigPatcher {__version__} starting")

    app = QApplication([sys.argv[0]] + qt_args)
    app.setApplicationName("ModConfigPatcher")
    app.setApplicationDisplayName("ModConfigPatcher")
    app.setOrganizationName("ModConfigPatcher")

    app.setStyle("Fusion")

    dark_mode = settings.config.dark_mode
    if dark_mode is None:
        # Follow the system palette
        dark_mode = app.palette().color(QPalette.ColorRole.Window).lightness() < 128
    if dark_mode:
        apply_dark_palette(app)

    try:
        window = MainWindow()
        window.show()
    except (OSError, IOError, RuntimeError, ValueError, TypeError) as e:
        log.error(f"Startup failed: {e}")
        QMessageBox.critical(None, "Startup Error", f"Failed to start application:\n{e}")
        return 1

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
