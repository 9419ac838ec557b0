import sys
from PySide6.QtWidgets import QApplication
from frontend.settings_dialog import SettingsDialog

def main():
    """
    Settings dialog entry point.
    """
    app = QApplication(sys.argv)
    app.setApplicationName("linux-steam-integration")

    dialog = SettingsDialog()
    dialog.show()

    sys.exit(app.exec())

if __name__ == "__main__":
    main()
