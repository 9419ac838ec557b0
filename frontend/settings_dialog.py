from PySide6.QtWidgets import (QDialog, QVBoxLayout, QHBoxLayout, QLabel, QCheckBox,
                               QPushButton, QGroupBox, QListWidget, QDialogButtonBox)
from PySide6.QtCore import Qt
import logging

from lsi.log import attach_handler, detach_handler
from lsi.settings import SettingsManager, is_64bit
from lsi.steam_paths import SteamPathDetector
from frontend.log_window import LogWindow, LogSignalHandler

logger = logging.getLogger(__name__)

HEADER_TEXT = (
    "<big>Linux Steam® Integration</big><br>"
    "Note that settings are not applied until the next time Steam® starts.<br>"
    "Use the 'Exit Steam' option on the Steam® tray icon to exit the application."
)


class SettingsDialog(QDialog):
    def __init__(self, settings: SettingsManager = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Linux Steam® Integration")
        self.settings = settings or SettingsManager()

        self.setup_logging()
        self.init_ui()
        self.refresh_libraries()

    def setup_logging(self):
        self.log_window = LogWindow(self)

        self.log_handler = attach_handler(LogSignalHandler())
        self.log_handler.message_logged.connect(self.log_window.append_log)

        self.file_handler = None
        log_path = self.settings.settings_file.parent / "lsi.log"
        try:
            self.file_handler = attach_handler(logging.FileHandler(log_path))
        except OSError as e:
            logger.warning(f"Failed to setup file logging at {log_path}: {e}")

    def init_ui(self):
        layout = QVBoxLayout(self)

        header = QLabel(HEADER_TEXT)
        header.setTextFormat(Qt.TextFormat.RichText)
        layout.addWidget(header)

        # Runtime options
        options_group = QGroupBox("Steam® Runtime")
        options_layout = QVBoxLayout()

        self.native_check = QCheckBox("Use the native runtime provided by the Operating System")
        self.native_check.setToolTip("Alternatively, the default Steam® runtime will be used, "
                                     "which may cause issues.")
        self.native_check.setChecked(self.settings.use_native_runtime)
        options_layout.addWidget(self.native_check)

        self.force32_check = QCheckBox("Force 32-bit mode for Steam®")
        if is_64bit():
            self.force32_check.setToolTip("Some games may run better using 32-bit than 64-bit")
        else:
            self.force32_check.setToolTip("You are using a 32-bit operating system")
        self.force32_check.setEnabled(is_64bit())
        self.force32_check.setChecked(self.settings.force_32)
        options_layout.addWidget(self.force32_check)

        options_group.setLayout(options_layout)
        layout.addWidget(options_group)

        # Detected libraries, read from libraryfolders.vdf
        steam_group = QGroupBox("Steam® Libraries")
        steam_layout = QVBoxLayout()
        self.library_list = QListWidget()
        steam_layout.addWidget(self.library_list)
        steam_group.setLayout(steam_layout)
        layout.addWidget(steam_group)

        bottom = QHBoxLayout()
        logs_btn = QPushButton("Show Logs")
        logs_btn.clicked.connect(self.show_log_window)
        bottom.addWidget(logs_btn)
        bottom.addStretch()

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        bottom.addWidget(buttons)
        layout.addLayout(bottom)

    def refresh_libraries(self):
        self.library_list.clear()
        steam_root = SteamPathDetector.get_steam_install_path()
        for path in SteamPathDetector.get_library_paths(steam_root):
            self.library_list.addItem(str(path))

    def show_log_window(self):
        self.log_window.show()
        self.log_window.raise_()
        self.log_window.activateWindow()

    def save_settings(self) -> bool:
        return self.settings.update({
            "use_native_runtime": self.native_check.isChecked(),
            "force_32": self.force32_check.isChecked(),
        })

    def accept(self):
        if self.save_settings():
            logger.info("Settings saved, they will apply the next time Steam starts")
        super().accept()

    def done(self, result):
        detach_handler(self.log_handler)
        if self.file_handler is not None:
            detach_handler(self.file_handler)
        super().done(result)
