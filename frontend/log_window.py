from PySide6.QtWidgets import QDialog, QVBoxLayout, QHBoxLayout, QPlainTextEdit, QPushButton
from PySide6.QtGui import QFontDatabase
from PySide6.QtCore import QObject, Signal
import html
import logging


class LogSignalHandler(logging.Handler, QObject):
    # (formatted message, level number), parse errors are shown in red
    message_logged = Signal(str, int)

    def __init__(self):
        logging.Handler.__init__(self)
        QObject.__init__(self)

    def emit(self, record):
        self.message_logged.emit(self.format(record), record.levelno)


class LogWindow(QDialog):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Linux Steam® Integration Logs")
        self.resize(640, 400)

        layout = QVBoxLayout(self)

        self.text_area = QPlainTextEdit()
        self.text_area.setReadOnly(True)
        self.text_area.setFont(QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont))
        layout.addWidget(self.text_area)

        buttons = QHBoxLayout()
        clear_btn = QPushButton("Clear")
        clear_btn.clicked.connect(self.text_area.clear)
        buttons.addWidget(clear_btn)
        buttons.addStretch()
        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.hide)
        buttons.addWidget(close_btn)
        layout.addLayout(buttons)

    def append_log(self, message: str, level: int = logging.INFO):
        if level >= logging.ERROR:
            self.text_area.appendHtml(f'<span style="color: #d32f2f">{html.escape(message)}</span>')
        else:
            self.text_area.appendPlainText(message)
