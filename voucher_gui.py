# voucher_gui.py
"""
Button-printer kiosk for guest vouchers
Features:
 - Reads settings from the environment / .env
 - One button per configured duration preset (VOUCHER_PRESETS)
 - Optional note attached to the voucher
 - Issues the voucher on the controller and prints the ticket in a worker thread
 - Logging pane
"""

import logging
import sys
import threading

from PyQt5 import QtCore, QtWidgets
from escpos.exceptions import Error as PrinterError

from unifi_client import VoucherError
from voucher_client import issue_voucher
from voucher_config import LOG_DATEFMT, LOG_FORMAT, Settings, setup_logging
from voucher_ticket import duration_label

logger = logging.getLogger(__name__)


class WorkerSignals(QtCore.QObject):
    log = QtCore.pyqtSignal(str)
    status = QtCore.pyqtSignal(str)
    voucher = QtCore.pyqtSignal(str)
    done = QtCore.pyqtSignal()


class SignalLogHandler(logging.Handler):
    def __init__(self, signals):
        super().__init__()
        self.signals = signals
        self.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATEFMT))

    def emit(self, record):
        self.signals.log.emit(self.format(record))


class VoucherGUI(QtWidgets.QWidget):
    def __init__(self, settings=None):
        super().__init__()
        self.setWindowTitle("Guest WiFi - Voucher Printer")
        self.setMinimumSize(420, 520)
        self.signals = WorkerSignals()
        self.settings = settings
        self.preset_buttons = []

        self._build_ui()
        self._connect_signals()

        self.log_handler = SignalLogHandler(self.signals)
        logging.getLogger().addHandler(self.log_handler)

        if self.settings is None:
            self._load_settings()
        else:
            self._add_preset_buttons()
            self.signals.status.emit("ready")

    def _load_settings(self):
        try:
            self.settings = Settings.from_env()
        except VoucherError as e:
            logger.error("configuration error: %s", e)
            self._set_buttons_enabled(False)
            self.signals.status.emit("not configured")
            return
        self._add_preset_buttons()
        self.signals.status.emit("ready")

    def _build_ui(self):
        layout = QtWidgets.QVBoxLayout(self)

        # header
        h = QtWidgets.QHBoxLayout()
        self.lbl_title = QtWidgets.QLabel("Voucher")
        self.lbl_status = QtWidgets.QLabel("Status: unknown")
        h.addWidget(self.lbl_title)
        h.addStretch()
        h.addWidget(self.lbl_status)
        layout.addLayout(h)

        # note
        self.note_edit = QtWidgets.QLineEdit()
        self.note_edit.setPlaceholderText("Note (optional)")
        layout.addWidget(self.note_edit)

        # preset buttons
        self.buttons_layout = QtWidgets.QHBoxLayout()
        layout.addLayout(self.buttons_layout)

        # last voucher
        self.lbl_voucher = QtWidgets.QLabel("---")
        self.lbl_voucher.setAlignment(QtCore.Qt.AlignCenter)
        self.lbl_voucher.setStyleSheet("font-size: 28px; font-weight: bold;")
        layout.addWidget(self.lbl_voucher)

        # Logs
        self.log_view = QtWidgets.QPlainTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setMaximumBlockCount(1000)
        layout.addWidget(self.log_view)

        # Footer controls
        footer = QtWidgets.QHBoxLayout()
        self.btn_quit = QtWidgets.QPushButton("Quit")
        footer.addStretch()
        footer.addWidget(self.btn_quit)
        layout.addLayout(footer)

        self.btn_quit.clicked.connect(QtWidgets.qApp.quit)

    def _add_preset_buttons(self):
        s = self.settings
        for hours in s.voucher_presets:
            label = duration_label(hours, s.text_day, s.text_days, s.text_hour, s.text_hours)
            btn = QtWidgets.QPushButton(label)
            btn.clicked.connect(lambda checked=False, h=hours: self.start_print(h))
            self.buttons_layout.addWidget(btn)
            self.preset_buttons.append(btn)
        self.lbl_title.setText(s.wifi_name)

    def _connect_signals(self):
        self.signals.log.connect(self._append_log)
        self.signals.status.connect(self._set_status)
        self.signals.voucher.connect(self.lbl_voucher.setText)
        self.signals.done.connect(lambda: self._set_buttons_enabled(True))

    def _append_log(self, txt):
        self.log_view.appendPlainText(txt)

    def _set_status(self, s):
        self.lbl_status.setText(f"Status: {s}")

    def _set_buttons_enabled(self, enabled):
        for btn in self.preset_buttons:
            btn.setEnabled(enabled)

    def start_print(self, hours):
        # one job at a time: buttons stay disabled until the worker reports back
        self._set_buttons_enabled(False)
        note = self.note_edit.text().strip() or None
        threading.Thread(target=self._print_job, args=(hours, note), daemon=True).start()

    def _print_job(self, hours, note):
        self.signals.status.emit("printing")
        try:
            voucher = issue_voucher(self.settings, hours, note)
        except (VoucherError, PrinterError, OSError, ValueError) as e:
            logger.error("Voucher FAILED: %s", e)
            self.signals.status.emit("failed")
        else:
            self.signals.voucher.emit(voucher["formatted_code"])
            self.signals.status.emit("ready")
        finally:
            self.signals.done.emit()

    def closeEvent(self, event):
        logging.getLogger().removeHandler(self.log_handler)
        super().closeEvent(event)


def main():
    setup_logging()
    app = QtWidgets.QApplication(sys.argv)
    w = VoucherGUI()
    w.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
