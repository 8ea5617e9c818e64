from __future__ import annotations

import logging

from kivy.utils import platform

from donate_tv.config import log_level

LOG_TAG = "DonateTV"

# android.util.Log priorities
_PRIORITY_DEBUG = 3
_PRIORITY_INFO = 4
_PRIORITY_WARN = 5
_PRIORITY_ERROR = 6

_configured = False


def _priority(levelno: int) -> int:
    if levelno >= logging.ERROR:
        return _PRIORITY_ERROR
    if levelno >= logging.WARNING:
        return _PRIORITY_WARN
    if levelno >= logging.INFO:
        return _PRIORITY_INFO
    return _PRIORITY_DEBUG


class LogcatHandler(logging.Handler):
    """Forward log records to Android logcat via android.util.Log."""

    def __init__(self, tag: str = LOG_TAG) -> None:
        super().__init__()
        self.tag = tag
        from jnius import autoclass  # type: ignore

        self._log = autoclass("android.util.Log")

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._log.println(_priority(record.levelno), self.tag, self.format(record))
        except Exception:
            self.handleError(record)


def configure_logging() -> None:
    """
    Attach a handler to the `donate_tv` logger.
    Logcat on Android builds; stderr elsewhere. Safe to call multiple times.
    """
    global _configured
    if _configured:
        return
    root = logging.getLogger("donate_tv")
    root.setLevel(log_level())

    handler: logging.Handler
    if platform == "android":
        try:
            handler = LogcatHandler()
        except Exception:
            # No PyJNIus in this build; python-for-android still pipes stderr to logcat.
            handler = logging.StreamHandler()
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
    root.addHandler(handler)
    _configured = True
