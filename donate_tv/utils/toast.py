from __future__ import annotations

import logging

from kivy.clock import Clock
from kivy.utils import platform

logger = logging.getLogger(__name__)

# android.widget.Toast.LENGTH_SHORT / LENGTH_LONG
TOAST_SHORT = 0
TOAST_LONG = 1

# Matches Android's on-screen durations for the two lengths.
_POPUP_SECONDS = {TOAST_SHORT: 2.0, TOAST_LONG: 3.5}


def _android_toast(message: str, length: int) -> None:
    from android.runnable import run_on_ui_thread  # type: ignore
    from jnius import autoclass, cast  # type: ignore

    PythonActivity = autoclass("org.kivy.android.PythonActivity")
    Toast = autoclass("android.widget.Toast")
    String = autoclass("java.lang.String")

    @run_on_ui_thread
    def _show() -> None:
        ctx = PythonActivity.mActivity.getApplicationContext()
        Toast.makeText(ctx, cast("java.lang.CharSequence", String(message)), int(length)).show()

    _show()


def _popup_toast(message: str, length: int) -> None:
    from kivy.uix.label import Label
    from kivy.uix.popup import Popup

    popup = Popup(
        title="",
        separator_height=0,
        content=Label(text=message),
        size_hint=(0.6, 0.2),
        auto_dismiss=True,
    )
    popup.open()
    Clock.schedule_once(lambda _dt: popup.dismiss(), _POPUP_SECONDS.get(length, _POPUP_SECONDS[TOAST_SHORT]))


def show_toast(message: str, length: int = TOAST_SHORT) -> None:
    """
    Show a short-lived notification on the Kivy main loop.

    - Android: native android.widget.Toast.
    - Non-Android: auto-dismissing Popup.
    """
    text = str(message or "")

    def _open(*_):
        if platform == "android":
            try:
                _android_toast(text, length)
                return
            except Exception:
                logger.exception("Native toast failed, falling back to popup")
        _popup_toast(text, length)

    Clock.schedule_once(_open, 0)
