from __future__ import annotations

import logging
import os

from kivy.utils import platform


def _load_dotenv_if_present() -> None:
    """
    Pick up DONATE_* overrides from a `.env` in the working directory (or a parent).

    Handy on desktop to switch the billing backend or seed mock-owned
    donations; an APK ships without one and uses the platform defaults below.
    Variables already set in the environment win.
    """
    try:
        from dotenv import find_dotenv, load_dotenv  # type: ignore

        path = find_dotenv(usecwd=True)
        if path:
            load_dotenv(path, override=False)
    except Exception:
        return


_load_dotenv_if_present()


BILLING_BACKENDS = ("play", "mock")


def _default_billing_backend() -> str:
    return "play" if platform == "android" else "mock"


def billing_backend() -> str:
    """
    Which purchase provider to build:
    - play: Google Play Billing through PyJNIus (default on Android)
    - mock: in-process fake for desktop/dev runs (default elsewhere)
    """
    raw = (os.environ.get("DONATE_BILLING_BACKEND") or "").strip().lower()
    if raw in BILLING_BACKENDS:
        return raw
    return _default_billing_backend()


def mock_owned_products() -> list[str]:
    """
    Comma-separated product ids the mock provider reports as already bought.
    Example: DONATE_MOCK_OWNED=thank_you,buy_a_coffee
    """
    raw = (os.environ.get("DONATE_MOCK_OWNED") or "").strip()
    if not raw:
        return []
    return [p.strip() for p in raw.split(",") if p.strip()]


def log_level() -> int:
    raw = (os.environ.get("DONATE_LOG_LEVEL") or "").strip().upper()
    level = logging.getLevelName(raw) if raw else logging.INFO
    return level if isinstance(level, int) else logging.INFO
