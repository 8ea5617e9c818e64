"""
Entrypoint for Buildozer / python-for-android builds and desktop runs.

Buildozer picks `main.py` from `source.dir`, so the repo root launches the
donate app directly:
  python main.py
Desktop runs use the mock billing provider unless DONATE_BILLING_BACKEND=play.
"""

from __future__ import annotations

from donate_tv.app import DonateApp

if __name__ == "__main__":
    DonateApp().run()
