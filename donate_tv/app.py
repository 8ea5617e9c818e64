from __future__ import annotations

import logging

from kivy.app import App
from kivy.uix.screenmanager import FadeTransition, ScreenManager

from donate_tv.donate_service import DonateService
from donate_tv.screens.donate_screen import DonateScreen
from donate_tv.utils.billing import BillingUnavailable, create_provider
from donate_tv.utils.logcat import configure_logging

logger = logging.getLogger(__name__)


class DonateApp(App):
    title = "Donate"
    service: DonateService | None = None

    def build(self):
        configure_logging()
        try:
            service: DonateService | None = DonateService(create_provider())
        except BillingUnavailable as e:
            # The screen still renders and explains that donations are off.
            logger.error("Billing unavailable: %s", e)
            service = None
        self.service = service

        sm = ScreenManager(transition=FadeTransition())
        sm.add_widget(DonateScreen(service=service, name="donate"))
        sm.current = "donate"
        return sm

    def on_stop(self):
        if self.service is not None:
            self.service.end_connection()
