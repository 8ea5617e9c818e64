from __future__ import annotations

import logging
from typing import Any

from kivy.clock import Clock
from kivy.metrics import dp
from kivy.properties import BooleanProperty, StringProperty
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.button import Button
from kivy.uix.label import Label
from kivy.uix.screenmanager import Screen
from kivy.utils import platform

from donate_tv.donate_service import DonateService
from donate_tv.utils.billing import BillingUnavailable
from donate_tv.utils.billing_types import ProductDetails
from donate_tv.utils.toast import TOAST_SHORT, show_toast

logger = logging.getLogger(__name__)


def _android_activity() -> Any:
    if platform != "android":
        return None
    try:
        from jnius import autoclass  # type: ignore

        return autoclass("org.kivy.android.PythonActivity").mActivity
    except Exception:
        return None


class DonateScreen(Screen):
    status_text = StringProperty("Connecting to Google Play…")
    is_loading = BooleanProperty(False)

    def __init__(self, service: DonateService | None = None, **kwargs):
        super().__init__(**kwargs)
        self.service = service
        self._connected = False

        root = BoxLayout(orientation="vertical", padding=dp(32), spacing=dp(16))
        root.add_widget(Label(text="Support the developer", font_size="28sp", size_hint_y=None, height=dp(56)))
        self._status = Label(text=self.status_text, size_hint_y=None, height=dp(40))
        self.bind(status_text=lambda _w, v: setattr(self._status, "text", v))
        root.add_widget(self._status)
        self._products_box = BoxLayout(orientation="vertical", spacing=dp(12))
        root.add_widget(self._products_box)
        self.add_widget(root)

    def on_pre_enter(self, *args):
        self.refresh()

    def refresh(self) -> None:
        if self.is_loading:
            return
        if self.service is None:
            self.status_text = "Donations are unavailable on this device."
            return
        self.is_loading = True
        if self._connected and self.service.provider.is_ready():
            self._on_setup(True)
            return
        self.status_text = "Connecting to Google Play…"
        self.service.setup_billing(self._on_setup)

    # Billing callbacks may arrive on a Java thread; hop back onto the Kivy loop.
    def _on_setup(self, ok: bool) -> None:
        if not ok:

            def fail(*_):
                self.is_loading = False
                self.status_text = "Google Play billing is unavailable."

            Clock.schedule_once(fail, 0)
            return
        self._connected = True
        self.service.get_products(lambda products: Clock.schedule_once(lambda *_: self._show(products), 0))

    def _show(self, products: list[ProductDetails]) -> None:
        self.is_loading = False
        self._products_box.clear_widgets()
        if not products:
            self.status_text = "Thank you! You already own every donation."
            return
        self.status_text = "Pick a donation:"
        for product in products:
            label = f"{product.display_title}  {product.formatted_price}".strip()
            btn = Button(text=label, size_hint_y=None, height=dp(56))
            btn.bind(on_release=lambda _btn, p=product: self._buy(p))
            self._products_box.add_widget(btn)

    def _buy(self, product: ProductDetails) -> None:
        try:
            self.service.launch_billing(_android_activity(), product)
        except BillingUnavailable as e:
            show_toast(str(e) or "Billing is unavailable on this device/build.", TOAST_SHORT)
        except Exception:
            logger.exception("Unable to start purchase of %s", product.product_id)
            show_toast("Unable to start purchase. Please try again.", TOAST_SHORT)
