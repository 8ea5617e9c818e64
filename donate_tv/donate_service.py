from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from donate_tv.utils.billing import PurchaseProvider
from donate_tv.utils.billing_types import (
    PRODUCT_TYPE_INAPP,
    BillingResponseCode,
    BillingResult,
    ProductDetails,
    Purchase,
    PurchaseState,
)
from donate_tv.utils.toast import TOAST_LONG, TOAST_SHORT, show_toast

logger = logging.getLogger(__name__)

PRODUCT_THANK_YOU = "thank_you"
PRODUCT_COFFEE = "buy_a_coffee"
PRODUCT_COFFEE_AND_CAKE = "buy_a_coffee_and_cake"
PRODUCTS: tuple[str, ...] = (PRODUCT_THANK_YOU, PRODUCT_COFFEE, PRODUCT_COFFEE_AND_CAKE)

MSG_THANKS = "Thanks for your donation, highly appreciated!"
MSG_NOT_COMPLETED = "Your donation could not be completed"
MSG_ERROR = "Could not finalize donation due to error, please contact the developer."

Notifier = Callable[[str, int], None]


class DonateService:
    """
    Donations through the in-app purchase provider.

    Connect with setup_billing() before calling get_products(). Purchase
    outcomes arrive on on_purchases_updated(), which is registered as the
    provider's listener.
    """

    def __init__(self, provider: PurchaseProvider, notify: Notifier = show_toast) -> None:
        self._provider = provider
        self._notify = notify
        self._provider.set_purchases_updated_listener(self.on_purchases_updated)

    @property
    def provider(self) -> PurchaseProvider:
        return self._provider

    def setup_billing(self, callback: Callable[[bool], None]) -> None:
        def _on_setup_finished(result: BillingResult) -> None:
            if result.ok:
                callback(True)
            else:
                logger.error("Billing setup failed (code=%s): %s", result.response_code, result.debug_message)
                callback(False)

        self._provider.start_connection(_on_setup_finished, self._on_disconnected)

    def _on_disconnected(self) -> None:
        logger.warning("Billing service disconnected")

    def get_products(self, callback: Callable[[list[ProductDetails]], None]) -> None:
        if not self._provider.is_ready():
            logger.error("Product query skipped: billing is not connected")
            callback([])
            return

        def _on_remaining(remaining: list[str]) -> None:
            if not remaining:
                callback([])
                return

            def _on_details(result: BillingResult, details: list[ProductDetails]) -> None:
                if result.ok:
                    callback(list(details))
                else:
                    logger.error(
                        "Product details query failed (code=%s): %s", result.response_code, result.debug_message
                    )
                    callback([])

            self._provider.query_product_details(remaining, PRODUCT_TYPE_INAPP, _on_details)

        self._get_non_purchased_products(_on_remaining)

    def _get_non_purchased_products(self, callback: Callable[[list[str]], None]) -> None:
        def _on_purchases(result: BillingResult, purchases: list[Purchase]) -> None:
            if not result.ok:
                # Offer the full catalog rather than hiding it.
                logger.warning(
                    "Owned purchases query failed (code=%s): %s", result.response_code, result.debug_message
                )
            bought = {pid for p in purchases or [] for pid in p.products}
            callback([pid for pid in PRODUCTS if pid not in bought])

        self._provider.query_purchases(PRODUCT_TYPE_INAPP, _on_purchases)

    def launch_billing(self, surface: Any, product: ProductDetails) -> None:
        logger.info("Launching purchase flow for %s", product.product_id)
        self._provider.launch_billing_flow(surface, product)

    def on_purchases_updated(self, result: BillingResult, purchases: Optional[list[Purchase]]) -> None:
        code = result.response_code
        if code == BillingResponseCode.OK and purchases is not None:
            for purchase in purchases:
                self._handle_purchase(purchase)
        elif code == BillingResponseCode.USER_CANCELED:
            logger.debug("Donation cancelled by user")
        elif code == BillingResponseCode.BILLING_UNAVAILABLE:
            logger.error("Billing unavailable: %s", result.debug_message)
            self._notify(MSG_ERROR, TOAST_SHORT)
        else:
            logger.error("Purchase update failed (code=%s): %s", code, result.debug_message)
            self._notify(MSG_ERROR, TOAST_SHORT)

    def _handle_purchase(self, purchase: Purchase) -> None:
        state = purchase.purchase_state
        if state == PurchaseState.PURCHASED:
            if not purchase.is_acknowledged:
                self._acknowledge(purchase)
        elif state == PurchaseState.PENDING:
            self._notify(MSG_THANKS, TOAST_LONG)
        elif state == PurchaseState.UNSPECIFIED_STATE:
            self._notify(MSG_NOT_COMPLETED, TOAST_SHORT)

    def _acknowledge(self, purchase: Purchase) -> None:
        def _on_acknowledged(result: BillingResult) -> None:
            if result.ok:
                self._notify(MSG_THANKS, TOAST_LONG)
            else:
                # Log only, no toast.
                logger.error(
                    "Acknowledging %s failed (code=%s): %s",
                    ",".join(purchase.products),
                    result.response_code,
                    result.debug_message,
                )

        self._provider.acknowledge_purchase(purchase.purchase_token, _on_acknowledged)

    def end_connection(self) -> None:
        self._provider.end_connection()
