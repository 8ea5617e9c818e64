from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Sequence

from donate_tv.utils.billing import PurchasesUpdatedListener
from donate_tv.utils.billing_types import (
    BillingResponseCode,
    BillingResult,
    ProductDetails,
    Purchase,
    PurchaseState,
)

logger = logging.getLogger(__name__)

_DEFAULT_PRICES = {
    "thank_you": "€1.99",
    "buy_a_coffee": "€3.99",
    "buy_a_coffee_and_cake": "€6.99",
}


def _not_connected() -> BillingResult:
    return BillingResult.of(BillingResponseCode.SERVICE_DISCONNECTED, "Billing service is not connected")


class MockPurchaseProvider:
    """Desktop/dev purchase provider: answers synchronously from in-memory state.

    Play Billing replaces this on device builds. Outcomes can be scripted
    through the attributes below.
    """

    def __init__(
        self,
        owned: Iterable[str] = (),
        *,
        setup_code: int = BillingResponseCode.OK,
        details_code: int = BillingResponseCode.OK,
        purchase_code: int = BillingResponseCode.OK,
        purchase_state: PurchaseState = PurchaseState.PURCHASED,
        acknowledge_code: int = BillingResponseCode.OK,
    ) -> None:
        self.owned: set[str] = set(owned)
        self.setup_code = setup_code
        self.details_code = details_code
        self.purchase_code = purchase_code
        self.purchase_state = purchase_state
        self.acknowledge_code = acknowledge_code
        self.acknowledged: list[str] = []
        self._listener: PurchasesUpdatedListener | None = None
        self._on_disconnected: Callable[[], None] | None = None
        self._ready = False
        self._counter = 0

    def set_purchases_updated_listener(self, listener: PurchasesUpdatedListener) -> None:
        self._listener = listener

    def start_connection(
        self,
        on_setup_finished: Callable[[BillingResult], None],
        on_disconnected: Callable[[], None],
    ) -> None:
        result = BillingResult.of(self.setup_code, "" if self.setup_code == BillingResponseCode.OK else "mock setup failure")
        self._ready = result.ok
        self._on_disconnected = on_disconnected
        on_setup_finished(result)

    def disconnect(self) -> None:
        """Simulate the billing service dropping the connection."""
        self._ready = False
        if self._on_disconnected is not None:
            self._on_disconnected()

    def is_ready(self) -> bool:
        return self._ready

    def query_purchases(
        self,
        product_type: str,
        callback: Callable[[BillingResult, list[Purchase]], None],
    ) -> None:
        if not self._ready:
            callback(_not_connected(), [])
            return
        purchases = [
            Purchase(
                products=(pid,),
                purchase_state=PurchaseState.PURCHASED,
                is_acknowledged=True,
                purchase_token=f"mock-token-{pid}",
            )
            for pid in sorted(self.owned)
        ]
        callback(BillingResult.of(BillingResponseCode.OK), purchases)

    def query_product_details(
        self,
        product_ids: Sequence[str],
        product_type: str,
        callback: Callable[[BillingResult, list[ProductDetails]], None],
    ) -> None:
        if not self._ready:
            callback(_not_connected(), [])
            return
        if self.details_code != BillingResponseCode.OK:
            callback(BillingResult.of(self.details_code, "mock product query failure"), [])
            return
        details = [
            ProductDetails(
                product_id=pid,
                title=pid.replace("_", " ").capitalize(),
                name=pid.replace("_", " ").capitalize(),
                formatted_price=_DEFAULT_PRICES.get(pid, "€0.99"),
                product_type=product_type,
            )
            for pid in product_ids
        ]
        callback(BillingResult.of(BillingResponseCode.OK), details)

    def launch_billing_flow(self, surface: Any, product: ProductDetails) -> None:
        logger.info("Faking purchase of %s", product.product_id)
        if self._listener is None:
            return
        if self.purchase_code != BillingResponseCode.OK:
            self._listener(BillingResult.of(self.purchase_code, "mock purchase failure"), None)
            return
        self._counter += 1
        purchase = Purchase(
            products=(product.product_id,),
            purchase_state=self.purchase_state,
            is_acknowledged=False,
            purchase_token=f"mock-token-{product.product_id}-{self._counter}",
            order_id=f"MOCK.{self._counter:04d}",
        )
        if self.purchase_state == PurchaseState.PURCHASED:
            self.owned.add(product.product_id)
        self._listener(BillingResult.of(BillingResponseCode.OK), [purchase])

    def acknowledge_purchase(
        self,
        purchase_token: str,
        callback: Callable[[BillingResult], None],
    ) -> None:
        if self.acknowledge_code == BillingResponseCode.OK:
            self.acknowledged.append(purchase_token)
            callback(BillingResult.of(BillingResponseCode.OK))
        else:
            callback(BillingResult.of(self.acknowledge_code, "mock acknowledge failure"))

    def end_connection(self) -> None:
        self._ready = False
