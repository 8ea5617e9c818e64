from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence

from donate_tv.config import billing_backend, mock_owned_products
from donate_tv.utils.billing_types import BillingResult, ProductDetails, Purchase


class BillingUnavailable(RuntimeError):
    pass


PurchasesUpdatedListener = Callable[[BillingResult, Optional[list[Purchase]]], None]


class PurchaseProvider(Protocol):
    """
    Asynchronous, callback-based in-app purchase backend.
    Callbacks may run on a provider thread; UI work must be re-dispatched by the caller.
    """

    def set_purchases_updated_listener(self, listener: PurchasesUpdatedListener) -> None: ...

    def start_connection(
        self,
        on_setup_finished: Callable[[BillingResult], None],
        on_disconnected: Callable[[], None],
    ) -> None: ...

    def is_ready(self) -> bool: ...

    def query_purchases(
        self,
        product_type: str,
        callback: Callable[[BillingResult, list[Purchase]], None],
    ) -> None: ...

    def query_product_details(
        self,
        product_ids: Sequence[str],
        product_type: str,
        callback: Callable[[BillingResult, list[ProductDetails]], None],
    ) -> None: ...

    def launch_billing_flow(self, surface: Any, product: ProductDetails) -> None: ...

    def acknowledge_purchase(
        self,
        purchase_token: str,
        callback: Callable[[BillingResult], None],
    ) -> None: ...

    def end_connection(self) -> None: ...


def create_provider(backend: str | None = None) -> PurchaseProvider:
    """
    Build the configured purchase provider.
    Raises BillingUnavailable when Play Billing is requested but cannot be loaded.
    """
    name = backend or billing_backend()
    if name == "mock":
        from donate_tv.utils.mock_billing import MockPurchaseProvider

        return MockPurchaseProvider(owned=mock_owned_products())
    if name == "play":
        from donate_tv.utils.play_billing import PlayBillingProvider

        return PlayBillingProvider()
    raise BillingUnavailable(f"Unknown billing backend: {name}")
