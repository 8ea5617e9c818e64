from __future__ import annotations

import os

# Kivy reads these at import time.
os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")
os.environ.setdefault("KIVY_NO_FILELOG", "1")
os.environ.setdefault("KIVY_LOG_MODE", "PYTHON")
os.environ.setdefault("DONATE_BILLING_BACKEND", "mock")

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import pytest

from donate_tv.utils.billing_types import (
    BillingResponseCode,
    BillingResult,
    ProductDetails,
    Purchase,
)

OK = BillingResult.of(BillingResponseCode.OK)


@dataclass
class FakeProvider:
    """Answers provider calls synchronously and records what was asked."""

    setup_result: BillingResult = OK
    purchases_result: BillingResult = OK
    owned: list[Purchase] = field(default_factory=list)
    details_result: BillingResult = OK
    ack_result: BillingResult = OK

    listener: Callable[..., None] | None = None
    on_disconnected: Callable[[], None] | None = None
    connections: int = 0
    ready: bool = False
    details_queries: list[list[str]] = field(default_factory=list)
    launches: list[tuple[Any, ProductDetails]] = field(default_factory=list)
    acknowledged: list[str] = field(default_factory=list)
    ended: bool = False

    def set_purchases_updated_listener(self, listener) -> None:
        self.listener = listener

    def start_connection(self, on_setup_finished, on_disconnected) -> None:
        self.connections += 1
        self.on_disconnected = on_disconnected
        self.ready = self.setup_result.ok
        on_setup_finished(self.setup_result)

    def is_ready(self) -> bool:
        return self.ready and not self.ended

    def query_purchases(self, product_type: str, callback) -> None:
        callback(self.purchases_result, list(self.owned))

    def query_product_details(self, product_ids: Sequence[str], product_type: str, callback) -> None:
        self.details_queries.append(list(product_ids))
        if not self.details_result.ok:
            callback(self.details_result, [])
            return
        callback(self.details_result, [ProductDetails(product_id=pid, title=pid) for pid in product_ids])

    def launch_billing_flow(self, surface: Any, product: ProductDetails) -> None:
        self.launches.append((surface, product))

    def acknowledge_purchase(self, purchase_token: str, callback) -> None:
        self.acknowledged.append(purchase_token)
        callback(self.ack_result)

    def end_connection(self) -> None:
        self.ended = True


class Notifications(list):
    def __call__(self, message: str, length: int) -> None:
        self.append((message, length))


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def notifications() -> Notifications:
    return Notifications()


@pytest.fixture
def service(provider, notifications):
    from donate_tv.donate_service import DonateService

    return DonateService(provider, notify=notifications)
