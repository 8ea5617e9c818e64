from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class BillingResponseCode(IntEnum):
    """
    Response codes reported by the Play Billing library.
    Values match com.android.billingclient.api.BillingClient.BillingResponseCode.
    """

    SERVICE_TIMEOUT = -3
    FEATURE_NOT_SUPPORTED = -2
    SERVICE_DISCONNECTED = -1
    OK = 0
    USER_CANCELED = 1
    SERVICE_UNAVAILABLE = 2
    BILLING_UNAVAILABLE = 3
    ITEM_UNAVAILABLE = 4
    DEVELOPER_ERROR = 5
    ERROR = 6
    ITEM_ALREADY_OWNED = 7
    ITEM_NOT_OWNED = 8
    NETWORK_ERROR = 12


class PurchaseState(IntEnum):
    UNSPECIFIED_STATE = 0
    PURCHASED = 1
    PENDING = 2


PRODUCT_TYPE_INAPP = "inapp"


def response_code(raw: Any) -> int:
    """
    Normalize a provider response code.
    Known codes become BillingResponseCode members; unknown ones stay plain ints.
    """
    try:
        code = int(raw)
    except (TypeError, ValueError):
        return BillingResponseCode.ERROR
    try:
        return BillingResponseCode(code)
    except ValueError:
        return code


def purchase_state(raw: Any) -> PurchaseState:
    try:
        return PurchaseState(int(raw))
    except (TypeError, ValueError):
        return PurchaseState.UNSPECIFIED_STATE


@dataclass(frozen=True)
class BillingResult:
    response_code: int
    debug_message: str = ""

    @property
    def ok(self) -> bool:
        return self.response_code == BillingResponseCode.OK

    @classmethod
    def of(cls, code: int, debug_message: str = "") -> "BillingResult":
        return cls(response_code=response_code(code), debug_message=str(debug_message or ""))


@dataclass(frozen=True)
class Purchase:
    products: tuple[str, ...]
    purchase_state: PurchaseState
    is_acknowledged: bool
    purchase_token: str
    order_id: str | None = None


@dataclass(frozen=True)
class ProductDetails:
    product_id: str
    title: str = ""
    name: str = ""
    description: str = ""
    formatted_price: str = ""
    product_type: str = PRODUCT_TYPE_INAPP
    # Provider handle (a Java ProductDetails on Android) needed to launch the flow.
    native: Any = field(default=None, compare=False, repr=False)

    @property
    def display_title(self) -> str:
        return self.name or self.title or self.product_id
