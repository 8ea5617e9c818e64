from __future__ import annotations

import logging

from donate_tv.donate_service import (
    MSG_ERROR,
    MSG_NOT_COMPLETED,
    MSG_THANKS,
    PRODUCTS,
)
from donate_tv.utils.billing_types import (
    BillingResponseCode,
    BillingResult,
    ProductDetails,
    Purchase,
    PurchaseState,
)
from donate_tv.utils.toast import TOAST_LONG, TOAST_SHORT


def _purchase(*products: str, state=PurchaseState.PURCHASED, acknowledged=False, token="tok-1") -> Purchase:
    return Purchase(products=products, purchase_state=state, is_acknowledged=acknowledged, purchase_token=token)


def _result(code: int, msg: str = "") -> BillingResult:
    return BillingResult.of(code, msg)


def _collect(service) -> list:
    service.setup_billing(lambda ok: None)
    got: list = []
    service.get_products(got.append)
    assert len(got) == 1
    return got[0]


def test_catalog_is_fixed() -> None:
    assert PRODUCTS == ("thank_you", "buy_a_coffee", "buy_a_coffee_and_cake")


def test_service_registers_as_purchase_listener(service, provider) -> None:
    assert provider.listener == service.on_purchases_updated


# -----------------------
# Connection
# -----------------------
def test_setup_billing_reports_success(service, provider) -> None:
    got: list[bool] = []
    service.setup_billing(got.append)
    assert got == [True]
    assert provider.connections == 1


def test_setup_billing_failure_logs_and_reports_false(service, provider, caplog) -> None:
    provider.setup_result = _result(BillingResponseCode.BILLING_UNAVAILABLE, "Play Store missing")
    got: list[bool] = []
    with caplog.at_level(logging.ERROR, logger="donate_tv"):
        service.setup_billing(got.append)
    assert got == [False]
    assert provider.connections == 1
    assert "Play Store missing" in caplog.text


def test_disconnect_is_logged_only(service, provider, notifications, caplog) -> None:
    service.setup_billing(lambda ok: None)
    with caplog.at_level(logging.WARNING, logger="donate_tv"):
        provider.on_disconnected()
    assert "disconnected" in caplog.text
    assert provider.connections == 1
    assert notifications == []


# -----------------------
# Product listing
# -----------------------
def test_nothing_owned_queries_full_catalog(service, provider) -> None:
    products = _collect(service)
    assert provider.details_queries == [list(PRODUCTS)]
    assert [p.product_id for p in products] == list(PRODUCTS)


def test_products_before_connection_issue_no_queries(service, provider, caplog) -> None:
    got: list = []
    with caplog.at_level(logging.ERROR, logger="donate_tv"):
        service.get_products(got.append)
    assert got == [[]]
    assert provider.details_queries == []
    assert "not connected" in caplog.text


def test_products_after_failed_connection_issue_no_queries(service, provider) -> None:
    provider.setup_result = _result(BillingResponseCode.BILLING_UNAVAILABLE, "no Play Store")
    assert _collect(service) == []
    assert provider.details_queries == []


def test_products_after_end_connection_issue_no_queries(service, provider) -> None:
    service.setup_billing(lambda ok: None)
    service.end_connection()
    got: list = []
    service.get_products(got.append)
    assert got == [[]]
    assert provider.details_queries == []


def test_everything_owned_returns_empty_without_metadata_query(service, provider) -> None:
    provider.owned = [_purchase(pid, acknowledged=True) for pid in PRODUCTS]
    assert _collect(service) == []
    assert provider.details_queries == []


def test_owned_products_are_subtracted_in_catalog_order(service, provider) -> None:
    provider.owned = [_purchase("buy_a_coffee", acknowledged=True)]
    _collect(service)
    assert provider.details_queries == [["thank_you", "buy_a_coffee_and_cake"]]


def test_multi_product_purchase_counts_every_product(service, provider) -> None:
    provider.owned = [_purchase("thank_you", "buy_a_coffee_and_cake", acknowledged=True)]
    _collect(service)
    assert provider.details_queries == [["buy_a_coffee"]]


def test_unknown_owned_products_are_ignored(service, provider) -> None:
    provider.owned = [_purchase("premium_theme", acknowledged=True)]
    _collect(service)
    assert provider.details_queries == [list(PRODUCTS)]


def test_owned_query_failure_offers_full_catalog(service, provider, caplog) -> None:
    provider.purchases_result = _result(BillingResponseCode.SERVICE_DISCONNECTED, "not connected")
    with caplog.at_level(logging.WARNING, logger="donate_tv"):
        _collect(service)
    assert provider.details_queries == [list(PRODUCTS)]
    assert "not connected" in caplog.text


def test_metadata_failure_returns_empty_list(service, provider, caplog) -> None:
    provider.details_result = _result(BillingResponseCode.NETWORK_ERROR, "offline")
    with caplog.at_level(logging.ERROR, logger="donate_tv"):
        assert _collect(service) == []
    assert "offline" in caplog.text


# -----------------------
# Purchase flow
# -----------------------
def test_launch_billing_forwards_surface_and_product(service, provider) -> None:
    surface = object()
    product = ProductDetails(product_id="buy_a_coffee")
    service.launch_billing(surface, product)
    assert provider.launches == [(surface, product)]


def test_end_connection_closes_provider(service, provider) -> None:
    service.end_connection()
    assert provider.ended


# -----------------------
# Purchase updates
# -----------------------
def test_unacknowledged_purchase_is_acknowledged_once(service, provider, notifications) -> None:
    service.on_purchases_updated(_result(BillingResponseCode.OK), [_purchase("thank_you", token="abc")])
    assert provider.acknowledged == ["abc"]
    assert notifications == [(MSG_THANKS, TOAST_LONG)]


def test_each_unacknowledged_purchase_gets_its_own_acknowledgement(service, provider, notifications) -> None:
    service.on_purchases_updated(
        _result(BillingResponseCode.OK),
        [_purchase("thank_you", token="a"), _purchase("buy_a_coffee", token="b")],
    )
    assert provider.acknowledged == ["a", "b"]
    assert len(notifications) == 2


def test_acknowledgement_failure_is_logged_without_notification(service, provider, notifications, caplog) -> None:
    provider.ack_result = _result(BillingResponseCode.ERROR, "ack rejected")
    with caplog.at_level(logging.ERROR, logger="donate_tv"):
        service.on_purchases_updated(_result(BillingResponseCode.OK), [_purchase("thank_you")])
    assert provider.acknowledged == ["tok-1"]
    assert notifications == []
    assert "ack rejected" in caplog.text


def test_acknowledged_purchase_is_left_alone(service, provider, notifications) -> None:
    service.on_purchases_updated(_result(BillingResponseCode.OK), [_purchase("thank_you", acknowledged=True)])
    assert provider.acknowledged == []
    assert notifications == []


def test_pending_purchase_thanks_immediately(service, provider, notifications) -> None:
    service.on_purchases_updated(
        _result(BillingResponseCode.OK), [_purchase("buy_a_coffee", state=PurchaseState.PENDING)]
    )
    assert provider.acknowledged == []
    assert notifications == [(MSG_THANKS, TOAST_LONG)]


def test_unspecified_purchase_reports_failure(service, provider, notifications) -> None:
    service.on_purchases_updated(
        _result(BillingResponseCode.OK), [_purchase("buy_a_coffee", state=PurchaseState.UNSPECIFIED_STATE)]
    )
    assert provider.acknowledged == []
    assert notifications == [(MSG_NOT_COMPLETED, TOAST_SHORT)]


def test_user_cancel_is_silent(service, provider, notifications) -> None:
    service.on_purchases_updated(_result(BillingResponseCode.USER_CANCELED), None)
    assert notifications == []
    assert provider.acknowledged == []


def test_billing_unavailable_shows_one_generic_failure(service, notifications) -> None:
    service.on_purchases_updated(_result(BillingResponseCode.BILLING_UNAVAILABLE), None)
    assert notifications == [(MSG_ERROR, TOAST_SHORT)]


def test_other_failure_codes_show_generic_failure(service, notifications) -> None:
    for code in (BillingResponseCode.NETWORK_ERROR, BillingResponseCode.ITEM_ALREADY_OWNED, 42):
        service.on_purchases_updated(_result(code), None)
    assert notifications == [(MSG_ERROR, TOAST_SHORT)] * 3


def test_ok_without_purchase_list_shows_generic_failure(service, provider, notifications) -> None:
    service.on_purchases_updated(_result(BillingResponseCode.OK), None)
    assert notifications == [(MSG_ERROR, TOAST_SHORT)]
    assert provider.acknowledged == []


def test_ok_with_empty_purchase_list_is_silent(service, notifications) -> None:
    service.on_purchases_updated(_result(BillingResponseCode.OK), [])
    assert notifications == []
