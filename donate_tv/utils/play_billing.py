from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Callable, Sequence

from donate_tv.utils.billing import BillingUnavailable, PurchasesUpdatedListener
from donate_tv.utils.billing_types import (
    BillingResult,
    ProductDetails,
    Purchase,
    purchase_state,
)

logger = logging.getLogger(__name__)

_API = "com.android.billingclient.api"
_RESULT_SIG = f"L{_API.replace('.', '/')}/BillingResult;"


def _java_list(items) -> list:
    if items is None:
        return []
    return [items.get(i) for i in range(int(items.size()))]


def _to_result(jresult) -> BillingResult:
    if jresult is None:
        return BillingResult.of(-1, "No billing result")
    return BillingResult.of(int(jresult.getResponseCode()), str(jresult.getDebugMessage() or ""))


def _to_purchase(jpurchase) -> Purchase:
    order_id = jpurchase.getOrderId()
    return Purchase(
        products=tuple(str(p) for p in _java_list(jpurchase.getProducts())),
        purchase_state=purchase_state(jpurchase.getPurchaseState()),
        is_acknowledged=bool(jpurchase.isAcknowledged()),
        purchase_token=str(jpurchase.getPurchaseToken() or ""),
        order_id=str(order_id) if order_id else None,
    )


def _to_product_details(jdetails) -> ProductDetails:
    offer = jdetails.getOneTimePurchaseOfferDetails()
    price = str(offer.getFormattedPrice() or "") if offer is not None else ""
    return ProductDetails(
        product_id=str(jdetails.getProductId() or ""),
        title=str(jdetails.getTitle() or ""),
        name=str(jdetails.getName() or ""),
        description=str(jdetails.getDescription() or ""),
        formatted_price=price,
        product_type=str(jdetails.getProductType() or ""),
        native=jdetails,
    )


@lru_cache(maxsize=1)
def _bridge():
    """
    Lazily builds the PyJNIus listener proxies and Java class handles.

    Imports stay inside the function so desktop runs can import this module
    (as long as they don't construct a PlayBillingProvider).
    """
    try:
        from jnius import PythonJavaClass, autoclass, java_method  # type: ignore
    except Exception as e:  # pragma: no cover
        raise BillingUnavailable(f"PyJNIus not available (not running on Android build?): {e}") from e

    class StateListener(PythonJavaClass):
        __javainterfaces__ = [f"{_API.replace('.', '/')}/BillingClientStateListener"]
        __javacontext__ = "app"

        def __init__(self, on_setup_finished, on_disconnected):
            super().__init__()
            self._on_setup_finished = on_setup_finished
            self._on_disconnected = on_disconnected

        @java_method(f"({_RESULT_SIG})V")
        def onBillingSetupFinished(self, result):
            self._on_setup_finished(_to_result(result))

        @java_method("()V")
        def onBillingServiceDisconnected(self):
            self._on_disconnected()

    class PurchasesUpdated(PythonJavaClass):
        __javainterfaces__ = [f"{_API.replace('.', '/')}/PurchasesUpdatedListener"]
        __javacontext__ = "app"

        def __init__(self, callback):
            super().__init__()
            self._callback = callback

        @java_method(f"({_RESULT_SIG}Ljava/util/List;)V")
        def onPurchasesUpdated(self, result, purchases):
            converted = None if purchases is None else [_to_purchase(p) for p in _java_list(purchases)]
            self._callback(_to_result(result), converted)

    class PurchasesResponse(PythonJavaClass):
        __javainterfaces__ = [f"{_API.replace('.', '/')}/PurchasesResponseListener"]
        __javacontext__ = "app"

        def __init__(self, callback):
            super().__init__()
            self._callback = callback

        @java_method(f"({_RESULT_SIG}Ljava/util/List;)V")
        def onQueryPurchasesResponse(self, result, purchases):
            self._callback(_to_result(result), [_to_purchase(p) for p in _java_list(purchases)])

    class ProductDetailsResponse(PythonJavaClass):
        __javainterfaces__ = [f"{_API.replace('.', '/')}/ProductDetailsResponseListener"]
        __javacontext__ = "app"

        def __init__(self, callback):
            super().__init__()
            self._callback = callback

        @java_method(f"({_RESULT_SIG}Ljava/util/List;)V")
        def onProductDetailsResponse(self, result, details):
            self._callback(_to_result(result), [_to_product_details(d) for d in _java_list(details)])

    class AcknowledgeResponse(PythonJavaClass):
        __javainterfaces__ = [f"{_API.replace('.', '/')}/AcknowledgePurchaseResponseListener"]
        __javacontext__ = "app"

        def __init__(self, callback):
            super().__init__()
            self._callback = callback

        @java_method(f"({_RESULT_SIG})V")
        def onAcknowledgePurchaseResponse(self, result):
            self._callback(_to_result(result))

    try:
        classes = {
            "PythonActivity": autoclass("org.kivy.android.PythonActivity"),
            "ArrayList": autoclass("java.util.ArrayList"),
            "BillingClient": autoclass(f"{_API}.BillingClient"),
            "QueryPurchasesParams": autoclass(f"{_API}.QueryPurchasesParams"),
            "QueryProductDetailsParams": autoclass(f"{_API}.QueryProductDetailsParams"),
            "QueryProduct": autoclass(f"{_API}.QueryProductDetailsParams$Product"),
            "BillingFlowParams": autoclass(f"{_API}.BillingFlowParams"),
            "FlowProduct": autoclass(f"{_API}.BillingFlowParams$ProductDetailsParams"),
            "AcknowledgePurchaseParams": autoclass(f"{_API}.AcknowledgePurchaseParams"),
        }
    except Exception as e:
        raise BillingUnavailable(f"Play Billing library is not packaged in this build: {e}") from e

    classes.update(
        StateListener=StateListener,
        PurchasesUpdated=PurchasesUpdated,
        PurchasesResponse=PurchasesResponse,
        ProductDetailsResponse=ProductDetailsResponse,
        AcknowledgeResponse=AcknowledgeResponse,
    )
    return classes


class PlayBillingProvider:
    """
    Google Play Billing through PyJNIus.

    PyJNIus does not hold listener proxies on the Java side, so they are
    kept referenced in `_keep`: the connection listener until
    end_connection(), one-shot response listeners until they fire.
    """

    def __init__(self, context=None) -> None:
        self._j = _bridge()
        activity = self._j["PythonActivity"].mActivity
        self._context = context or activity.getApplicationContext()
        self._listener: PurchasesUpdatedListener | None = None
        self._keep: list[Any] = []
        self._updates = self._j["PurchasesUpdated"](self._dispatch_update)
        self._client = (
            self._j["BillingClient"]
            .newBuilder(self._context)
            .setListener(self._updates)
            .enablePendingPurchases()
            .build()
        )

    def _dispatch_update(self, result: BillingResult, purchases: list[Purchase] | None) -> None:
        if self._listener is None:
            logger.warning("Purchase update dropped, no listener (code=%s)", result.response_code)
            return
        self._listener(result, purchases)

    def _hold(self, proxy):
        self._keep.append(proxy)
        return proxy

    def _once(self, proxy_class, callback):
        """Build a response listener that is released after its first answer."""
        proxy = None

        def _fire(*args) -> None:
            # Already gone when end_connection() ran first.
            if proxy in self._keep:
                self._keep.remove(proxy)
            callback(*args)

        proxy = self._hold(proxy_class(_fire))
        return proxy

    def set_purchases_updated_listener(self, listener: PurchasesUpdatedListener) -> None:
        self._listener = listener

    def start_connection(
        self,
        on_setup_finished: Callable[[BillingResult], None],
        on_disconnected: Callable[[], None],
    ) -> None:
        self._client.startConnection(self._hold(self._j["StateListener"](on_setup_finished, on_disconnected)))

    def is_ready(self) -> bool:
        return bool(self._client.isReady())

    def query_purchases(
        self,
        product_type: str,
        callback: Callable[[BillingResult, list[Purchase]], None],
    ) -> None:
        params = self._j["QueryPurchasesParams"].newBuilder().setProductType(product_type).build()
        self._client.queryPurchasesAsync(params, self._once(self._j["PurchasesResponse"], callback))

    def query_product_details(
        self,
        product_ids: Sequence[str],
        product_type: str,
        callback: Callable[[BillingResult, list[ProductDetails]], None],
    ) -> None:
        products = self._j["ArrayList"]()
        for pid in product_ids:
            products.add(
                self._j["QueryProduct"].newBuilder().setProductId(str(pid)).setProductType(product_type).build()
            )
        params = self._j["QueryProductDetailsParams"].newBuilder().setProductList(products).build()
        self._client.queryProductDetailsAsync(params, self._once(self._j["ProductDetailsResponse"], callback))

    def launch_billing_flow(self, surface: Any, product: ProductDetails) -> None:
        if product.native is None:
            raise BillingUnavailable(f"No Play product details for {product.product_id}")
        try:
            from android.runnable import run_on_ui_thread  # type: ignore
        except Exception as e:  # pragma: no cover
            raise BillingUnavailable(f"python-for-android runtime not available: {e}") from e

        activity = surface or self._j["PythonActivity"].mActivity
        flow_products = self._j["ArrayList"]()
        flow_products.add(self._j["FlowProduct"].newBuilder().setProductDetails(product.native).build())
        params = self._j["BillingFlowParams"].newBuilder().setProductDetailsParamsList(flow_products).build()

        # launchBillingFlow must be called on the Android UI thread.
        @run_on_ui_thread
        def _launch() -> None:
            result = _to_result(self._client.launchBillingFlow(activity, params))
            if not result.ok:
                logger.warning(
                    "launchBillingFlow(%s) returned %s: %s",
                    product.product_id,
                    result.response_code,
                    result.debug_message,
                )

        _launch()

    def acknowledge_purchase(
        self,
        purchase_token: str,
        callback: Callable[[BillingResult], None],
    ) -> None:
        params = self._j["AcknowledgePurchaseParams"].newBuilder().setPurchaseToken(purchase_token).build()
        self._client.acknowledgePurchase(params, self._once(self._j["AcknowledgeResponse"], callback))

    def end_connection(self) -> None:
        self._client.endConnection()
        self._keep.clear()
