"""
Storefront-side cart mirror.

Drives the shop API the way the storefront pages do, then mirrors each
confirmed result into the analytics data layer and local storage. Network
trouble is never fatal: the call records a failure notice, frees its control
and returns without retrying.
"""
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

import requests
from pydantic import BaseModel

from aurora.analytics.data_layer import DataLayer
from aurora.analytics.storage import CartPersistence, CartStorage, LocalStorage, build_cart_snapshot
from aurora.core.config import settings
from aurora.core.logger import get_logger

logger = get_logger("analytics.mirror")

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
}


def guest_customer() -> Dict[str, str]:
    return {
        "custId": "",
        "emailID_plain": "",
        "mobileNo_plain": "",
        "loginStatus": "guest",
        "loginMethod": "",
    }


class Notice(BaseModel):
    message: str
    kind: str = "success"


class CartMirror:
    def __init__(
        self,
        http=None,
        base_url: str = None,
        data_layer: DataLayer = None,
        storage: LocalStorage = None,
        timeout: float = 10.0,
        on_notice: Optional[Callable[[Notice], None]] = None
    ):
        # Anything with requests-style get/post works, e.g. a TestClient
        self.http = http or requests.Session()
        self.base_url = (base_url if base_url is not None else settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.data_layer = data_layer if data_layer is not None else DataLayer()
        storage = storage if storage is not None else LocalStorage()
        self.cart_storage = CartStorage(storage)
        self.persistence = CartPersistence(storage)
        self.on_notice = on_notice
        self.notices: List[Notice] = []
        self.busy = set()
        self.cart_count = 0

    # Page lifecycle

    def start(self) -> Optional[int]:
        """Page load: replay the stored snapshot, then resync with the server."""
        self.persistence.restore(self.data_layer)
        return self.refresh()

    def refresh(self) -> Optional[int]:
        saved = self.cart_storage.load() or []
        synced = self._call("cart", "POST", "/api/cart/sync", {"cart": saved}, notify=False)
        if synced:
            self.cart_storage.save(synced["cart"])

        data = self._call("cart", "GET", "/api/cart", require_success=False, notify=False)
        if data is None:
            return None
        items = data.get("items") or data.get("cart") or []
        self.cart_storage.save(items)
        self.cart_count = sum(item.get("quantity") or 0 for item in items)
        logger.debug("Cart count updated: %d", self.cart_count)
        return self.cart_count

    # Interactions

    def product_click(self, product: Dict[str, Any], position: int) -> Dict[str, Any]:
        return self.data_layer.push({
            "event": "productClick",
            "custData": guest_customer(),
            "eventInfo": {"eventName": "productClick"},
            "product": [{
                "productId": product.get("productId"),
                "name": product.get("productName") or product.get("name"),
                "brand": product.get("brand") or settings.BRAND_NAME,
                "category": product.get("productCategory") or product.get("category"),
                "price": product.get("price"),
                "position": position,
            }],
        })

    def open_cart(self) -> Dict[str, Any]:
        return self.data_layer.push({
            "event": "scOpen",
            "custData": guest_customer(),
            "eventInfo": {"eventName": "scOpen"},
        })

    def add_to_cart(
        self,
        product_id: str,
        quantity: int = 1,
        color: Optional[str] = None,
        size: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        data = self._call("add-to-cart", "POST", "/api/cart/add", {
            "productId": product_id,
            "quantity": quantity,
            "color": color,
            "size": size,
        }, failure_message="Error adding to cart. Please try again.")
        if data is None:
            return None

        cart = data["cart"]
        snapshot = self._store(cart, data.get("cartCount"))
        added = self._find_line(cart, product_id, color, size) or {}

        self.data_layer.push({
            "event": "scAdd",
            "custData": guest_customer(),
            "eventInfo": {"eventName": "scAdd"},
            "product": [{
                "productId": product_id,
                "name": added.get("productName", ""),
                "price": added.get("price"),
                "quantity": quantity,
            }],
            "cart": snapshot,
        })
        self._notify(f"Added {added.get('productName', product_id)} to cart!")
        return snapshot

    def remove_from_cart(
        self,
        product_id: str,
        color: Optional[str] = None,
        size: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        # Capture the line before it disappears from the server cart
        removed = self._find_line(self.cart_storage.load() or [], product_id, color, size) or {}

        data = self._call("remove-item", "POST", "/api/cart/remove", {
            "productId": product_id,
            "color": color,
            "size": size,
        }, failure_message="Error removing item. Please try again.")
        if data is None:
            return None

        snapshot = self._store(data["cart"], data.get("cartCount"))
        self.data_layer.push({
            "event": "scRemove",
            "custData": guest_customer(),
            "eventInfo": {"eventName": "scRemove"},
            "product": [{
                "productId": product_id,
                "name": removed.get("productName", ""),
                "price": removed.get("price", 0),
                "quantity": removed.get("quantity", 1),
            }],
            "cart": snapshot,
        })
        self._notify("Item removed from cart")
        return snapshot

    def update_quantity(
        self,
        product_id: str,
        delta: int,
        color: Optional[str] = None,
        size: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        data = self._call("quantity", "POST", "/api/cart/update", {
            "productId": product_id,
            "color": color,
            "size": size,
            "change": delta,
        }, failure_message="Could not update quantity. Please try again.")
        if data is None:
            return None

        snapshot = self._store(data["cart"], data.get("cartCount"))
        self.data_layer.push({"event": "cartUpdate", "cart": snapshot})
        return snapshot

    def checkout(self, buyer: Dict[str, Any]) -> Optional[str]:
        data = self._call("checkout", "POST", "/api/checkout", buyer,
                          failure_message="Checkout failed. Please try again.")
        if data is None:
            return None
        order_id = data["orderId"]
        self.cart_storage.clear()
        self.persistence.clear()
        self.cart_count = 0

        order = self._call("checkout", "GET", f"/api/order/{order_id}", require_success=False,
                           failure_message="Could not load your order.")
        if order is None or order.get("id") != order_id:
            return order_id

        self.data_layer.push({
            "event": "purchase",
            "custData": guest_customer(),
            "eventInfo": {"eventName": "purchase"},
            "order": {
                "orderId": order_id,
                "revenue": order.get("revenue"),
                "currency": settings.CURRENCY,
                "items": [
                    {
                        "productId": item.get("productId"),
                        "name": item.get("name"),
                        "price": item.get("price"),
                        "quantity": item.get("quantity"),
                    }
                    for item in order.get("items", [])
                ],
            },
        })
        return order_id

    # Helpers

    @contextmanager
    def _control(self, name: str):
        self.busy.add(name)
        try:
            yield
        finally:
            self.busy.discard(name)

    def _call(
        self,
        control: str,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        require_success: bool = True,
        notify: bool = True,
        failure_message: str = "Something went wrong. Please try again."
    ) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}{path}"
        with self._control(control):
            try:
                if method == "GET":
                    response = self.http.get(url, headers=NO_CACHE_HEADERS, timeout=self.timeout)
                else:
                    response = self.http.post(url, json=payload, timeout=self.timeout)
                data = response.json()
            except (requests.RequestException, ValueError) as e:
                logger.warning("%s %s failed: %s", method, path, e)
                if notify:
                    self._notify(failure_message, "error")
                return None

        if not isinstance(data, dict) or (require_success and not data.get("success")):
            message = data.get("message") if isinstance(data, dict) else None
            logger.warning("%s %s rejected: %s", method, path, message or data)
            if notify:
                self._notify(message or failure_message, "error")
            return None
        return data

    def _store(self, cart: List[Dict[str, Any]], cart_count: Optional[int]) -> Dict[str, Any]:
        self.cart_storage.save(cart)
        snapshot = self.persistence.save_cart(cart) or build_cart_snapshot(cart)
        self.cart_count = cart_count if cart_count is not None else snapshot["totalQuantity"]
        return snapshot

    @staticmethod
    def _find_line(cart: List[Dict[str, Any]], product_id: str, color: Optional[str], size: Optional[str]):
        for line in cart:
            if line.get("productId") == product_id and line.get("color") == color and line.get("size") == size:
                return line
        return None

    def _notify(self, message: str, kind: str = "success"):
        notice = Notice(message=message, kind=kind)
        self.notices.append(notice)
        if self.on_notice:
            self.on_notice(notice)
