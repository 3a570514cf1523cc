"""
File-backed stand-in for the browser's localStorage, plus the two cart
records the storefront keeps there: the raw server cart and a normalised
snapshot used to restore analytics state across page loads.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from aurora.core.config import settings
from aurora.core.logger import get_logger

logger = get_logger("analytics.storage")

CART_KEY = "auroraApparel_cart"
CART_STATE_KEY = "auroraApparel_cart_state"


def build_cart_snapshot(lines: Optional[List[Dict[str, Any]]], currency: str = None) -> Dict[str, Any]:
    items = [
        {
            "productId": line.get("productId"),
            "name": line.get("productName") or line.get("name") or "",
            "price": line.get("price") or 0,
            "quantity": line.get("quantity") or 0,
        }
        for line in (lines or [])
    ]
    return {
        "currency": currency or settings.CURRENCY,
        "totalQuantity": sum(item["quantity"] for item in items),
        "totalValue": round(sum(item["price"] * item["quantity"] for item in items), 2),
        "items": items,
    }


class LocalStorage:
    """String key/value store persisted as one JSON document.

    Unreadable or corrupt files read as empty; writes replace the file atomically.
    """

    def __init__(self, path=None):
        self.path = Path(path or settings.MIRROR_STORAGE_PATH)

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str):
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str):
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    def _read(self) -> Dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable storage %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed storage %s", self.path)
            return {}
        return {key: value for key, value in data.items() if isinstance(value, str)}

    def _write(self, data: Dict[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class CartStorage:
    """Raw server cart lines as last seen by the client."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def save(self, cart: List[Dict[str, Any]]) -> bool:
        try:
            self.storage.set_item(CART_KEY, json.dumps(cart))
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not save cart: %s", e)
            return False

    def load(self) -> Optional[List[Dict[str, Any]]]:
        raw = self.storage.get_item(CART_KEY)
        if not raw:
            return None
        try:
            cart = json.loads(raw)
        except ValueError as e:
            logger.warning("Could not load cart: %s", e)
            return None
        return cart if isinstance(cart, list) else None

    def clear(self):
        try:
            self.storage.remove_item(CART_KEY)
        except OSError as e:
            logger.warning("Could not clear cart: %s", e)


class CartPersistence:
    """Normalised cart snapshot kept across page loads."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    @staticmethod
    def empty() -> Dict[str, Any]:
        return build_cart_snapshot([])

    def get_cart(self) -> Dict[str, Any]:
        raw = self.storage.get_item(CART_STATE_KEY)
        if raw:
            try:
                cart = json.loads(raw)
                if isinstance(cart, dict) and isinstance(cart.get("items"), list):
                    return cart
            except ValueError as e:
                logger.warning("Could not parse cart state: %s", e)
        return self.empty()

    def save_cart(self, lines: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        snapshot = build_cart_snapshot(lines)
        try:
            self.storage.set_item(CART_STATE_KEY, json.dumps(snapshot))
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not save cart state: %s", e)
            return None
        logger.debug("Cart persisted: %d items", snapshot["totalQuantity"])
        return snapshot

    def clear(self):
        try:
            self.storage.remove_item(CART_STATE_KEY)
        except OSError as e:
            logger.warning("Could not clear cart state: %s", e)

    def restore(self, data_layer) -> Optional[Dict[str, Any]]:
        """Replay the stored snapshot into the data layer as a ``cartUpdate`` event."""
        cart = self.get_cart()
        if not cart.get("items"):
            return None
        logger.debug("Restoring cart from storage: %d lines", len(cart["items"]))
        return data_layer.push({"event": "cartUpdate", "cart": cart})
