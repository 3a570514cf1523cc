"""
Append-only analytics event log.

Every cart interaction the storefront performs is pushed here as a plain
dict (``event`` name, product/cart/order snapshot, ISO-8601 ``timestamp``).
The query helpers mirror what the storefront's debugging console offers.
"""
import copy
from typing import Any, Dict, List, Optional

from aurora.core.clock import isoformat_z, utc_now
from aurora.core.logger import get_logger

logger = get_logger("analytics")


def utc_timestamp() -> str:
    return isoformat_z(utc_now())


class DataLayer:
    def __init__(self):
        self._pushes: List[Dict[str, Any]] = []

    def push(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """Append an event; a ``timestamp`` is stamped when the caller left it out."""
        entry = copy.deepcopy(event)
        entry.setdefault("timestamp", utc_timestamp())
        self._pushes.append(entry)
        return entry

    def __len__(self) -> int:
        return len(self._pushes)

    def get_last_push(self) -> Optional[Dict[str, Any]]:
        if not self._pushes:
            logger.debug("Data layer is empty")
            return None
        return self._pushes[-1]

    def get(self, path: str) -> Any:
        """Read a dot-separated path (``cart.totalValue``) from the last push."""
        value: Any = self.get_last_push()
        for key in path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            elif isinstance(value, list) and key.isdigit() and int(key) < len(value):
                value = value[int(key)]
            else:
                return None
        return value

    def get_all_pushes(self) -> List[Dict[str, Any]]:
        return list(self._pushes)

    def get_by_event(self, event_name: str) -> List[Dict[str, Any]]:
        return [push for push in self._pushes if push.get("event") == event_name]

    def get_cart(self) -> Optional[Dict[str, Any]]:
        return self._latest("cart")

    def get_order(self) -> Optional[Dict[str, Any]]:
        return self._latest("order")

    def debug(self, detailed: bool = False):
        logger.info("Data layer: %d pushes", len(self._pushes))
        if detailed:
            for index, push in enumerate(self._pushes):
                logger.info("  #%d %s", index, push)
        last_push = self.get_last_push()
        if last_push:
            logger.info("Last event: %s at %s", last_push.get("event"), last_push.get("timestamp"))

    def _latest(self, key: str) -> Optional[Dict[str, Any]]:
        for push in reversed(self._pushes):
            if push.get(key):
                return push[key]
        return None
