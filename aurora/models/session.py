import threading
from typing import List, Optional

from aurora.models.cart import CartLine
from aurora.models.order import Order


class VisitorSession:
    """Server-memory state for one visitor: a cart and the most recent order."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.cart: List[CartLine] = []
        self.last_order: Optional[Order] = None
        # Serialises cart and checkout mutations for this visitor only
        self.lock = threading.RLock()

    def __repr__(self) -> str:
        return f"VisitorSession({self.session_id!r}, lines={len(self.cart)})"
