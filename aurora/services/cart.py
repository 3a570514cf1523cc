import re
from typing import Any, Iterable, List, Optional

from fastapi import Depends

from aurora.core.config import settings
from aurora.core.exceptions import NotFoundError, SoftFailure
from aurora.core.logger import get_logger
from aurora.db.catalog import CatalogStore, get_catalog
from aurora.models.cart import CartLine, CartView, CartViewLine
from aurora.models.session import VisitorSession

logger = get_logger("cart")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Any) -> Optional[int]:
    """Lenient integer parse: ints, truncated floats and leading digits of strings ("2 pcs" -> 2)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    return None


def coerce_quantity(value: Any) -> int:
    """Quantity for add-to-cart. Missing, non-numeric or non-positive input becomes 1."""
    quantity = parse_int(value)
    if quantity is None or quantity < 1:
        return 1
    return quantity


def cart_total(lines: Iterable[CartLine]) -> float:
    return round(sum(line.price * line.quantity for line in lines), 2)


def cart_count(lines: Iterable[CartLine]) -> int:
    return sum(line.quantity for line in lines)


def get_cart_service(catalog: CatalogStore = Depends(get_catalog)) -> 'CartService':
    return CartService(catalog)


class CartService:
    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog

    def get_cart(self, session: VisitorSession) -> CartView:
        """Snapshot of the cart with current catalog name and image, plus total and unit count"""
        with session.lock:
            lines = [line.model_copy() for line in session.cart]
        return self._view(lines)

    def add_item(
        self,
        session: VisitorSession,
        product_id: str,
        color: Optional[str] = None,
        size: Optional[str] = None,
        quantity: Any = 1
    ) -> CartView:
        """Add a line or increment the matching (product, color, size) line"""
        product = self.catalog.get(product_id)
        if not product:
            logger.warning("Add to cart for unknown product %s", product_id)
            raise NotFoundError("Product not found")

        quantity = coerce_quantity(quantity)

        with session.lock:
            existing_line = self._find(session, product_id, color, size)
            if existing_line:
                existing_line.quantity += quantity
            else:
                session.cart.append(CartLine(
                    product_id=product.product_id,
                    product_name=product.name,
                    product_category=product.category,
                    brand=product.brand,
                    price=product.price,
                    color=color,
                    size=size,
                    quantity=quantity
                ))

            logger.debug("Session %s added %d x %s (%s/%s)", session.session_id, quantity, product_id, color, size)
            return self.get_cart(session)

    def update_quantity(
        self,
        session: VisitorSession,
        product_id: str,
        color: Optional[str],
        size: Optional[str],
        delta: int
    ) -> CartView:
        """Apply a signed delta; a line that drops to zero or below is removed"""
        with session.lock:
            line = self._find(session, product_id, color, size)
            if not line:
                raise SoftFailure("Item not found in cart")

            new_quantity = line.quantity + delta
            if new_quantity <= 0:
                session.cart = [item for item in session.cart if item is not line]
            else:
                line.quantity = new_quantity

            logger.debug("Session %s changed %s (%s/%s) by %d", session.session_id, product_id, color, size, delta)
            return self.get_cart(session)

    def remove_item(
        self,
        session: VisitorSession,
        product_id: str,
        color: Optional[str] = None,
        size: Optional[str] = None
    ) -> CartView:
        """Remove the matching line. Removing a missing line leaves the cart unchanged"""
        with session.lock:
            session.cart = [
                line for line in session.cart
                if not line.matches(product_id, color, size)
            ]
            return self.get_cart(session)

    def sync(self, session: VisitorSession, lines: List[dict]) -> CartView:
        """Rebuild an empty server cart from a client-held snapshot; a non-empty server cart wins"""
        with session.lock:
            if session.cart:
                return self.get_cart(session)

            restored = 0
            for entry in lines:
                product = self.catalog.get(entry.get("product_id"))
                quantity = parse_int(entry.get("quantity"))
                if not product or quantity is None or quantity < 1:
                    continue
                self.add_item(session, product.product_id, entry.get("color"), entry.get("size"), quantity)
                restored += 1

            if restored:
                logger.info("Session %s restored %d cart lines from client storage", session.session_id, restored)
            return self.get_cart(session)

    def clear(self, session: VisitorSession):
        with session.lock:
            session.cart = []

    def _view(self, lines: List[CartLine]) -> CartView:
        # Total and count come from the same copied lines the view carries
        view_lines = []
        for line in lines:
            product = self.catalog.get(line.product_id)
            view_lines.append(CartViewLine(
                line=line,
                name=line.product_name,
                image=product.image if product else settings.PLACEHOLDER_IMAGE
            ))
        return CartView(lines=view_lines, total=cart_total(lines), count=cart_count(lines))

    @staticmethod
    def _find(session: VisitorSession, product_id: str, color: Optional[str], size: Optional[str]) -> Optional[CartLine]:
        for line in session.cart:
            if line.matches(product_id, color, size):
                return line
        return None
