import time
import uuid

from aurora.core.clock import utc_now
from aurora.core.config import settings
from aurora.core.exceptions import NotFoundError, SoftFailure
from aurora.core.logger import get_logger
from aurora.models.order import BuyerDetails, Order, OrderItem
from aurora.models.session import VisitorSession
from aurora.services.cart import cart_total

logger = get_logger("checkout")


def generate_order_id() -> str:
    return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9].upper()}"


def get_checkout_service() -> 'CheckoutService':
    return CheckoutService()


class CheckoutService:
    def checkout(self, session: VisitorSession, buyer: BuyerDetails) -> Order:
        """Freeze the cart into an order, keep it as the session's last order and empty the cart.

        Card details never reach this layer; no payment is taken.
        """
        with session.lock:
            if not session.cart:
                raise SoftFailure("Cart is empty")

            if not buyer.country:
                buyer = buyer.model_copy(update={"country": settings.DEFAULT_COUNTRY})

            order = Order(
                id=generate_order_id(),
                session_id=session.session_id,
                items=tuple(
                    OrderItem(
                        product_id=line.product_id,
                        name=line.product_name,
                        price=line.price,
                        quantity=line.quantity,
                        color=line.color,
                        size=line.size
                    )
                    for line in session.cart
                ),
                revenue=cart_total(session.cart),
                buyer=buyer,
                created_at=utc_now()
            )

            session.last_order = order
            session.cart = []

        logger.info("Order %s placed by %s for %.2f", order.id, session.session_id, order.revenue)
        return order

    def get_order(self, session: VisitorSession, order_id: str) -> Order:
        order = session.last_order
        if not order or order.id != order_id:
            raise NotFoundError("Order not found")
        return order
