from aurora.models.product import Product
from aurora.models.cart import CartLine, CartView, CartViewLine, LineKey
from aurora.models.order import BuyerDetails, Order, OrderItem
from aurora.models.session import VisitorSession

__all__ = [
    "Product",
    "CartLine",
    "CartView",
    "CartViewLine",
    "LineKey",
    "BuyerDetails",
    "Order",
    "OrderItem",
    "VisitorSession",
]
