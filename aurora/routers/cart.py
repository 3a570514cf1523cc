from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field, field_validator

from aurora.core.exceptions import SoftFailure
from aurora.core.payload import body_of
from aurora.db.session import get_visitor_session
from aurora.models.cart import CartView
from aurora.models.session import VisitorSession
from aurora.services.cart import CartService, get_cart_service, parse_int

router = APIRouter()


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class CartLineRef(BaseModel):
    """Identifies a cart line. ``productId`` wins over the legacy ``id`` field."""
    product_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("productId", "id", "product_id"))
    color: Optional[str] = None
    size: Optional[str] = None

    @field_validator("product_id", "color", "size", mode="before")
    @classmethod
    def stringify(cls, value):
        return _optional_text(value)


class CartItemAdd(CartLineRef):
    # ``quantity`` wins over ``qty``; parsed leniently by the service
    quantity: Any = Field(default=None, validation_alias=AliasChoices("quantity", "qty"))


class CartItemUpdate(CartLineRef):
    change: Any = Field(default=None, validation_alias=AliasChoices("change", "delta"))


class CartSync(BaseModel):
    cart: List[CartItemAdd] = []


def cart_response(view: CartView) -> dict:
    items = view.as_payload()
    return {
        "success": True,
        "cart": items,
        "items": items,
        "total": view.total,
        "cartCount": view.count
    }


@router.get("")
def get_cart(
    session: VisitorSession = Depends(get_visitor_session),
    service: CartService = Depends(get_cart_service)
):
    """Get the visitor's cart"""
    view = service.get_cart(session)
    items = view.as_payload()
    return {
        "sessionId": session.session_id,
        "cart": items,
        "items": items,
        "total": view.total,
        "cartCount": view.count
    }


@router.post("/add")
def add_to_cart(
    session: VisitorSession = Depends(get_visitor_session),
    cart_item: CartItemAdd = Depends(body_of(CartItemAdd)),
    service: CartService = Depends(get_cart_service)
):
    """Add item to cart"""
    view = service.add_item(session, cart_item.product_id, cart_item.color, cart_item.size, cart_item.quantity)
    return cart_response(view)


@router.post("/update")
def update_cart_item(
    session: VisitorSession = Depends(get_visitor_session),
    cart_update: CartItemUpdate = Depends(body_of(CartItemUpdate)),
    service: CartService = Depends(get_cart_service)
):
    """Change a line's quantity by a signed delta"""
    delta = parse_int(cart_update.change)
    if delta is None:
        raise SoftFailure("Invalid quantity change")
    view = service.update_quantity(session, cart_update.product_id, cart_update.color, cart_update.size, delta)
    return cart_response(view)


@router.post("/remove")
def remove_from_cart(
    session: VisitorSession = Depends(get_visitor_session),
    cart_item: CartLineRef = Depends(body_of(CartLineRef)),
    service: CartService = Depends(get_cart_service)
):
    """Remove item from cart"""
    view = service.remove_item(session, cart_item.product_id, cart_item.color, cart_item.size)
    return cart_response(view)


@router.post("/sync")
def sync_cart(
    session: VisitorSession = Depends(get_visitor_session),
    payload: CartSync = Depends(body_of(CartSync)),
    service: CartService = Depends(get_cart_service)
):
    """Restore an empty server cart from the browser's saved copy"""
    lines = [item.model_dump() for item in payload.cart]
    return cart_response(service.sync(session, lines))
