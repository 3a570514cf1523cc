from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from aurora.core.clock import isoformat_z


class OrderItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    price: float
    quantity: int
    color: Optional[str] = None
    size: Optional[str] = None

    def as_payload(self) -> dict:
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "color": self.color,
            "size": self.size,
        }


class BuyerDetails(BaseModel):
    """Shipping and contact fields exactly as the buyer typed them."""
    model_config = ConfigDict(frozen=True)

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str

    # Order Details
    items: Tuple[OrderItem, ...]
    revenue: float

    # Shipping
    buyer: BuyerDetails

    # Timestamps
    created_at: datetime

    def as_payload(self) -> dict:
        return {
            "id": self.id,
            "revenue": self.revenue,
            "items": [item.as_payload() for item in self.items],
            "firstName": self.buyer.first_name,
            "lastName": self.buyer.last_name,
            "email": self.buyer.email,
            "address": self.buyer.address,
            "city": self.buyer.city,
            "state": self.buyer.state,
            "zip": self.buyer.zip,
            "country": self.buyer.country,
            "createdAt": isoformat_z(self.created_at),
            "sessionId": self.session_id,
        }
