from typing import List, Optional, Tuple

from pydantic import BaseModel
from sqlmodel import Field, SQLModel

LineKey = Tuple[str, Optional[str], Optional[str]]


class CartLine(SQLModel):
    # References
    product_id: str

    # Denormalised at time of add
    product_name: str
    product_category: str
    brand: str
    price: float = Field(ge=0)

    # Variant
    color: Optional[str] = None
    size: Optional[str] = None

    # Cart Details
    quantity: int = Field(default=1, ge=1)

    @property
    def key(self) -> LineKey:
        return (self.product_id, self.color, self.size)

    def matches(self, product_id: str, color: Optional[str], size: Optional[str]) -> bool:
        return self.key == (product_id, color, size)

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def as_payload(self) -> dict:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "productCategory": self.product_category,
            "brand": self.brand,
            "price": self.price,
            "color": self.color,
            "size": self.size,
            "quantity": self.quantity,
        }


class CartViewLine(BaseModel):
    line: CartLine
    name: str
    image: str

    def as_payload(self) -> dict:
        payload = self.line.as_payload()
        payload["image"] = self.image
        payload["name"] = self.name
        return payload


class CartView(BaseModel):
    lines: List[CartViewLine]
    total: float
    count: int

    def as_payload(self) -> List[dict]:
        return [line.as_payload() for line in self.lines]
