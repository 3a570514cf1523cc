from typing import List

from sqlmodel import Field, SQLModel


class Product(SQLModel):
    product_id: str = Field(min_length=1)

    # Basic Info
    name: str
    category: str
    brand: str
    description: str = ""

    # Images
    image: str = ""

    # Pricing
    price: float = Field(ge=0)

    # Variants
    colors: List[str] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)

    def as_payload(self) -> dict:
        """Storefront shape used by the pages and the analytics layer."""
        return {
            "productId": self.product_id,
            "productName": self.name,
            "productCategory": self.category,
            "brand": self.brand,
            "price": self.price,
            "description": self.description,
            "image": self.image,
            "colors": list(self.colors),
            "sizes": list(self.sizes),
        }
