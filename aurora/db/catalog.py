import json
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import Request
from pydantic import ValidationError

from aurora.core.exceptions import CatalogError
from aurora.core.logger import get_logger
from aurora.models.product import Product

logger = get_logger("catalog")


class CatalogStore:
    """Read-only product list, loaded once when the app starts."""

    def __init__(self, products: List[Product]):
        self._products = list(products)
        self._by_id: Dict[str, Product] = {}
        for product in self._products:
            if product.product_id in self._by_id:
                raise CatalogError(f"Duplicate product id {product.product_id}")
            self._by_id[product.product_id] = product

    @classmethod
    def from_file(cls, path) -> "CatalogStore":
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise CatalogError(f"Cannot read catalog {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise CatalogError(f"Catalog {path} is not valid JSON: {e}") from e

        if not isinstance(raw, list):
            raise CatalogError(f"Catalog {path} must contain a list of products")

        try:
            products = [Product.model_validate(entry) for entry in raw]
        except ValidationError as e:
            raise CatalogError(f"Catalog {path} has an invalid product: {e}") from e

        store = cls(products)
        logger.info("Loaded %d products from %s", len(store), path)
        return store

    def all(self) -> List[Product]:
        return list(self._products)

    def get(self, product_id: Optional[str]) -> Optional[Product]:
        if product_id is None:
            return None
        return self._by_id.get(product_id)

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, product_id) -> bool:
        return product_id in self._by_id


def get_catalog(request: Request) -> CatalogStore:
    return request.app.state.catalog
