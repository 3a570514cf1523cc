from typing import List

from fastapi import APIRouter, Depends

from aurora.core.exceptions import NotFoundError
from aurora.db.catalog import CatalogStore, get_catalog

router = APIRouter()


@router.get("")
def read_products(catalog: CatalogStore = Depends(get_catalog)) -> List[dict]:
    return [product.as_payload() for product in catalog.all()]


@router.get("/{product_id}")
def read_product(product_id: str, catalog: CatalogStore = Depends(get_catalog)) -> dict:
    product = catalog.get(product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product.as_payload()
