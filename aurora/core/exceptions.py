class ShopError(Exception):
    """Base class for errors raised by the cart and checkout services."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ShopError):
    """Unknown product or order. Surfaces as HTTP 404."""


class SoftFailure(ShopError):
    """Expected, user-reachable condition. Surfaces as HTTP 200 with success=false."""


class CatalogError(Exception):
    """The catalog file is missing or malformed."""
