from aurora.analytics.data_layer import DataLayer
from aurora.analytics.mirror import CartMirror, Notice
from aurora.analytics.storage import CartPersistence, CartStorage, LocalStorage, build_cart_snapshot

__all__ = [
    "DataLayer",
    "CartMirror",
    "Notice",
    "CartPersistence",
    "CartStorage",
    "LocalStorage",
    "build_cart_snapshot",
]
