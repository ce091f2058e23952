"""Cart package: models and manager."""
from .models import CartItem, CartState, ItemCheck
from .service import CartManager

__all__ = [
    "CartItem",
    "CartState",
    "ItemCheck",
    "CartManager",
]
