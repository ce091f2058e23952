"""Cart and session state for the food-ordering client."""
from .cart import CartItem, CartManager, CartState, ItemCheck
from .context import UserContext, create_user_context
from .errors import (
    AuthError,
    CartItemNotFound,
    CartSessionError,
    MalformedCartError,
    RemoteError,
    StorageError,
)
from .location import Location, LocationProvider
from .profile import Profile, ProfileFetcher

__all__ = [
    "CartItem",
    "CartManager",
    "CartState",
    "ItemCheck",
    "UserContext",
    "create_user_context",
    "AuthError",
    "CartItemNotFound",
    "CartSessionError",
    "MalformedCartError",
    "RemoteError",
    "StorageError",
    "Location",
    "LocationProvider",
    "Profile",
    "ProfileFetcher",
]
