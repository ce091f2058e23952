"""Cart manager: in-memory cart mirrored to persistent storage."""
import json
import uuid
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from cartsession.errors import CartItemNotFound, MalformedCartError, StorageError
from cartsession.logging import get_logger, sanitize_id_for_logging
from cartsession.storage import KeyValueStore, StorageKeys
from .models import CartItem, CartState, ItemCheck

logger = get_logger(__name__)


class CartManager:
    """
    Owns the cart for the running session.

    Memory is the source of truth while the process runs; storage is a
    mirror read back by ``load()`` at startup. Every mutation changes
    memory before its first await, then writes the affected keys.

    Features:
    - Single-restaurant cart (auto-clear when an item from another
      restaurant is added)
    - Empty cart always has no restaurant
    - Write failures are logged and kept in ``last_write_error``; the
      in-memory cart stays usable
    """

    def __init__(self, store: KeyValueStore, key_factory: Optional[Callable[[], str]] = None):
        self.store = store
        self.state = CartState()
        self.loaded = False
        self.last_write_error: Optional[StorageError] = None
        self._key_factory = key_factory or (lambda: str(uuid.uuid4()))

    @property
    def items(self) -> List[CartItem]:
        """Current lines, in insertion order."""
        return list(self.state.items)

    @property
    def restaurant_id(self) -> Optional[str]:
        return self.state.restaurant_id

    async def load(self) -> CartState:
        """
        Read cart and restaurant from storage into memory.

        Missing keys mean an empty cart / no restaurant.

        Raises:
            MalformedCartError: stored cart is not a valid JSON item list
            StorageError: the store could not be read
        """
        restaurant = await self.store.get(StorageKeys.RESTAURANT)
        raw = await self.store.get(StorageKeys.CART_ITEMS)

        try:
            items = CartState.parse_items(raw) if raw else []
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.error(f"Stored cart could not be decoded: {e}")
            raise MalformedCartError(str(e)) from e

        self.state = CartState(items=items, restaurant_id=restaurant or None)
        self.loaded = True
        logger.debug(f"Loaded cart with {len(items)} items for restaurant {sanitize_id_for_logging(restaurant)}")
        return self.state

    async def reload(self) -> CartState:
        """Discard memory and read the persisted cart again."""
        return await self.load()

    async def add_item(
        self,
        food: Mapping[str, Any],
        clear_flag: bool = False,
        restaurant_id: Optional[str] = None,
    ) -> CartItem:
        """
        Append a new line built from ``food``.

        Args:
            food: Add-to-cart payload; needs ``_id`` (or ``catalog_item_id``),
                optional ``quantity``, anything else is kept verbatim
            clear_flag: Drop current lines first
            restaurant_id: Restaurant of the item; when it differs from the
                cart's restaurant the cart is cleared and re-scoped

        Returns:
            The new line, with a freshly generated key
        """
        item = CartItem.from_food(food, key=self._unique_key())

        switching = (
            restaurant_id is not None
            and self.state.restaurant_id is not None
            and restaurant_id != self.state.restaurant_id
        )
        if switching:
            logger.info(
                f"Item from restaurant {sanitize_id_for_logging(restaurant_id)} replaces cart of "
                f"{sanitize_id_for_logging(self.state.restaurant_id)}"
            )
        if clear_flag or switching:
            self.state.items = []
        self.state.items.append(item)

        restaurant_changed = restaurant_id is not None and restaurant_id != self.state.restaurant_id
        if restaurant_changed:
            self.state.restaurant_id = restaurant_id

        await self._write_items()
        if restaurant_changed:
            await self._write_restaurant()
        return item

    async def add_quantity(self, key: str, amount: int = 1) -> CartItem:
        """Increase a line's quantity by ``amount``."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
            raise ValueError("amount must be a positive integer")
        item = self._get(key)
        item.quantity = item.count + amount
        await self._write_items()
        return item

    async def remove_quantity(self, key: str) -> None:
        """Decrease a line's quantity by one, dropping it at zero."""
        item = self._get(key)
        item.quantity = item.count - 1
        self.state.items = [c for c in self.state.items if c.count > 0]
        await self._after_drain()
        await self._write_items()

    async def delete_item(self, key: str) -> bool:
        """Remove a line regardless of quantity. Unknown keys are ignored."""
        index = self.state.index_of(key)
        if index < 0:
            return False
        del self.state.items[index]
        self.state.items = [c for c in self.state.items if c.count > 0]
        await self._after_drain()
        await self._write_items()
        return True

    def check_item(self, catalog_item_id: str) -> ItemCheck:
        """Find the first line for a catalog item."""
        for item in self.state.items:
            if item.catalog_item_id == catalog_item_id:
                return ItemCheck(exists=True, quantity=item.count, key=item.key)
        return ItemCheck(exists=False)

    def cart_count(self) -> int:
        """Total number of units in the cart."""
        return self.state.total_items

    async def replace_cart(self, items: Iterable[Union[CartItem, Mapping[str, Any]]]) -> None:
        """Set the whole line sequence at once."""
        new_items = [i if isinstance(i, CartItem) else CartItem.from_dict(i) for i in items]
        keys = [i.key for i in new_items]
        if len(set(keys)) != len(keys):
            raise ValueError("cart item keys must be unique")
        self.state.items = new_items
        await self._after_drain()
        await self._write_items()

    async def set_restaurant(self, restaurant_id: Optional[str]) -> None:
        """Scope the cart to a restaurant; persisted apart from the items."""
        self.state.restaurant_id = restaurant_id or None
        await self._write_restaurant()

    async def clear_cart(self) -> None:
        """Empty the cart and remove both persisted keys."""
        self.state = CartState()
        await self._delete(StorageKeys.CART_ITEMS)
        await self._delete(StorageKeys.RESTAURANT)

    def summary(self) -> dict:
        """Snapshot of the cart for UI consumers."""
        if self.state.is_empty:
            return {
                "is_empty": True,
                "total_items": 0,
                "restaurant": self.state.restaurant_id,
                "items": [],
            }
        return {
            "is_empty": False,
            "total_items": self.cart_count(),
            "restaurant": self.state.restaurant_id,
            "items": [item.to_dict() for item in self.state.items],
        }

    def _get(self, key: str) -> CartItem:
        index = self.state.index_of(key)
        if index < 0:
            raise CartItemNotFound(key)
        return self.state.items[index]

    def _unique_key(self) -> str:
        existing = {item.key for item in self.state.items}
        key = self._key_factory()
        while key in existing:
            key = self._key_factory()
        return key

    async def _after_drain(self) -> None:
        # An empty cart belongs to no restaurant
        if self.state.is_empty and self.state.restaurant_id is not None:
            self.state.restaurant_id = None
            await self._delete(StorageKeys.RESTAURANT)

    async def _write_items(self) -> bool:
        return await self._write(StorageKeys.CART_ITEMS, self.state.items_json())

    async def _write_restaurant(self) -> bool:
        if self.state.restaurant_id is None:
            return await self._delete(StorageKeys.RESTAURANT)
        return await self._write(StorageKeys.RESTAURANT, self.state.restaurant_id)

    async def _write(self, key: str, value: str) -> bool:
        try:
            await self.store.set(key, value)
            return True
        except StorageError as e:
            self.last_write_error = e
            logger.error(f"Failed to persist {key}, memory and storage diverge: {e}")
            return False

    async def _delete(self, key: str) -> bool:
        try:
            await self.store.delete(key)
            return True
        except StorageError as e:
            self.last_write_error = e
            logger.error(f"Failed to delete {key} from storage: {e}")
            return False
