"""Cart models: line items and the in-memory cart state."""
import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, List

# Serialized name of the catalog (menu item) id, as sent by the backend
CATALOG_ID_FIELD = "_id"

_RESERVED_FIELDS = ("key", CATALOG_ID_FIELD, "catalog_item_id", "quantity")


def _catalog_id(data: Mapping[str, Any]) -> str:
    """Read the catalog id from ``_id`` or ``catalog_item_id``.

    Raises:
        KeyError: neither field present
        TypeError: the id is not a string or integer
    """
    if CATALOG_ID_FIELD in data:
        value = data[CATALOG_ID_FIELD]
    elif "catalog_item_id" in data:
        value = data["catalog_item_id"]
    else:
        raise KeyError(CATALOG_ID_FIELD)
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise TypeError(f"catalog id must be a string or integer, got {type(value).__name__}")
    return str(value)


@dataclass
class CartItem:
    """Single line in the cart.

    The same catalog item may appear on several lines (different
    customizations), so lines are identified by ``key``, not by
    ``catalog_item_id``. Fields the cart does not interpret are kept in
    ``extras`` and written back verbatim.
    """
    key: str
    catalog_item_id: str
    quantity: Optional[int] = None
    extras: dict = field(default_factory=dict)

    @property
    def count(self) -> int:
        """Quantity for arithmetic; an unset quantity counts as zero."""
        return self.quantity or 0

    def to_dict(self) -> dict:
        """Convert to the persisted JSON object."""
        data = dict(self.extras)
        data["key"] = self.key
        data[CATALOG_ID_FIELD] = self.catalog_item_id
        if self.quantity is not None:
            data["quantity"] = self.quantity
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CartItem":
        """Create from a persisted JSON object.

        Raises:
            KeyError: ``key`` or the catalog id missing
            TypeError: wrong field types
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"cart item must be an object, got {type(data).__name__}")
        key = data["key"]
        catalog_item_id = _catalog_id(data)
        quantity = data.get("quantity")
        if not isinstance(key, str):
            raise TypeError("cart item key must be a string")
        if quantity is not None and (isinstance(quantity, bool) or not isinstance(quantity, int)):
            raise TypeError("cart item quantity must be an integer")
        extras = {k: v for k, v in data.items() if k not in _RESERVED_FIELDS}
        return cls(key=key, catalog_item_id=catalog_item_id, quantity=quantity, extras=extras)

    @classmethod
    def from_food(cls, food: Mapping[str, Any], key: str) -> "CartItem":
        """Build a new line from an add-to-cart payload.

        The catalog id is read from ``_id`` (backend food objects) or
        ``catalog_item_id``. Any ``key`` in the payload is ignored.
        """
        try:
            catalog_item_id = _catalog_id(food)
        except (KeyError, TypeError) as e:
            raise ValueError("food must carry an _id or catalog_item_id") from e
        if catalog_item_id == "":
            raise ValueError("food must carry an _id or catalog_item_id")
        quantity = food.get("quantity")
        if quantity is not None:
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise ValueError("quantity must be a positive integer")
        extras = {k: v for k, v in food.items() if k not in _RESERVED_FIELDS}
        return cls(key=key, catalog_item_id=catalog_item_id, quantity=quantity, extras=extras)


@dataclass
class ItemCheck:
    """Result of looking a catalog item up in the cart."""
    exists: bool
    quantity: int = 0
    key: Optional[str] = None

    def to_dict(self) -> dict:
        if not self.exists:
            return {"exists": False, "quantity": 0}
        return {"exists": True, "quantity": self.quantity, "key": self.key}


@dataclass
class CartState:
    """Cart contents and the restaurant they belong to."""
    items: List[CartItem] = field(default_factory=list)
    restaurant_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_items(self) -> int:
        """Sum of quantities over all lines."""
        return sum(item.count for item in self.items)

    def index_of(self, key: str) -> int:
        """Position of the line with ``key``, or -1."""
        return next((i for i, item in enumerate(self.items) if item.key == key), -1)

    def items_json(self) -> str:
        """Encode the items for the ``cartItems`` storage key."""
        return json.dumps([item.to_dict() for item in self.items])

    @staticmethod
    def parse_items(raw: str) -> List[CartItem]:
        """Decode a ``cartItems`` value.

        Raises:
            json.JSONDecodeError, KeyError, TypeError: malformed value
        """
        data = json.loads(raw)
        if not isinstance(data, list):
            raise TypeError(f"cart must be a JSON array, got {type(data).__name__}")
        return [CartItem.from_dict(item) for item in data]
