"""
Catalog store for the Virtual Try-On AI service.

The catalog is loaded once at process start and never changes afterwards;
every request reads the same tuple of frozen items.
"""
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class ClothingType(str, Enum):
    """Canonical clothing categories."""

    SHIRT = "shirt"
    PANTS = "pants"
    SHOES = "shoes"
    JACKET = "jacket"
    DRESS = "dress"
    ACCESSORIES = "accessories"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value) -> "ClothingType":
        """Map a free-text value to a ClothingType, falling back to UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class CatalogItem:
    """A candidate clothing item."""

    id: int
    type: ClothingType
    colors: frozenset
    brands: frozenset
    price: float

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogItem":
        try:
            return cls(
                id=int(data["id"]),
                type=ClothingType.parse(data["type"]),
                colors=frozenset(data.get("colors", ())),
                brands=frozenset(data.get("brands", ())),
                price=float(data["price"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid catalog entry {data!r}: {e}") from e

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "colors": sorted(self.colors),
            "brands": sorted(self.brands),
            "price": self.price,
        }


# Built-in catalog used when no CATALOG_PATH is configured
DEFAULT_CATALOG = [
    {"id": 1, "type": "shirt", "colors": ["blue", "white", "black"], "brands": ["Nike", "Adidas"], "price": 50},
    {"id": 2, "type": "pants", "colors": ["black", "blue", "grey"], "brands": ["Levi", "Gap"], "price": 80},
    {"id": 3, "type": "shoes", "colors": ["black", "white", "grey"], "brands": ["Nike", "Puma"], "price": 120},
    {"id": 4, "type": "jacket", "colors": ["black", "brown", "grey"], "brands": ["Zara", "H&M"], "price": 150},
    {"id": 5, "type": "dress", "colors": ["red", "black", "white"], "brands": ["Forever21", "H&M"], "price": 60},
]


class CatalogStore:
    """Immutable collection of catalog items."""

    def __init__(self, items: Iterable[CatalogItem]):
        items = tuple(items)
        seen = set()
        for item in items:
            if item.id in seen:
                raise ValueError(f"Duplicate catalog id: {item.id}")
            if item.price < 0:
                raise ValueError(f"Negative price for catalog id {item.id}")
            seen.add(item.id)
        self._items = items

    @property
    def items(self) -> tuple:
        return self._items

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, item_id: int) -> Optional[CatalogItem]:
        return next((item for item in self._items if item.id == item_id), None)

    @classmethod
    def from_records(cls, records: List[dict]) -> "CatalogStore":
        return cls(CatalogItem.from_dict(record) for record in records)

    @classmethod
    def from_json(cls, path: str) -> "CatalogStore":
        """Load a catalog from a JSON file holding a list of items."""
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
        if not isinstance(records, list):
            raise ValueError(f"Catalog file {path} must contain a JSON list")
        store = cls.from_records(records)
        logger.info(f"Loaded {len(store)} catalog items from {path}")
        return store

    @classmethod
    def default(cls) -> "CatalogStore":
        return cls.from_records(DEFAULT_CATALOG)


def load_catalog(path: str = "") -> CatalogStore:
    """Load the catalog from path, or the built-in catalog if path is empty."""
    if path:
        return CatalogStore.from_json(path)
    logger.info("Using built-in catalog")
    return CatalogStore.default()
