"""
catalog/models.py -- Domain dataclasses for products and reviews.

These are pure data containers with zero logic. Cache handling and
ownership rules live in catalog/service.py.

id is None before the record is written to the database.
"""

from dataclasses import asdict, dataclass
from typing import Optional


@dataclass
class Product:
    """A sellable item. title is stored lower-cased."""

    title: str
    price: float
    description: Optional[str] = None
    user_id: Optional[int] = None  # admin who created it
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(**data)


@dataclass
class Review:
    """A user's rating (1-5) and comment on one product."""

    product_id: int
    user_id: int
    rating: int
    comment: str
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
