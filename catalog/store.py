"""
catalog/store.py -- SQLAlchemy-backed persistence for products and reviews.

Uses SQLAlchemy Core (not ORM) so the dataclasses in catalog/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. CatalogStore is the repository; the
_row_to_* functions are the mappers. Services never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL. The title
filter escapes LIKE wildcards so a search for "50%" means the literal text.

Usage:
    store = CatalogStore()
    product_id = store.create_product(Product(title="book", price=10))
    store.find_products(title="boo", min_price=5, max_price=20)
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, Text, func
from sqlalchemy.engine import Engine

from catalog.models import Product, Review
from core.db import build_engine

_DEFAULT_DB_URL = "sqlite:///shopfront.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(150), nullable=False),
    Column("description", Text),
    Column("price", Float, nullable=False),
    Column("user_id", Integer),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_reviews = Table(
    "reviews",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("product_id", Integer, nullable=False, index=True),
    Column("user_id", Integer, nullable=False),
    Column("rating", Integer, nullable=False),
    Column("comment", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CatalogStore:
    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        self.engine: Engine = build_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def create_product(self, product: Product) -> int:
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _products.insert().values(
                    title=product.title,
                    description=product.description,
                    price=product.price,
                    user_id=product.user_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_product(self, product_id: int) -> Optional[Product]:
        with self.engine.connect() as conn:
            row = conn.execute(_products.select().where(_products.c.id == product_id)).fetchone()
        return _row_to_product(row) if row is not None else None

    def find_products(
        self,
        title: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> list[Product]:
        """Return products matching the optional filters, ordered by id.

        title: case-insensitive substring match.
        min_price / max_price: inclusive range, applied only when BOTH are given.
        """
        stmt = _products.select()
        if title:
            pattern = f"%{_escape_like(title.lower())}%"
            stmt = stmt.where(func.lower(_products.c.title).like(pattern, escape="\\"))
        if min_price is not None and max_price is not None:
            stmt = stmt.where(_products.c.price.between(min_price, max_price))
        with self.engine.connect() as conn:
            rows = conn.execute(stmt.order_by(_products.c.id)).fetchall()
        return [_row_to_product(r) for r in rows]

    def update_product(self, product_id: int, **fields) -> bool:
        """Update title / description / price. Returns False if product_id was not found."""
        fields["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_products.update().where(_products.c.id == product_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_product(self, product_id: int) -> bool:
        """Delete a product and its reviews in one transaction."""
        with self.engine.begin() as conn:
            conn.execute(_reviews.delete().where(_reviews.c.product_id == product_id))
            result = conn.execute(_products.delete().where(_products.c.id == product_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def create_review(self, review: Review) -> int:
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _reviews.insert().values(
                    product_id=review.product_id,
                    user_id=review.user_id,
                    rating=review.rating,
                    comment=review.comment,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_review(self, review_id: int) -> Optional[Review]:
        with self.engine.connect() as conn:
            row = conn.execute(_reviews.select().where(_reviews.c.id == review_id)).fetchone()
        return _row_to_review(row) if row is not None else None

    def list_reviews(self, offset: int, limit: int) -> list[Review]:
        """Newest first. id breaks ties between rows created in the same instant."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _reviews.select()
                .order_by(_reviews.c.created_at.desc(), _reviews.c.id.desc())
                .offset(offset)
                .limit(limit)
            ).fetchall()
        return [_row_to_review(r) for r in rows]

    def update_review(self, review_id: int, **fields) -> bool:
        fields["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_reviews.update().where(_reviews.c.id == review_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_review(self, review_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_reviews.delete().where(_reviews.c.id == review_id))
            conn.commit()
        return result.rowcount > 0

    def delete_reviews_by_user(self, user_id: int) -> int:
        """Remove every review written by user_id. Returns the number removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_reviews.delete().where(_reviews.c.user_id == user_id))
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        title=row.title,
        description=row.description,
        price=row.price,
        user_id=row.user_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_review(row) -> Review:
    return Review(
        id=row.id,
        product_id=row.product_id,
        user_id=row.user_id,
        rating=row.rating,
        comment=row.comment,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
