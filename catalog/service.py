"""
catalog/service.py -- Product and review operations.

ProductService puts a read-through cache in front of the listing query:

  read:  key = products:<t=title|*>:<min>:<max>
         hit  -> cached snapshot, the store is not touched
         miss -> query the store, cache the result unless an invalidation
                 ran meanwhile (namespace generation moved), return it

  write: create / update / delete go to the store first, then every key under
         "products:" is invalidated before the call returns. A completed write
         is therefore never followed by a stale listing.

Invalidation is best effort after the store write has committed: a cache
failure is logged at ERROR and swallowed so the caller still sees a
successful mutation. The write itself is never rolled back for it.

Single product reads (get_product) are not cached.
"""

from __future__ import annotations

import logging
from typing import Optional

from auth.models import TokenPayload, UserType
from cache.store import NamespaceCache
from catalog.models import Product, Review
from catalog.store import CatalogStore
from core.errors import Forbidden, NotFound

logger = logging.getLogger("shopfront.catalog")

PRODUCTS_NAMESPACE = "products"


def _title_part(value: Optional[str]) -> str:
    # "*" is the unfiltered listing; every title filter carries the "t=" tag
    return "*" if not value else "t=" + value.lower()


def _price_part(value: Optional[float]) -> str:
    # repr keeps full float precision, so two different bounds never share a key
    return "" if value is None else repr(float(value))


class ProductService:
    def __init__(self, store: CatalogStore, cache: NamespaceCache) -> None:
        self._store = store
        self._cache = cache

    def cache_key(
        self,
        title: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> str:
        return self._cache.key(_title_part(title), _price_part(min_price), _price_part(max_price))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_products(
        self,
        title: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> list[Product]:
        key = self.cache_key(title, min_price, max_price)
        generation = self._cache.generation()
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Product cache hit: %s", key)
            return [Product.from_dict(p) for p in cached]

        products = self._store.find_products(title=title, min_price=min_price, max_price=max_price)
        if self._cache.set(key, [p.to_dict() for p in products], generation=generation):
            logger.debug("Product cache miss: %s (%d rows cached)", key, len(products))
        else:
            logger.debug("Product cache miss: %s (not cached, invalidated during read)", key)
        return products

    def get_product(self, product_id: int) -> Product:
        product = self._store.get_product(product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    # ------------------------------------------------------------------
    # Writes -- each ends with _invalidate()
    # ------------------------------------------------------------------

    def create_product(self, title: str, price: float, user_id: int, description: Optional[str] = None) -> Product:
        product = Product(title=title.lower(), price=price, description=description, user_id=user_id)
        product_id = self._store.create_product(product)
        self._invalidate()
        logger.info("Product %d created by user %d", product_id, user_id)
        return self.get_product(product_id)

    def update_product(
        self,
        product_id: int,
        title: Optional[str] = None,
        price: Optional[float] = None,
        description: Optional[str] = None,
    ) -> Product:
        self.get_product(product_id)
        changes: dict = {}
        if title is not None:
            changes["title"] = title.lower()
        if price is not None:
            changes["price"] = price
        if description is not None:
            changes["description"] = description
        if changes:
            self._store.update_product(product_id, **changes)
            self._invalidate()
        return self.get_product(product_id)

    def delete_product(self, product_id: int) -> None:
        self.get_product(product_id)
        self._store.delete_product(product_id)
        self._invalidate()
        logger.info("Product %d deleted", product_id)

    def _invalidate(self) -> None:
        try:
            self._cache.invalidate_namespace()
        except Exception:
            logger.exception("Product cache invalidation failed; listings may be stale until the next write")


class ReviewService:
    """Ratings and comments. Only the author edits; the author or an admin deletes."""

    def __init__(self, store: CatalogStore, products: ProductService, users) -> None:
        self._store = store
        self._products = products
        self._users = users  # auth.users.UserService

    def create_review(self, product_id: int, user_id: int, rating: int, comment: str) -> Review:
        self._products.get_product(product_id)
        self._users.get_current_user(user_id)
        review_id = self._store.create_review(
            Review(product_id=product_id, user_id=user_id, rating=rating, comment=comment)
        )
        return self._get(review_id)

    def list_reviews(self, page: int, per_page: int) -> list[Review]:
        return self._store.list_reviews(offset=per_page * (page - 1), limit=per_page)

    def update_review(
        self,
        review_id: int,
        user_id: int,
        rating: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> Review:
        review = self._get(review_id)
        if review.user_id != user_id:
            raise Forbidden()
        changes: dict = {}
        if rating is not None:
            changes["rating"] = rating
        if comment is not None:
            changes["comment"] = comment
        if changes:
            self._store.update_review(review_id, **changes)
        return self._get(review_id)

    def delete_review(self, review_id: int, actor: TokenPayload) -> None:
        review = self._get(review_id)
        if review.user_id != actor.id and actor.user_type is not UserType.ADMIN:
            raise Forbidden("you are not allowed")
        self._store.delete_review(review_id)

    def _get(self, review_id: int) -> Review:
        review = self._store.get_review(review_id)
        if review is None:
            raise NotFound("review not found")
        return review
