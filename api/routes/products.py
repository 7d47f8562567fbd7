"""
api/routes/products.py -- Product catalog endpoints.

Routes:
  GET    /api/products               -- list, filtered by title / minPrice / maxPrice (cached)
  GET    /api/products/{product_id}  -- single product
  POST   /api/products               -- create (admin only)
  PUT    /api/products/{product_id}  -- partial update (admin only)
  DELETE /api/products/{product_id}  -- delete with its reviews (admin only)

Listings go through ProductService's read-through cache; every write
invalidates the whole "products:" namespace before the response is sent.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import MessageResponse, ProductCreate, ProductResponse, ProductUpdate
from auth.dependencies import require_roles
from auth.models import TokenPayload, UserType
from catalog.service import ProductService

router = APIRouter(prefix="/products")

_admin_only = require_roles(UserType.ADMIN)


def _products(request: Request) -> ProductService:
    return request.app.state.product_service


@router.get("", response_model=list[ProductResponse])
def list_products(
    request: Request,
    title: Optional[str] = Query(default=None, max_length=150),
    min_price: Optional[float] = Query(default=None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(default=None, alias="maxPrice", ge=0),
) -> list[ProductResponse]:
    """List products.

    The price range only applies when both minPrice and maxPrice are given.
    """
    products = _products(request).list_products(title=title, min_price=min_price, max_price=max_price)
    return [ProductResponse.from_product(p) for p in products]


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(request: Request, product_id: int) -> ProductResponse:
    return ProductResponse.from_product(_products(request).get_product(product_id))


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(
    request: Request,
    body: ProductCreate,
    payload: TokenPayload = Depends(_admin_only),
) -> ProductResponse:
    product = _products(request).create_product(
        title=body.title,
        price=body.price,
        user_id=payload.id,
        description=body.description,
    )
    return ProductResponse.from_product(product)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    request: Request,
    product_id: int,
    body: ProductUpdate,
    payload: TokenPayload = Depends(_admin_only),
) -> ProductResponse:
    product = _products(request).update_product(
        product_id,
        title=body.title,
        price=body.price,
        description=body.description,
    )
    return ProductResponse.from_product(product)


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    request: Request,
    product_id: int,
    payload: TokenPayload = Depends(_admin_only),
) -> MessageResponse:
    _products(request).delete_product(product_id)
    return MessageResponse(message="product has been deleted successfully")
