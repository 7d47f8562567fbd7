"""
api/routes/reviews.py -- Product review endpoints.

Routes:
  POST   /api/reviews/{product_id}  -- add a review (any signed-in role)
  GET    /api/reviews               -- paginated, newest first (admin only)
  PUT    /api/reviews/{review_id}   -- author only
  DELETE /api/reviews/{review_id}   -- author or admin
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from api.models import MessageResponse, ReviewCreate, ReviewResponse, ReviewUpdate
from auth.dependencies import require_roles
from auth.models import TokenPayload, UserType
from catalog.service import ReviewService

router = APIRouter(prefix="/reviews")

_any_user = require_roles(UserType.ADMIN, UserType.NORMAL_USER)
_admin_only = require_roles(UserType.ADMIN)


def _reviews(request: Request) -> ReviewService:
    return request.app.state.review_service


@router.post("/{product_id}", response_model=ReviewResponse, status_code=201)
def create_review(
    request: Request,
    product_id: int,
    body: ReviewCreate,
    payload: TokenPayload = Depends(_any_user),
) -> ReviewResponse:
    review = _reviews(request).create_review(product_id, payload.id, body.rating, body.comment)
    return ReviewResponse.from_review(review)


@router.get("", response_model=list[ReviewResponse])
def list_reviews(
    request: Request,
    page_number: int = Query(default=1, alias="pageNumber", ge=1),
    review_per_page: int = Query(default=10, alias="reviewPerPage", ge=1, le=100),
    payload: TokenPayload = Depends(_admin_only),
) -> list[ReviewResponse]:
    reviews = _reviews(request).list_reviews(page=page_number, per_page=review_per_page)
    return [ReviewResponse.from_review(r) for r in reviews]


@router.put("/{review_id}", response_model=ReviewResponse)
def update_review(
    request: Request,
    review_id: int,
    body: ReviewUpdate,
    payload: TokenPayload = Depends(_any_user),
) -> ReviewResponse:
    review = _reviews(request).update_review(review_id, payload.id, rating=body.rating, comment=body.comment)
    return ReviewResponse.from_review(review)


@router.delete("/{review_id}", response_model=MessageResponse)
def delete_review(
    request: Request,
    review_id: int,
    payload: TokenPayload = Depends(_any_user),
) -> MessageResponse:
    _reviews(request).delete_review(review_id, payload)
    return MessageResponse(message="review has been deleted successfully")
