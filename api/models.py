"""
API request and response models for the Shopfront REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two via the from_* factory methods below.

Response models never carry password hashes or one-time tokens.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from auth.models import User, UserType
from catalog.models import Product, Review

# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload. code is the stable error kind."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Users -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr = Field(max_length=250)
    password: str = Field(min_length=6, max_length=64)
    username: str = Field(min_length=2, max_length=150)


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr = Field(max_length=250)
    password: str = Field(min_length=6, max_length=64)


class ForgotPasswordRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr = Field(max_length=250)


class ResetPasswordRequest(BaseModel):
    """Body for POST /api/users/reset-password. Field names match the reset link parts."""

    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: int = Field(gt=0)
    reset_password_token: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=6, max_length=64)


class UserUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    password: Optional[str] = Field(default=None, min_length=6, max_length=64)
    username: Optional[str] = Field(default=None, min_length=2, max_length=150)


# ---------------------------------------------------------------------------
# Users -- responses
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    """Verified users get access_token; unverified users get message only."""

    model_config = ConfigDict(frozen=True)

    access_token: Optional[str] = None
    token_type: Optional[str] = None
    message: Optional[str] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    username: str
    user_type: UserType
    is_account_verified: bool
    profile_image: Optional[str]
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            user_type=user.user_type,
            is_account_verified=user.is_account_verified,
            profile_image=user.profile_image,
            created_at=user.created_at or "",
        )


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=3, max_length=150)
    price: float = Field(ge=0, le=1_000_000)
    description: Optional[str] = Field(default=None, min_length=3, max_length=1000)


class ProductUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=3, max_length=150)
    price: Optional[float] = Field(default=None, ge=0, le=1_000_000)
    description: Optional[str] = Field(default=None, min_length=3, max_length=1000)


class ProductResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    price: float
    description: Optional[str]
    user_id: Optional[int]
    created_at: str
    updated_at: str

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            title=product.title,
            price=product.price,
            description=product.description,
            user_id=product.user_id,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


class ReviewCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=2, max_length=1000)


class ReviewUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, min_length=2, max_length=1000)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    product_id: int
    user_id: int
    rating: int
    comment: str
    created_at: str

    @classmethod
    def from_review(cls, review: Review) -> "ReviewResponse":
        return cls(
            id=review.id,
            product_id=review.product_id,
            user_id=review.user_id,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
        )


class UploadResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    filenames: list[str] = Field(default_factory=list)
