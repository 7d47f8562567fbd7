"""
api/routes/users.py -- Account lifecycle and user self-service endpoints.

Routes:
  POST   /api/users/auth/register                 -- create unverified account, email link
  POST   /api/users/auth/login                    -- token or "please verify" message
  GET    /api/users/verify-email/{id}/{token}     -- consume a verification link
  POST   /api/users/forgot-password               -- email a reset link
  GET    /api/users/reset-password/{id}/{token}   -- check a reset link (not consumed)
  POST   /api/users/reset-password                -- consume a reset link, set password
  GET    /api/users/current-user                  -- caller's profile
  GET    /api/users                               -- all users (admin only)
  PUT    /api/users                               -- update caller's username / password
  DELETE /api/users/{user_id}                     -- self or admin
  POST   /api/users/upload-image                  -- set caller's profile image
  DELETE /api/users/images/remove-profile-image   -- clear caller's profile image
  GET    /api/users/images/{image}                -- serve a profile image

Security:
  POST /auth/login and POST /forgot-password are rate-limited per IP.
  Login responses carry Cache-Control: no-store.
  Handlers never build error responses themselves: services raise
  core.errors types and api/errors.py maps them to status codes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, UploadFile
from fastapi.responses import FileResponse

from api.limiter import limiter
from api.models import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
    UserUpdate,
)
from auth.dependencies import require_roles
from auth.models import TokenPayload, UserType
from auth.service import AuthService
from auth.users import PROFILE_IMAGE_DIR, UserService
from core.config import get_settings
from uploads.storage import UploadStorage

# Auth policy:
# - register / login / verify-email / forgot-password / reset-password: public
# - GET /users: admin only
# - everything else: any signed-in role; ownership checked in UserService
router = APIRouter(prefix="/users")

_settings = get_settings()
_any_user = require_roles(UserType.ADMIN, UserType.NORMAL_USER)
_admin_only = require_roles(UserType.ADMIN)


def _auth(request: Request) -> AuthService:
    return request.app.state.auth_service


def _users(request: Request) -> UserService:
    return request.app.state.user_service


# ---------------------------------------------------------------------------
# Registration, verification, login
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=MessageResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> MessageResponse:
    message = _auth(request).register(body.email, body.password, body.username)
    return MessageResponse(message=message)


@router.post("/auth/login", response_model=LoginResponse, response_model_exclude_none=True)
@limiter.limit(_settings.login_rate_limit)
def login(request: Request, response: Response, body: LoginRequest) -> LoginResponse:
    """Return a bearer token for a verified account.

    An unverified account with a correct password gets 200 and a message
    instead of a token; the verification email is re-sent.
    """
    response.headers["Cache-Control"] = "no-store"
    result = _auth(request).login(body.email, body.password)
    if result.needs_verification:
        return LoginResponse(message=result.message)
    return LoginResponse(access_token=result.access_token, token_type="bearer")


@router.get("/verify-email/{user_id}/{token}", response_model=MessageResponse)
def verify_email(request: Request, user_id: int, token: str) -> MessageResponse:
    return MessageResponse(message=_auth(request).verify_email(user_id, token))


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit(_settings.forgot_password_rate_limit)
def forgot_password(request: Request, body: ForgotPasswordRequest) -> MessageResponse:
    return MessageResponse(message=_auth(request).request_password_reset(body.email))


@router.get("/reset-password/{user_id}/{token}", response_model=MessageResponse)
def check_reset_link(request: Request, user_id: int, token: str) -> MessageResponse:
    return MessageResponse(message=_auth(request).confirm_reset_link_valid(user_id, token))


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(request: Request, body: ResetPasswordRequest) -> MessageResponse:
    message = _auth(request).reset_password(body.user_id, body.reset_password_token, body.new_password)
    return MessageResponse(message=message)


# ---------------------------------------------------------------------------
# Self-service
# ---------------------------------------------------------------------------


@router.get("/current-user", response_model=UserResponse)
def current_user(request: Request, payload: TokenPayload = Depends(_any_user)) -> UserResponse:
    return UserResponse.from_user(_users(request).get_current_user(payload.id))


@router.get("", response_model=list[UserResponse])
def list_users(request: Request, payload: TokenPayload = Depends(_admin_only)) -> list[UserResponse]:
    return [UserResponse.from_user(u) for u in _users(request).list_users()]


@router.put("", response_model=UserResponse)
def update_user(
    request: Request,
    body: UserUpdate,
    payload: TokenPayload = Depends(_any_user),
) -> UserResponse:
    user = _users(request).update_user(payload.id, username=body.username, password=body.password)
    return UserResponse.from_user(user)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(request: Request, user_id: int, payload: TokenPayload = Depends(_any_user)) -> MessageResponse:
    _users(request).delete_user(user_id, payload)
    return MessageResponse(message="user has been deleted successfully")


# ---------------------------------------------------------------------------
# Profile image
# ---------------------------------------------------------------------------


@router.post("/upload-image", response_model=UserResponse)
async def upload_profile_image(
    request: Request,
    file: UploadFile,
    payload: TokenPayload = Depends(_any_user),
) -> UserResponse:
    storage: UploadStorage = request.app.state.uploads
    filename = storage.save(await file.read(), file.filename or "", subdir=PROFILE_IMAGE_DIR)
    user = _users(request).set_profile_image(payload.id, filename)
    return UserResponse.from_user(user)


@router.delete("/images/remove-profile-image", response_model=UserResponse)
def remove_profile_image(request: Request, payload: TokenPayload = Depends(_any_user)) -> UserResponse:
    return UserResponse.from_user(_users(request).remove_profile_image(payload.id))


@router.get("/images/{image}", response_class=FileResponse)
def show_profile_image(request: Request, image: str, payload: TokenPayload = Depends(_any_user)) -> FileResponse:
    storage: UploadStorage = request.app.state.uploads
    return FileResponse(storage.path_for(PROFILE_IMAGE_DIR, image))
