"""
auth/service.py -- Account state machine: register, verify, login, reset.

States per user:

    register() --> Unverified --verify_email(id, token)--> Verified
                      |  ^
                      |  | login() re-sends the verification email
                      +--+ (issuing a token only if none is pending)

Verified is terminal -- there is no path back to Unverified.

Single-use tokens:
  verification_token  non-null only while Unverified; nulled on success.
  reset_password_token non-null only between forgot-password and a successful
                       reset_password(); nulled on success.

Failure handling:
  Every step is one atomic store write, sequenced -- no surrounding
  transaction. If the verification email fails after the user row is saved,
  the row stays Unverified with its token intact, and the next login() finds
  that token and re-sends the same link. That is the only retry path; nothing
  here retries internally.

Layer rule: no imports from api/, catalog/, cache/, or uploads/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore
from auth.tokens import (
    create_access_token,
    generate_one_time_token,
    hash_password,
    tokens_match,
    verify_against_dummy,
    verify_password,
)
from core.config import Settings
from core.errors import Conflict, InvalidCredential, InvalidToken, NotFound, TransientDependency
from mail.mailer import Mailer

logger = logging.getLogger("shopfront.auth")

VERIFY_EMAIL_SENT = "Verification token has been sent to your email, please verify your email address"


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a login that passed the credential check.

    Exactly one of access_token / message is set. An unverified account gets
    a message and no token -- a normal outcome, not an error.
    """

    access_token: str | None = None
    message: str | None = None

    @property
    def needs_verification(self) -> bool:
        return self.access_token is None


class AuthService:
    def __init__(self, users: UserStore, mailer: Mailer, settings: Settings) -> None:
        self._users = users
        self._mailer = mailer
        self._settings = settings

    # ------------------------------------------------------------------
    # Registration and verification
    # ------------------------------------------------------------------

    def register(self, email: str, password: str, username: str) -> str:
        """Create an Unverified account and email the verification link.

        Raises Conflict if the email is taken, TransientDependency if the
        mail send fails (the account is kept).
        """
        if self._users.find_by_email(email) is not None:
            raise Conflict("user already exist")

        user = User(
            email=email,
            username=username,
            hashed_password=hash_password(password),
            verification_token=generate_one_time_token(),
        )
        try:
            user.id = self._users.create(user)
        except IntegrityError as exc:
            # Lost a race against a concurrent registration for the same email.
            raise Conflict("user already exist") from exc
        logger.info("Registered user %d", user.id)

        self._mailer.send_verify_email(email, self._verification_link(user.id, user.verification_token))
        return VERIFY_EMAIL_SENT

    def verify_email(self, user_id: int, token: str) -> str:
        user = self._users.find_by_id(user_id)
        if user is None:
            raise NotFound("user not found")
        if user.verification_token is None:
            raise Conflict("there is no verification token")
        if not tokens_match(user.verification_token, token):
            raise InvalidToken("Invalid Link")

        user.is_account_verified = True
        user.verification_token = None
        self._users.save(user)
        logger.info("User %d verified their email", user_id)
        return "your email has been verified, please login to your account"

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> LoginResult:
        """Check credentials; issue a token or re-send the verification link.

        Unknown email and wrong password raise the same InvalidCredential and
        cost the same bcrypt work, so neither message nor timing reveals
        whether an email is registered.
        """
        user = self._users.find_by_email(email)
        if user is None:
            verify_against_dummy(password)
            raise InvalidCredential()
        if not verify_password(password, user.hashed_password):
            raise InvalidCredential()

        if not user.is_account_verified:
            if user.verification_token is None:
                user.verification_token = generate_one_time_token()
                self._users.save(user)
            # A mail failure here surfaces as TransientDependency. This is the
            # one branch where the error kind differs after a correct password.
            self._mailer.send_verify_email(email, self._verification_link(user.id, user.verification_token))
            return LoginResult(message=VERIFY_EMAIL_SENT)

        token = create_access_token(user.id, user.user_type, self._settings.token_expire_seconds)
        logger.info("User %d logged in", user.id)
        if self._settings.login_notifications:
            try:
                self._mailer.send_login(email)
            except TransientDependency:
                # The token is already issued; a missed notice must not undo the login.
                logger.warning("Sign-in notice for user %d not sent", user.id)
        return LoginResult(access_token=token)

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    def request_password_reset(self, email: str) -> str:
        user = self._users.find_by_email(email)
        if user is None:
            raise NotFound("user with given email does not exist")

        user.reset_password_token = generate_one_time_token()
        self._users.save(user)
        link = f"{self._settings.client_domain}/reset-password/{user.id}/{user.reset_password_token}"
        self._mailer.send_reset_password(email, link)
        return "Password reset link sent to your email, please check your inbox"

    def confirm_reset_link_valid(self, user_id: int, token: str) -> str:
        """Check a reset link without consuming it (lets the client show the form)."""
        self._user_for_reset(user_id, token)
        return "valid link"

    def reset_password(self, user_id: int, token: str, new_password: str) -> str:
        user = self._user_for_reset(user_id, token)
        user.hashed_password = hash_password(new_password)
        user.reset_password_token = None
        self._users.save(user)
        logger.info("User %d reset their password", user_id)
        return "password reset successfully, please log in"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _user_for_reset(self, user_id: int, token: str) -> User:
        # Missing user and bad token share one error so the link check
        # cannot be used to enumerate user ids.
        user = self._users.find_by_id(user_id)
        if user is None or not tokens_match(user.reset_password_token, token):
            raise InvalidToken("invalid link")
        return user

    def _verification_link(self, user_id: int, token: str) -> str:
        return f"{self._settings.domain}/api/users/verify-email/{user_id}/{token}"
