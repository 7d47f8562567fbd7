"""
tests/test_auth_service.py -- Unit tests for the account state machine (auth/service.py).

The mail transport is a MagicMock so each test can read the link that would
have been sent, or make the send fail.

Coverage:
  - register: persisted unverified, link format, duplicate email, mail failure keeps the row
  - verify_email: success, replay, wrong token, unknown user
  - login: identical failure for unknown email / wrong password, unverified re-send, token issue
  - password reset: link format, check without consuming, reset, replay, unknown user
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from auth.models import UserType
from auth.service import VERIFY_EMAIL_SENT, AuthService
from auth.store import UserStore
from auth.tokens import decode_access_token, verify_password
from core.config import get_settings
from core.errors import Conflict, InvalidCredential, InvalidToken, NotFound, TransientDependency


@pytest.fixture
def service(user_store: UserStore, mailer: MagicMock) -> AuthService:
    return AuthService(user_store, mailer, get_settings())


def _sent_link(mock_method: MagicMock) -> str:
    _email, link = mock_method.call_args.args
    return link


def _register_verified(service: AuthService, store: UserStore, email: str = "jane@example.com") -> int:
    service.register(email, "secret123", "jane")
    user = store.find_by_email(email)
    service.verify_email(user.id, user.verification_token)
    return user.id


# ---------------------------------------------------------------------------
# register
# ---------------------------------------------------------------------------


class TestRegister:
    def test_creates_unverified_user_and_sends_link(self, service, user_store, mailer) -> None:
        message = service.register("jane@example.com", "secret123", "jane")

        assert message == VERIFY_EMAIL_SENT
        user = user_store.find_by_email("jane@example.com")
        assert user.is_account_verified is False
        assert user.user_type is UserType.NORMAL_USER
        assert len(user.verification_token) == 64
        assert user.hashed_password != "secret123"

        mailer.send_verify_email.assert_called_once()
        email, link = mailer.send_verify_email.call_args.args
        assert email == "jane@example.com"
        assert link == f"{get_settings().domain}/api/users/verify-email/{user.id}/{user.verification_token}"

    def test_duplicate_email_conflicts(self, service, mailer) -> None:
        service.register("jane@example.com", "secret123", "jane")
        with pytest.raises(Conflict) as exc_info:
            service.register("jane@example.com", "other-pass", "jane2")
        assert exc_info.value.message == "user already exist"
        assert mailer.send_verify_email.call_count == 1

    def test_email_is_case_sensitive(self, service, user_store) -> None:
        service.register("jane@example.com", "secret123", "jane")
        service.register("Jane@example.com", "secret123", "jane")
        assert user_store.count() == 2

    def test_mail_failure_keeps_unverified_user(self, service, user_store, mailer) -> None:
        mailer.send_verify_email.side_effect = TransientDependency("Error sending email")
        with pytest.raises(TransientDependency):
            service.register("jane@example.com", "secret123", "jane")

        user = user_store.find_by_email("jane@example.com")
        assert user is not None
        assert user.is_account_verified is False
        assert user.verification_token is not None


# ---------------------------------------------------------------------------
# verify_email
# ---------------------------------------------------------------------------


class TestVerifyEmail:
    def test_success_clears_token(self, service, user_store) -> None:
        service.register("jane@example.com", "secret123", "jane")
        user = user_store.find_by_email("jane@example.com")

        service.verify_email(user.id, user.verification_token)

        user = user_store.find_by_id(user.id)
        assert user.is_account_verified is True
        assert user.verification_token is None

    def test_replay_fails(self, service, user_store) -> None:
        service.register("jane@example.com", "secret123", "jane")
        user = user_store.find_by_email("jane@example.com")
        service.verify_email(user.id, user.verification_token)

        with pytest.raises(Conflict) as exc_info:
            service.verify_email(user.id, user.verification_token)
        assert exc_info.value.message == "there is no verification token"
        assert exc_info.value.kind == "conflict"

    def test_wrong_token(self, service, user_store) -> None:
        service.register("jane@example.com", "secret123", "jane")
        user = user_store.find_by_email("jane@example.com")
        with pytest.raises(InvalidToken):
            service.verify_email(user.id, "0" * 64)
        assert user_store.find_by_id(user.id).is_account_verified is False

    def test_unknown_user(self, service) -> None:
        with pytest.raises(NotFound):
            service.verify_email(999, "0" * 64)


# ---------------------------------------------------------------------------
# login
# ---------------------------------------------------------------------------


class TestLogin:
    def test_unknown_email_and_wrong_password_look_the_same(self, service, user_store) -> None:
        _register_verified(service, user_store)
        with pytest.raises(InvalidCredential) as unknown:
            service.login("nobody@example.com", "secret123")
        with pytest.raises(InvalidCredential) as wrong:
            service.login("jane@example.com", "wrong-pass")
        assert unknown.value.kind == wrong.value.kind == "invalid_credential"
        assert unknown.value.message == wrong.value.message == "invalid email or password"

    def test_verified_user_gets_token(self, service, user_store) -> None:
        user_id = _register_verified(service, user_store)
        result = service.login("jane@example.com", "secret123")

        assert result.needs_verification is False
        payload = decode_access_token(result.access_token)
        assert payload.id == user_id
        assert payload.user_type is UserType.NORMAL_USER

    def test_unverified_user_gets_link_again(self, service, user_store, mailer) -> None:
        service.register("jane@example.com", "secret123", "jane")
        first_link = _sent_link(mailer.send_verify_email)

        result = service.login("jane@example.com", "secret123")

        assert result.needs_verification is True
        assert result.access_token is None
        assert result.message == VERIFY_EMAIL_SENT
        assert mailer.send_verify_email.call_count == 2
        # The pending token is reused, so the first email still works.
        assert _sent_link(mailer.send_verify_email) == first_link

    def test_unverified_user_without_token_gets_a_new_one(self, service, user_store, mailer) -> None:
        service.register("jane@example.com", "secret123", "jane")
        user = user_store.find_by_email("jane@example.com")
        user.verification_token = None
        user_store.save(user)

        service.login("jane@example.com", "secret123")

        token = user_store.find_by_id(user.id).verification_token
        assert token is not None
        assert _sent_link(mailer.send_verify_email).endswith(f"/{user.id}/{token}")

    def test_unverified_mail_failure_surfaces(self, service, user_store, mailer) -> None:
        service.register("jane@example.com", "secret123", "jane")
        mailer.send_verify_email.side_effect = TransientDependency("Error sending email")
        with pytest.raises(TransientDependency):
            service.login("jane@example.com", "secret123")

    def test_login_notice_is_best_effort(self, user_store, mailer) -> None:
        settings = get_settings().model_copy(update={"login_notifications": True})
        service = AuthService(user_store, mailer, settings)
        _register_verified(service, user_store)
        mailer.send_login.side_effect = TransientDependency("Error sending email")

        result = service.login("jane@example.com", "secret123")

        assert result.access_token is not None
        mailer.send_login.assert_called_once_with("jane@example.com")

    def test_no_login_notice_by_default(self, service, user_store, mailer) -> None:
        _register_verified(service, user_store)
        service.login("jane@example.com", "secret123")
        mailer.send_login.assert_not_called()


# ---------------------------------------------------------------------------
# password reset
# ---------------------------------------------------------------------------


class TestPasswordReset:
    def test_full_reset_flow(self, service, user_store, mailer) -> None:
        user_id = _register_verified(service, user_store)

        service.request_password_reset("jane@example.com")
        token = user_store.find_by_id(user_id).reset_password_token
        assert _sent_link(mailer.send_reset_password) == (
            f"{get_settings().client_domain}/reset-password/{user_id}/{token}"
        )

        assert service.confirm_reset_link_valid(user_id, token) == "valid link"
        # Checking the link does not consume it.
        assert user_store.find_by_id(user_id).reset_password_token == token

        service.reset_password(user_id, token, "new-secret")

        user = user_store.find_by_id(user_id)
        assert user.reset_password_token is None
        assert verify_password("new-secret", user.hashed_password)
        assert service.login("jane@example.com", "new-secret").access_token
        with pytest.raises(InvalidCredential):
            service.login("jane@example.com", "secret123")

    def test_reset_token_is_single_use(self, service, user_store) -> None:
        user_id = _register_verified(service, user_store)
        service.request_password_reset("jane@example.com")
        token = user_store.find_by_id(user_id).reset_password_token
        service.reset_password(user_id, token, "new-secret")

        with pytest.raises(InvalidToken):
            service.reset_password(user_id, token, "third-secret")
        with pytest.raises(InvalidToken):
            service.confirm_reset_link_valid(user_id, token)

    def test_wrong_token_and_unknown_user_share_an_error(self, service, user_store) -> None:
        user_id = _register_verified(service, user_store)
        service.request_password_reset("jane@example.com")

        with pytest.raises(InvalidToken) as wrong:
            service.confirm_reset_link_valid(user_id, "0" * 64)
        with pytest.raises(InvalidToken) as missing:
            service.confirm_reset_link_valid(999, "0" * 64)
        assert wrong.value.message == missing.value.message == "invalid link"

    def test_no_pending_reset(self, service, user_store) -> None:
        user_id = _register_verified(service, user_store)
        with pytest.raises(InvalidToken):
            service.reset_password(user_id, "", "new-secret")

    def test_unknown_email(self, service) -> None:
        with pytest.raises(NotFound) as exc_info:
            service.request_password_reset("nobody@example.com")
        assert exc_info.value.message == "user with given email does not exist"

    def test_reset_leaves_verification_state_alone(self, service, user_store) -> None:
        service.register("jane@example.com", "secret123", "jane")
        pending = user_store.find_by_email("jane@example.com").verification_token

        service.request_password_reset("jane@example.com")

        user = user_store.find_by_email("jane@example.com")
        assert user.is_account_verified is False
        assert user.verification_token == pending

    def test_request_mail_failure_surfaces(self, service, user_store, mailer) -> None:
        _register_verified(service, user_store)
        mailer.send_reset_password.side_effect = TransientDependency("Error sending email")
        with pytest.raises(TransientDependency):
            service.request_password_reset("jane@example.com")
