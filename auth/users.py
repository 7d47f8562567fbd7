"""
auth/users.py -- Account self-service: profile reads, updates, deletion, avatar.

Role gating happens at the boundary (auth/dependencies.require_roles). The
ownership rule for deletion lives here because it needs the target id:
an actor may delete their own account, an admin may delete anyone's.
Deleting an account also removes the reviews it wrote.
"""

from __future__ import annotations

import logging

from auth.models import TokenPayload, User, UserType
from auth.store import UserStore
from auth.tokens import hash_password
from catalog.store import CatalogStore
from core.errors import Forbidden, NotFound, ValidationFailed
from uploads.storage import UploadStorage

logger = logging.getLogger("shopfront.users")

PROFILE_IMAGE_DIR = "users"


class UserService:
    def __init__(self, users: UserStore, storage: UploadStorage, catalog: CatalogStore) -> None:
        self._users = users
        self._storage = storage
        self._catalog = catalog

    def get_current_user(self, user_id: int) -> User:
        user = self._users.find_by_id(user_id)
        if user is None:
            raise NotFound("user not found")
        return user

    def list_users(self) -> list[User]:
        return self._users.list_users()

    def update_user(self, user_id: int, username: str | None = None, password: str | None = None) -> User:
        user = self.get_current_user(user_id)
        if username is not None:
            user.username = username
        if password:
            user.hashed_password = hash_password(password)
        return self._users.save(user)

    def delete_user(self, target_id: int, actor: TokenPayload) -> None:
        user = self.get_current_user(target_id)
        if user.id != actor.id and actor.user_type is not UserType.ADMIN:
            raise Forbidden()
        if user.profile_image:
            self._storage.delete(PROFILE_IMAGE_DIR, user.profile_image)
        reviews = self._catalog.delete_reviews_by_user(user.id)
        self._users.remove(user.id)
        logger.info("User %d deleted by user %d (%d reviews removed)", target_id, actor.id, reviews)

    def set_profile_image(self, user_id: int, filename: str) -> User:
        """Point the profile at a freshly stored image, deleting the old one."""
        user = self.get_current_user(user_id)
        if user.profile_image:
            self._storage.delete(PROFILE_IMAGE_DIR, user.profile_image)
        user.profile_image = filename
        return self._users.save(user)

    def remove_profile_image(self, user_id: int) -> User:
        user = self.get_current_user(user_id)
        if user.profile_image is None:
            raise ValidationFailed("there is no profile image")
        self._storage.delete(PROFILE_IMAGE_DIR, user.profile_image)
        user.profile_image = None
        return self._users.save(user)
