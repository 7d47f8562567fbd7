"""
uploads/storage.py -- Local disk storage for uploaded images.

Files live under <UPLOADS_DIR>/<subdir>/ with server-chosen names: a random
hex stem plus the original (lower-cased) extension. Client filenames are
never used as paths.

Usage:
    storage = UploadStorage(Path("images"))
    name = storage.save(raw_bytes, "avatar.png", subdir="users")
    path = storage.path_for("users", name)
    storage.delete("users", name)

Layer rule: no imports from api/, auth/, catalog/, cache/, or mail/.
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path

from core.errors import NotFound, ValidationFailed

logger = logging.getLogger("shopfront.uploads")

MAX_UPLOAD_BYTES = 1 * 1024 * 1024  # 1 MB
ALLOWED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})


class UploadStorage:
    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def check(self, data: bytes, original_name: str) -> str:
        """Validate an upload without storing it. Returns the lower-cased extension.

        Raises ValidationFailed for empty files, files over MAX_UPLOAD_BYTES,
        or extensions outside ALLOWED_EXTENSIONS.
        """
        if not data:
            raise ValidationFailed("no file provided")
        if len(data) > MAX_UPLOAD_BYTES:
            raise ValidationFailed("Upload must be 1 MB or smaller.")
        ext = Path(original_name or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationFailed("Unsupported file type. Allowed: " + ", ".join(sorted(ALLOWED_EXTENSIONS)))
        return ext

    def save(self, data: bytes, original_name: str, subdir: str = "") -> str:
        """Write an uploaded image and return the stored filename."""
        ext = self.check(data, original_name)
        directory = self._dir(subdir)
        directory.mkdir(parents=True, exist_ok=True)
        filename = f"{secrets.token_hex(16)}{ext}"
        (directory / filename).write_bytes(data)
        logger.info("Stored upload %s/%s (%d bytes)", subdir or ".", filename, len(data))
        return filename

    def path_for(self, subdir: str, filename: str) -> Path:
        """Resolve a stored file. Raises NotFound for missing files or traversal attempts."""
        directory = self._dir(subdir)
        candidate = (directory / filename).resolve()
        if candidate.parent != directory or not candidate.is_file():
            raise NotFound("file not found")
        return candidate

    def delete(self, subdir: str, filename: str) -> bool:
        """Remove a stored file. Returns False if it was already gone."""
        try:
            path = self.path_for(subdir, filename)
        except NotFound:
            return False
        path.unlink(missing_ok=True)
        return True

    def _dir(self, subdir: str) -> Path:
        directory = (self.root / subdir).resolve() if subdir else self.root
        if directory != self.root and self.root not in directory.parents:
            raise NotFound("file not found")
        return directory
