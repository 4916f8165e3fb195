"""
Uploaded files and the identifiers Telegram hands out for them.
"""
import logging
import mimetypes
import secrets
import string
from typing import Any

from mockgram.store.entities import StoredFile

logger = logging.getLogger("mockgram.store.files")

FILE_ID_LENGTH = 16
FILE_UNIQUE_ID_LENGTH = 8
_ALPHABET = string.ascii_letters + string.digits


def random_token(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def guess_mime_type(file_name: str | None, default: str | None = None) -> str | None:
    if not file_name:
        return default
    mime_type, _ = mimetypes.guess_type(file_name)
    return mime_type or default


class FileStore:
    def __init__(self) -> None:
        self._by_id: dict[str, StoredFile] = {}
        self._by_path: dict[str, StoredFile] = {}

    def _add(self, stored: StoredFile) -> StoredFile:
        self._by_id[stored.file_id] = stored
        self._by_path[stored.file_path] = stored
        return stored

    def add_upload(
        self,
        kind: str,
        file_name: str | None,
        data: bytes,
        mime_type: str | None = None,
    ) -> StoredFile:
        """Register freshly uploaded bytes under new identifiers."""
        file_unique_id = random_token(FILE_UNIQUE_ID_LENGTH)
        stored = StoredFile(
            file_id=random_token(FILE_ID_LENGTH),
            file_unique_id=file_unique_id,
            file_size=len(data),
            file_path=f"{kind}s/{file_unique_id}/{file_name or file_unique_id}",
            file_name=file_name,
            mime_type=mime_type,
            content=data,
        )
        logger.debug("Uploaded %s %s (%d bytes)", kind, stored.file_path, stored.file_size)
        return self._add(stored)

    def add_reference(self, kind: str, file_id: str, meta: dict[str, Any] | None = None) -> StoredFile:
        """Record for a file known only by ID; known IDs reuse their record."""
        stored = self._by_id.get(file_id)
        if stored is not None:
            return stored

        meta = meta or {}
        file_unique_id = meta.get("file_unique_id") or random_token(FILE_UNIQUE_ID_LENGTH)
        file_name = meta.get("file_name")
        return self._add(StoredFile(
            file_id=file_id,
            file_unique_id=file_unique_id,
            file_size=meta.get("file_size") or 0,
            file_path=f"{kind}s/{file_unique_id}/{file_name or file_unique_id}",
            file_name=file_name,
            mime_type=meta.get("mime_type"),
        ))

    def resolve_meta(self, kind: str, meta: dict[str, Any]) -> StoredFile:
        """Adapter for ``content_from_api``."""
        return self.add_reference(kind, meta["file_id"], meta)

    def get_file(self, file_id: str) -> StoredFile | None:
        return self._by_id.get(file_id)

    def get_file_by_path(self, file_path: str) -> StoredFile | None:
        return self._by_path.get(file_path)

    def reset(self) -> None:
        self._by_id.clear()
        self._by_path.clear()
