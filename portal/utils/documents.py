"""
Blob storage for registration confirmation slips.

The workflow only records that a document exists; the bytes live behind the
``DocumentStore`` contract, keyed by submission id.
"""
import logging
import os
import unicodedata
import uuid
from typing import Protocol
from urllib.parse import quote
from uuid import UUID

from portal import settings

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    def put(self, submission_id: UUID, file_name: str, content: bytes) -> str:
        ...

    def get(self, storage_key: str) -> bytes:
        ...

    def delete(self, storage_key: str) -> None:
        ...


class LocalDocumentStore:
    """Stores documents on the local filesystem under ``root/<submission_id>/``."""

    def __init__(self, root: str = settings.UPLOAD_DIR):
        self.root = os.path.abspath(root)

    def _path(self, storage_key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, storage_key))
        if not path.startswith(self.root + os.sep):
            raise ValueError(f"Invalid storage key: {storage_key}")
        return path

    def put(self, submission_id: UUID, file_name: str, content: bytes) -> str:
        extension = os.path.splitext(file_name)[1].lower() or ".pdf"
        storage_key = f"{submission_id}/{uuid.uuid4().hex}{extension}"
        path = self._path(storage_key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(content)
        logger.info("Stored document %s (%d bytes)", storage_key, len(content))
        return storage_key

    def get(self, storage_key: str) -> bytes:
        with open(self._path(storage_key), "rb") as fh:
            return fh.read()

    def delete(self, storage_key: str) -> None:
        path = self._path(storage_key)
        if os.path.exists(path):
            os.remove(path)


_store = None


def get_document_store() -> DocumentStore:
    global _store
    if _store is None:
        _store = LocalDocumentStore()
    return _store


def content_disposition(file_name: str) -> str:
    """
    Attachment header for ``file_name`` (RFC 6266).

    Header values must be latin-1, so the quoted ``filename`` is an ASCII
    rendering of the name and ``filename*`` carries the exact UTF-8 name.
    """
    ascii_name = unicodedata.normalize("NFKD", file_name).encode("ascii", "ignore").decode("ascii")
    ascii_name = "".join(c for c in ascii_name if c.isprintable()).replace("\\", "_").replace('"', "_")
    stem, extension = os.path.splitext(ascii_name)
    if not stem.strip():
        ascii_name = f"document{extension or '.pdf'}"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name, safe='')}"
