import logging
import threading
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from craftflow.models.blob import CollectionBlob

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """A collection blob could not be written."""


class BlobStore(Protocol):
    """Keyed storage of serialized collection blobs.

    Implementations raise PersistenceError on storage failures. The ledger
    logs any exception from save() and keeps its in-memory state.
    """

    def load(self, key: str) -> Optional[bytes]:
        ...

    def save(self, key: str, data: bytes) -> None:
        ...


class MemoryBlobStore:
    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._blobs: dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def load(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._blobs.get(key)

    def save(self, key: str, data: bytes) -> None:
        with self._lock:
            self._blobs[key] = bytes(data)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._blobs)


class SqlBlobStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def load(self, key: str) -> Optional[bytes]:
        with self._session_factory() as db:
            row = (
                db.execute(select(CollectionBlob).where(CollectionBlob.key == key))
                .scalars()
                .first()
            )
            if row is None:
                return None
            return bytes(row.payload)

    def save(self, key: str, data: bytes) -> None:
        try:
            with self._session_factory() as db:
                row = db.get(CollectionBlob, key)
                if row is None:
                    db.add(CollectionBlob(key=key, payload=data))
                else:
                    row.payload = data
                db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save {key}: {exc}") from exc
        logger.debug("Saved %s (%d bytes)", key, len(data))


__all__ = ["BlobStore", "MemoryBlobStore", "PersistenceError", "SqlBlobStore"]
