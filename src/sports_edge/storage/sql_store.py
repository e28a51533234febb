"""SQLAlchemy adapter storing blobs in the ``stored_blobs`` table."""

import asyncio
import logging
from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from ..database import (
    StoredBlob,
    create_db_engine,
    create_session_factory,
    init_db,
    session_scope,
    utc_now,
)
from ..exceptions import PersistenceError
from .base import BlobKey

logger = logging.getLogger(__name__)


class SqlBlobStore:
    """Store blobs as JSON rows, one per (sport, kind)."""

    def __init__(self, database_url: Optional[str] = None):
        self.engine = create_db_engine(database_url)
        init_db(self.engine)
        self._session_factory = create_session_factory(self.engine)

    async def get(self, key: BlobKey) -> Optional[Any]:
        return await asyncio.to_thread(self._run, "read", self._get, key)

    async def set(self, key: BlobKey, value: Any) -> None:
        await asyncio.to_thread(self._run, "write", self._set, key, value)

    async def delete(self, key: BlobKey) -> None:
        await asyncio.to_thread(self._run, "delete", self._delete, key)

    async def keys(self) -> List[BlobKey]:
        return await asyncio.to_thread(self._run, "list", self._keys)

    def _run(self, action: str, func, *args):
        try:
            return func(*args)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database {action} failed: {e}") from e

    def _get(self, key: BlobKey) -> Optional[Any]:
        with session_scope(self._session_factory) as session:
            blob = session.execute(
                select(StoredBlob).where(StoredBlob.sport == key.sport, StoredBlob.kind == key.kind)
            ).scalar_one_or_none()
            return blob.payload if blob is not None else None

    def _set(self, key: BlobKey, value: Any) -> None:
        with session_scope(self._session_factory) as session:
            blob = session.execute(
                select(StoredBlob).where(StoredBlob.sport == key.sport, StoredBlob.kind == key.kind)
            ).scalar_one_or_none()
            if blob is None:
                session.add(StoredBlob(sport=key.sport, kind=key.kind, payload=value))
            else:
                blob.payload = value
                blob.saved_at = utc_now()
        logger.debug(f"Stored {key.name}")

    def _delete(self, key: BlobKey) -> None:
        with session_scope(self._session_factory) as session:
            session.execute(
                delete(StoredBlob).where(StoredBlob.sport == key.sport, StoredBlob.kind == key.kind)
            )

    def _keys(self) -> List[BlobKey]:
        with session_scope(self._session_factory) as session:
            rows = session.execute(
                select(StoredBlob.sport, StoredBlob.kind).order_by(StoredBlob.sport, StoredBlob.kind)
            ).all()
            return [BlobKey(sport=sport, kind=kind) for sport, kind in rows]
