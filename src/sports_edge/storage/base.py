"""Key/value storage port and in-process adapters.

Every blob is a JSON-compatible value keyed by ``BlobKey(sport, kind)``.
Adapters are async so a host event loop never blocks on disk or database I/O.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from ..exceptions import PersistenceError

logger = logging.getLogger(__name__)

TRAINING = "training"
MODEL = "model"
KINDS = (TRAINING, MODEL)


@dataclass(frozen=True)
class BlobKey:
    """Storage key for one sport's training rows or model."""

    sport: str
    kind: str

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ValueError(f"Unknown blob kind: {self.kind}. Must be one of {KINDS}")
        if not self.sport:
            raise ValueError("Blob key needs a sport")

    @property
    def name(self) -> str:
        return f"{self.kind}_{self.sport}"

    @classmethod
    def parse(cls, name: str) -> Optional["BlobKey"]:
        """Inverse of ``name``; None for names that are not blob keys."""
        kind, sep, sport = name.partition("_")
        if not sep or kind not in KINDS or not sport:
            return None
        return cls(sport=sport, kind=kind)


@runtime_checkable
class StoragePort(Protocol):
    """Async key/value store for JSON blobs."""

    async def get(self, key: BlobKey) -> Optional[Any]:
        ...

    async def set(self, key: BlobKey, value: Any) -> None:
        ...

    async def delete(self, key: BlobKey) -> None:
        ...

    async def keys(self) -> List[BlobKey]:
        ...


class MemoryStore:
    """Dictionary-backed store. Values are deep-copied in and out."""

    def __init__(self):
        self._data: Dict[BlobKey, Any] = {}

    async def get(self, key: BlobKey) -> Optional[Any]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: BlobKey, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: BlobKey) -> None:
        self._data.pop(key, None)

    async def keys(self) -> List[BlobKey]:
        return list(self._data)


class FallbackStore:
    """
    Primary store backed by a secondary cache.

    Writes go to both; reads prefer the primary. When the primary raises
    ``PersistenceError`` the secondary answers and a warning is logged. A write
    that fails on the primary still raises after the cache is updated, so
    callers know the value is not durable.
    """

    def __init__(self, primary: StoragePort, secondary: Optional[StoragePort] = None):
        self.primary = primary
        self.secondary = secondary if secondary is not None else MemoryStore()

    async def get(self, key: BlobKey) -> Optional[Any]:
        try:
            value = await self.primary.get(key)
        except PersistenceError as e:
            logger.warning(f"Primary store read failed for {key.name}, using cache: {e}")
            return await self.secondary.get(key)
        if value is None:
            return await self.secondary.get(key)
        return value

    async def set(self, key: BlobKey, value: Any) -> None:
        await self.secondary.set(key, value)
        await self.primary.set(key, value)

    async def delete(self, key: BlobKey) -> None:
        await self.secondary.delete(key)
        await self.primary.delete(key)

    async def keys(self) -> List[BlobKey]:
        found = set(await self.secondary.keys())
        try:
            found.update(await self.primary.keys())
        except PersistenceError as e:
            logger.warning(f"Primary store listing failed, using cache: {e}")
        return sorted(found, key=lambda k: (k.sport, k.kind))
