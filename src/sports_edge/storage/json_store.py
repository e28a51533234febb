"""JSON file adapter: one ``<kind>_<sport>.json`` file per blob."""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional

from ..exceptions import PersistenceError
from ..utils.retry import retry_with_backoff
from .base import BlobKey

logger = logging.getLogger(__name__)


class JsonFileStore:
    """Store blobs as JSON files under ``data_dir``."""

    def __init__(self, data_dir: Path, retries: int = 2, retry_delay: float = 0.2):
        self.data_dir = Path(data_dir)
        self.retries = retries
        self.retry_delay = retry_delay

    def path_for(self, key: BlobKey) -> Path:
        return self.data_dir / f"{key.name}.json"

    async def get(self, key: BlobKey) -> Optional[Any]:
        return await asyncio.to_thread(self._guard, "read", key, self._read)

    async def set(self, key: BlobKey, value: Any) -> None:
        await asyncio.to_thread(self._guard, "write", key, self._write, value)

    async def delete(self, key: BlobKey) -> None:
        await asyncio.to_thread(self._guard, "delete", key, self._delete)

    async def keys(self) -> List[BlobKey]:
        return await asyncio.to_thread(self._list_keys)

    def _guard(self, action: str, key: BlobKey, func, *args):
        """Run ``func`` with retries; surface failures as PersistenceError."""
        retrying = retry_with_backoff(
            max_retries=self.retries,
            initial_delay=self.retry_delay,
            exceptions=(OSError,),
        )(func)
        try:
            return retrying(key, *args)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not {action} {self.path_for(key)}: {e}") from e

    def _read(self, key: BlobKey) -> Optional[Any]:
        path = self.path_for(key)
        if not path.exists():
            return None
        with open(path, "r") as f:
            return json.load(f)

    def _write(self, key: BlobKey, value: Any) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w") as f:
            json.dump(value, f, indent=2, default=str)
        os.replace(tmp_path, path)
        logger.debug(f"Wrote {path}")

    def _delete(self, key: BlobKey) -> None:
        self.path_for(key).unlink(missing_ok=True)

    def _list_keys(self) -> List[BlobKey]:
        if not self.data_dir.exists():
            return []
        found = []
        for path in sorted(self.data_dir.glob("*.json")):
            key = BlobKey.parse(path.stem)
            if key is not None:
                found.append(key)
        return found
