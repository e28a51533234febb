"""Typed access to per-sport training rows and models on top of a StoragePort."""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..config import Settings, get_settings
from ..data.records import GameRecord, records_from_dicts, records_to_dicts
from ..ml.logistic import TrainedModel, TrainingStats
from .base import MODEL, TRAINING, BlobKey, FallbackStore, MemoryStore, StoragePort

logger = logging.getLogger(__name__)


class SportDataRepository:
    """Save and load training rows and trained models by sport."""

    def __init__(self, store: StoragePort):
        self.store = store

    async def save_training_rows(self, sport: str, rows: Sequence[GameRecord]) -> None:
        await self.store.set(BlobKey(sport, TRAINING), records_to_dicts(list(rows)))
        logger.info(f"Saved {len(rows)} training rows for {sport}")

    async def fetch_training_rows(self, sport: str) -> List[GameRecord]:
        """Stored rows for ``sport``; empty when nothing has been uploaded."""
        payload = await self.store.get(BlobKey(sport, TRAINING))
        if not payload:
            return []
        return records_from_dicts(payload)

    async def delete_training_rows(self, sport: str) -> None:
        await self.store.delete(BlobKey(sport, TRAINING))

    async def save_model(self, model: TrainedModel, stats: TrainingStats) -> None:
        if model.sport is None:
            raise ValueError("Cannot save a model without a sport")
        payload = {
            "sport": model.sport,
            "modelParams": model.to_dict(),
            "trainingStats": stats.to_dict(),
            "savedAt": datetime.now().isoformat(),
        }
        await self.store.set(BlobKey(model.sport, MODEL), payload)
        logger.info(f"Saved {model.sport} model")

    async def fetch_model(self, sport: str) -> Optional[Tuple[TrainedModel, TrainingStats]]:
        payload = await self.store.get(BlobKey(sport, MODEL))
        if not payload:
            return None
        model = TrainedModel.from_dict(payload["modelParams"], sport=sport)
        stats = TrainingStats.from_dict(payload.get("trainingStats", {}))
        return model, stats

    async def delete_model(self, sport: str) -> None:
        await self.store.delete(BlobKey(sport, MODEL))

    async def list_sports(self) -> List[str]:
        """Sports with stored training rows or a stored model."""
        return sorted({key.sport for key in await self.store.keys()})


def create_store(settings: Optional[Settings] = None) -> StoragePort:
    """Build the configured backend, fronted by an in-memory cache."""
    settings = settings or get_settings()
    if settings.storage_backend == "memory":
        return MemoryStore()
    if settings.storage_backend == "sql":
        from .sql_store import SqlBlobStore

        primary: StoragePort = SqlBlobStore(settings.database_url)
    else:
        from .json_store import JsonFileStore

        primary = JsonFileStore(
            settings.data_dir,
            retries=settings.storage_retries,
            retry_delay=settings.storage_retry_delay,
        )
    logger.debug(f"Using {settings.storage_backend} storage backend")
    return FallbackStore(primary, MemoryStore())
