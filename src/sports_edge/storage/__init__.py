"""Persistence of training rows and models."""

from .base import MODEL, TRAINING, BlobKey, FallbackStore, MemoryStore, StoragePort
from .json_store import JsonFileStore
from .repository import SportDataRepository, create_store

__all__ = [
    "MODEL",
    "TRAINING",
    "BlobKey",
    "FallbackStore",
    "JsonFileStore",
    "MemoryStore",
    "SportDataRepository",
    "StoragePort",
    "create_store",
]
