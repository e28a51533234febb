"""Tests for storage adapters and the sport data repository."""

import asyncio

import pytest

from sports_edge.data.records import GameRecord
from sports_edge.exceptions import PersistenceError
from sports_edge.ml.logistic import TrainedModel, TrainingStats
from sports_edge.storage import (
    MODEL,
    TRAINING,
    BlobKey,
    FallbackStore,
    JsonFileStore,
    MemoryStore,
    SportDataRepository,
    create_store,
)
from sports_edge.storage.sql_store import SqlBlobStore


def _model(sport="nba"):
    return TrainedModel(
        features=("team1_moneyline", "team2_moneyline", "team1_last5", "team2_last5"),
        weights=(1.0, -1.0, 0.5, -0.5),
        bias=0.2,
        means=(0.5, 0.5, 0.5, 0.5),
        stds=(0.1, 0.1, 0.2, 0.2),
        sport=sport,
    )


class BrokenStore:
    """Store whose every call fails."""

    async def get(self, key):
        raise PersistenceError("disk gone")

    async def set(self, key, value):
        raise PersistenceError("disk gone")

    async def delete(self, key):
        raise PersistenceError("disk gone")

    async def keys(self):
        raise PersistenceError("disk gone")


class TestBlobKey:
    """Test blob keys."""

    def test_name_round_trip(self):
        """Keys serialize to file stems and back."""
        key = BlobKey("nfl", TRAINING)
        assert key.name == "training_nfl"
        assert BlobKey.parse("training_nfl") == key

    def test_parse_rejects_other_names(self):
        """Unrelated names are not keys."""
        assert BlobKey.parse("notes") is None
        assert BlobKey.parse("cache_nfl") is None

    def test_unknown_kind(self):
        """Only training and model kinds exist."""
        with pytest.raises(ValueError):
            BlobKey("nfl", "odds")


@pytest.fixture(params=["memory", "json", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    if request.param == "json":
        return JsonFileStore(tmp_path / "blobs", retries=0)
    return SqlBlobStore(f"sqlite:///{tmp_path / 'blobs.db'}")


class TestStores:
    """Behaviour shared by every adapter."""

    def test_set_get(self, store):
        """A stored value reads back equal."""
        key = BlobKey("nfl", MODEL)
        asyncio.run(store.set(key, {"weights": [1.0, 2.0]}))
        assert asyncio.run(store.get(key)) == {"weights": [1.0, 2.0]}

    def test_missing_is_none(self, store):
        """Reading an absent key gives None."""
        assert asyncio.run(store.get(BlobKey("mlb", TRAINING))) is None

    def test_overwrite(self, store):
        """Setting a key again replaces the value."""
        key = BlobKey("nfl", TRAINING)
        asyncio.run(store.set(key, [1]))
        asyncio.run(store.set(key, [2]))
        assert asyncio.run(store.get(key)) == [2]

    def test_delete_idempotent(self, store):
        """Deleting twice, or deleting nothing, is fine."""
        key = BlobKey("nfl", TRAINING)
        asyncio.run(store.set(key, [1]))
        asyncio.run(store.delete(key))
        asyncio.run(store.delete(key))
        assert asyncio.run(store.get(key)) is None

    def test_keys(self, store):
        """Stored keys are listed."""
        asyncio.run(store.set(BlobKey("nfl", TRAINING), []))
        asyncio.run(store.set(BlobKey("nba", MODEL), {}))
        assert set(asyncio.run(store.keys())) == {BlobKey("nfl", TRAINING), BlobKey("nba", MODEL)}


class TestJsonFileStore:
    """Test the JSON file adapter."""

    def test_file_layout(self, tmp_path):
        """Blobs are written as <kind>_<sport>.json."""
        store = JsonFileStore(tmp_path)
        asyncio.run(store.set(BlobKey("nhl", MODEL), {"bias": 0.1}))
        assert (tmp_path / "model_nhl.json").exists()

    def test_corrupt_file(self, tmp_path):
        """Unreadable JSON surfaces as PersistenceError."""
        (tmp_path / "model_nhl.json").write_text("{not json")
        store = JsonFileStore(tmp_path, retries=0)
        with pytest.raises(PersistenceError):
            asyncio.run(store.get(BlobKey("nhl", MODEL)))


class TestSqlBlobStore:
    """Test the SQLAlchemy adapter's table."""

    def test_declarative_base(self):
        """Models use the 2.0 declarative base."""
        from sqlalchemy.orm import DeclarativeBase

        from sports_edge.database import Base, StoredBlob

        assert issubclass(Base, DeclarativeBase)
        assert StoredBlob.__table__ is Base.metadata.tables["stored_blobs"]

    def test_one_row_per_key(self, tmp_path):
        """Overwriting updates the row in place and stamps saved_at."""
        from sqlalchemy import select

        from sports_edge.database import StoredBlob

        store = SqlBlobStore(f"sqlite:///{tmp_path / 'blobs.db'}")
        key = BlobKey("nfl", MODEL)
        asyncio.run(store.set(key, {"bias": 1}))
        asyncio.run(store.set(key, {"bias": 2}))

        with store._session_factory() as session:
            blobs = session.execute(select(StoredBlob)).scalars().all()

        assert len(blobs) == 1
        assert blobs[0].payload == {"bias": 2}
        assert blobs[0].saved_at is not None


class TestFallbackStore:
    """Test primary/secondary fallback."""

    def test_reads_fall_back_to_cache(self):
        """When the primary fails the cached value is served."""
        cache = MemoryStore()
        key = BlobKey("nfl", MODEL)
        asyncio.run(cache.set(key, {"bias": 1}))

        store = FallbackStore(BrokenStore(), cache)

        assert asyncio.run(store.get(key)) == {"bias": 1}
        assert asyncio.run(store.keys()) == [key]

    def test_write_failure_still_raises(self):
        """A failed primary write is reported after the cache is updated."""
        cache = MemoryStore()
        store = FallbackStore(BrokenStore(), cache)
        key = BlobKey("nfl", MODEL)

        with pytest.raises(PersistenceError):
            asyncio.run(store.set(key, {"bias": 1}))
        assert asyncio.run(cache.get(key)) == {"bias": 1}


class TestSportDataRepository:
    """Test typed persistence of rows and models."""

    def test_training_rows_round_trip(self):
        """Rows survive a save and fetch, extras included."""
        repo = SportDataRepository(MemoryStore())
        rows = [GameRecord(team1="A", team2="B", team1_moneyline=-120, extras={"player1_ranking": 3.0})]

        asyncio.run(repo.save_training_rows("tennis", rows))

        assert asyncio.run(repo.fetch_training_rows("tennis")) == rows
        asyncio.run(repo.delete_training_rows("tennis"))
        assert asyncio.run(repo.fetch_training_rows("tennis")) == []

    def test_model_round_trip(self, tmp_path):
        """A saved model and its stats come back from a JSON store."""
        repo = SportDataRepository(JsonFileStore(tmp_path))
        stats = TrainingStats(accuracy=0.75, sample_count=120, feature_importance=[("team1_moneyline", 1.0)])

        asyncio.run(repo.save_model(_model(), stats))
        model, loaded_stats = asyncio.run(repo.fetch_model("nba"))

        assert model == _model()
        assert loaded_stats.accuracy == 0.75
        assert loaded_stats.sample_count == 120

    def test_missing_model(self):
        """No stored model gives None."""
        assert asyncio.run(SportDataRepository(MemoryStore()).fetch_model("nfl")) is None

    def test_delete_model(self):
        """Deleted models are gone."""
        repo = SportDataRepository(MemoryStore())
        asyncio.run(repo.save_model(_model(), TrainingStats(accuracy=0.5, sample_count=10)))
        asyncio.run(repo.delete_model("nba"))
        assert asyncio.run(repo.fetch_model("nba")) is None

    def test_list_sports(self):
        """Sports with any stored blob are listed once."""
        repo = SportDataRepository(MemoryStore())
        asyncio.run(repo.save_model(_model("nba"), TrainingStats(accuracy=0.5, sample_count=10)))
        asyncio.run(repo.save_training_rows("nba", [GameRecord(team1="A", team2="B")]))
        asyncio.run(repo.save_training_rows("mlb", [GameRecord(team1="A", team2="B")]))

        assert asyncio.run(repo.list_sports()) == ["mlb", "nba"]


class TestCreateStore:
    """Test backend selection from settings."""

    def test_memory_backend(self, monkeypatch):
        from sports_edge.config.settings import get_settings

        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        get_settings.cache_clear()

        assert isinstance(create_store(), MemoryStore)

    def test_json_backend_wrapped(self):
        """Durable backends are fronted by a memory cache."""
        store = create_store()
        assert isinstance(store, FallbackStore)
        assert isinstance(store.primary, JsonFileStore)

    def test_sql_backend(self, monkeypatch):
        from sports_edge.config.settings import get_settings

        monkeypatch.setenv("STORAGE_BACKEND", "sql")
        get_settings.cache_clear()

        store = create_store()
        assert isinstance(store.primary, SqlBlobStore)
