"""Shared test fixtures for the market mood painter."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from painter.config import AppSettings, ImageSettings, SelectionSettings, StorageSettings
from painter.data.database import PainterDatabase
from painter.data.object_store import MAX_LIST_LIMIT, ObjectInfo, ObjectListing, ObjectStore, StoredObject
from painter.exceptions import StorageError
from painter.models import (
    MarketSnapshot,
    PaintingMetadata,
    SelectedToken,
    TokenCandidate,
    TokenScores,
    TokenSource,
    VisualParams,
)

FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class InMemoryObjectStore(ObjectStore):
    """Dict-backed ObjectStore with failure injection.

    fail_put_suffix: put() raises StorageError for keys ending with it.
    fail_list: list_objects() raises StorageError.
    fail_get_keys: get() raises StorageError for these keys.
    """

    def __init__(self) -> None:
        self.objects: dict[str, StoredObject] = {}
        self.fail_put_suffix: str | None = None
        self.fail_list = False
        self.fail_get_keys: set[str] = set()
        self.list_calls: list[dict] = []

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        if self.fail_put_suffix and key.endswith(self.fail_put_suffix):
            raise StorageError("injected put failure", op="put", key=key)
        self.objects[key] = StoredObject(key=key, data=data, content_type=content_type)

    async def get(self, key: str) -> StoredObject | None:
        if key in self.fail_get_keys:
            raise StorageError("injected get failure", op="get", key=key)
        return self.objects.get(key)

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)

    async def list_objects(
        self,
        prefix: str = "",
        limit: int = MAX_LIST_LIMIT,
        start_after: str | None = None,
        cursor: str | None = None,
    ) -> ObjectListing:
        self.list_calls.append({"prefix": prefix, "limit": limit, "cursor": cursor})
        if self.fail_list:
            raise StorageError("injected list failure", op="list", key=prefix)
        after = start_after or cursor
        keys = sorted(k for k in self.objects if k.startswith(prefix) and (not after or k > after))
        page = keys[:limit]
        truncated = len(keys) > limit
        return ObjectListing(
            objects=[ObjectInfo(key=k, size=self.objects[k].size) for k in page],
            truncated=truncated,
            cursor=page[-1] if truncated and page else None,
        )


def make_snapshot(**overrides) -> MarketSnapshot:
    values = dict(
        total_market_cap_usd=3.2e12,
        total_volume_usd=1.1e11,
        market_cap_change_percentage_24h_usd=4.0,
        btc_dominance=50.0,
        eth_dominance=12.0,
        active_cryptocurrencies=15000,
        markets=1100,
        fear_greed_index=80,
        updated_at=1735787045,
    )
    values.update(overrides)
    return MarketSnapshot(**values)


def make_candidate(**overrides) -> TokenCandidate:
    values = dict(
        id="solana",
        symbol="SOL",
        name="Solana",
        logo_url="https://img.example/solana.png",
        price_usd=190.5,
        price_change_24h=8.0,
        price_change_7d=25.0,
        volume_24h_usd=4.5e9,
        market_cap_usd=9.0e10,
        categories=["l1"],
        source=TokenSource.TRENDING,
        trending_rank=1,
    )
    values.update(overrides)
    return TokenCandidate(**values)


def make_selected(**overrides) -> SelectedToken:
    return SelectedToken.from_candidate(
        make_candidate(**overrides), TokenScores(trend=0.9, impact=0.8, mood=1.0, final=0.88)
    )


def make_visual_params(value: float = 0.5) -> VisualParams:
    return VisualParams(**{name: value for name in VisualParams.field_names()})


def make_metadata(minute_bucket: str = "2025-01-02T03:04", suffix: str = "") -> PaintingMetadata:
    compact = minute_bucket.replace("-", "").replace("T", "").replace(":", "")
    params_hash = ("abcd1234" + suffix)[-8:]
    seed = ("0123456789ab" + suffix)[-12:]
    return PaintingMetadata(
        id=f"DOOM_{compact}_{params_hash}_{seed}",
        timestamp=f"{minute_bucket}:00Z",
        minute_bucket=minute_bucket,
        params_hash=params_hash,
        seed=seed,
        visual_params=make_visual_params(),
        image_url="",
        file_size=3,
        prompt="a painting\n\ncontrols: paramsHash=abcd1234, seed=0123456789ab",
        negative="watermark",
    )


@pytest.fixture
def fixed_clock():
    """Clock returning 2025-01-02T03:04:05Z."""
    return lambda: FIXED_NOW


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    """Return AppSettings with test defaults (mock image provider, temp storage)."""
    return AppSettings(
        log_level="DEBUG",
        image=ImageSettings(provider="mock", use_reference_image=True),
        selection=SelectionSettings(force_token_list=""),
        storage=StorageSettings(
            db_path=str(tmp_path / "painter.db"),
            objects_root=str(tmp_path / "objects"),
        ),
    )


@pytest_asyncio.fixture
async def database():
    """Connected in-memory PainterDatabase."""
    db = PainterDatabase(":memory:")
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()
