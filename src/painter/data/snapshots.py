"""Market snapshot persistence keyed by hour bucket."""

import time

from painter.data.database import PainterDatabase
from painter.logging import get_logger
from painter.models import MarketSnapshot

logger = get_logger(__name__)

_COLUMNS = (
    "total_market_cap_usd, total_volume_usd, market_cap_change_percentage_24h_usd, "
    "btc_dominance, eth_dominance, active_cryptocurrencies, markets, "
    "fear_greed_index, updated_at"
)


class MarketSnapshotRepository:
    """One row per hour bucket; the row's existence marks the hour as handled."""

    def __init__(self, database: PainterDatabase) -> None:
        self._database = database

    async def upsert(self, hour_bucket: str, snapshot: MarketSnapshot) -> None:
        """Insert or overwrite the snapshot for hour_bucket (created_at is kept)."""
        now = int(time.time())
        async with self._database.guard("market snapshot upsert", op="put", key=hour_bucket) as db:
            await db.execute(
                f"INSERT INTO market_snapshots (hour_bucket, {_COLUMNS}, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(hour_bucket) DO UPDATE SET "
                "total_market_cap_usd = excluded.total_market_cap_usd, "
                "total_volume_usd = excluded.total_volume_usd, "
                "market_cap_change_percentage_24h_usd = excluded.market_cap_change_percentage_24h_usd, "
                "btc_dominance = excluded.btc_dominance, "
                "eth_dominance = excluded.eth_dominance, "
                "active_cryptocurrencies = excluded.active_cryptocurrencies, "
                "markets = excluded.markets, "
                "fear_greed_index = excluded.fear_greed_index, "
                "updated_at = excluded.updated_at",
                (
                    hour_bucket,
                    snapshot.total_market_cap_usd,
                    snapshot.total_volume_usd,
                    snapshot.market_cap_change_percentage_24h_usd,
                    snapshot.btc_dominance,
                    snapshot.eth_dominance,
                    snapshot.active_cryptocurrencies,
                    snapshot.markets,
                    snapshot.fear_greed_index,
                    snapshot.updated_at,
                    now,
                ),
            )
            await db.commit()
        logger.debug("market_snapshot_stored", hour_bucket=hour_bucket)

    async def find_by_hour_bucket(self, hour_bucket: str) -> MarketSnapshot | None:
        async with self._database.guard("market snapshot lookup", op="get", key=hour_bucket) as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM market_snapshots WHERE hour_bucket = ?",
                (hour_bucket,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return MarketSnapshot(
            total_market_cap_usd=row[0],
            total_volume_usd=row[1],
            market_cap_change_percentage_24h_usd=row[2],
            btc_dominance=row[3],
            eth_dominance=row[4],
            active_cryptocurrencies=row[5],
            markets=row[6],
            fear_greed_index=row[7],
            updated_at=row[8],
        )
