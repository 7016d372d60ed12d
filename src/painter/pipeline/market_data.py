"""Global market data fetching and hourly snapshot persistence."""

from painter.clients.base import MarketDataProvider, SentimentProvider
from painter.data.snapshots import MarketSnapshotRepository
from painter.exceptions import ExternalApiError, PainterError
from painter.logging import get_logger
from painter.models import MarketSnapshot

logger = get_logger(__name__)


def _usd(section: object) -> float:
    if isinstance(section, dict):
        return float(section.get("usd") or 0.0)
    return 0.0


def snapshot_from_global(data: dict, fear_greed_index: int | None) -> MarketSnapshot:
    """Build a MarketSnapshot from the provider's global aggregates.

    Raises:
        ExternalApiError: aggregates are missing or not numeric.
    """
    try:
        dominance = data.get("market_cap_percentage") or {}
        return MarketSnapshot(
            total_market_cap_usd=_usd(data.get("total_market_cap")),
            total_volume_usd=_usd(data.get("total_volume")),
            market_cap_change_percentage_24h_usd=float(
                data["market_cap_change_percentage_24h_usd"]
            ),
            btc_dominance=float(dominance.get("btc") or 0.0),
            eth_dominance=float(dominance.get("eth") or 0.0),
            active_cryptocurrencies=int(data.get("active_cryptocurrencies") or 0),
            markets=int(data.get("markets") or 0),
            fear_greed_index=fear_greed_index,
            updated_at=int(data.get("updated_at") or 0),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ExternalApiError(
            f"Malformed global market data: {e}", provider="CoinGecko"
        ) from e


class MarketDataService:
    """Fetches the market snapshot and stores it per hour bucket.

    The aggregate call is mandatory. The sentiment index is best-effort:
    any failure leaves fear_greed_index as None.

    Args:
        market_data: Global aggregates provider.
        sentiment: Fear & Greed index provider.
        snapshots: Snapshot repository.
    """

    def __init__(
        self,
        market_data: MarketDataProvider,
        sentiment: SentimentProvider,
        snapshots: MarketSnapshotRepository,
    ) -> None:
        self._market_data = market_data
        self._sentiment = sentiment
        self._snapshots = snapshots

    async def _fetch_sentiment(self) -> int | None:
        try:
            reading = await self._sentiment.get_index()
        except PainterError as e:
            logger.warning("sentiment_fetch_failed", error=e.message, kind=e.kind)
            return None
        logger.info(
            "sentiment_fetched", value=reading.value, classification=reading.classification
        )
        return reading.value

    async def fetch_global_market_data(self) -> MarketSnapshot:
        data = await self._market_data.get_global()
        fear_greed = await self._fetch_sentiment()
        snapshot = snapshot_from_global(data, fear_greed)
        logger.info(
            "market_data_fetched",
            market_cap_change_24h=snapshot.market_cap_change_percentage_24h_usd,
            btc_dominance=snapshot.btc_dominance,
            fear_greed_index=snapshot.fear_greed_index,
        )
        return snapshot

    async def store_market_snapshot(self, snapshot: MarketSnapshot, hour_bucket: str) -> None:
        """Upsert by hour bucket; storing the same snapshot twice is harmless."""
        await self._snapshots.upsert(hour_bucket, snapshot)
        logger.info("market_snapshot_stored", hour_bucket=hour_bucket)
