"""CoinGecko market data client.

Endpoints used:
- /search/trending   trending coin ids (discovery mode)
- /coins/list        symbol -> id resolution (override mode)
- /coins/markets     batched price/volume/market cap details
- /global            global market aggregates
"""

import httpx

from painter.clients.base import MarketDataProvider
from painter.clients.http import ProviderHttpClient
from painter.config import CoinGeckoSettings
from painter.exceptions import ExternalApiError
from painter.logging import get_logger

logger = get_logger(__name__)

PROVIDER = "CoinGecko"


class CoinGeckoClient(ProviderHttpClient, MarketDataProvider):
    """Async CoinGecko REST client.

    Usage:
        client = CoinGeckoClient(settings.coingecko)
        try:
            aggregates = await client.get_global()
        finally:
            await client.close()
    """

    def __init__(
        self,
        settings: CoinGeckoSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(PROVIDER, settings.timeout_seconds, http_client)
        self._base_url = settings.base_url.rstrip("/")
        self._headers = {"Accept": "application/json"}
        api_key = settings.api_key.get_secret_value()
        if api_key:
            self._headers["x-cg-demo-api-key"] = api_key

    async def _get(self, path: str, params: dict | None = None) -> object:
        return await self.request_json(
            "GET", f"{self._base_url}{path}", params=params, headers=self._headers
        )

    async def get_global(self) -> dict:
        payload = await self._get("/global")
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise ExternalApiError("CoinGecko /global response missing data", provider=PROVIDER)
        return data

    async def get_trending_ids(self) -> list[str]:
        payload = await self._get("/search/trending")
        coins = payload.get("coins", []) if isinstance(payload, dict) else []
        ids: list[str] = []
        for coin in coins:
            # Entries are usually wrapped as {"item": {...}}
            item = coin.get("item", coin) if isinstance(coin, dict) else {}
            coin_id = item.get("id") if isinstance(item, dict) else None
            if isinstance(coin_id, str) and coin_id:
                ids.append(coin_id)
        logger.debug("coingecko_trending_fetched", count=len(ids))
        return ids

    async def get_coins_list(self) -> list[dict]:
        payload = await self._get("/coins/list")
        if not isinstance(payload, list):
            raise ExternalApiError("CoinGecko /coins/list response is not a list", provider=PROVIDER)
        return [c for c in payload if isinstance(c, dict)]

    async def get_coins_markets(self, ids: list[str]) -> list[dict]:
        if not ids:
            return []
        payload = await self._get(
            "/coins/markets",
            params={
                "vs_currency": "usd",
                "ids": ",".join(ids),
                "order": "market_cap_desc",
                "per_page": 250,
                "price_change_percentage": "24h,7d",
            },
        )
        if not isinstance(payload, list):
            raise ExternalApiError("CoinGecko /coins/markets response is not a list", provider=PROVIDER)
        return [row for row in payload if isinstance(row, dict)]
