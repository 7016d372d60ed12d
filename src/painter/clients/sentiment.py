"""alternative.me Fear & Greed index client."""

import httpx

from painter.clients.base import SentimentProvider, SentimentReading
from painter.clients.http import ProviderHttpClient
from painter.config import SentimentSettings
from painter.exceptions import ExternalApiError

PROVIDER = "AlternativeMe"


class FearGreedClient(ProviderHttpClient, SentimentProvider):
    """Reads the latest value from https://api.alternative.me/fng/."""

    def __init__(
        self,
        settings: SentimentSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(PROVIDER, settings.timeout_seconds, http_client)
        self._url = settings.url

    async def get_index(self) -> SentimentReading:
        payload = await self.request_json("GET", self._url, params={"limit": 1})
        entries = payload.get("data") if isinstance(payload, dict) else None
        if not entries or not isinstance(entries[0], dict):
            raise ExternalApiError("Fear & Greed response has no data", provider=PROVIDER)
        entry = entries[0]
        try:
            return SentimentReading(
                value=int(entry["value"]),
                classification=str(entry.get("value_classification", "")),
                timestamp=int(entry.get("timestamp", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalApiError(
                f"Fear & Greed response malformed: {e}", provider=PROVIDER
            ) from e
