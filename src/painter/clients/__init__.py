"""External provider clients -- market data, sentiment, image generation, token enrichment."""

from painter.clients.base import (
    ImageProvider,
    MarketDataProvider,
    SentimentProvider,
    SentimentReading,
    ShortContextProvider,
    TokenProfile,
)
from painter.clients.coingecko import CoinGeckoClient
from painter.clients.context import TavilyContextProvider, create_context_provider
from painter.clients.image import MockImageProvider, RunwareImageProvider, create_image_provider
from painter.clients.sentiment import FearGreedClient

__all__ = [
    "CoinGeckoClient",
    "FearGreedClient",
    "ImageProvider",
    "MarketDataProvider",
    "MockImageProvider",
    "RunwareImageProvider",
    "SentimentProvider",
    "SentimentReading",
    "ShortContextProvider",
    "TavilyContextProvider",
    "TokenProfile",
    "create_context_provider",
    "create_image_provider",
]
