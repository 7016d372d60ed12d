"""Abstract provider interfaces.

Pipeline code depends only on these contracts, keeping vendor-specific
request and response shapes isolated in the concrete clients.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from painter.models import GeneratedImage, ImageRequest


@dataclass(frozen=True)
class SentimentReading:
    """Single sentiment index value (0 = extreme fear, 100 = extreme greed)."""

    value: int
    classification: str
    timestamp: int


@dataclass(frozen=True)
class TokenProfile:
    """Short narrative description and category tags of a token."""

    short_context: str
    category: str
    tags: list[str]


class MarketDataProvider(ABC):
    """Market data source: global aggregates, trending search and coin details."""

    @abstractmethod
    async def get_global(self) -> dict:
        """Global market aggregates (the "data" object of /global)."""
        ...

    @abstractmethod
    async def get_trending_ids(self) -> list[str]:
        """Ids from the trending search, best first."""
        ...

    @abstractmethod
    async def get_coins_list(self) -> list[dict]:
        """All known coins as {"id", "symbol", "name"} dicts."""
        ...

    @abstractmethod
    async def get_coins_markets(self, ids: list[str]) -> list[dict]:
        """Market detail rows for the given ids in one batched call."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""
        ...


class SentimentProvider(ABC):
    """Fear & Greed style sentiment index source."""

    @abstractmethod
    async def get_index(self) -> SentimentReading:
        """Latest index reading."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""
        ...


class ImageProvider(ABC):
    """Image generation backend."""

    name: str = "image"

    @abstractmethod
    async def generate(self, request: ImageRequest) -> GeneratedImage:
        """Render the request into raw image bytes.

        Raises an ExternalApiError subclass (rate limit, auth, network,
        empty response) or OperationTimeoutError on failure.
        """
        ...

    async def close(self) -> None:
        """Release HTTP resources (no-op by default)."""


class ShortContextProvider(ABC):
    """Search + summarization backend describing a token in a few sentences."""

    @abstractmethod
    async def describe(self, token_id: str, name: str, symbol: str) -> TokenProfile:
        """Produce a profile for the token or raise a PainterError."""
        ...

    async def close(self) -> None:
        """Release HTTP resources (no-op by default)."""
