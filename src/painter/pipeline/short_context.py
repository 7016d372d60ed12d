"""Resolution of a token's short narrative description.

Order: the description persisted on the tokens row, then the enrichment
provider (whose output is persisted for later runs), then a fixed
fallback. Enrichment is best-effort and never aborts a run.
"""

from dataclasses import dataclass, field

from painter.clients.base import ShortContextProvider
from painter.data.tokens import TokenRepository
from painter.exceptions import PainterError
from painter.logging import get_logger
from painter.models import SelectedToken

logger = get_logger(__name__)

FALLBACK_SHORT_CONTEXT = (
    "A speculative crypto token with unclear fundamentals but strong narrative-driven "
    "price action. Symbolic themes: crowds, flickering candles, unstable altars, and "
    "volatile market winds."
)


@dataclass(frozen=True)
class ResolvedShortContext:
    """Description to paint with; categories is empty when none were produced."""

    short_context: str
    categories: list[str] = field(default_factory=list)
    source: str = "fallback"  # "stored", "generated" or "fallback"


def profile_categories(category: str, tags: list[str]) -> list[str]:
    """Category first, then tags, without duplicates or blanks."""
    merged: list[str] = []
    for value in [category, *tags]:
        if value and value not in merged:
            merged.append(value)
    return merged


class ShortContextResolver:
    """Looks up or generates the short description of the selected token.

    Args:
        tokens: Token repository holding persisted descriptions.
        provider: Enrichment provider, or None when enrichment is disabled.
    """

    def __init__(
        self, tokens: TokenRepository, provider: ShortContextProvider | None = None
    ) -> None:
        self._tokens = tokens
        self._provider = provider

    async def resolve(self, token: SelectedToken) -> ResolvedShortContext:
        try:
            record = await self._tokens.find_by_id(token.id)
        except PainterError as e:
            logger.warning("short_context_lookup_failed", token_id=token.id, error=e.message)
            record = None
        if record is not None and record.short_context:
            return ResolvedShortContext(short_context=record.short_context, source="stored")

        if self._provider is None:
            logger.info("short_context_provider_disabled", token_id=token.id)
            return ResolvedShortContext(short_context=FALLBACK_SHORT_CONTEXT)

        try:
            profile = await self._provider.describe(token.id, token.name, token.symbol)
        except PainterError as e:
            logger.warning(
                "short_context_generation_failed",
                token_id=token.id,
                kind=e.kind,
                error=e.message,
            )
            return ResolvedShortContext(short_context=FALLBACK_SHORT_CONTEXT)

        categories = profile_categories(profile.category, profile.tags)
        try:
            await self._tokens.update_context(token.id, profile.short_context, categories)
        except PainterError as e:
            logger.warning("short_context_persist_failed", token_id=token.id, error=e.message)

        return ResolvedShortContext(
            short_context=profile.short_context, categories=categories, source="generated"
        )
