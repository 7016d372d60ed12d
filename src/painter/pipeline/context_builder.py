"""Builds the PaintingContext for a selected token and market snapshot."""

import json

from painter.data.tokens import TokenRepository
from painter.exceptions import PainterError
from painter.logging import get_logger
from painter.models import (
    MarketSnapshot,
    MarketSummary,
    PaintingContext,
    SelectedToken,
    TokenDynamics,
    TokenSummary,
)
from painter.pipeline.classification import (
    classify_archetype,
    classify_climate,
    classify_direction,
    classify_event,
    classify_volatility,
    motifs_for,
    narrative_hints,
    pick_composition,
    pick_palette,
    volatility_score,
)

logger = get_logger(__name__)


def build_painting_context(
    snapshot: MarketSnapshot, token: SelectedToken, categories: list[str]
) -> PaintingContext:
    """Pure classification of one market moment."""
    volatility = volatility_score(token.price_change_24h, token.price_change_7d)
    climate = classify_climate(snapshot)
    archetype = classify_archetype(categories)
    event = classify_event(token.price_change_24h)

    return PaintingContext(
        token=TokenSummary(id=token.id, name=token.name, symbol=token.symbol),
        market=MarketSummary(
            total_market_cap_usd=snapshot.total_market_cap_usd,
            market_cap_change_24h=snapshot.market_cap_change_percentage_24h_usd,
            btc_dominance=snapshot.btc_dominance,
            fear_greed_index=snapshot.fear_greed_index,
        ),
        dynamics=TokenDynamics(
            price_usd=token.price_usd,
            price_change_24h=token.price_change_24h,
            price_change_7d=token.price_change_7d,
            volume_24h_usd=token.volume_24h_usd,
            market_cap_usd=token.market_cap_usd,
            volatility=volatility,
            volatility_level=classify_volatility(volatility),
            direction=classify_direction(token.price_change_24h),
        ),
        climate=climate,
        archetype=archetype,
        event=event,
        composition=pick_composition(climate, archetype, event),
        palette=pick_palette(climate, archetype, event),
        motifs=motifs_for(archetype),
        narrative_hints=narrative_hints(climate, event),
    )


def parse_categories(raw: str) -> list[str] | None:
    """Decode a stored categories JSON array, or None when it is unusable."""
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(value, list):
        return None
    return [str(v) for v in value]


class PaintingContextBuilder:
    """Resolves categories (stored row first) and classifies the moment.

    Args:
        tokens: Token repository holding persisted categories.
    """

    def __init__(self, tokens: TokenRepository) -> None:
        self._tokens = tokens

    async def resolve_categories(self, token: SelectedToken) -> list[str]:
        try:
            record = await self._tokens.find_by_id(token.id)
        except PainterError as e:
            logger.warning("token_categories_lookup_failed", token_id=token.id, error=e.message)
            return token.categories
        if record is None:
            return token.categories
        parsed = parse_categories(record.categories_json)
        if parsed is None:
            logger.warning(
                "token_categories_unparseable", token_id=token.id, raw=record.categories_json
            )
            return token.categories
        return parsed

    async def build_context(
        self, token: SelectedToken, snapshot: MarketSnapshot
    ) -> PaintingContext:
        categories = await self.resolve_categories(token)
        context = build_painting_context(snapshot, token, categories)
        logger.info(
            "painting_context_built",
            climate=context.climate.value,
            archetype=context.archetype.value,
            event=context.event.kind.value,
            composition=context.composition.value,
            palette=context.palette.value,
        )
        return context
