"""Tests for market mood classification.

Tests verify:
- Climate thresholds, including unknown fear & greed never being euphoric
- Archetype lookup order and case-insensitivity
- Volatility score and level boundaries
- Event pressure, composition and palette selection
- End-to-end classification of a rallying L1 in a euphoric market
"""

import pytest

from conftest import make_selected, make_snapshot

from painter.models import (
    Composition,
    EventKind,
    EventPressure,
    MarketClimate,
    Palette,
    TokenArchetype,
    TrendDirection,
    VolatilityLevel,
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
from painter.pipeline.context_builder import build_painting_context


class TestClassifyClimate:
    """Tests for climate thresholds."""

    def test_euphoria_needs_rally_and_greed(self) -> None:
        snapshot = make_snapshot(market_cap_change_percentage_24h_usd=4.0, fear_greed_index=70)
        assert classify_climate(snapshot) is MarketClimate.EUPHORIA

    def test_rally_without_greed_is_cooling(self) -> None:
        snapshot = make_snapshot(market_cap_change_percentage_24h_usd=4.0, fear_greed_index=69)
        assert classify_climate(snapshot) is MarketClimate.COOLING

    def test_unknown_sentiment_is_never_euphoric(self) -> None:
        snapshot = make_snapshot(market_cap_change_percentage_24h_usd=9.0, fear_greed_index=None)
        assert classify_climate(snapshot) is MarketClimate.COOLING

    @pytest.mark.parametrize(
        "mc_change,expected",
        [
            (0.6, MarketClimate.COOLING),
            (0.5, MarketClimate.TRANSITION),
            (0.0, MarketClimate.TRANSITION),
            (-1.5, MarketClimate.TRANSITION),
            (-1.6, MarketClimate.PANIC),
            (-5.0, MarketClimate.PANIC),
            (-5.1, MarketClimate.DESPAIR),
        ],
    )
    def test_thresholds(self, mc_change: float, expected: MarketClimate) -> None:
        snapshot = make_snapshot(market_cap_change_percentage_24h_usd=mc_change, fear_greed_index=50)
        assert classify_climate(snapshot) is expected


class TestClassifyArchetype:
    """Tests for the ordered category table."""

    def test_l1_aliases(self) -> None:
        assert classify_archetype(["l1"]) is TokenArchetype.L1_SOVEREIGN
        assert classify_archetype(["Layer-1"]) is TokenArchetype.L1_SOVEREIGN

    def test_first_rule_wins(self) -> None:
        """perp is checked before meme regardless of list order."""
        assert classify_archetype(["meme", "perp"]) is TokenArchetype.PERP_LIQUIDITY

    def test_ai_and_privacy(self) -> None:
        assert classify_archetype(["artificial-intelligence"]) is TokenArchetype.AI_ORACLE
        assert classify_archetype(["privacy"]) is TokenArchetype.PRIVACY
        assert classify_archetype(["political"]) is TokenArchetype.POLITICAL

    def test_unknown_categories(self) -> None:
        assert classify_archetype([]) is TokenArchetype.UNKNOWN
        assert classify_archetype(["gaming", "nft"]) is TokenArchetype.UNKNOWN


class TestVolatility:
    """Tests for the volatility score and its buckets."""

    def test_score_blends_24h_and_damped_7d(self) -> None:
        assert volatility_score(10.0, 35.0) == pytest.approx(0.3)

    def test_score_zero(self) -> None:
        assert volatility_score(0.0, 0.0) == 0.0

    def test_score_capped_at_one(self) -> None:
        assert volatility_score(-80.0, 200.0) == 1.0

    def test_negative_moves_count_by_magnitude(self) -> None:
        assert volatility_score(-21.0, 0.0) == pytest.approx(0.42)

    @pytest.mark.parametrize(
        "score,expected",
        [
            (0.0, VolatilityLevel.LOW),
            (0.33, VolatilityLevel.LOW),
            (0.331, VolatilityLevel.MEDIUM),
            (0.66, VolatilityLevel.MEDIUM),
            (0.661, VolatilityLevel.HIGH),
            (1.0, VolatilityLevel.HIGH),
        ],
    )
    def test_levels(self, score: float, expected: VolatilityLevel) -> None:
        assert classify_volatility(score) is expected


class TestEventsAndDirection:
    """Tests for short-term event pressure and trend direction."""

    def test_direction(self) -> None:
        assert classify_direction(3.1) is TrendDirection.UP
        assert classify_direction(3.0) is TrendDirection.FLAT
        assert classify_direction(-3.1) is TrendDirection.DOWN

    def test_event_intensity(self) -> None:
        assert classify_event(12.0) == EventPressure(EventKind.RALLY, 3)
        assert classify_event(6.0) == EventPressure(EventKind.RALLY, 2)
        assert classify_event(-6.0) == EventPressure(EventKind.COLLAPSE, 2)
        assert classify_event(-10.5) == EventPressure(EventKind.COLLAPSE, 3)
        assert classify_event(5.0) == EventPressure(EventKind.RITUAL, 1)


class TestCompositionAndPalette:
    """Tests for scene and color selection."""

    def test_perp_rally_is_citadel(self) -> None:
        rally = EventPressure(EventKind.RALLY, 2)
        assert (
            pick_composition(MarketClimate.PANIC, TokenArchetype.PERP_LIQUIDITY, rally)
            is Composition.CITADEL_PANORAMA
        )

    def test_meme_rally_outside_euphoria(self) -> None:
        rally = EventPressure(EventKind.RALLY, 3)
        assert (
            pick_composition(MarketClimate.COOLING, TokenArchetype.MEME_ASCENDANT, rally)
            is Composition.PROCESSION
        )
        assert (
            pick_palette(MarketClimate.COOLING, TokenArchetype.MEME_ASCENDANT, rally)
            is Palette.INFERNAL_RED
        )

    def test_despair(self) -> None:
        ritual = EventPressure(EventKind.RITUAL, 1)
        assert (
            pick_composition(MarketClimate.DESPAIR, TokenArchetype.UNKNOWN, ritual)
            is Composition.STORM_BATTLEFIELD
        )
        assert pick_palette(MarketClimate.DESPAIR, TokenArchetype.UNKNOWN, ritual) is Palette.ASHEN_BLUE

    def test_default_scene(self) -> None:
        ritual = EventPressure(EventKind.RITUAL, 1)
        assert (
            pick_composition(MarketClimate.TRANSITION, TokenArchetype.UNKNOWN, ritual)
            is Composition.COSMIC_HORIZON
        )
        assert (
            pick_palette(MarketClimate.TRANSITION, TokenArchetype.UNKNOWN, ritual)
            is Palette.IVORY_MARBLE
        )

    def test_motifs_default_and_copy(self) -> None:
        assert motifs_for(TokenArchetype.L1_SOVEREIGN) == ["unknown"]
        motifs = motifs_for(TokenArchetype.PRIVACY)
        motifs.append("mutated")
        assert motifs_for(TokenArchetype.PRIVACY) == ["mask", "graveyard"]

    def test_narrative_hints(self) -> None:
        hints = narrative_hints(MarketClimate.EUPHORIA, EventPressure(EventKind.RALLY, 2))
        assert hints == ["collective celebration", "rising tide", "momentum building (intensity 2)"]
        ritual = narrative_hints(MarketClimate.TRANSITION, EventPressure(EventKind.RITUAL, 1))
        assert ritual[-2:] == ["steady rhythm", "enduring pattern"]


class TestBuildPaintingContext:
    """End-to-end classification of one market moment."""

    def test_rallying_l1_in_euphoria(self) -> None:
        snapshot = make_snapshot(
            market_cap_change_percentage_24h_usd=4.0, btc_dominance=50.0, fear_greed_index=80
        )
        token = make_selected(price_change_24h=8.0, price_change_7d=25.0)

        context = build_painting_context(snapshot, token, ["l1"])

        assert context.climate is MarketClimate.EUPHORIA
        assert context.archetype is TokenArchetype.L1_SOVEREIGN
        assert context.event == EventPressure(EventKind.RALLY, 2)
        assert context.composition is Composition.CENTRAL_ALTAR
        assert context.palette is Palette.SOLAR_GOLD
        assert context.dynamics.direction is TrendDirection.UP
        assert context.dynamics.volatility == pytest.approx(0.2314, abs=1e-4)
        assert context.dynamics.volatility_level is VolatilityLevel.LOW
        assert context.market.fear_greed_index == 80
        assert context.token.symbol == "SOL"
