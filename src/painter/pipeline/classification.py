"""Market mood classification.

Pure functions mapping a market snapshot and a selected token into the
symbolic vocabulary of a painting. Category-driven lookups are ordered
tables with an explicit default, so an unknown category never raises.

Thresholds:
  climate:    mc24 > 3 and fear/greed >= 70 -> euphoria
              mc24 > 0.5 -> cooling, mc24 < -5 -> despair,
              mc24 < -1.5 -> panic, otherwise transition
  volatility: min(1, (|p24| + |p7| / 7) / 50); <= 0.33 low, <= 0.66 medium
  event:      |p24| > 10 -> intensity 3, |p24| > 5 -> intensity 2
"""

from painter.models import (
    Composition,
    EventKind,
    EventPressure,
    MarketClimate,
    MarketSnapshot,
    Palette,
    TokenArchetype,
    TrendDirection,
    VolatilityLevel,
)

EUPHORIA_MC_CHANGE = 3.0
EUPHORIA_FEAR_GREED = 70
COOLING_MC_CHANGE = 0.5
DESPAIR_MC_CHANGE = -5.0
PANIC_MC_CHANGE = -1.5

LOW_VOLATILITY_MAX = 0.33
MEDIUM_VOLATILITY_MAX = 0.66

TREND_THRESHOLD = 3.0

# First matching category wins, so the order matters
ARCHETYPE_RULES: list[tuple[frozenset[str], TokenArchetype]] = [
    (frozenset({"perp"}), TokenArchetype.PERP_LIQUIDITY),
    (frozenset({"meme"}), TokenArchetype.MEME_ASCENDANT),
    (frozenset({"l1", "layer-1"}), TokenArchetype.L1_SOVEREIGN),
    (frozenset({"privacy"}), TokenArchetype.PRIVACY),
    (frozenset({"ai", "artificial-intelligence"}), TokenArchetype.AI_ORACLE),
    (frozenset({"political"}), TokenArchetype.POLITICAL),
]

ARCHETYPE_MOTIFS: dict[TokenArchetype, list[str]] = {
    TokenArchetype.PERP_LIQUIDITY: ["temple", "wheel-of-liquidity", "pillar"],
    TokenArchetype.MEME_ASCENDANT: ["crowd", "idol"],
    TokenArchetype.PRIVACY: ["mask", "graveyard"],
}
DEFAULT_MOTIFS = ["unknown"]

CLIMATE_HINTS: dict[MarketClimate, list[str]] = {
    MarketClimate.EUPHORIA: ["collective celebration", "rising tide"],
    MarketClimate.PANIC: ["mass exodus", "fear spreads"],
    MarketClimate.DESPAIR: ["deepening shadows", "lost hope"],
    MarketClimate.COOLING: ["calming winds", "settling dust"],
    MarketClimate.TRANSITION: ["shifting currents", "uncertain path"],
}


def classify_climate(snapshot: MarketSnapshot) -> MarketClimate:
    mc_change = snapshot.market_cap_change_percentage_24h_usd
    fear_greed = snapshot.fear_greed_index

    # Unknown sentiment never counts as euphoric
    if (
        mc_change > EUPHORIA_MC_CHANGE
        and fear_greed is not None
        and fear_greed >= EUPHORIA_FEAR_GREED
    ):
        return MarketClimate.EUPHORIA
    if mc_change > COOLING_MC_CHANGE:
        return MarketClimate.COOLING
    if mc_change < DESPAIR_MC_CHANGE:
        return MarketClimate.DESPAIR
    if mc_change < PANIC_MC_CHANGE:
        return MarketClimate.PANIC
    return MarketClimate.TRANSITION


def classify_archetype(categories: list[str]) -> TokenArchetype:
    """Map category tags to an archetype; unmatched tags yield UNKNOWN."""
    normalized = {c.strip().lower() for c in categories if isinstance(c, str)}
    for keys, archetype in ARCHETYPE_RULES:
        if normalized & keys:
            return archetype
    return TokenArchetype.UNKNOWN


def volatility_score(price_change_24h: float, price_change_7d: float) -> float:
    """Blend 24h and 7d moves into [0, 1]; the 7d figure is damped by 7."""
    return min(1.0, (abs(price_change_24h) + abs(price_change_7d) / 7) / 50)


def classify_volatility(score: float) -> VolatilityLevel:
    if score <= LOW_VOLATILITY_MAX:
        return VolatilityLevel.LOW
    if score <= MEDIUM_VOLATILITY_MAX:
        return VolatilityLevel.MEDIUM
    return VolatilityLevel.HIGH


def classify_direction(price_change_24h: float) -> TrendDirection:
    if price_change_24h > TREND_THRESHOLD:
        return TrendDirection.UP
    if price_change_24h < -TREND_THRESHOLD:
        return TrendDirection.DOWN
    return TrendDirection.FLAT


def classify_event(price_change_24h: float) -> EventPressure:
    if price_change_24h > 10:
        return EventPressure(EventKind.RALLY, 3)
    if price_change_24h < -10:
        return EventPressure(EventKind.COLLAPSE, 3)
    if price_change_24h > 5:
        return EventPressure(EventKind.RALLY, 2)
    if price_change_24h < -5:
        return EventPressure(EventKind.COLLAPSE, 2)
    return EventPressure(EventKind.RITUAL, 1)


def pick_composition(
    climate: MarketClimate, archetype: TokenArchetype, event: EventPressure
) -> Composition:
    if archetype is TokenArchetype.PERP_LIQUIDITY and event.kind is EventKind.RALLY:
        return Composition.CITADEL_PANORAMA
    if archetype is TokenArchetype.MEME_ASCENDANT and event.kind is EventKind.RALLY:
        return Composition.PROCESSION
    if climate is MarketClimate.EUPHORIA:
        return Composition.CENTRAL_ALTAR
    if climate is MarketClimate.DESPAIR:
        return Composition.STORM_BATTLEFIELD
    return Composition.COSMIC_HORIZON


def pick_palette(
    climate: MarketClimate, archetype: TokenArchetype, event: EventPressure
) -> Palette:
    if climate is MarketClimate.EUPHORIA:
        return Palette.SOLAR_GOLD
    if climate in (MarketClimate.PANIC, MarketClimate.DESPAIR):
        return Palette.ASHEN_BLUE
    if archetype is TokenArchetype.MEME_ASCENDANT and event.kind is EventKind.RALLY:
        return Palette.INFERNAL_RED
    return Palette.IVORY_MARBLE


def motifs_for(archetype: TokenArchetype) -> list[str]:
    return list(ARCHETYPE_MOTIFS.get(archetype, DEFAULT_MOTIFS))


def narrative_hints(climate: MarketClimate, event: EventPressure) -> list[str]:
    hints = list(CLIMATE_HINTS.get(climate, []))
    if event.kind is EventKind.RALLY:
        hints.append(f"momentum building (intensity {event.intensity})")
    elif event.kind is EventKind.COLLAPSE:
        hints.append(f"foundation crumbling (intensity {event.intensity})")
    else:
        hints.extend(["steady rhythm", "enduring pattern"])
    return hints
