"""Market snapshot -> VisualParams mapping.

Features are normalized to [0, 1] with a square-root ease so small moves
near the lower bound still register. Each dial is a fixed weighted blend
of features; an inverted feature contributes (1 - value).
"""

import math

from painter.models import MarketSnapshot, PaintingContext, VisualParams

QUANTIZE_DIGITS = 3

# (feature, weight, inverted) per dial; weights of each dial sum to 1
DIAL_WEIGHTS: dict[str, list[tuple[str, float, bool]]] = {
    "fog_density": [("sentiment", 0.6, True), ("volatility", 0.4, False)],
    "sky_tint": [("mc_change", 0.5, False), ("sentiment", 0.5, False)],
    "reflectivity": [("eth_dominance", 0.7, False), ("turnover", 0.3, False)],
    "blue_balance": [("btc_dominance", 0.6, False), ("mc_change", 0.4, True)],
    "vegetation_density": [("mc_change", 0.5, False), ("token_momentum", 0.5, False)],
    "organic_pattern": [("sentiment", 0.6, False), ("btc_dominance", 0.4, True)],
    "radiation_glow": [("volatility", 0.7, False), ("turnover", 0.3, False)],
    "debris_intensity": [("mc_change", 0.6, True), ("volatility", 0.4, False)],
    "mechanical_pattern": [("btc_dominance", 0.6, False), ("eth_dominance", 0.4, False)],
    "metallic_ratio": [("btc_dominance", 0.5, False), ("turnover", 0.5, False)],
    "fractal_density": [("volatility", 0.5, False), ("eth_dominance", 0.5, False)],
    "bioluminescence": [("token_momentum", 0.6, False), ("sentiment", 0.4, False)],
    "shadow_depth": [("sentiment", 0.5, True), ("token_momentum", 0.5, True)],
    "red_highlight": [("token_momentum", 0.6, True), ("volatility", 0.4, False)],
    "light_intensity": [("sentiment", 0.5, False), ("mc_change", 0.5, False)],
    "warm_hue": [("token_momentum", 0.5, False), ("sentiment", 0.5, False)],
}


def clamp01(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def normalize_value(value: float, min_value: float, max_value: float) -> float:
    """Clamp into [min_value, max_value], rescale to [0, 1] and sqrt-ease."""
    if not math.isfinite(value) or max_value <= min_value:
        return 0.0
    clamped = min(max(value, min_value), max_value)
    ratio = (clamped - min_value) / (max_value - min_value)
    return clamp01(math.sqrt(ratio))


def quantize(value: float, digits: int = QUANTIZE_DIGITS) -> float:
    return round(clamp01(value), digits)


def build_features(snapshot: MarketSnapshot, context: PaintingContext) -> dict[str, float]:
    sentiment = (
        snapshot.fear_greed_index / 100 if snapshot.fear_greed_index is not None else 0.5
    )
    turnover = (
        snapshot.total_volume_usd / snapshot.total_market_cap_usd
        if snapshot.total_market_cap_usd > 0
        else 0.0
    )
    return {
        "mc_change": normalize_value(snapshot.market_cap_change_percentage_24h_usd, -10, 10),
        "sentiment": clamp01(sentiment),
        "btc_dominance": normalize_value(snapshot.btc_dominance, 30, 70),
        "eth_dominance": normalize_value(snapshot.eth_dominance, 5, 25),
        "turnover": normalize_value(turnover, 0, 0.25),
        "token_momentum": normalize_value(context.dynamics.price_change_24h, -30, 30),
        "volatility": clamp01(context.dynamics.volatility),
    }


def map_visual_params(features: dict[str, float]) -> VisualParams:
    """Blend features into quantized dials. Missing features count as 0."""
    values: dict[str, float] = {}
    for dial, terms in DIAL_WEIGHTS.items():
        total = 0.0
        for feature, weight, inverted in terms:
            value = clamp01(features.get(feature, 0.0))
            total += weight * ((1 - value) if inverted else value)
        values[dial] = quantize(total)
    return VisualParams(**values)


def visual_params_for(snapshot: MarketSnapshot, context: PaintingContext) -> VisualParams:
    return map_visual_params(build_features(snapshot, context))
