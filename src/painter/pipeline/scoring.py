"""Candidate scoring for discovery mode.

Core formula:
  volume_score = min(1, log10(max(1, volume_24h)) / 10)          10B USD ceiling
  trend  = 0.6 * max(0, 1 - (rank - 1) / 14) + 0.4 * volume_score
  impact = min(1, (min(1, |p24| / 50) * 0.4
                   + min(1, log10(max(1, market_cap)) / 12) * 0.3   1T USD ceiling
                   + volume_score * 0.3) * archetype_weight)
  mood   = alignment of the 24h move with the market climate
  final  = 0.50 * trend + 0.35 * impact + 0.15 * mood
"""

import math

from painter.models import MarketClimate, TokenCandidate, TokenScores

_LOG_MAX_VOLUME = 10.0  # log10(10B USD)
_LOG_MAX_MARKET_CAP = 12.0  # log10(1T USD)
_RANK_SPAN = 14  # rank 1 scores 1.0, rank 15 scores 0.0


def _volume_score(volume_24h_usd: float) -> float:
    return min(1.0, math.log10(max(1.0, volume_24h_usd)) / _LOG_MAX_VOLUME)


def archetype_weight(categories: list[str]) -> float:
    if "l1" in categories or "layer-1" in categories:
        return 1.0
    if "meme" in categories:
        return 0.3
    if "defi" in categories or "DeFi" in categories:
        return 0.7
    return 0.5


def trend_score(candidate: TokenCandidate) -> float:
    rank_score = 0.0
    if candidate.trending_rank is not None:
        rank_score = max(0.0, 1 - (candidate.trending_rank - 1) / _RANK_SPAN)
    return 0.6 * rank_score + 0.4 * _volume_score(candidate.volume_24h_usd)


def impact_score(candidate: TokenCandidate) -> float:
    price_magnitude = min(1.0, abs(candidate.price_change_24h) / 50)
    market_cap_score = min(
        1.0, math.log10(max(1.0, candidate.market_cap_usd)) / _LOG_MAX_MARKET_CAP
    )
    raw = (
        price_magnitude * 0.4
        + market_cap_score * 0.3
        + _volume_score(candidate.volume_24h_usd) * 0.3
    ) * archetype_weight(candidate.categories)
    return min(1.0, raw)


def mood_score(candidate: TokenCandidate, climate: MarketClimate) -> float:
    """How well the token's 24h move matches the market mood."""
    change = candidate.price_change_24h

    if climate is MarketClimate.EUPHORIA:
        if change > 5:
            return 1.0
        if change > 0:
            return 0.7
        if change > -5:
            return 0.3
        return 0.0

    if climate in (MarketClimate.PANIC, MarketClimate.DESPAIR):
        if change < -5:
            return 1.0
        if change < 0:
            return 0.7
        if change < 5:
            return 0.3
        return 0.0

    if climate in (MarketClimate.COOLING, MarketClimate.TRANSITION):
        if abs(change) < 3:
            return 0.8
        if abs(change) < 10:
            return 0.5
        return 0.2

    return 0.5


def final_score(trend: float, impact: float, mood: float) -> float:
    return 0.5 * trend + 0.35 * impact + 0.15 * mood


def score_candidate(candidate: TokenCandidate, climate: MarketClimate) -> TokenScores:
    trend = trend_score(candidate)
    impact = impact_score(candidate)
    mood = mood_score(candidate, climate)
    return TokenScores(
        trend=trend, impact=impact, mood=mood, final=final_score(trend, impact, mood)
    )


FORCED_SCORES = TokenScores(trend=1.0, impact=1.0, mood=1.0, final=1.0)
