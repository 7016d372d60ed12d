"""Token selection: discovery (trending search) or forced override list.

Discovery mode scores every trending candidate against the current market
climate and picks the best final score. Override mode resolves a configured
ticker list and lets list position decide (lower force_priority wins).

Both modes drop stablecoins and, optionally, tokens picked within the
recency window. If recency filtering would leave nothing, the unfiltered
candidates are used instead, so a run never fails only because every
candidate was painted recently.
"""

import re
from dataclasses import dataclass

from painter.clients.base import MarketDataProvider
from painter.config import SelectionSettings
from painter.data.tokens import TokenRepository
from painter.exceptions import ValidationError
from painter.logging import get_logger
from painter.models import (
    MarketClimate,
    MarketSnapshot,
    SelectedToken,
    TokenCandidate,
    TokenSource,
)
from painter.pipeline.classification import classify_climate
from painter.pipeline.market_data import MarketDataService
from painter.pipeline.scoring import FORCED_SCORES, score_candidate

logger = get_logger(__name__)

STABLECOINS = frozenset({"USDT", "USDC", "BUSD", "DAI", "TUSD", "USDP", "USDD"})

MAX_FORCE_TOKENS = 20
TICKER_PATTERN = re.compile(r"^[a-z0-9-]{1,64}$", re.IGNORECASE)


@dataclass(frozen=True)
class SelectionOptions:
    """Per-run selection options; None means "use the configured value"."""

    force_token_list: str | None = None
    exclude_recently_selected: bool | None = None
    recent_window_hours: int | None = None


def parse_force_token_list(raw: str) -> list[str]:
    """Split, validate, lower-case and de-duplicate an override list.

    Returns an empty list for blank input (discovery mode).

    Raises:
        ValidationError: input is non-blank but no entry is a valid ticker.
    """
    entries = [entry.strip() for entry in raw.split(",") if entry.strip()]
    if not entries:
        return []

    valid: list[str] = []
    invalid: list[str] = []
    for entry in entries[:MAX_FORCE_TOKENS]:
        if not TICKER_PATTERN.match(entry):
            invalid.append(entry)
            continue
        ticker = entry.lower()
        if ticker not in valid:
            valid.append(ticker)

    if len(entries) > MAX_FORCE_TOKENS:
        logger.warning(
            "force_token_list_truncated", given=len(entries), max_tokens=MAX_FORCE_TOKENS
        )
    if invalid:
        logger.warning("force_token_list_invalid_entries", invalid=invalid)
    if not valid:
        raise ValidationError(
            "Force token list contains no valid tickers",
            details={"invalid": invalid},
        )
    return valid


def candidate_from_market(
    row: dict,
    source: TokenSource,
    trending_rank: int | None = None,
    force_priority: int | None = None,
) -> TokenCandidate:
    """Convert a /coins/markets row; missing numbers default to 0."""
    return TokenCandidate(
        id=row.get("id") or "unknown",
        symbol=(row.get("symbol") or "unknown").upper(),
        name=row.get("name") or "unknown",
        logo_url=row.get("image") or None,
        price_usd=float(row.get("current_price") or 0.0),
        price_change_24h=float(row.get("price_change_percentage_24h") or 0.0),
        price_change_7d=float(row.get("price_change_percentage_7d_in_currency") or 0.0),
        volume_24h_usd=float(row.get("total_volume") or 0.0),
        market_cap_usd=float(row.get("market_cap") or 0.0),
        categories=[],
        source=source,
        trending_rank=trending_rank,
        force_priority=force_priority,
    )


class TokenSelector:
    """Picks the token to paint and records the pick.

    Args:
        market_data: Trending search, ticker resolution and market details.
        tokens: Token repository used for recency lookups and the final upsert.
        settings: Default selection options.
        market_service: Source of the market snapshot for mood scoring when
            the caller does not pass one.
    """

    def __init__(
        self,
        market_data: MarketDataProvider,
        tokens: TokenRepository,
        settings: SelectionSettings,
        market_service: MarketDataService | None = None,
    ) -> None:
        self._market_data = market_data
        self._tokens = tokens
        self._settings = settings
        self._market_service = market_service

    # ──────────────────────────────────────────────
    # Candidate sourcing
    # ──────────────────────────────────────────────

    async def _trending_candidates(self) -> list[TokenCandidate]:
        ids = (await self._market_data.get_trending_ids())[: self._settings.trending_limit]
        if not ids:
            logger.warning("trending_search_empty")
            return []
        ranks = {token_id: rank for rank, token_id in enumerate(ids, start=1)}
        rows = await self._market_data.get_coins_markets(ids)
        candidates = [
            candidate_from_market(row, TokenSource.TRENDING, trending_rank=ranks.get(row.get("id")))
            for row in rows
        ]
        logger.info(
            "trending_candidates_fetched",
            tokens=[(c.trending_rank, c.symbol) for c in candidates],
        )
        return candidates

    async def _resolve_tickers(self, tickers: list[str]) -> list[str]:
        coins = await self._market_data.get_coins_list()
        resolved: list[str] = []
        for ticker in tickers:
            match = next(
                (
                    c
                    for c in coins
                    if str(c.get("symbol", "")).lower() == ticker
                    or str(c.get("id", "")).lower() == ticker
                ),
                None,
            )
            if match is None:
                logger.warning("ticker_not_found_using_as_id", ticker=ticker)
                resolved.append(ticker)
            else:
                resolved.append(match.get("id") or ticker)
        return resolved

    async def _forced_candidates(self, tickers: list[str]) -> list[TokenCandidate]:
        ids = await self._resolve_tickers(tickers)
        priorities: dict[str, int] = {}
        for priority, token_id in enumerate(ids):
            priorities.setdefault(token_id, priority)
        rows = await self._market_data.get_coins_markets(list(priorities))
        return [
            candidate_from_market(
                row, TokenSource.FORCE_OVERRIDE, force_priority=priorities.get(row.get("id"))
            )
            for row in rows
        ]

    # ──────────────────────────────────────────────
    # Filtering
    # ──────────────────────────────────────────────

    async def _exclude_recent(
        self, candidates: list[TokenCandidate], window_hours: int, now: int | None
    ) -> list[TokenCandidate]:
        recent = set(await self._tokens.find_recently_selected(window_hours, now=now))
        filtered = [c for c in candidates if c.id not in recent]
        if not filtered and candidates:
            logger.warning(
                "recency_filter_removed_all_candidates",
                candidates=len(candidates),
                window_hours=window_hours,
            )
            return candidates
        if len(filtered) < len(candidates):
            logger.info(
                "recent_tokens_excluded",
                excluded=[c.id for c in candidates if c.id in recent],
            )
        return filtered

    # ──────────────────────────────────────────────
    # Selection
    # ──────────────────────────────────────────────

    async def select_token(
        self,
        options: SelectionOptions | None = None,
        snapshot: MarketSnapshot | None = None,
        now: int | None = None,
    ) -> SelectedToken:
        """Select, score and persist the winning token.

        Args:
            options: Overrides for the configured selection settings.
            snapshot: Market snapshot used to derive the climate for mood
                scoring in discovery mode. Fetched through market_service
                when omitted; with neither, the climate is transition.
            now: Unix seconds used for the recency window and the upsert.

        Raises:
            ValidationError: invalid override list, or no candidates left.
            ExternalApiError / OperationTimeoutError: market data calls failed.
        """
        options = options or SelectionOptions()
        raw_list = (
            options.force_token_list
            if options.force_token_list is not None
            else self._settings.force_token_list
        )
        exclude_recent = (
            options.exclude_recently_selected
            if options.exclude_recently_selected is not None
            else self._settings.exclude_recently_selected
        )
        window_hours = options.recent_window_hours or self._settings.recent_window_hours

        tickers = parse_force_token_list(raw_list)
        forced = bool(tickers)

        if forced:
            logger.info("token_selection_override_mode", tickers=tickers)
            candidates = await self._forced_candidates(tickers)
        else:
            candidates = await self._trending_candidates()
            candidates = [c for c in candidates if c.symbol.upper() not in STABLECOINS]
            if exclude_recent:
                candidates = await self._exclude_recent(candidates, window_hours, now)

        if not candidates:
            raise ValidationError(
                "No token candidates available",
                details={"mode": "override" if forced else "discovery"},
            )

        if forced:
            winner = min(
                candidates,
                key=lambda c: c.force_priority if c.force_priority is not None else len(candidates),
            )
            selected = SelectedToken.from_candidate(winner, FORCED_SCORES)
        else:
            if snapshot is None and self._market_service is not None:
                snapshot = await self._market_service.fetch_global_market_data()
            climate = classify_climate(snapshot) if snapshot else MarketClimate.TRANSITION
            scored = [SelectedToken.from_candidate(c, score_candidate(c, climate)) for c in candidates]
            selected = max(scored, key=lambda s: s.scores.final)

        await self._tokens.upsert_selected(selected, now=now)
        logger.info(
            "token_selected",
            token_id=selected.id,
            symbol=selected.symbol,
            source=selected.source.value,
            final_score=round(selected.scores.final, 4),
        )
        return selected
