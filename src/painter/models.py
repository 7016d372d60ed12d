"""Shared data models for the market mood painter.

Market values are plain floats: they feed logarithmic scoring and [0, 1]
normalization, never accounting.
"""

import math
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any

from painter.exceptions import ValidationError


class TokenSource(str, Enum):
    """Where a candidate token came from."""

    TRENDING = "coingecko-trending-search"
    FORCE_OVERRIDE = "force-override"


class MarketClimate(str, Enum):
    """Overall market mood."""

    EUPHORIA = "euphoria"
    COOLING = "cooling"
    DESPAIR = "despair"
    PANIC = "panic"
    TRANSITION = "transition"


class TokenArchetype(str, Enum):
    """Symbolic role of the selected token."""

    L1_SOVEREIGN = "l1-sovereign"
    MEME_ASCENDANT = "meme-ascendant"
    PRIVACY = "privacy"
    AI_ORACLE = "ai-oracle"
    POLITICAL = "political"
    PERP_LIQUIDITY = "perp-liquidity"
    UNKNOWN = "unknown"


class EventKind(str, Enum):
    """Short-term price event."""

    RALLY = "rally"
    COLLAPSE = "collapse"
    RITUAL = "ritual"


class Composition(str, Enum):
    """Scene layout of the painting."""

    CITADEL_PANORAMA = "citadel-panorama"
    PROCESSION = "procession"
    CENTRAL_ALTAR = "central-altar"
    STORM_BATTLEFIELD = "storm-battlefield"
    COSMIC_HORIZON = "cosmic-horizon"


class Palette(str, Enum):
    """Dominant color scheme of the painting."""

    SOLAR_GOLD = "solar-gold"
    ASHEN_BLUE = "ashen-blue"
    INFERNAL_RED = "infernal-red"
    IVORY_MARBLE = "ivory-marble"


class TrendDirection(str, Enum):
    """Token price direction."""

    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class VolatilityLevel(str, Enum):
    """Bucketed volatility score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ExecutionStatus(str, Enum):
    """Outcome of one orchestrator execution."""

    SKIPPED = "skipped"
    GENERATED = "generated"


@dataclass(frozen=True)
class MarketSnapshot:
    """Global crypto market aggregates at one point in time.

    fear_greed_index is None when the sentiment provider was unavailable.
    """

    total_market_cap_usd: float
    total_volume_usd: float
    market_cap_change_percentage_24h_usd: float
    btc_dominance: float
    eth_dominance: float
    active_cryptocurrencies: int
    markets: int
    fear_greed_index: int | None
    updated_at: int  # Unix seconds


@dataclass
class TokenCandidate:
    """A token considered for this execution's painting."""

    id: str
    symbol: str
    name: str
    logo_url: str | None
    price_usd: float
    price_change_24h: float
    price_change_7d: float
    volume_24h_usd: float
    market_cap_usd: float
    categories: list[str]
    source: TokenSource
    trending_rank: int | None = None
    force_priority: int | None = None


@dataclass(frozen=True)
class TokenScores:
    """Score components of a selected token, each in [0, 1]."""

    trend: float
    impact: float
    mood: float
    final: float


@dataclass
class SelectedToken(TokenCandidate):
    """The winning candidate together with the scores that picked it."""

    scores: TokenScores = field(default_factory=lambda: TokenScores(0.0, 0.0, 0.0, 0.0))

    @classmethod
    def from_candidate(cls, candidate: TokenCandidate, scores: TokenScores) -> "SelectedToken":
        values = {f.name: getattr(candidate, f.name) for f in fields(candidate)}
        return cls(**values, scores=scores)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        return data


@dataclass(frozen=True)
class TokenSummary:
    """Identity of the painted token."""

    id: str
    name: str
    symbol: str


@dataclass(frozen=True)
class MarketSummary:
    """Compact market metrics carried into the prompt."""

    total_market_cap_usd: float
    market_cap_change_24h: float
    btc_dominance: float
    fear_greed_index: int | None


@dataclass(frozen=True)
class TokenDynamics:
    """Short-term behaviour of the painted token."""

    price_usd: float
    price_change_24h: float
    price_change_7d: float
    volume_24h_usd: float
    market_cap_usd: float
    volatility: float
    volatility_level: VolatilityLevel
    direction: TrendDirection


@dataclass(frozen=True)
class EventPressure:
    """Event kind with an intensity from 1 (calm) to 3 (violent)."""

    kind: EventKind
    intensity: int


@dataclass(frozen=True)
class PaintingContext:
    """Symbolic description of the market moment to paint."""

    token: TokenSummary
    market: MarketSummary
    dynamics: TokenDynamics
    climate: MarketClimate
    archetype: TokenArchetype
    event: EventPressure
    composition: Composition
    palette: Palette
    motifs: list[str]
    narrative_hints: list[str]


@dataclass(frozen=True)
class VisualParams:
    """Named rendering dials, each in [0, 1].

    This is the canonical input to params hashing, so the field set is fixed.
    """

    fog_density: float
    sky_tint: float
    reflectivity: float
    blue_balance: float
    vegetation_density: float
    organic_pattern: float
    radiation_glow: float
    debris_intensity: float
    mechanical_pattern: float
    metallic_ratio: float
    fractal_density: float
    bioluminescence: float
    shadow_depth: float
    red_highlight: float
    light_intensity: float
    warm_hue: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Any) -> "VisualParams":
        """Build from a mapping, rejecting missing or non-finite dials."""
        if not isinstance(data, dict):
            raise ValidationError("visual_params must be an object")
        values: dict[str, float] = {}
        for name in cls.field_names():
            value = data.get(name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(
                    f"visual_params.{name} must be a number", details={"field": name}
                )
            if not math.isfinite(value):
                raise ValidationError(
                    f"visual_params.{name} must be finite", details={"field": name}
                )
            values[name] = float(value)
        return cls(**values)


@dataclass(frozen=True)
class ImagePrompt:
    """Generation-ready prompt text and output shape."""

    text: str
    negative: str
    width: int
    height: int
    format: str
    seed: str
    filename: str


@dataclass(frozen=True)
class PromptComposition:
    """Prompt plus the deterministic controls it was derived from."""

    seed: str
    minute_bucket: str
    visual_params: VisualParams
    params_hash: str
    prompt: ImagePrompt


@dataclass(frozen=True)
class ImageRequest:
    """Request sent to an image generation provider."""

    prompt: str
    negative: str
    width: int
    height: int
    format: str
    seed: str
    model: str
    reference_image_url: str | None = None
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class GeneratedImage:
    """Raw image bytes with provider-specific details."""

    image_bytes: bytes
    provider_meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PaintingMetadata:
    """Provenance of one archived painting.

    Stored twice: as a JSON blob next to the image and as a relational row.
    image_url stays empty until the image is durably stored.
    """

    id: str
    timestamp: str
    minute_bucket: str
    params_hash: str
    seed: str
    visual_params: VisualParams
    image_url: str
    file_size: int
    prompt: str
    negative: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "PaintingMetadata":
        """Validate and build from a decoded metadata blob.

        Raises ValidationError on any shape problem.
        """
        if not isinstance(data, dict):
            raise ValidationError("painting metadata must be an object")
        for name in ("id", "timestamp", "minute_bucket", "params_hash", "seed", "image_url", "prompt", "negative"):
            if not isinstance(data.get(name), str):
                raise ValidationError(
                    f"metadata.{name} must be a string", details={"field": name}
                )
        file_size = data.get("file_size")
        if isinstance(file_size, bool) or not isinstance(file_size, (int, float)) or not math.isfinite(file_size):
            raise ValidationError(
                "metadata.file_size must be a finite number", details={"field": "file_size"}
            )
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            minute_bucket=data["minute_bucket"],
            params_hash=data["params_hash"],
            seed=data["seed"],
            visual_params=VisualParams.from_dict(data.get("visual_params")),
            image_url=data["image_url"],
            file_size=int(file_size),
            prompt=data["prompt"],
            negative=data["negative"],
        )


@dataclass
class ExecutionResult:
    """What one orchestrator execution did."""

    status: ExecutionStatus
    hour_bucket: str
    selected_token: SelectedToken | None = None
    image_url: str | None = None
    params_hash: str | None = None
    seed: str | None = None
    indexed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "hour_bucket": self.hour_bucket,
            "selected_token": self.selected_token.to_dict() if self.selected_token else None,
            "image_url": self.image_url,
            "params_hash": self.params_hash,
            "seed": self.seed,
            "indexed": self.indexed,
        }
