"""Prompt composition for baroque market-allegory paintings.

The prompt is assembled from fixed templates, so the same context, short
description and minute bucket always produce the same text. The text ends
with a machine-readable trailer:

    controls: paramsHash=<8 hex>, seed=<12 hex>
"""

from painter.config import ImageSettings
from painter.logging import get_logger
from painter.models import (
    ImagePrompt,
    MarketSnapshot,
    PaintingContext,
    PromptComposition,
    VisualParams,
)
from painter.pipeline.hashing import build_file_name, hash_visual_params, seed_for_bucket
from painter.pipeline.visual_params import visual_params_for

logger = get_logger(__name__)

OPENING_LINE = (
    "a grand baroque allegorical oil painting of the world, all forces visible and "
    "weighted by real-time power,"
)

STYLE_BASE = (
    "baroque allegorical oil painting, Caravaggio and Rubens influence, dramatic "
    "tenebrism with intense chiaroscuro, dynamic composition with diagonal movement, "
    "rich vibrant colors, emotional expression, thick impasto oil texture, theatrical "
    "lighting, detailed human figures, cohesive single landscape"
)

HUMAN_ELEMENT = "figures praying, trading, recording the scene"

NEGATIVE_PROMPT = "watermark, text, logo, oversaturated colors, low detail hands, extra limbs"

COMPOSITION_PHRASES = {
    "citadel-panorama": "a fortified citadel seen in wide panorama, walls glowing with liquidity",
    "procession": "a frenzied procession carrying an idol through crowded streets",
    "central-altar": "a radiant central altar surrounded by jubilant worshippers",
    "storm-battlefield": "a storm-torn battlefield under collapsing skies",
    "cosmic-horizon": "a vast cosmic horizon stretching over an uncertain land",
}

PALETTE_PHRASES = {
    "solar-gold": "blazing solar gold and warm amber light",
    "ashen-blue": "ashen blues and cold grey shadows",
    "infernal-red": "infernal reds and smouldering embers",
    "ivory-marble": "ivory marble whites and soft ochre",
}


def _fmt(value: float, digits: int = 2) -> str:
    return f"{value:,.{digits}f}"


def _summarize_visual_params(params: VisualParams) -> list[str]:
    return [f"- {name}: {value:.3f}" for name, value in params.to_dict().items()]


def build_prompt_text(
    context: PaintingContext, params: VisualParams, short_context: str
) -> str:
    """Render the deterministic prompt body (without the controls trailer)."""
    market = context.market
    dynamics = context.dynamics
    fear_greed = "unknown" if market.fear_greed_index is None else str(market.fear_greed_index)
    motifs = ", ".join(context.motifs) if context.motifs else "none"
    hints = ", ".join(context.narrative_hints) if context.narrative_hints else "none"

    setting = COMPOSITION_PHRASES.get(context.composition.value, context.composition.value)
    colors = PALETTE_PHRASES.get(context.palette.value, context.palette.value)
    scene = f"{OPENING_LINE} {setting}, painted in {colors}, {HUMAN_ELEMENT}, {STYLE_BASE}"

    lines = [
        scene,
        "",
        "Token Context:",
        f"- Name: {context.token.name} ({context.token.symbol})",
        f"- Short Narrative: {short_context}",
        "",
        "Market Dynamics:",
        f"- Market Climate: {context.climate.value}",
        f"- Token Archetype: {context.archetype.value}",
        f"- Event: {context.event.kind.value} (intensity {context.event.intensity})",
        f"- Trend Direction: {dynamics.direction.value} ({dynamics.volatility_level.value} volatility)",
        f"- Total Market Cap: {_fmt(market.total_market_cap_usd, 0)} USD "
        f"({_fmt(market.market_cap_change_24h)}% 24h)",
        f"- BTC Dominance: {_fmt(market.btc_dominance)}%",
        f"- Fear & Greed: {fear_greed}",
        f"- Token Price: {_fmt(dynamics.price_usd, 6)} USD "
        f"({_fmt(dynamics.price_change_24h)}% 24h, {_fmt(dynamics.price_change_7d)}% 7d)",
        "",
        "Visual Directives:",
        f"- Composition: {context.composition.value}",
        f"- Palette: {context.palette.value}",
        f"- Motifs: {motifs}",
        f"- Narrative Hints: {hints}",
        "",
        "Market Map Derived Controls:",
        *_summarize_visual_params(params),
    ]
    return "\n".join(lines)


def controls_trailer(params_hash: str, seed: str) -> str:
    return f"\n\ncontrols: paramsHash={params_hash}, seed={seed}"


class PromptCompositor:
    """Turns a painting context into a generation-ready prompt.

    Args:
        settings: Image settings providing output size and format.
    """

    def __init__(self, settings: ImageSettings) -> None:
        self._settings = settings

    def compose(
        self,
        context: PaintingContext,
        snapshot: MarketSnapshot,
        short_context: str,
        minute_bucket: str,
    ) -> PromptComposition:
        params = visual_params_for(snapshot, context)
        params_hash = hash_visual_params(params)
        seed = seed_for_bucket(minute_bucket, params_hash)
        filename = build_file_name(minute_bucket, params_hash, seed)

        text = build_prompt_text(context, params, short_context) + controls_trailer(
            params_hash, seed
        )
        prompt = ImagePrompt(
            text=text,
            negative=NEGATIVE_PROMPT,
            width=self._settings.width,
            height=self._settings.height,
            format=self._settings.format,
            seed=seed,
            filename=filename,
        )
        logger.info(
            "prompt_composed",
            token=context.token.symbol,
            params_hash=params_hash,
            seed=seed,
            filename=filename,
        )
        return PromptComposition(
            seed=seed,
            minute_bucket=minute_bucket,
            visual_params=params,
            params_hash=params_hash,
            prompt=prompt,
        )
