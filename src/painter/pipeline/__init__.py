"""Generation pipeline -- selection, classification, prompt composition, image generation."""

from painter.pipeline.context_builder import PaintingContextBuilder, build_painting_context
from painter.pipeline.generation import ImageGenerationService
from painter.pipeline.hashing import build_file_name, hash_visual_params, seed_for_bucket
from painter.pipeline.market_data import MarketDataService
from painter.pipeline.prompt import PromptCompositor
from painter.pipeline.selection import SelectionOptions, TokenSelector, parse_force_token_list
from painter.pipeline.short_context import FALLBACK_SHORT_CONTEXT, ShortContextResolver

__all__ = [
    "FALLBACK_SHORT_CONTEXT",
    "ImageGenerationService",
    "MarketDataService",
    "PaintingContextBuilder",
    "PromptCompositor",
    "SelectionOptions",
    "ShortContextResolver",
    "TokenSelector",
    "build_file_name",
    "build_painting_context",
    "hash_visual_params",
    "parse_force_token_list",
    "seed_for_bucket",
]
