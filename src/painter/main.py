"""Entry points for the market mood painter.

painter            serve the HTTP API (archive reads + POST /api/cron)
painter-generate   run one pipeline execution and exit, for an external cron

Component wiring order (in _build_components):
1. PainterDatabase (relational index) and repositories
2. LocalObjectStore (image and metadata blobs)
3. Provider clients (CoinGecko, Fear & Greed, image, optional enrichment)
4. Pipeline services (market data, selector, short context, context, prompt, generation)
5. ArchiveWriter and ArchiveQueryEngine
6. PaintingOrchestrator
"""

import asyncio
import json
import sys
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from painter.archive.query import ArchiveQueryEngine
from painter.archive.writer import ArchiveWriter
from painter.clients.coingecko import CoinGeckoClient
from painter.clients.context import create_context_provider
from painter.clients.image import create_image_provider
from painter.clients.sentiment import FearGreedClient
from painter.config import AppSettings
from painter.data.database import PainterDatabase
from painter.data.object_store import LocalObjectStore
from painter.data.paintings import PaintingRepository
from painter.data.snapshots import MarketSnapshotRepository
from painter.data.tokens import TokenRepository
from painter.exceptions import PainterError
from painter.logging import get_logger, setup_logging
from painter.orchestrator import PaintingOrchestrator
from painter.pipeline.context_builder import PaintingContextBuilder
from painter.pipeline.generation import ImageGenerationService
from painter.pipeline.market_data import MarketDataService
from painter.pipeline.prompt import PromptCompositor
from painter.pipeline.selection import TokenSelector
from painter.pipeline.short_context import ShortContextResolver


async def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Connects the database (schema is created on first run); HTTP clients
    are created lazily by httpx and closed by _close_components.

    Raises:
        ConfigurationError: a selected provider is missing its credentials.
    """
    logger = get_logger("painter.main")

    # 3. Provider clients first: configuration errors surface before any I/O
    image_provider = create_image_provider(settings.image)
    context_provider = create_context_provider(settings.context)
    if settings.image.provider == "mock":
        logger.warning("mock_image_provider_enabled", note="generated images are empty")

    # 1. Relational index
    database = PainterDatabase(settings.storage.db_path)
    await database.connect()
    snapshots = MarketSnapshotRepository(database)
    tokens = TokenRepository(database)
    paintings = PaintingRepository(database)

    # 2. Object store
    object_store = LocalObjectStore(settings.storage.objects_root)

    coingecko = CoinGeckoClient(settings.coingecko)
    sentiment = FearGreedClient(settings.sentiment)

    # 4. Pipeline services
    market_service = MarketDataService(coingecko, sentiment, snapshots)
    selector = TokenSelector(coingecko, tokens, settings.selection, market_service)
    short_context = ShortContextResolver(tokens, context_provider)
    context_builder = PaintingContextBuilder(tokens)
    compositor = PromptCompositor(settings.image)
    generator = ImageGenerationService(image_provider, settings.image)

    # 5. Archive
    public_base_url = settings.storage.public_base_url
    writer = ArchiveWriter(object_store, paintings, public_base_url)
    query_engine = ArchiveQueryEngine(paintings, object_store, public_base_url)

    # 6. Orchestrator
    orchestrator = PaintingOrchestrator(
        snapshots=snapshots,
        selector=selector,
        market_service=market_service,
        short_context=short_context,
        context_builder=context_builder,
        compositor=compositor,
        generator=generator,
        writer=writer,
    )

    return {
        "database": database,
        "object_store": object_store,
        "coingecko": coingecko,
        "sentiment": sentiment,
        "image_provider": image_provider,
        "context_provider": context_provider,
        "query_engine": query_engine,
        "orchestrator": orchestrator,
    }


async def _close_components(components: dict[str, Any]) -> None:
    for name in ("coingecko", "sentiment", "image_provider", "context_provider"):
        client = components.get(name)
        if client is not None:
            await client.close()
    await components["database"].close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Expose components on app.state; close clients and the database on shutdown."""
    logger = get_logger("painter.main")
    components = app.state.components

    app.state.query_engine = components["query_engine"]
    app.state.object_store = components["object_store"]
    app.state.orchestrator = components["orchestrator"]

    logger.info("lifespan_started")

    yield

    await _close_components(components)
    logger.info("painter_stopped")


async def run() -> None:
    """Serve the HTTP API with uvicorn."""
    from painter.api.app import create_app

    settings = AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("painter.main")

    components = await _build_components(settings)

    app = create_app(lifespan=lifespan)
    app.state.settings = settings
    app.state.components = components

    if not settings.api.cron_secret.get_secret_value():
        logger.warning("cron_secret_not_configured", note="POST /api/cron is unauthenticated")
    logger.info("starting_api", host=settings.api.host, port=settings.api.port)

    config = uvicorn.Config(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


async def run_once() -> int:
    """Run a single pipeline execution. Returns the process exit code."""
    settings = AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("painter.main")

    try:
        components = await _build_components(settings)
    except PainterError as e:
        logger.error("startup_failed", kind=e.kind, error=e.message)
        return 1

    try:
        result = await components["orchestrator"].execute()
    except PainterError as e:
        print(json.dumps(e.to_dict()))
        return 1
    finally:
        await _close_components(components)

    print(json.dumps(result.to_dict()))
    return 0


def main() -> None:
    """Synchronous entry point for the API server."""
    asyncio.run(run())


def generate() -> None:
    """Synchronous entry point for one-shot generation."""
    sys.exit(asyncio.run(run_once()))


if __name__ == "__main__":
    main()
