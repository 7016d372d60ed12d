"""Painting pipeline orchestrator -- one execution per scheduler tick.

State machine:
  1. IDEMPOTENCY: skip if a market snapshot already exists for the hour
  2. SELECT: pick the token (override list or trending discovery)
  3. MARKET: fetch global market data and store the hourly snapshot
  4. CONTEXT: resolve the short description, classify the moment
  5. PROMPT: visual params, params hash, seed, prompt text, filename
  6. GENERATE: render the image
  7. STORE: image then metadata in the object store (rollback on failure)
  8. INDEX: insert the painting row (soft failure)

Steps 2-7 are fatal: the error propagates and the next tick retries.
There is no in-process lock; duplicate ticks are detected through the
hour-bucket row.
"""

import time
from collections.abc import Callable
from datetime import datetime

from painter.archive.keys import painting_id
from painter.archive.writer import ArchiveWriter
from painter.data.snapshots import MarketSnapshotRepository
from painter.exceptions import InternalError, PainterError
from painter.logging import bind_context, clear_context, get_logger
from painter.models import ExecutionResult, ExecutionStatus, PaintingMetadata
from painter.pipeline.context_builder import PaintingContextBuilder
from painter.pipeline.generation import ImageGenerationService
from painter.pipeline.market_data import MarketDataService
from painter.pipeline.prompt import PromptCompositor
from painter.pipeline.selection import SelectionOptions, TokenSelector
from painter.pipeline.short_context import ShortContextResolver
from painter.timebuckets import bucket_timestamp, hour_bucket, minute_bucket, utc_now

logger = get_logger(__name__)


class PaintingOrchestrator:
    """Runs the generate-and-archive pipeline once per call to execute().

    Args:
        snapshots: Market snapshot repository (idempotency key lookup).
        selector: Token selector.
        market_service: Market data fetcher and snapshot writer.
        short_context: Short description resolver.
        context_builder: Painting context builder.
        compositor: Prompt compositor.
        generator: Image generation service.
        writer: Archive writer.
        clock: Returns the current aware UTC datetime; injectable for tests.
    """

    def __init__(
        self,
        snapshots: MarketSnapshotRepository,
        selector: TokenSelector,
        market_service: MarketDataService,
        short_context: ShortContextResolver,
        context_builder: PaintingContextBuilder,
        compositor: PromptCompositor,
        generator: ImageGenerationService,
        writer: ArchiveWriter,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._snapshots = snapshots
        self._selector = selector
        self._market_service = market_service
        self._short_context = short_context
        self._context_builder = context_builder
        self._compositor = compositor
        self._generator = generator
        self._writer = writer
        self._clock = clock

    async def execute(self, options: SelectionOptions | None = None) -> ExecutionResult:
        """Run one pipeline execution for the current hour.

        Returns:
            ExecutionResult with status skipped (hour already handled) or
            generated.

        Raises:
            PainterError: a fatal step failed. Unexpected exceptions are
                wrapped in InternalError.
        """
        now = self._clock()
        bucket = hour_bucket(now)
        bind_context(hour_bucket=bucket)
        try:
            return await self._run(now, bucket, options)
        except PainterError as e:
            logger.error("painting_execution_failed", kind=e.kind, error=e.message)
            raise
        except Exception as e:
            logger.exception("painting_execution_crashed")
            raise InternalError(f"Unexpected pipeline failure: {e}", cause=e) from e
        finally:
            clear_context()

    async def _run(
        self, now: datetime, bucket: str, options: SelectionOptions | None
    ) -> ExecutionResult:
        started = time.monotonic()
        epoch = int(now.timestamp())

        # 1. IDEMPOTENCY
        if await self._snapshots.find_by_hour_bucket(bucket) is not None:
            logger.info("painting_execution_skipped", reason="hour_bucket_exists")
            return ExecutionResult(status=ExecutionStatus.SKIPPED, hour_bucket=bucket)

        # 2. SELECT
        token = await self._selector.select_token(options, now=epoch)

        # 3. MARKET
        snapshot = await self._market_service.fetch_global_market_data()
        await self._market_service.store_market_snapshot(snapshot, bucket)

        # 4. CONTEXT
        resolved = await self._short_context.resolve(token)
        context = await self._context_builder.build_context(token, snapshot)

        # 5. PROMPT
        bucket_minute = minute_bucket(now)
        composition = self._compositor.compose(
            context, snapshot, resolved.short_context, bucket_minute
        )

        # 6. GENERATE
        image = await self._generator.generate(composition, token)

        # 7. STORE
        prompt = composition.prompt
        metadata = PaintingMetadata(
            id=painting_id(prompt.filename),
            timestamp=bucket_timestamp(bucket_minute),
            minute_bucket=bucket_minute,
            params_hash=composition.params_hash,
            seed=composition.seed,
            visual_params=composition.visual_params,
            image_url="",
            file_size=len(image.image_bytes),
            prompt=prompt.text,
            negative=prompt.negative,
        )
        stored = await self._writer.store_image_with_metadata(
            bucket_minute, prompt.filename, image.image_bytes, metadata
        )

        # 8. INDEX (soft failure)
        indexed = await self._writer.index_painting(stored)

        logger.info(
            "painting_execution_completed",
            token_id=token.id,
            image_url=stored.image_url,
            params_hash=composition.params_hash,
            seed=composition.seed,
            indexed=indexed,
            elapsed_seconds=round(time.monotonic() - started, 2),
        )
        return ExecutionResult(
            status=ExecutionStatus.GENERATED,
            hour_bucket=bucket,
            selected_token=token,
            image_url=stored.image_url,
            params_hash=composition.params_hash,
            seed=composition.seed,
            indexed=indexed,
        )
