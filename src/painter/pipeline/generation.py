"""Image generation step: prompt composition in, raw image bytes out."""

import asyncio
import time

from painter.clients.base import ImageProvider
from painter.config import ImageSettings
from painter.exceptions import OperationTimeoutError
from painter.logging import get_logger
from painter.models import GeneratedImage, ImageRequest, PromptComposition, SelectedToken

logger = get_logger(__name__)


class ImageGenerationService:
    """Builds the provider request and enforces the generation timeout.

    The provider applies the same timeout per HTTP request; the outer
    asyncio timeout also bounds providers that do not talk HTTP.

    Args:
        provider: Image generation backend.
        settings: Model, timeout and reference-image switch.
    """

    def __init__(self, provider: ImageProvider, settings: ImageSettings) -> None:
        self._provider = provider
        self._settings = settings

    def build_request(
        self, composition: PromptComposition, token: SelectedToken | None = None
    ) -> ImageRequest:
        reference = None
        if self._settings.use_reference_image and token is not None and token.logo_url:
            reference = token.logo_url
        prompt = composition.prompt
        return ImageRequest(
            prompt=prompt.text,
            negative=prompt.negative,
            width=prompt.width,
            height=prompt.height,
            format=prompt.format,
            seed=prompt.seed,
            model=self._settings.model,
            reference_image_url=reference,
            timeout_seconds=self._settings.timeout_seconds,
        )

    async def generate(
        self, composition: PromptComposition, token: SelectedToken | None = None
    ) -> GeneratedImage:
        """Render the composition.

        Raises:
            OperationTimeoutError: the provider did not answer in time.
            ExternalApiError: the provider failed (typed by cause).
        """
        request = self.build_request(composition, token)
        started = time.monotonic()
        logger.info(
            "image_generation_started",
            provider=self._provider.name,
            model=request.model,
            seed=request.seed,
            has_reference_image=request.reference_image_url is not None,
        )
        try:
            image = await asyncio.wait_for(
                self._provider.generate(request), timeout=request.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            elapsed = time.monotonic() - started
            raise OperationTimeoutError(
                f"Image generation timed out after {request.timeout_seconds}s",
                provider=self._provider.name,
                timeout_seconds=request.timeout_seconds,
                elapsed_seconds=elapsed,
            ) from e

        logger.info(
            "image_generation_completed",
            provider=self._provider.name,
            size=len(image.image_bytes),
            elapsed_seconds=round(time.monotonic() - started, 2),
        )
        return image
