"""Image generation providers.

RunwareImageProvider talks to the Runware inference API; MockImageProvider
returns a zero-byte image so the full pipeline can run without spending
generation credits.
"""

import base64
import binascii
import uuid

import httpx

from painter.clients.base import ImageProvider
from painter.clients.http import ProviderHttpClient
from painter.config import ImageSettings
from painter.exceptions import ConfigurationError, EmptyResponseError, ExternalApiError
from painter.logging import get_logger
from painter.models import GeneratedImage, ImageRequest

logger = get_logger(__name__)

PROVIDER = "Runware"

# Image-to-image conditioning parameters for the Kontext model
REFERENCE_STEPS = 18
REFERENCE_CFG_SCALE = 2.5

_OUTPUT_FORMATS = {"webp": "WEBP", "png": "PNG", "jpeg": "JPEG"}


def seed_to_int(seed: str) -> int:
    """Runware expects an integer seed; use the first 8 hex chars of ours."""
    return int(seed[:8], 16)


class RunwareImageProvider(ProviderHttpClient, ImageProvider):
    """Runware text-to-image and image-to-image client.

    Args:
        settings: Image settings (API key, endpoint, default timeout).
        http_client: Optional injected httpx client.
    """

    name = "runware"

    def __init__(
        self,
        settings: ImageSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(PROVIDER, settings.timeout_seconds, http_client)
        self._api_key = settings.api_key.get_secret_value()
        self._api_url = settings.api_url

    def build_task(self, request: ImageRequest, task_uuid: str) -> dict:
        """Build one imageInference task; reference images go inside "inputs"."""
        task: dict = {
            "taskType": "imageInference",
            "taskUUID": task_uuid,
            "model": request.model,
            "positivePrompt": request.prompt,
            "negativePrompt": request.negative,
            "width": request.width,
            "height": request.height,
            "seed": seed_to_int(request.seed),
            "numberResults": 1,
            "outputFormat": _OUTPUT_FORMATS.get(request.format, "WEBP"),
            "outputType": "base64Data",
        }
        if request.reference_image_url:
            task["inputs"] = {"referenceImages": [request.reference_image_url]}
            task["steps"] = REFERENCE_STEPS
            task["CFGScale"] = REFERENCE_CFG_SCALE
        return task

    async def generate(self, request: ImageRequest) -> GeneratedImage:
        task_uuid = str(uuid.uuid4())
        logger.debug(
            "runware_request_start",
            task_uuid=task_uuid,
            model=request.model,
            prompt_sample=request.prompt[:80],
            has_reference_image=bool(request.reference_image_url),
        )

        payload = await self.request_json(
            "POST",
            self._api_url,
            timeout=request.timeout_seconds,
            json=[self.build_task(request, task_uuid)],
            headers={"Authorization": f"Bearer {self._api_key}"},
        )

        if isinstance(payload, dict) and payload.get("errors"):
            raise ExternalApiError(
                f"Runware task failed: {payload['errors']}", provider=PROVIDER
            )
        results = payload.get("data") if isinstance(payload, dict) else payload
        if not isinstance(results, list) or not results:
            raise EmptyResponseError("Runware returned no results", provider=PROVIDER)

        first = results[0] if isinstance(results[0], dict) else {}
        encoded = first.get("imageBase64Data")
        if not encoded:
            raise EmptyResponseError("Runware result has no image data", provider=PROVIDER)
        try:
            image_bytes = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ExternalApiError(
                "Runware returned invalid base64 image data", provider=PROVIDER
            ) from e

        logger.debug("runware_request_complete", task_uuid=task_uuid, size=len(image_bytes))
        return GeneratedImage(
            image_bytes=image_bytes,
            provider_meta={
                "provider": self.name,
                "task_uuid": task_uuid,
                "image_uuid": first.get("imageUUID"),
                "seed": first.get("seed"),
                "cost": first.get("cost"),
            },
        )


class MockImageProvider(ImageProvider):
    """Returns an empty image buffer; used for integration runs and tests."""

    name = "mock"

    async def generate(self, request: ImageRequest) -> GeneratedImage:
        logger.info("mock_image_generated", seed=request.seed, model=request.model)
        return GeneratedImage(image_bytes=b"", provider_meta={"mock": True})


def create_image_provider(
    settings: ImageSettings, http_client: httpx.AsyncClient | None = None
) -> ImageProvider:
    """Pick the provider named by settings.provider.

    Raises:
        ConfigurationError: runware selected without IMAGE_API_KEY.
    """
    if settings.provider == "mock":
        return MockImageProvider()
    if not settings.api_key.get_secret_value():
        raise ConfigurationError(
            "IMAGE_API_KEY is required for the runware provider", missing="IMAGE_API_KEY"
        )
    return RunwareImageProvider(settings, http_client)
