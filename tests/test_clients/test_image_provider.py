"""Tests for image generation providers."""

import base64
import json

import httpx
import pytest

from painter.clients.image import (
    MockImageProvider,
    RunwareImageProvider,
    create_image_provider,
    seed_to_int,
)
from painter.config import ImageSettings
from painter.exceptions import ConfigurationError, EmptyResponseError, ExternalApiError
from painter.models import ImageRequest


def _request(reference: str | None = None) -> ImageRequest:
    return ImageRequest(
        prompt="a baroque market",
        negative="watermark",
        width=1024,
        height=1024,
        format="webp",
        seed="0123456789ab",
        model="runware:106@1",
        reference_image_url=reference,
        timeout_seconds=5.0,
    )


def _runware(handler) -> RunwareImageProvider:
    settings = ImageSettings(api_key="rw-key", api_url="https://runware.test/v1")  # type: ignore[arg-type]
    return RunwareImageProvider(settings, httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestRunwareImageProvider:
    """Tests for the Runware client."""

    def test_seed_to_int(self) -> None:
        assert seed_to_int("0123456789ab") == 0x01234567

    def test_text_to_image_task(self) -> None:
        task = _runware(lambda r: httpx.Response(200)).build_task(_request(), "uuid-1")
        assert task["taskType"] == "imageInference"
        assert task["outputFormat"] == "WEBP"
        assert task["seed"] == 0x01234567
        assert "inputs" not in task

    def test_reference_image_task(self) -> None:
        task = _runware(lambda r: httpx.Response(200)).build_task(
            _request("https://img.example/sol.png"), "uuid-1"
        )
        assert task["inputs"] == {"referenceImages": ["https://img.example/sol.png"]}
        assert task["steps"] == 18
        assert task["CFGScale"] == 2.5

    @pytest.mark.asyncio
    async def test_generate_decodes_image(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            data = [{"imageBase64Data": base64.b64encode(b"RIFFwebp").decode(), "imageUUID": "img-1"}]
            return httpx.Response(200, json={"data": data})

        image = await _runware(handler).generate(_request())

        assert image.image_bytes == b"RIFFwebp"
        assert image.provider_meta["image_uuid"] == "img-1"
        assert seen[0].headers["authorization"] == "Bearer rw-key"
        body = json.loads(seen[0].content)
        assert body[0]["positivePrompt"] == "a baroque market"

    @pytest.mark.asyncio
    async def test_task_errors(self) -> None:
        provider = _runware(
            lambda r: httpx.Response(200, json={"errors": [{"message": "bad prompt"}]})
        )
        with pytest.raises(ExternalApiError):
            await provider.generate(_request())

    @pytest.mark.asyncio
    async def test_empty_results(self) -> None:
        provider = _runware(lambda r: httpx.Response(200, json={"data": []}))
        with pytest.raises(EmptyResponseError):
            await provider.generate(_request())

    @pytest.mark.asyncio
    async def test_invalid_base64(self) -> None:
        provider = _runware(
            lambda r: httpx.Response(200, json={"data": [{"imageBase64Data": "***"}]})
        )
        with pytest.raises(ExternalApiError):
            await provider.generate(_request())


class TestCreateImageProvider:
    """Tests for provider selection."""

    def test_mock(self) -> None:
        assert isinstance(create_image_provider(ImageSettings(provider="mock")), MockImageProvider)

    def test_runware_requires_key(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            create_image_provider(ImageSettings(provider="runware", api_key=""))  # type: ignore[arg-type]
        assert exc_info.value.missing == "IMAGE_API_KEY"

    @pytest.mark.asyncio
    async def test_mock_returns_empty_image(self) -> None:
        image = await MockImageProvider().generate(_request())
        assert image.image_bytes == b""
