"""Token short-description enrichment.

Searches the web with Tavily, then asks an OpenAI-compatible chat
completions endpoint to condense the results into a short narrative,
a category and a handful of tags.
"""

import json

import httpx

from painter.clients.base import ShortContextProvider, TokenProfile
from painter.clients.http import ProviderHttpClient
from painter.config import ContextSettings
from painter.exceptions import ConfigurationError, ExternalApiError, ValidationError
from painter.logging import get_logger

logger = get_logger(__name__)

MIN_SHORT_CONTEXT_LENGTH = 50
MAX_SHORT_CONTEXT_LENGTH = 500
MAX_TAGS = 5

SYSTEM_PROMPT = (
    "You are a cryptocurrency token analyst. Analyze the provided token information "
    "and respond with a JSON object with these fields:\n"
    "- short_context: a 2-4 sentence English description of the token's purpose, "
    "narrative and key characteristics (50-500 characters)\n"
    '- category: a single lowercase word category (e.g. "meme", "defi", "l1", "ai", "privacy")\n'
    "- tags: an array of 2-5 lowercase tags\n"
    "Respond with JSON only."
)


class TavilyContextProvider(ShortContextProvider):
    """Tavily search + LLM summary.

    Args:
        settings: Context settings with both API keys.
        http_client: Optional injected httpx client shared by both calls.
    """

    def __init__(
        self,
        settings: ContextSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._search = ProviderHttpClient("Tavily", settings.timeout_seconds, http_client)
        self._llm = ProviderHttpClient("LLM", settings.timeout_seconds, http_client)

    async def close(self) -> None:
        await self._search.close()
        await self._llm.close()

    async def _search_articles(self, name: str, symbol: str) -> str:
        payload = await self._search.request_json(
            "POST",
            self._settings.tavily_url,
            json={
                "api_key": self._settings.tavily_api_key.get_secret_value(),
                "query": f"{name} {symbol} crypto token",
                "max_results": self._settings.max_results,
                "search_depth": "basic",
            },
        )
        results = payload.get("results", []) if isinstance(payload, dict) else []
        chunks = []
        for item in results:
            if not isinstance(item, dict):
                continue
            title = item.get("title") or ""
            content = item.get("content") or ""
            if title or content:
                chunks.append(f"{title}\n{content}".strip())
        return "\n\n".join(chunks)

    async def _summarize(self, name: str, symbol: str, search_text: str) -> dict:
        user_prompt = (
            f"Token Information:\nName: {name}\nSymbol: {symbol}\n\n"
            f"Search Results:\n{search_text or 'none'}\n\n"
            "Generate a concise context JSON for this token."
        )
        payload = await self._llm.request_json(
            "POST",
            f"{self._settings.llm_base_url.rstrip('/')}/chat/completions",
            headers={"Authorization": f"Bearer {self._settings.llm_api_key.get_secret_value()}"},
            json={
                "model": self._settings.llm_model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": 0.3,
                "response_format": {"type": "json_object"},
            },
        )
        try:
            content = payload["choices"][0]["message"]["content"]
            data = json.loads(content)
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as e:
            raise ExternalApiError("LLM returned an unparseable completion", provider="LLM") from e
        if not isinstance(data, dict):
            raise ExternalApiError("LLM completion is not a JSON object", provider="LLM")
        return data

    async def describe(self, token_id: str, name: str, symbol: str) -> TokenProfile:
        search_text = await self._search_articles(name, symbol)
        data = await self._summarize(name, symbol, search_text)

        short_context = str(data.get("short_context") or "").strip()
        length = len(short_context)
        if length < MIN_SHORT_CONTEXT_LENGTH or length > MAX_SHORT_CONTEXT_LENGTH:
            raise ValidationError(
                f"short_context length {length} outside "
                f"{MIN_SHORT_CONTEXT_LENGTH}-{MAX_SHORT_CONTEXT_LENGTH}",
                details={"length": length, "token_id": token_id},
            )
        tags = [str(t).strip().lower() for t in data.get("tags") or [] if str(t).strip()]
        category = str(data.get("category") or "").strip().lower()

        logger.info("token_context_generated", token_id=token_id, category=category, tags=tags)
        return TokenProfile(short_context=short_context, category=category, tags=tags[:MAX_TAGS])


def create_context_provider(
    settings: ContextSettings, http_client: httpx.AsyncClient | None = None
) -> ShortContextProvider | None:
    """Return the enrichment provider, or None when enrichment is disabled.

    Raises:
        ConfigurationError: enabled without both API keys.
    """
    if not settings.enabled:
        return None
    if not settings.tavily_api_key.get_secret_value():
        raise ConfigurationError(
            "CONTEXT_TAVILY_API_KEY is required when enrichment is enabled",
            missing="CONTEXT_TAVILY_API_KEY",
        )
    if not settings.llm_api_key.get_secret_value():
        raise ConfigurationError(
            "CONTEXT_LLM_API_KEY is required when enrichment is enabled",
            missing="CONTEXT_LLM_API_KEY",
        )
    return TavilyContextProvider(settings, http_client)
