"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoinGeckoSettings(BaseSettings):
    """CoinGecko market data API connection settings."""

    model_config = SettingsConfigDict(env_prefix="COINGECKO_")

    base_url: str = "https://api.coingecko.com/api/v3"
    api_key: SecretStr = SecretStr("")  # demo key, sent as x-cg-demo-api-key
    timeout_seconds: float = 10.0


class SentimentSettings(BaseSettings):
    """Fear & Greed index provider settings."""

    model_config = SettingsConfigDict(env_prefix="SENTIMENT_")

    url: str = "https://api.alternative.me/fng/"
    timeout_seconds: float = 5.0


class SelectionSettings(BaseSettings):
    """Token selection parameters.

    An empty force_token_list means discovery mode (trending search).
    All fields configurable via SELECTION_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="SELECTION_")

    force_token_list: str = ""
    exclude_recently_selected: bool = True
    recent_window_hours: int = 24
    trending_limit: int = 15


class ImageSettings(BaseSettings):
    """Image generation provider settings."""

    model_config = SettingsConfigDict(env_prefix="IMAGE_")

    provider: Literal["runware", "mock"] = "runware"
    model: str = "runware:106@1"  # FLUX.1 Kontext [dev]
    api_key: SecretStr = SecretStr("")
    api_url: str = "https://api.runware.ai/v1"
    width: int = 1024
    height: int = 1024
    format: Literal["webp"] = "webp"  # archive keys and filenames assume webp
    timeout_seconds: float = 30.0
    use_reference_image: bool = True


class ContextSettings(BaseSettings):
    """Token short-description enrichment (web search + LLM summary).

    Disabled or unconfigured enrichment falls back to a fixed description.
    """

    model_config = SettingsConfigDict(env_prefix="CONTEXT_")

    enabled: bool = False
    tavily_api_key: SecretStr = SecretStr("")
    tavily_url: str = "https://api.tavily.com/search"
    llm_api_key: SecretStr = SecretStr("")
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o-mini"
    max_results: int = 3
    timeout_seconds: float = 15.0


class StorageSettings(BaseSettings):
    """Relational index and object store locations."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    db_path: str = "data/painter.db"
    objects_root: str = "data/objects"
    public_base_url: str = ""  # empty -> images served via /api/r2/{key}


class ApiSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    cron_secret: SecretStr = SecretStr("")


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    coingecko: CoinGeckoSettings = CoinGeckoSettings()
    sentiment: SentimentSettings = SentimentSettings()
    selection: SelectionSettings = SelectionSettings()
    image: ImageSettings = ImageSettings()
    context: ContextSettings = ContextSettings()
    storage: StorageSettings = StorageSettings()
    api: ApiSettings = ApiSettings()
