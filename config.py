import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parent / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Application settings, read from the environment or .env"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Generative model
    llm_provider: str = Field(default="gemini", description="gemini | openai | anthropic")
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    openai_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-3-5-sonnet-20240620"
    plan_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    slide_temperature: float = Field(default=1.0, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=8192, ge=256)

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=1, le=65535)
    static_dir: str = Field(default="dist", description="Built front-end served at /")

    # Client
    api_base_url: str = "http://localhost:3001"
    api_timeout: Optional[float] = Field(
        default=None,
        description="Seconds to wait for the slide API; None waits indefinitely",
    )
    storage_path: str = Field(
        default="~/.flash_slides/storage.json",
        description="JSON file standing in for browser local storage",
    )

    log_level: str = "INFO"

    def api_key_for(self, provider: str) -> Optional[str]:
        return {
            "gemini": self.gemini_api_key,
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
        }.get(provider)

    def model_for(self, provider: str) -> Optional[str]:
        return {
            "gemini": self.gemini_model,
            "openai": self.openai_model,
            "anthropic": self.anthropic_model,
        }.get(provider)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format=LOG_FORMAT,
    )
