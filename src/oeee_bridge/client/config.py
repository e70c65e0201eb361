from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from urllib.parse import urlsplit

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime config (client).

    - Loaded from environment variables
    - Also reads `.env` if present (via pydantic-settings + python-dotenv)
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="OEEE_", extra="ignore")

    # Backend origin; the embedded surface only keeps navigations to this host.
    base_url: str = "https://oeee.cafe"

    # Holds cookies.lwp and push_token.json; survives restarts.
    state_dir: Path = Path.home() / ".oeee-bridge"

    timeout_s: float = 30.0

    # Sent along with push-token and device registration.
    push_platform: str = "android"

    # Debugging
    debug_log_http: bool = False
    log_level: str = "INFO"

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")) or not urlsplit(v).hostname:
            raise ValueError(
                "Invalid URL format. Please enter a valid URL starting with http:// or https://"
            )
        return v.rstrip("/")

    @property
    def backend_host(self) -> str:
        return urlsplit(self.base_url).hostname or "oeee.cafe"

    @property
    def cookie_file(self) -> Path:
        return self.state_dir / "cookies.lwp"

    @property
    def push_token_file(self) -> Path:
        return self.state_dir / "push_token.json"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
