"""
Centralised settings loader.

Values come from the environment (or `.env`) through pydantic-settings.
"""

from __future__ import annotations
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


# ------------------------------------------------------------------ #
#  Master settings model
# ------------------------------------------------------------------ #
class _Settings(BaseSettings):
    # ─── runtime ─────────────────────────────────────────────────────
    env_name: str = Field("local", validation_alias="ENV_NAME")

    # ─── fitness platform backend ───────────────────────────────────
    backend_url: str = Field("https://owntrainer.uz", validation_alias="BACKEND_URL")
    request_timeout: float = Field(15.0, validation_alias="REQUEST_TIMEOUT")

    # keep records in the cache after a failed create/update (demo only)
    demo_fallback: bool = Field(False, validation_alias="DEMO_FALLBACK")

    # ─── credentials ─────────────────────────────────────────────────
    token_cookie_name: str = Field("accessToken", validation_alias="TOKEN_COOKIE_NAME")

    # ─── listing / dashboard tables ─────────────────────────────────
    page_size: int = Field(10, validation_alias="PAGE_SIZE")

    # allow other teammates’ env-vars without crashing
    model_config = {
        "extra": "ignore",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }


# ------------------------------------------------------------------ #
#  Cached singleton accessor
# ------------------------------------------------------------------ #
@lru_cache
def _cached() -> _Settings:  # pragma: no cover
    return _Settings()  # type: ignore[call-arg]


settings: _Settings = _cached()
