from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from arbscope.config.constants import (
    API_TIMEOUT_SECONDS,
    DEFAULT_LLM_MODEL,
    POLYMARKET_BOOK_CONCURRENCY,
)


@dataclass
class ExchangeAuth:
    api_key: Optional[str] = None
    base_url: Optional[str] = None


@dataclass
class Fetch:
    timeout_seconds: float = float(API_TIMEOUT_SECONDS)
    concurrency: int = POLYMARKET_BOOK_CONCURRENCY
    max_retries: int = 3
    initial_delay: float = 0.5


@dataclass
class Settings:
    polymarket: ExchangeAuth = field(
        default_factory=lambda: ExchangeAuth(
            api_key=os.environ.get("POLYMARKET_API_KEY"),
            base_url=os.environ.get("POLYMARKET_BASE_URL"),
        )
    )
    fetch: Fetch = field(default_factory=Fetch)
    openai_model: str = os.environ.get("OPENAI_MODEL", DEFAULT_LLM_MODEL)
    env: str = os.environ.get("ARBSCOPE_ENV", "dev")


settings = Settings()
