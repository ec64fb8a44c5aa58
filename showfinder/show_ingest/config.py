"""
Configuration for the show ingest job.

Everything operational is env-driven (cron / Prefect worker environment, or a
local .env). Defaults mirror what the job has been running with in production:
7 sources per run, 25s page deadline, 30s extraction deadline, 100k-char
windows, at most 3 windows per page.

The extraction credential is the only knob without a usable default; a run
without it is refused up front (see IngestSettings.validate).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError

load_dotenv()

PROVIDER_DEFAULTS = {
    "gemini": {
        "model": "gemini-1.5-flash",
        "endpoint": "https://generativelanguage.googleapis.com/v1beta",
        "key_env": "GOOGLE_AI_KEY",
    },
    "openai": {
        "model": "gpt-4.1-mini",
        "endpoint": None,
        "key_env": "OPENAI_API_KEY",
    },
}


# -----------------------------
# Env helpers
# -----------------------------
def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)) or str(default))
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, str(default)) or str(default))
    except Exception:
        return default


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return tuple(p.strip().lower() for p in raw.split(",") if p.strip())


@dataclass
class IngestSettings:
    extraction_provider: str = "gemini"
    extraction_api_key: Optional[str] = None
    extraction_endpoint: Optional[str] = PROVIDER_DEFAULTS["gemini"]["endpoint"]
    extraction_model: str = PROVIDER_DEFAULTS["gemini"]["model"]

    batch_size: int = 7
    fetch_timeout_s: float = 25.0
    extract_timeout_s: float = 30.0
    max_chunk_chars: int = 100_000
    max_chunks: int = 3
    min_body_chars: int = 100
    source_delay_s: float = 2.0

    # Hosts whose listings sit under STATE headings get the state-heading prompt.
    state_heading_hosts: Tuple[str, ...] = field(default_factory=lambda: ("sportscollectorsdigest",))

    @classmethod
    def from_env(cls) -> "IngestSettings":
        provider = (_env_str("EXTRACTION_PROVIDER", "gemini") or "gemini").lower()
        defaults = PROVIDER_DEFAULTS.get(provider, {})
        api_key = _env_str("EXTRACTION_API_KEY")
        if api_key is None and defaults.get("key_env"):
            api_key = _env_str(defaults["key_env"])

        return cls(
            extraction_provider=provider,
            extraction_api_key=api_key,
            extraction_endpoint=_env_str("EXTRACTION_ENDPOINT", defaults.get("endpoint")),
            extraction_model=_env_str("EXTRACTION_MODEL", defaults.get("model")) or "",
            batch_size=_env_int("SHOW_INGEST_BATCH_SIZE", 7),
            fetch_timeout_s=_env_float("SHOW_INGEST_FETCH_TIMEOUT_S", 25.0),
            extract_timeout_s=_env_float("SHOW_INGEST_EXTRACT_TIMEOUT_S", 30.0),
            max_chunk_chars=_env_int("SHOW_INGEST_MAX_CHUNK_CHARS", 100_000),
            max_chunks=_env_int("SHOW_INGEST_MAX_CHUNKS", 3),
            min_body_chars=_env_int("SHOW_INGEST_MIN_BODY_CHARS", 100),
            source_delay_s=_env_float("SHOW_INGEST_SOURCE_DELAY_S", 2.0),
            state_heading_hosts=_env_list("SHOW_INGEST_STATE_HEADING_HOSTS", ("sportscollectorsdigest",)),
        )

    def validate(self) -> None:
        """Raise ConfigError for anything that makes a run pointless."""
        if self.extraction_provider not in PROVIDER_DEFAULTS:
            raise ConfigError(
                f"EXTRACTION_PROVIDER={self.extraction_provider!r} is not supported "
                f"(expected one of: {', '.join(sorted(PROVIDER_DEFAULTS))})"
            )
        if not self.extraction_api_key:
            key_env = PROVIDER_DEFAULTS[self.extraction_provider]["key_env"]
            raise ConfigError(f"Missing extraction credential: set EXTRACTION_API_KEY or {key_env}")
        if not self.extraction_model:
            raise ConfigError("EXTRACTION_MODEL is empty")
        if self.max_chunk_chars <= 0:
            raise ConfigError("SHOW_INGEST_MAX_CHUNK_CHARS must be positive")
        if self.max_chunks <= 0:
            raise ConfigError("SHOW_INGEST_MAX_CHUNKS must be positive")
