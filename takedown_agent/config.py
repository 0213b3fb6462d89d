"""Environment configuration and logging setup."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


_HERE = Path(__file__).resolve()
_PROJECT_ROOT = _HERE.parents[1]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 TakedownAgent/1.0"
)
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

BRAND_STRATEGIES = ("static", "model")


def load_env() -> None:
    # Real environment variables win over the .env file.
    load_dotenv(_PROJECT_ROOT / ".env", override=False)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-numeric %s=%r", name, raw)
        return default


def _int_env(name: str, default: int) -> int:
    return max(1, int(_float_env(name, float(default))))


def _optional_env(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _flag_env(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw not in ("0", "false", "no", "off")


def _cors_origins() -> list[str]:
    raw = os.getenv("TAKEDOWN_CORS_ORIGINS", "").strip()
    if not raw:
        return ["http://localhost:3000"]
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass(frozen=True)
class Settings:
    whois_api_key: str | None = None
    ipapi_key: str | None = None
    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    brand_strategy: str = "static"
    upstream_timeout_s: float = 8.0
    whois_attempts: int = 3
    whois_backoff_s: float = 1.0
    inspect_pages: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])

    @classmethod
    def from_env(cls) -> "Settings":
        strategy = os.getenv("TAKEDOWN_BRAND_STRATEGY", "static").strip().lower()
        if strategy not in BRAND_STRATEGIES:
            logging.getLogger(__name__).warning(
                "Unknown TAKEDOWN_BRAND_STRATEGY=%r, using 'static'", strategy
            )
            strategy = "static"

        return cls(
            whois_api_key=_optional_env("WHOIS_API_KEY"),
            ipapi_key=_optional_env("IPAPI_KEY"),
            gemini_api_key=_optional_env("GEMINI_API_KEY"),
            gemini_model=_optional_env("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            brand_strategy=strategy,
            upstream_timeout_s=_float_env("TAKEDOWN_UPSTREAM_TIMEOUT_S", 8.0),
            whois_attempts=_int_env("TAKEDOWN_WHOIS_ATTEMPTS", 3),
            whois_backoff_s=_float_env("TAKEDOWN_WHOIS_BACKOFF_S", 1.0),
            inspect_pages=_flag_env("TAKEDOWN_INSPECT_PAGES", True),
            user_agent=_optional_env("TAKEDOWN_USER_AGENT") or DEFAULT_USER_AGENT,
            log_level=(_optional_env("TAKEDOWN_LOG_LEVEL") or "INFO").upper(),
            cors_origins=_cors_origins(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
