"""Application-wide configuration defaults and helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from stockmemo.domain.errors import ConfigurationError

# Base directory for resolving relative paths.
BASE_DIR = Path.cwd()

DEFAULT_FMP_BASE_URL = "https://financialmodelingprep.com/api/v3"
DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse truthy environment values like '1' or 'true'."""
    if value is None:
        return default
    # Normalize non-string inputs (e.g., int defaults) before parsing.
    if not isinstance(value, str):
        value = str(value)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_float(value: Optional[str], default: float) -> float:
    """Safely parse a float env var, falling back to the default on failure."""
    if value is None:
        return default
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


@dataclass
class Config:
    """Runtime configuration loaded from environment variables."""

    debug: bool = False
    fmp_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    groq_model: str = DEFAULT_GROQ_MODEL
    groq_base_url: str = DEFAULT_GROQ_BASE_URL
    fmp_base_url: str = DEFAULT_FMP_BASE_URL
    proxy_url: Optional[str] = None
    http_timeout: float = 30.0
    output_dir: Path = BASE_DIR / "reports"

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration instance using environment overrides."""
        return cls(
            debug=_to_bool(os.getenv("APP_DEBUG")),
            fmp_api_key=os.getenv("FMP_API_KEY") or None,
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            groq_model=os.getenv("GROQ_MODEL", DEFAULT_GROQ_MODEL),
            groq_base_url=os.getenv("GROQ_BASE_URL", DEFAULT_GROQ_BASE_URL),
            fmp_base_url=os.getenv("FMP_BASE_URL", DEFAULT_FMP_BASE_URL),
            proxy_url=os.getenv("PROXY_URL") or None,
            http_timeout=_to_float(os.getenv("HTTP_TIMEOUT"), 30.0),
            output_dir=Path(os.getenv("OUTPUT_DIR", BASE_DIR / "reports")),
        )

    def has_credentials(self) -> bool:
        return bool(self.fmp_api_key) and bool(self.groq_api_key)

    def require_credentials(self) -> None:
        """Fail fast when either upstream credential is missing."""
        if not self.has_credentials():
            raise ConfigurationError("API keys not configured")

    def ensure_directories(self) -> None:
        """Create directories needed for runtime artifacts."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
