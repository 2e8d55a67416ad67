"""Application settings — loaded from environment variables."""

from __future__ import annotations

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Server ──────────────────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    DEBUG: bool = False

    # ── CORS (workflow editor frontend) ────────────────────────
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # ── Logging ─────────────────────────────────────────────────
    # "text" for local dev, "json" for log shipping.
    LOG_FORMAT: str = "text"
    LOG_LEVEL: str = "INFO"

    # ── Remote analysis service ────────────────────────────────
    # Every function node is executed by POSTing to
    #   {ANALYSIS_BASE_URL}{ANALYSIS_PATH}
    ANALYSIS_BASE_URL: str = "http://localhost:8081"
    ANALYSIS_PATH: str = "/api/analysis"
    ANALYSIS_CHAIN_PATH: str = "/api/analysis/chain"
    ANALYSIS_METADATA_PATH: str = "/api/analysis/metadata"
    ANALYSIS_TIMEOUT_SECONDS: float = 120.0

    # When True, responses that do not match the standard analysis envelope
    # ({analysis_type, results, confidence?, error?}) fail the node.
    # When False, a bare JSON object is accepted as the results payload.
    ANALYSIS_STRICT_RESPONSE_SCHEMA: bool = True

    # Pull function descriptors from the analysis service at startup and
    # merge them over the built-in catalog.
    FUNCTION_METADATA_ON_STARTUP: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @model_validator(mode="after")
    def _normalise(self) -> "Settings":
        """Strip trailing slashes and force leading ones so URL joins stay predictable."""
        object.__setattr__(self, "ANALYSIS_BASE_URL", self.ANALYSIS_BASE_URL.rstrip("/"))
        for attr in ("ANALYSIS_PATH", "ANALYSIS_CHAIN_PATH", "ANALYSIS_METADATA_PATH"):
            value = getattr(self, attr)
            if not value.startswith("/"):
                object.__setattr__(self, attr, "/" + value)
        return self

    @property
    def analysis_url(self) -> str:
        return f"{self.ANALYSIS_BASE_URL}{self.ANALYSIS_PATH}"


settings = Settings()
