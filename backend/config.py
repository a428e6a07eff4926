import os
from typing import Literal

from pydantic_settings import BaseSettings


def _parse_cors_origins() -> list[str] | None:
    """Parse CORS_ORIGINS env var as comma-separated string or JSON list."""
    raw = os.environ.get("CORS_ORIGINS")
    if not raw:
        return None
    if raw.startswith("["):
        import json
        return json.loads(raw)
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseSettings):
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    debug: bool = False

    # Which evidentiary schema missing keywords carry for this deployment
    gap_schema: Literal["risk", "confidence"] = "risk"

    # LLM call parameters
    llm_timeout_seconds: float = 25.0
    scoring_temperature: float = 0.1
    rewrite_temperature: float = 0.2
    audit_temperature: float = 0.2
    scoring_max_tokens: int = 2000
    rewrite_max_tokens: int = 3000
    audit_max_tokens: int = 4096
    max_rewrite_keywords: int = 5

    # Input limits
    max_upload_size_mb: int = 5
    min_job_description_length: int = 200
    enforce_min_job_description: bool = False  # client enforces by default

    rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True
    cors_origins: list[str] = ["*"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "protected_namespaces": ("settings_",)}


_cors_override = _parse_cors_origins()
settings = Settings(**{"cors_origins": _cors_override} if _cors_override else {})
