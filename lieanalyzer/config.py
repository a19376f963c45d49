"""
LieAnalyzer Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Remote classifier ---
    LLM_PROVIDER: str = os.getenv("LIEANALYZER_LLM_PROVIDER", "gemini")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # --- Analysis ---
    DEFAULT_MODE: str = os.getenv("LIEANALYZER_DEFAULT_MODE", "remote")
    MAX_CHARS: int = int(os.getenv("LIEANALYZER_MAX_CHARS", "12000"))
    PREVIEW_CHARS: int = int(os.getenv("LIEANALYZER_PREVIEW_CHARS", "480"))

    # --- Uploads ---
    MAX_UPLOAD_BYTES: int = int(
        os.getenv("LIEANALYZER_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))
    )

    # --- Cache ---
    CACHE_TTL_SECONDS: int = int(os.getenv("LIEANALYZER_CACHE_TTL", "3600"))

    # --- Server ---
    HOST: str = os.getenv("LIEANALYZER_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("LIEANALYZER_PORT", "8000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("LIEANALYZER_CORS_ORIGINS", "*")


settings = Settings()
