"""
Auth — Optional API Key Validation

Keys come from LIEANALYZER_API_KEYS (comma-separated) and are held
only as SHA-256 hashes. With no keys configured, auth is disabled.
"""

from __future__ import annotations

import hashlib
import os
import secrets
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


def _hash_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode()).hexdigest()


def load_key_hashes(raw: str) -> set[str]:
    return {_hash_key(k.strip()) for k in raw.split(",") if k.strip()}


_VALID_KEY_HASHES: set[str] = load_key_hashes(os.getenv("LIEANALYZER_API_KEYS", ""))

AUTH_ENABLED = len(_VALID_KEY_HASHES) > 0


def _verify_key(api_key: str) -> bool:
    if not api_key:
        return False
    return _hash_key(api_key) in _VALID_KEY_HASHES


async def require_api_key(
    api_key: Optional[str] = Security(API_KEY_HEADER),
) -> Optional[str]:
    """
    FastAPI dependency.

    Returns a short key fingerprint for logging, or None when auth is disabled.
    """
    if not AUTH_ENABLED:
        return None

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing API key. Include X-API-Key header.",
        )

    if not _verify_key(api_key):
        raise HTTPException(status_code=403, detail="Invalid API key.")

    return _hash_key(api_key)[:12]


def generate_api_key() -> str:
    """Generate a new API key for provisioning."""
    return f"la_{secrets.token_urlsafe(32)}"
