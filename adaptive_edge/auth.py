"""
API key authentication.

Each key maps to a caller id.  The caller id is what A-B experiments assign
variants to, so a caller keeps the same variant across keys and restarts.

Keys come from the environment:
    API_KEY_USER1 … API_KEY_USER5    → caller ids "user1" … "user5"
    API_KEYS="key-a:alice,key-b:bob" → arbitrary caller ids
Admin callers are listed in ADMIN_CALLERS (comma-separated, default "user1").
"""

from fastapi import Security, HTTPException, status
from fastapi.security import APIKeyHeader
import os
from typing import Dict, FrozenSet
from dotenv import load_dotenv

load_dotenv()

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_valid_api_keys() -> Dict[str, str]:
    """Load key → caller id mapping from environment variables"""
    keys: Dict[str, str] = {}

    for i in range(1, 6):
        key = os.getenv(f"API_KEY_USER{i}")
        if key:
            keys[key] = f"user{i}"

    for pair in filter(None, (p.strip() for p in os.getenv("API_KEYS", "").split(","))):
        key, sep, caller = pair.partition(":")
        if not sep or not key or not caller:
            raise ValueError(f"Malformed API_KEYS entry {pair!r}; expected 'key:caller_id'")
        keys[key] = caller

    if not keys:
        # Development fallback (never use in production)
        if os.getenv("ENVIRONMENT") == "development":
            keys["dev-key-insecure"] = "dev_user"
        else:
            raise ValueError("No API keys configured! Set API_KEY_USER1 or API_KEYS in environment")

    return keys


def get_admin_callers() -> FrozenSet[str]:
    raw = os.getenv("ADMIN_CALLERS", "user1")
    admins = {c.strip() for c in raw.split(",") if c.strip()}
    if os.getenv("ENVIRONMENT") == "development":
        admins.add("dev_user")
    return frozenset(admins)


VALID_API_KEYS = get_valid_api_keys()
ADMIN_CALLERS = get_admin_callers()


async def verify_api_key(api_key: str = Security(API_KEY_HEADER)) -> str:
    """
    Verify API key and return the caller id

    Usage in FastAPI routes:
        @app.post("/api/recommendations")
        async def route(caller: str = Depends(verify_api_key)):
            ...
    """
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required. Include 'X-API-Key' header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    caller = VALID_API_KEYS.get(api_key)
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return caller


async def verify_admin_api_key(caller: str = Security(verify_api_key)) -> str:
    """Admin-only routes (callers listed in ADMIN_CALLERS)"""
    if caller not in ADMIN_CALLERS:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    return caller
