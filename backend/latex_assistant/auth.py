import hmac
from typing import Optional

from fastapi import Depends, HTTPException, Request

from .config import Settings
from .deps import get_settings


def bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def token_matches(token: str, known_tokens) -> bool:
    # Check every token so timing does not depend on which one matched.
    matched = False
    for known in known_tokens:
        if hmac.compare_digest(token.encode("utf-8"), known.encode("utf-8")):
            matched = True
    return matched


def is_authenticated(request: Request, settings: Settings = Depends(get_settings)) -> bool:
    """FastAPI dependency: does the caller present a known API token?"""
    if settings.auth_disabled:
        return True
    token = bearer_token(request)
    return token is not None and token_matches(token, settings.api_tokens)


def require_auth(authenticated: bool = Depends(is_authenticated)) -> None:
    """FastAPI dependency for routes that only serve signed-in callers."""
    if not authenticated:
        raise HTTPException(status_code=401, detail="Unauthorized")
