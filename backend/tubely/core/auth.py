"""
Tubely Authentication Module

Verifies the bearer tokens sent by clients and exposes FastAPI dependencies
that resolve the authenticated user ID. Tokens are HS256 JWTs issued by
``tubely-access`` whose subject is the user ID.

Usage:
    ```python
    from fastapi import Depends
    from tubely.core.auth import get_current_user_id

    @router.get("/protected")
    async def protected_route(user_id: str = Depends(get_current_user_id)):
        return {"user_id": user_id}
    ```
"""

import logging

from datetime import timedelta

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tubely.config import Settings, get_settings
from tubely.core.errors import AuthenticationError
from tubely.utils.security import (
    extract_token_from_header,
    generate_jwt_token,
    validate_jwt_token,
)


# Configure module logger
logger = logging.getLogger(__name__)


# Declares the Bearer scheme in OpenAPI. auto_error is off: the raw header is
# parsed by get_bearer_token so every token failure is an AuthenticationError.
security = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication.",
    auto_error=False,
)


def get_bearer_token(authorization_header: str | None) -> str:
    """
    Extract the token from a raw Authorization header value.

    Raises:
        AuthenticationError: If the header is missing or not ``Bearer <token>``.
    """
    token = extract_token_from_header(authorization_header)
    if token is None:
        raise AuthenticationError("Couldn't find JWT")
    return token


def verify_access_token(token: str, settings: Settings) -> str:
    """
    Verify an access token and return the user ID it was issued for.

    Args:
        token: The JWT string.
        settings: Settings carrying the secret, algorithm and issuer.

    Returns:
        str: The ``sub`` claim.

    Raises:
        AuthenticationError: If the token is invalid, expired or malformed.
    """
    payload = validate_jwt_token(
        token,
        settings.jwt_secret,
        issuer=settings.jwt_issuer,
        algorithm=settings.jwt_algorithm,
    )
    if payload is None:
        raise AuthenticationError("Couldn't validate JWT")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Couldn't validate JWT")

    return user_id


def create_access_token(user_id: str, settings: Settings) -> str:
    """Issue an access token for ``user_id`` using the configured lifetime."""
    token = generate_jwt_token(
        user_id,
        settings.jwt_secret,
        issuer=settings.jwt_issuer,
        expires_delta=timedelta(hours=settings.jwt_expiration_hours),
        algorithm=settings.jwt_algorithm,
    )
    logger.info("Created access token for user: %s", user_id)
    return token


async def get_current_user_id(
    request: Request,
    settings: Settings = Depends(get_settings),
    _credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """
    FastAPI dependency resolving the authenticated user ID from the
    ``Authorization`` header.

    Raises:
        AuthenticationError: On a missing or invalid bearer token.
    """
    token = get_bearer_token(request.headers.get("Authorization"))
    return verify_access_token(token, settings)
