"""
Security helpers for Tubely.

- Access tokens: HS256 JWTs with ``iss``, ``sub`` (user ID), ``iat``, ``exp``
- Bearer header parsing
- Random names for staged uploads, stored objects and public thumbnails;
  names never contain client-supplied text
"""

import logging
import secrets

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError


logger = logging.getLogger(__name__)

# 32 random bytes -> 64 hex characters
RANDOM_NAME_BYTES = 32

DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)


def generate_jwt_token(
    subject: str,
    secret_key: str,
    issuer: str,
    expires_delta: timedelta | None = None,
    algorithm: str = "HS256",
) -> str:
    """
    Sign an access token for ``subject``.

    Raises:
        ValueError: If ``subject`` or ``secret_key`` is empty.

    Example:
        >>> token = generate_jwt_token("user-123", secret, "tubely-access")
    """
    if not subject or not secret_key:
        raise ValueError("Token subject and secret key are required")

    issued_at = datetime.now(UTC)
    claims = {
        "iss": issuer,
        "sub": subject,
        "iat": issued_at,
        "exp": issued_at + (expires_delta or DEFAULT_TOKEN_LIFETIME),
    }
    return jwt.encode(claims, secret_key, algorithm=algorithm)


def validate_jwt_token(
    token: str,
    secret_key: str,
    issuer: str,
    algorithm: str = "HS256",
) -> dict[str, Any] | None:
    """
    Decode ``token`` if its signature, issuer and expiry check out.

    ``exp`` and ``sub`` must be present. Returns None on any failure; the reason
    is logged at WARNING, never raised.
    """
    if not token or not secret_key:
        logger.warning("Rejected token: empty token or secret")
        return None

    try:
        return jwt.decode(
            token,
            secret_key,
            algorithms=[algorithm],
            issuer=issuer,
            options={"require_exp": True, "require_sub": True},
        )
    except ExpiredSignatureError:
        reason = "expired"
    except JWTClaimsError as e:
        reason = f"bad claims ({e})"
    except JWTError as e:
        reason = str(e)

    logger.warning("Rejected token: %s", reason)
    return None


def extract_token_from_header(authorization_header: str | None) -> str | None:
    """
    Return the token from ``Bearer <token>``, or None if the header is missing
    or uses another scheme.

    >>> extract_token_from_header("Bearer eyJhbGciOi...")
    'eyJhbGciOi...'
    """
    if not authorization_header:
        return None

    scheme, _, token = authorization_header.partition(" ")
    if scheme.lower() != "bearer" or not token or " " in token:
        return None
    return token


def generate_random_name(nbytes: int = RANDOM_NAME_BYTES) -> str:
    """``nbytes`` of CSPRNG output as lowercase hex (staged files, object keys)."""
    if nbytes <= 0:
        raise ValueError("nbytes must be positive")
    return secrets.token_hex(nbytes)


def generate_urlsafe_name(nbytes: int = RANDOM_NAME_BYTES) -> str:
    """``nbytes`` of CSPRNG output as URL-safe base64 (public thumbnail names)."""
    if nbytes <= 0:
        raise ValueError("nbytes must be positive")
    return secrets.token_urlsafe(nbytes)
