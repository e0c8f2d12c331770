"""Bearer token helpers for the external identity provider.

Tokens are HS256 JWTs whose ``sub`` claim is the stable actor id issued by
the identity provider. The service trusts that id and never re-verifies the
underlying credentials.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from groupboard.core.errors import Unauthenticated
from groupboard.core.settings import settings


@dataclass(frozen=True)
class IdentityClaims:
    """Identity extracted from a verified token."""

    actor_id: str
    email: str | None = None


def create_access_token(
    subject: str,
    *,
    email: str | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Mint a signed token for ``subject``.

    Used by development tooling and tests; production tokens come from the
    identity provider sharing the same secret.
    """
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode: dict[str, Any] = {"sub": subject, "exp": expire}
    if email is not None:
        to_encode["email"] = email
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience
    if extra_claims:
        to_encode.update(extra_claims)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> IdentityClaims:
    """Verify ``token`` and return its identity claims.

    Raises:
        Unauthenticated: If the token is invalid, expired or has no subject.
    """
    options = {"verify_aud": settings.jwt_audience is not None}
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except JWTError as err:
        raise Unauthenticated() from err

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise Unauthenticated()
    email = payload.get("email")
    return IdentityClaims(actor_id=subject, email=email if isinstance(email, str) else None)
