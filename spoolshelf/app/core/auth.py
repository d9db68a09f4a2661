from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header

from spoolshelf.app.core.config import settings
from spoolshelf.app.core.errors import AuthError

logger = logging.getLogger(__name__)


def parse_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    The scheme is matched case-sensitively and the token is the first word
    after it; anything else yields None.
    """
    if not authorization:
        return None
    parts = authorization.split(" ")
    if parts[0] != "Bearer" or len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def token_matches(token: str | None, expected: str) -> bool:
    """Exact comparison against the configured edit token.

    An unset edit token never matches, so a fresh install is read-only.
    """
    if not token or not expected:
        return False
    return secrets.compare_digest(token.encode(), expected.encode())


def edit_token_accepted(authorization: str | None) -> bool:
    return token_matches(parse_bearer_token(authorization), settings.edit_token)


async def require_edit_token(
    authorization: Annotated[str | None, Header(alias="Authorization")] = None,
) -> str:
    """Dependency guarding every mutating endpoint."""
    token = parse_bearer_token(authorization)
    if not token_matches(token, settings.edit_token):
        logger.warning("Rejected edit token (%s)", "missing" if token is None else "mismatch")
        raise AuthError()
    return token


def RequireEditToken():
    """Convenience dependency for routes that change the inventory."""
    return Depends(require_edit_token)
