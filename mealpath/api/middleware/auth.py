"""Bearer-token authentication for API routes.

Resolves the acting account from an ``Authorization: Bearer <jwt>``
header. The role is read from the stored account rather than trusted
from the token, so suspensions and role changes apply immediately.
"""

from __future__ import annotations

import logging

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from mealpath.db.connection import get_db
from mealpath.db.models import Account, AccountStatus
from mealpath.errors import ForbiddenError, UnauthorizedError
from mealpath.services.actors import Actor
from mealpath.services.credentials import decode_token

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    db: Session = Depends(get_db),
) -> Actor:
    """FastAPI dependency returning the authenticated Actor.

    Raises:
        UnauthorizedError: Missing, malformed, expired or unknown-account token.
        ForbiddenError: The account is suspended.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")
    try:
        payload = decode_token(credentials.credentials)
    except jwt.PyJWTError as e:
        logger.info("Rejected access token: %s", e)
        raise UnauthorizedError("Invalid or expired token") from None

    account_id = payload.get("sub")
    account = db.get(Account, account_id) if account_id else None
    if account is None:
        raise UnauthorizedError("Account no longer exists")
    if account.status == AccountStatus.suspended.value:
        raise ForbiddenError("Account is suspended")
    return Actor(account_id=account.id, role=account.role)
