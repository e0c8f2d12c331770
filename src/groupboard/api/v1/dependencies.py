"""Shared API dependencies for authentication and common functionality."""

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from groupboard.core.errors import Unauthenticated
from groupboard.core.security import IdentityClaims, decode_access_token
from groupboard.db.row_security import bind_actor, system_operation
from groupboard.db.session import get_db
from groupboard.models import Actor

logger = logging.getLogger(__name__)

# HTTP Bearer scheme; missing credentials become our own Unauthenticated error
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _provision_actor(db: Session, claims: IdentityClaims) -> Actor:
    """Create the actor row for a first-time identity.

    Nobody may insert actors through the row policy, so this runs as a
    system operation.
    """
    actor = Actor(id=claims.actor_id, email=claims.email)
    try:
        with system_operation(db, "actor provisioning"):
            db.add(actor)
        db.commit()
    except IntegrityError:
        # A parallel first request provisioned the same identity.
        db.rollback()
        existing = db.get(Actor, claims.actor_id)
        if existing is None:
            raise
        return existing
    logger.info("Provisioned actor %s", claims.actor_id)
    return actor


def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> Actor:
    """Resolve the bearer token to an actor and bind it to the session.

    Every later query on ``db`` is filtered by the row policies for this
    actor.

    Raises:
        Unauthenticated: If the token is missing, invalid or expired
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    claims = decode_access_token(credentials.credentials)

    bind_actor(db, claims.actor_id)
    actor = db.get(Actor, claims.actor_id)
    if actor is None:
        actor = _provision_actor(db, claims)
    return actor


# Type alias for current actor dependency
CurrentActorDep = Annotated[Actor, Depends(get_current_actor)]
