"""Bootstrap or revoke platform admins from the command line.

The first platform admin cannot be granted through the API, because only a
platform admin may grant the role. This script uses an unbound session,
which acts as the trusted service role.

    python -m groupboard.scripts.grant_admin <actor-id> [--email EMAIL]
    python -m groupboard.scripts.grant_admin <actor-id> --revoke
"""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.orm import Session

from groupboard.db.session import SessionLocal
from groupboard.models import Actor, PlatformRole

logger = logging.getLogger("groupboard.scripts.grant_admin")


def grant(db: Session, actor_id: str, email: str | None = None) -> bool:
    """Grant the platform admin role, creating the actor if needed.

    Returns ``False`` when the actor already held the role.
    """
    if db.get(Actor, actor_id) is None:
        db.add(Actor(id=actor_id, email=email))
        db.flush()
    if db.get(PlatformRole, actor_id) is not None:
        return False
    db.add(PlatformRole(actor_id=actor_id, granted_by=None))
    db.commit()
    return True


def revoke(db: Session, actor_id: str) -> bool:
    role = db.get(PlatformRole, actor_id)
    if role is None:
        return False
    db.delete(role)
    db.commit()
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Manage platform admins")
    parser.add_argument("actor_id", help="Identity provider subject of the actor")
    parser.add_argument("--email", help="Email to record if the actor does not exist yet")
    parser.add_argument("--revoke", action="store_true", help="Revoke instead of grant")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    db = SessionLocal()
    try:
        if args.revoke:
            changed = revoke(db, args.actor_id)
            message = "revoked" if changed else "was not a platform admin"
        else:
            changed = grant(db, args.actor_id, args.email)
            message = "granted" if changed else "already a platform admin"
    finally:
        db.close()

    logger.info("%s: %s", args.actor_id, message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
