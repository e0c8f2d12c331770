"""Mint bearer tokens for local development.

Production tokens come from the identity provider; this signs a token with
the same secret so the API can be exercised without one.

    python -m groupboard.scripts.tokens <actor-id> [--email EMAIL]
"""
from __future__ import annotations

import argparse

from groupboard.core.security import create_access_token


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Mint a development bearer token")
    parser.add_argument("actor_id", help="Subject to put in the token")
    parser.add_argument("--email", help="Optional email claim")
    args = parser.parse_args(argv)
    print(create_access_token(args.actor_id, email=args.email))


if __name__ == "__main__":
    main()
