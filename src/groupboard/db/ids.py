# src/groupboard/db/ids.py
"""Identifier helpers for database models."""

from uuid import uuid4


def new_id() -> str:
    """Return a fresh opaque row identifier."""
    return str(uuid4())
