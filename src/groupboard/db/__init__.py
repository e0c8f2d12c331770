# src/groupboard/db/__init__.py
"""Database configuration and utilities.

Row security lives in :mod:`groupboard.db.row_security`; it is registered by
:mod:`groupboard.models` once every mapper exists.
"""

from .session import Base, SessionLocal, get_db

__all__ = ["Base", "get_db", "SessionLocal"]
