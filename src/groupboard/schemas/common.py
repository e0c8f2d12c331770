"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Result(BaseModel, Generic[T]):
    """Uniform response envelope.

    Successful calls carry ``value``; failures carry ``error`` and a
    machine-readable ``code`` and are rendered by the exception handlers.
    """

    ok: bool = True
    value: T | None = None
    error: str | None = None
    code: str | None = None


def ok(value: object = None) -> Result:
    """Wrap ``value`` in a successful envelope."""
    return Result(ok=True, value=value)


class ErrorBody(BaseModel):
    """Body returned for every domain error."""

    ok: bool = Field(default=False)
    error: str
    code: str
