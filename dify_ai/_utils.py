"""Shared helpers."""

from typing import Any
import uuid


def generate_id() -> str:
    """Short random id for responses the upstream leaves unnamed."""
    return uuid.uuid4().hex[:16]


def _build_body(**kwargs: Any) -> dict:
    """Build a request body dict, omitting None values."""
    return {k: v for k, v in kwargs.items() if v is not None}
