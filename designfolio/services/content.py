"""Helpers shared by the content endpoints."""

import re
from typing import Any

from pydantic import BaseModel

from designfolio.core.errors import ValidationFailed

_NON_WORD = re.compile(r"[^\w\s-]")
_SEPARATORS = re.compile(r"[\s_-]+")


def generate_slug(text: str | None) -> str:
    """URL-friendly slug: lowercase, punctuation dropped, runs of space/_/- become one dash."""
    if not text:
        return ""
    slug = _NON_WORD.sub("", text.lower().strip())
    slug = _SEPARATORS.sub("-", slug)
    return slug.strip("-")


def apply_updates(row: Any, body: BaseModel) -> dict[str, Any]:
    """
    Copy fields the client actually sent onto ``row``.

    Raises ValidationFailed when the body carries no fields.
    """
    changes = body.model_dump(mode="json", exclude_unset=True)
    if not changes:
        raise ValidationFailed("No valid fields to update!")
    for name, value in changes.items():
        setattr(row, name, value)
    return changes
