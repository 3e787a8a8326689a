"""
Sparse update statements.

Only the fields a caller explicitly supplied are written; presence is
what counts, so an empty string is a legitimate new value.  Validation
happens here, before any statement exists, so malformed input never
reaches the database.
"""
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Update, update

from app.exceptions import ValidationError
from app.models import User

# Wire field -> User column attribute
USER_UPDATE_COLUMNS: dict[str, str] = {
    "username": "username",
    "name": "display_name",
    "token": "token",
}


def parse_identifier(raw: str | int | None, entity: str = "id") -> int:
    """Return *raw* as a positive-or-zero integer id, or raise ValidationError."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        if raw < 0:
            raise ValidationError(f"{entity} must be a numeric identifier")
        return raw
    if raw is None:
        raise ValidationError(f"{entity} is required")
    text = str(raw).strip()
    if not text:
        raise ValidationError(f"{entity} is required")
    if not (text.isascii() and text.isdigit()):
        raise ValidationError(f"{entity} must be a numeric identifier")
    return int(text)


def build_partial_update(
    model,
    entity_id: int,
    fields: Mapping[str, Any],
    column_map: Mapping[str, str],
) -> Update:
    """
    Build ``UPDATE <model> SET ... WHERE id = :entity_id`` for the supplied
    *fields* only.

    Raises ValidationError when *fields* is empty or names a key that is
    not in *column_map*; no statement is built in either case.
    """
    if not fields:
        raise ValidationError("No fields supplied for update")

    unknown = sorted(set(fields) - set(column_map))
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(unknown)}")

    values = {column_map[key]: value for key, value in fields.items()}
    return update(model).where(model.id == entity_id).values(**values)


def build_user_update(user_id: int, fields: Mapping[str, Any]) -> Update:
    return build_partial_update(User, user_id, fields, USER_UPDATE_COLUMNS)
