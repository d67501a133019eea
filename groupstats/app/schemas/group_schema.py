"""
schemas/group_schema.py — Marshmallow schemas for group service inputs.

Validation responsibility:
  - This file: shape of member lists and pagination (types, required keys,
    lengths, ranges).
  - services/player_service.py: username format (is_valid_username).
  - services/group_service.py: everything that needs the database
    (name taken, membership, verification).

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate

from groupstats.app.models.membership import DEFAULT_ROLE


DEFAULT_LIMIT = 20
MAX_LIMIT = 10000


def _validate_non_empty_after_trim(value: str) -> None:
    """Raises ValidationError if the string is blank or contains only whitespace."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class MemberSchema(Schema):
    """
    One element of a members list: {"username": "Zezima", "role": "leader"}.

    `role` is optional and defaults to "member". Extra keys (for example a
    display name echoed back by a client) are ignored.
    """

    class Meta:
        unknown = EXCLUDE

    username = fields.Str(
        required=True,
        validate=_validate_non_empty_after_trim,
    )

    role = fields.Str(
        load_default=DEFAULT_ROLE,
        allow_none=False,
        validate=[
            validate.Length(
                min=1,
                max=40,
                error="Role must be between 1 and 40 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )


class PaginationSchema(Schema):
    """{"limit": 20, "offset": 0} — both optional."""

    class Meta:
        unknown = EXCLUDE

    limit = fields.Int(
        load_default=DEFAULT_LIMIT,
        strict=True,
        validate=validate.Range(
            min=1,
            max=MAX_LIMIT,
            error=f"limit must be between 1 and {MAX_LIMIT}.",
        ),
    )

    offset = fields.Int(
        load_default=0,
        strict=True,
        validate=validate.Range(
            min=0,
            error="offset must not be negative.",
        ),
    )
