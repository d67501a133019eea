"""
errors.py — AppError base class and error code registry.

Every error raised by the groupstats services uses a code defined here.
Do not raise strings or generic exceptions from service code.

Rules:
  - Error codes are a contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - Storage errors (sqlalchemy.exc.*) are not wrapped; they propagate as-is.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
            details: list | dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field    # which input field caused the error
        self.details     = details  # structured payload, e.g. invalid usernames

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


class BadRequestError(AppError):
    """
    The single failure kind of the group service.

    Missing ids, failed verification, unknown metrics/periods and empty
    mandatory results all raise this, always with HTTP status 400.
    """

    def __init__(
            self,
            code: str,
            message: str,
            details: list | dict | None = None,
            field: str | None = None,
    ) -> None:
        super().__init__(code, message, 400, field=field, details=details)


# ── Error Code Registry ────────────────────────────────────────────────────
#
# IMPORTANT: these are the string values exposed to callers.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Input errors ───────────────────────────────────────────────────────
    INVALID_FIELD               = "INVALID_FIELD"
    INVALID_GROUP_ID            = "INVALID_GROUP_ID"
    INVALID_PLAYER_ID           = "INVALID_PLAYER_ID"
    INVALID_GROUP_NAME          = "INVALID_GROUP_NAME"
    INVALID_CLAN_CHAT           = "INVALID_CLAN_CHAT"
    INVALID_PERIOD              = "INVALID_PERIOD"
    INVALID_METRIC              = "INVALID_METRIC"
    INVALID_MEMBERS             = "INVALID_MEMBERS"
    INVALID_USERNAMES           = "INVALID_USERNAMES"
    INVALID_USERNAME            = "INVALID_USERNAME"
    INVALID_ROLE                = "INVALID_ROLE"
    INVALID_VERIFICATION_CODE   = "INVALID_VERIFICATION_CODE"
    NOTHING_TO_EDIT             = "NOTHING_TO_EDIT"

    # ── Verification ───────────────────────────────────────────────────────
    INCORRECT_VERIFICATION_CODE = "INCORRECT_VERIFICATION_CODE"

    # ── Lookup / state errors ──────────────────────────────────────────────
    GROUP_NOT_FOUND             = "GROUP_NOT_FOUND"
    GROUP_NAME_TAKEN            = "GROUP_NAME_TAKEN"
    NO_MEMBERS                  = "NO_MEMBERS"
    ALREADY_MEMBERS             = "ALREADY_MEMBERS"
    NO_TRACKED_PLAYERS          = "NO_TRACKED_PLAYERS"
    NOT_A_MEMBER                = "NOT_A_MEMBER"
    ROLE_UNCHANGED              = "ROLE_UNCHANGED"
    NO_STATS                    = "NO_STATS"
    NO_OUTDATED_MEMBERS         = "NO_OUTDATED_MEMBERS"
