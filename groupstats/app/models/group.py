"""
models/group.py — Group table definition.

No business logic. No imports from services.

Deleting a group deletes its memberships (ORM cascade + ON DELETE CASCADE).
Competitions outlive their group: their group_id is set to NULL.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupstats.app.extensions import db


class Group(db.Model):
    __tablename__ = "groups"

    __table_args__ = (
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_groups_name_nonempty",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Stored sanitized (see group_service.sanitize_name).
    name: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        unique=True,
    )

    clan_chat: Mapped[str | None] = mapped_column(
        String(12),
        nullable=True,
    )

    # bcrypt hash of the verification code. Never serialised.
    verification_hash: Mapped[str] = mapped_column(
        String(60),
        nullable=False,
    )

    verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    # Recomputed by group_service.refresh_scores().
    score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    memberships: Mapped[list["Membership"]] = relationship(  # noqa: F821
        "Membership",
        back_populates="group",
        cascade="all, delete",
    )

    competitions: Mapped[list["Competition"]] = relationship(  # noqa: F821
        "Competition",
        back_populates="group",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Group id={self.id} name={self.name!r}>"
