"""
models/player.py — Player table definition.

`username` is always stored standardized (lowercase, see
player_service.standardize); `display_name` keeps the original casing.
`updated_at` is the time of the player's last stats refresh.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupstats.app.extensions import db


class Player(db.Model):
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(primary_key=True)

    username: Mapped[str] = mapped_column(
        String(12),
        nullable=False,
        unique=True,
    )

    display_name: Mapped[str] = mapped_column(
        String(12),
        nullable=False,
    )

    # unknown | regular | ironman | hardcore | ultimate
    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="unknown",
        server_default="unknown",
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
    )

    # ── Relationships ──────────────────────────────────────────────────────

    memberships: Mapped[list["Membership"]] = relationship(  # noqa: F821
        "Membership",
        back_populates="player",
        passive_deletes=True,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Player id={self.id} username={self.username!r}>"
