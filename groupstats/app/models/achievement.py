"""
models/achievement.py — Achievement table definition.

An achievement is unlocked once per player and type (e.g. "99 Magic").
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupstats.app.extensions import db


class Achievement(db.Model):
    __tablename__ = "achievements"

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"),
        primary_key=True,
    )

    type: Mapped[str] = mapped_column(String(80), primary_key=True)

    metric: Mapped[str] = mapped_column(String(40), nullable=False)

    threshold: Mapped[int] = mapped_column(BigInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    player: Mapped["Player"] = relationship("Player")  # noqa: F821

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Achievement player_id={self.player_id} type={self.type!r}>"
