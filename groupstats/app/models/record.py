"""
models/record.py — Record table definition.

A record is a player's best gain of a metric within a period.
One row per (player, period, metric).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupstats.app.extensions import db


class Record(db.Model):
    __tablename__ = "records"

    __table_args__ = (
        UniqueConstraint("player_id", "period", "metric", name="uq_records_player_period_metric"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    period: Mapped[str] = mapped_column(String(20), nullable=False)

    metric: Mapped[str] = mapped_column(String(40), nullable=False)

    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    player: Mapped["Player"] = relationship("Player")  # noqa: F821

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Record player_id={self.player_id} "
            f"{self.period}/{self.metric}={self.value}>"
        )
