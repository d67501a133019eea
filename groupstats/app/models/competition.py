"""
models/competition.py — Competition and Participation table definitions.

A competition may belong to a group (group_id); when the group is deleted
the competition stays and group_id becomes NULL.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupstats.app.extensions import db


class Competition(db.Model):
    __tablename__ = "competitions"

    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_competitions_dates"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    title: Mapped[str] = mapped_column(String(50), nullable=False)

    metric: Mapped[str] = mapped_column(String(40), nullable=False)

    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    group_id: Mapped[int | None] = mapped_column(
        ForeignKey("groups.id", ondelete="SET NULL"),
        nullable=True,
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

    group: Mapped["Group | None"] = relationship(  # noqa: F821
        "Group",
        back_populates="competitions",
    )

    participations: Mapped[list["Participation"]] = relationship(
        "Participation",
        back_populates="competition",
        cascade="all, delete",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Competition id={self.id} title={self.title!r}>"


class Participation(db.Model):
    __tablename__ = "participations"

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"),
        primary_key=True,
    )

    competition_id: Mapped[int] = mapped_column(
        ForeignKey("competitions.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    competition: Mapped["Competition"] = relationship(
        "Competition",
        back_populates="participations",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Participation competition_id={self.competition_id} "
            f"player_id={self.player_id}>"
        )
