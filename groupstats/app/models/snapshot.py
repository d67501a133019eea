"""
models/snapshot.py — Snapshot table definition.

A snapshot is one hiscores reading for a player. Besides its own columns
it carries a rank column and a value column for every metric in
constants.metrics.ALL_METRICS, so the table is declared from that list
rather than column by column.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, Integer, func
from sqlalchemy.orm import relationship

from groupstats.app.constants.metrics import ALL_METRICS, get_rank_key, get_value_key
from groupstats.app.extensions import db


def _metric_columns() -> list[Column]:
    columns = []
    for metric in ALL_METRICS:
        columns.append(Column(get_rank_key(metric), Integer, nullable=False, default=-1))
        columns.append(Column(get_value_key(metric), BigInteger, nullable=False, default=-1))
    return columns


snapshots_table = db.Table(
    "snapshots",
    Column("id", Integer, primary_key=True),
    Column(
        "player_id",
        Integer,
        ForeignKey("players.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    ),
    Column("imported_at", DateTime(timezone=True), nullable=True),
    *_metric_columns(),
    # Latest-snapshot lookups group by player and take MAX(created_at).
    Index("idx_snapshots_player_created", "player_id", "created_at"),
)


class Snapshot(db.Model):
    __table__ = snapshots_table

    player = relationship("Player")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Snapshot id={self.id} player_id={self.player_id}>"
