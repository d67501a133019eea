"""
services/record_service.py — Records leaderboards.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Read-only.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from groupstats.app.models.record import Record
from groupstats.app.services.player_service import format_player


def format_record(record: Record) -> dict:
    return {
        "id": record.id,
        "player_id": record.player_id,
        "period": record.period,
        "metric": record.metric,
        "value": record.value,
        "updated_at": record.updated_at.isoformat() if record.updated_at else None,
        "player": format_player(record.player),
    }


def get_group_leaderboard(
        metric: str,
        period: str,
        player_ids: list[int],
        pagination: dict,
        session: Session,
) -> list[dict]:
    """Returns the best `metric` records of `period` among `player_ids`, highest first."""
    if not player_ids:
        return []

    stmt = (
        select(Record)
        .options(joinedload(Record.player))
        .where(
            Record.player_id.in_(player_ids),
            Record.metric == metric,
            Record.period == period,
        )
        .order_by(Record.value.desc(), Record.id.asc())
        .limit(pagination["limit"])
        .offset(pagination["offset"])
    )

    return [format_record(r) for r in session.execute(stmt).scalars().all()]
