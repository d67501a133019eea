"""
services/achievement_service.py — Achievement lookups.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Read-only.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from groupstats.app.models.achievement import Achievement


def format_achievement(achievement: Achievement) -> dict:
    return {
        "player_id": achievement.player_id,
        "type": achievement.type,
        "metric": achievement.metric,
        "threshold": achievement.threshold,
        "created_at": achievement.created_at.isoformat() if achievement.created_at else None,
    }


def find_all_for_group(
        player_ids: list[int],
        pagination: dict,
        session: Session,
) -> list[Achievement]:
    """Returns the most recent achievements unlocked by any of `player_ids`."""
    if not player_ids:
        return []

    stmt = (
        select(Achievement)
        .where(Achievement.player_id.in_(player_ids))
        .order_by(Achievement.created_at.desc(), Achievement.player_id.asc())
        .limit(pagination["limit"])
        .offset(pagination["offset"])
    )
    return list(session.execute(stmt).scalars().all())
