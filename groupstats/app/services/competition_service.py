"""
services/competition_service.py — Group competition lookups and syncing.

Competition status relative to `now`:
  - ongoing:  starts_at <= now <= ends_at
  - upcoming: starts_at >= now
  - finished: ends_at < now

Status filters run in SQL so they behave the same whether the database
returns timezone-aware or naive timestamps.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the caller's responsibility — only flush here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from groupstats.app.models.competition import Competition, Participation


logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def format_competition(competition: Competition) -> dict:
    return {
        "id": competition.id,
        "title": competition.title,
        "metric": competition.metric,
        "starts_at": competition.starts_at.isoformat(),
        "ends_at": competition.ends_at.isoformat(),
        "group_id": competition.group_id,
        "created_at": competition.created_at.isoformat() if competition.created_at else None,
    }


def find_for_group(group_id: int, pagination: dict, session: Session) -> list[dict]:
    """Returns the group's competitions, most recent start first."""
    stmt = (
        select(Competition)
        .where(Competition.group_id == group_id)
        .order_by(Competition.starts_at.desc(), Competition.id.desc())
        .limit(pagination["limit"])
        .offset(pagination["offset"])
    )
    return [format_competition(c) for c in session.execute(stmt).scalars().all()]


def get_group_competition_counts(
        group_id: int,
        session: Session,
        now: datetime | None = None,
) -> dict:
    """Returns {"ongoing": int, "upcoming": int} for the group's competitions."""
    if now is None:
        now = _now()

    def count(*conditions) -> int:
        stmt = (
            select(func.count())
            .select_from(Competition)
            .where(Competition.group_id == group_id, *conditions)
        )
        return int(session.execute(stmt).scalar_one())

    return {
        "ongoing": count(Competition.starts_at <= now, Competition.ends_at >= now),
        "upcoming": count(Competition.starts_at >= now),
    }


def add_to_group_competitions(
        group_id: int,
        player_ids: list[int],
        session: Session,
        now: datetime | None = None,
) -> int:
    """
    Adds `player_ids` as participants of every ongoing or upcoming
    competition of the group. Existing participations are left alone.

    Returns: the number of participations created.
    """
    if not player_ids:
        return 0

    if now is None:
        now = _now()

    competition_ids = list(session.execute(
        select(Competition.id).where(
            Competition.group_id == group_id,
            Competition.ends_at >= now,
        )
    ).scalars().all())

    if not competition_ids:
        return 0

    existing = {
        (competition_id, player_id)
        for competition_id, player_id in session.execute(
            select(Participation.competition_id, Participation.player_id).where(
                Participation.competition_id.in_(competition_ids),
                Participation.player_id.in_(player_ids),
            )
        ).all()
    }

    added = 0
    for competition_id in competition_ids:
        for player_id in dict.fromkeys(player_ids):
            if (competition_id, player_id) in existing:
                continue
            session.add(Participation(competition_id=competition_id, player_id=player_id))
            added += 1

    if added:
        session.flush()
        logger.info(
            "Added %d participation(s) to %d competition(s) of group %s",
            added, len(competition_ids), group_id,
        )

    return added
