"""
services/snapshot_service.py — Snapshot lookups, averaging and formatting.

Snapshots are exchanged with other services as plain dicts keyed by column
name (to_dict). The level helpers in utils/level.py read the same keys.

Latest snapshot per player:
  A grouped subquery picks MAX(created_at) per player, and is joined back to
  snapshots on (player_id, created_at). For large groups this is far cheaper
  than loading every snapshot through the relationship.
"""

from __future__ import annotations

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from groupstats.app.constants.metrics import (
    ACTIVITIES,
    ALL_METRICS,
    BOSSES,
    SKILLS,
    get_measure,
    get_rank_key,
    get_value_key,
)
from groupstats.app.models.snapshot import Snapshot, snapshots_table


def to_dict(snapshot: Snapshot) -> dict:
    return {column.name: getattr(snapshot, column.name) for column in snapshots_table.columns}


def _latest_subquery(player_ids: list[int]):
    return (
        select(
            Snapshot.player_id.label("player_id"),
            func.max(Snapshot.created_at).label("max_date"),
        )
        .where(Snapshot.player_id.in_(player_ids))
        .group_by(Snapshot.player_id)
        .subquery()
    )


def latest_snapshots_query(player_ids: list[int]):
    """SELECT of the most recent Snapshot row of each player in `player_ids`."""
    latest = _latest_subquery(player_ids)
    return select(Snapshot).join(
        latest,
        and_(
            Snapshot.player_id == latest.c.player_id,
            Snapshot.created_at == latest.c.max_date,
        ),
    )


def find_latest(
        player_ids: list[int],
        session: Session,
        order_by_metric: str | None = None,
        pagination: dict | None = None,
) -> list[Snapshot]:
    """
    Returns the latest snapshot of every player that has one.

    Args:
        order_by_metric: when given, rows are ordered by that metric's value
                         (descending) before pagination is applied.
        pagination:      {"limit": int, "offset": int}; None returns all rows.
    """
    if not player_ids:
        return []

    stmt = latest_snapshots_query(player_ids)

    if order_by_metric is not None:
        value_column = snapshots_table.c[get_value_key(order_by_metric)]
        stmt = stmt.order_by(value_column.desc(), Snapshot.player_id.asc())
    else:
        stmt = stmt.order_by(Snapshot.player_id.asc())

    if pagination is not None:
        stmt = stmt.limit(pagination["limit"]).offset(pagination["offset"])

    return list(session.execute(stmt).scalars().all())


def find_latest_experience(player_ids: list[int], session: Session) -> dict[int, int]:
    """Returns {player_id: overall_experience} from each player's latest snapshot."""
    if not player_ids:
        return {}

    latest = _latest_subquery(player_ids)
    stmt = (
        select(Snapshot.player_id, Snapshot.overall_experience)
        .join(
            latest,
            and_(
                Snapshot.player_id == latest.c.player_id,
                Snapshot.created_at == latest.c.max_date,
            ),
        )
        .order_by(Snapshot.player_id)
    )

    return {
        player_id: int(experience)
        for player_id, experience in session.execute(stmt).all()
    }


def average(snapshots: list[dict]) -> dict:
    """
    Averages every rank and value column across `snapshots`.

    Each average is rounded to the nearest integer. Raises ValueError when
    `snapshots` is empty.
    """
    if not snapshots:
        raise ValueError("Cannot average an empty list of snapshots.")

    count = len(snapshots)
    result: dict = {"id": None, "player_id": None, "created_at": None, "imported_at": None}

    for metric in ALL_METRICS:
        for key in (get_rank_key(metric), get_value_key(metric)):
            total = sum(int(s.get(key) or 0) for s in snapshots)
            result[key] = round(total / count)

    return result


def format_snapshot(snapshot: dict) -> dict:
    """
    Nests a flat snapshot dict by metric type:

        {"created_at": ..., "skills": {"magic": {"rank": 1, "experience": 2}},
         "activities": {...}, "bosses": {...}}
    """
    created_at = snapshot.get("created_at")

    def section(metrics: tuple[str, ...]) -> dict:
        return {
            metric: {
                "rank": snapshot.get(get_rank_key(metric)),
                get_measure(metric): snapshot.get(get_value_key(metric)),
            }
            for metric in metrics
        }

    return {
        "created_at": created_at.isoformat() if created_at else None,
        "skills": section(SKILLS),
        "activities": section(ACTIVITIES),
        "bosses": section(BOSSES),
    }
