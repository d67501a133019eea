"""
services/delta_service.py — Gains ("deltas") leaderboards.

A player's gain for a metric and period is the difference between the value
in their last snapshot and their first snapshot taken since the start of the
period. Unranked values (-1) count as 0.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Read-only.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from groupstats.app.constants.metrics import get_value_key
from groupstats.app.constants.periods import get_period_start
from groupstats.app.models.player import Player
from groupstats.app.models.snapshot import Snapshot, snapshots_table
from groupstats.app.services.player_service import format_player


def _isoformat(value):
    return value.isoformat() if value is not None else None


def get_group_leaderboard(
        metric: str,
        period: str,
        player_ids: list[int],
        pagination: dict,
        session: Session,
) -> list[dict]:
    """
    Returns the players in `player_ids` ranked by how much they gained in
    `metric` during `period`, highest first.

    Each entry: {"player", "start_date", "end_date", "start_value",
                 "end_value", "gained"}. Players without a snapshot in the
    period are left out.
    """
    if not player_ids:
        return []

    value_column = snapshots_table.c[get_value_key(metric)]
    stmt = (
        select(Snapshot.player_id, Snapshot.created_at, value_column.label("value"))
        .where(
            Snapshot.player_id.in_(player_ids),
            Snapshot.created_at >= get_period_start(period),
        )
        .order_by(Snapshot.player_id.asc(), Snapshot.created_at.asc())
    )

    # player_id -> [first_row, last_row]
    bounds: dict[int, list] = {}
    for row in session.execute(stmt).all():
        if row.player_id not in bounds:
            bounds[row.player_id] = [row, row]
        else:
            bounds[row.player_id][1] = row

    if not bounds:
        return []

    players = {
        p.id: p
        for p in session.execute(
            select(Player).where(Player.id.in_(list(bounds)))
        ).scalars().all()
    }

    entries = []
    for player_id, (first, last) in bounds.items():
        start_value = max(int(first.value), 0)
        end_value = max(int(last.value), 0)
        entries.append({
            "player": format_player(players[player_id]),
            "start_date": _isoformat(first.created_at),
            "end_date": _isoformat(last.created_at),
            "start_value": start_value,
            "end_value": end_value,
            "gained": end_value - start_value,
        })

    entries.sort(key=lambda e: (-e["gained"], e["player"]["id"]))

    offset = pagination["offset"]
    return entries[offset:offset + pagination["limit"]]
