"""
Unit tests for snapshot averaging and formatting (no database).
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from groupstats.app.constants.metrics import ACTIVITIES, ALL_METRICS, BOSSES, SKILLS
from groupstats.app.services import snapshot_service


def _flat(value: int, rank: int = 1) -> dict:
    snapshot = {}
    for metric in ALL_METRICS:
        snapshot[f"{metric}_rank"] = rank
    for metric in SKILLS:
        snapshot[f"{metric}_experience"] = value
    for metric in ACTIVITIES:
        snapshot[f"{metric}_score"] = value
    for metric in BOSSES:
        snapshot[f"{metric}_kills"] = value
    return snapshot


def test_average_rounds_every_column():
    result = snapshot_service.average([_flat(1, rank=10), _flat(2, rank=11)])

    assert result["magic_experience"] == 2  # round(1.5) -> banker's rounding to 2
    assert result["zulrah_kills"] == 2
    assert result["zulrah_rank"] == 10  # round(10.5) -> 10
    assert result["player_id"] is None
    assert result["created_at"] is None


def test_average_treats_missing_values_as_zero():
    result = snapshot_service.average([{"magic_experience": 9}, {}, {}])

    assert result["magic_experience"] == 3
    assert result["attack_experience"] == 0


def test_average_of_nothing_raises():
    with pytest.raises(ValueError):
        snapshot_service.average([])


def test_format_snapshot_nests_by_metric_type():
    created_at = datetime(2026, 2, 1, tzinfo=timezone.utc)
    flat = {**_flat(500, rank=7), "created_at": created_at}

    result = snapshot_service.format_snapshot(flat)

    assert result["created_at"] == created_at.isoformat()
    assert set(result["skills"]) == set(SKILLS)
    assert set(result["activities"]) == set(ACTIVITIES)
    assert set(result["bosses"]) == set(BOSSES)
    assert result["skills"]["magic"] == {"rank": 7, "experience": 500}
    assert result["activities"]["clue_scrolls_all"] == {"rank": 7, "score": 500}
    assert result["bosses"]["zulrah"] == {"rank": 7, "kills": 500}


def test_format_snapshot_without_date():
    assert snapshot_service.format_snapshot({})["created_at"] is None


def test_find_latest_skips_query_without_players():
    session = MagicMock()

    assert snapshot_service.find_latest([], session) == []
    assert snapshot_service.find_latest_experience([], session) == {}
    session.execute.assert_not_called()
