"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against a real database through the services' SQLAlchemy
    session. TestingConfig defaults to in-memory SQLite (sqlite://); point
    TEST_DATABASE_URL at a PostgreSQL database to run the same suite there.
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.

Helper functions (not fixtures) are provided for common setup:
  - make_player(session, ...)       → Player
  - make_snapshot(session, ...)     → Snapshot
  - make_group(session, ...)        → create_group() result dict
  - make_competition(session, ...)  → Competition

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from groupstats.app import create_app
from groupstats.app.extensions import db as _db
from groupstats.app.models.competition import Competition
from groupstats.app.models.player import Player
from groupstats.app.models.snapshot import Snapshot
from groupstats.app.services import group_service


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire test session.

    Steps:
      1. Create app with TestingConfig.
      2. Run db.create_all() to create all tables.
      3. Yield the app for the test session.
      4. Drop all tables at teardown.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped session with table cleanup
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def session(app):
    """
    Yields db.session inside an application context.

    After the test, uncommitted state is discarded and every row is deleted,
    children first (reverse of the FK-sorted table order).
    """
    with app.app_context():
        yield _db.session

        _db.session.rollback()  # discard any uncommitted state from a failed test
        for table in reversed(_db.metadata.sorted_tables):
            _db.session.execute(table.delete())
        _db.session.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_player(
    session,
    username: str = "zezima",
    display_name: str | None = None,
    updated_at: datetime | None = None,
) -> Player:
    """Inserts a tracked player. `username` must already be standardized."""
    player = Player(
        username=username,
        display_name=display_name or username.title(),
        type="regular",
    )
    if updated_at is not None:
        player.updated_at = updated_at
    session.add(player)
    session.flush()
    return player


def make_snapshot(
    session,
    player: Player,
    created_at: datetime,
    **values,
) -> Snapshot:
    """
    Inserts a snapshot. Metric columns not given in `values` keep their
    -1 (unranked) default, e.g. make_snapshot(s, p, t, magic_experience=10).
    """
    snapshot = Snapshot(player_id=player.id, created_at=created_at, **values)
    session.add(snapshot)
    session.flush()
    return snapshot


def make_group(
    session,
    name: str = "Test Group",
    members: list[dict] | None = None,
    clan_chat: str | None = None,
) -> dict:
    """Creates a group through the service. The result carries "verification_code"."""
    return group_service.create_group(name, clan_chat, members, session)


def make_competition(
    session,
    group_id: int | None,
    starts_in: timedelta,
    ends_in: timedelta,
    title: str = "Skill of the week",
    metric: str = "magic",
) -> Competition:
    """Inserts a competition starting/ending relative to now."""
    now = utcnow()
    competition = Competition(
        title=title,
        metric=metric,
        starts_at=now + starts_in,
        ends_at=now + ends_in,
        group_id=group_id,
    )
    session.add(competition)
    session.flush()
    return competition
