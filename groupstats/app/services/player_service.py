"""
services/player_service.py — Player lookup, creation and username rules.

Username rules:
  - sanitize():    '-', '_' and whitespace become plain spaces, then trim.
  - standardize(): sanitize() + lowercase. This is the stored `username`.
  - A valid username is 1-12 characters of [a-z0-9 ] once standardized,
    with no leading or trailing space.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the caller's responsibility — only flush here.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import select
from sqlalchemy.orm import Session

from groupstats.app.models.player import Player


logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[-_\s]")
_VALID_USERNAME = re.compile(r"^[a-z0-9 ]{1,12}$")


def sanitize(username: str) -> str:
    return _SEPARATORS.sub(" ", username).strip()


def standardize(username: str) -> str:
    return sanitize(username).lower()


def is_valid_username(username) -> bool:
    if not isinstance(username, str):
        return False

    # Trim-sensitive check first: "  abc" is invalid even though it
    # standardizes to "abc".
    if username != username.strip():
        return False

    return bool(_VALID_USERNAME.match(standardize(username)))


def format_player(player: Player) -> dict:
    """Serialises a Player to a plain dict."""
    return {
        "id": player.id,
        "username": player.username,
        "display_name": player.display_name,
        "type": player.type,
        "created_at": player.created_at.isoformat() if player.created_at else None,
        "updated_at": player.updated_at.isoformat() if player.updated_at else None,
    }


def find_all(usernames: list[str], session: Session) -> list[Player]:
    """Returns the tracked players matching any of `usernames` (any casing)."""
    standardized = {standardize(u) for u in usernames if isinstance(u, str)}
    if not standardized:
        return []

    stmt = select(Player).where(Player.username.in_(standardized))
    return list(session.execute(stmt).scalars().all())


def find_all_or_create(usernames: list[str], session: Session) -> list[Player]:
    """
    Returns one Player per distinct username, creating untracked ones.

    The result follows the order of first appearance in `usernames`;
    names that standardize to the same value are returned once.
    """
    ordered: dict[str, str] = {}
    for username in usernames:
        key = standardize(username)
        if key not in ordered:
            ordered[key] = sanitize(username)

    if not ordered:
        return []

    stmt = select(Player).where(Player.username.in_(list(ordered)))
    existing = {p.username: p for p in session.execute(stmt).scalars().all()}

    created = []
    for key, display_name in ordered.items():
        if key not in existing:
            player = Player(username=key, display_name=display_name)
            session.add(player)
            existing[key] = player
            created.append(player)

    if created:
        session.flush()  # populate ids before callers build memberships
        logger.info("Started tracking %d new player(s)", len(created))

    return [existing[key] for key in ordered]
