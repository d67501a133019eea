"""
services/group_service.py — Groups, memberships and group-level statistics.

Every precondition failure raises BadRequestError (HTTP 400) with a stable
ErrorCode and a human-readable message. Storage errors propagate unchanged.

Verification:
  Editing, deleting and changing the members or roles of a group requires
  the group's verification code. Only its bcrypt hash is stored
  (utils/verification.py); the plaintext is returned once, by create_group().

Member lists:
  Mutations take members as [{"username": "Zezima", "role": "leader"}, ...].
  "role" is optional and defaults to "member". Usernames are matched
  case-insensitively (player_service.standardize).

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the caller's responsibility — only flush here.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from marshmallow import ValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session, contains_eager, joinedload

from groupstats.app.constants.metrics import ALL_METRICS, get_measure, get_rank_key, get_value_key, is_skill
from groupstats.app.constants.periods import PERIODS
from groupstats.app.errors import BadRequestError, ErrorCode
from groupstats.app.models.group import Group
from groupstats.app.models.membership import DEFAULT_ROLE, LEADER_ROLE, Membership
from groupstats.app.models.player import Player
from groupstats.app.schemas.group_schema import MemberSchema, PaginationSchema
from groupstats.app.services import (
    achievement_service,
    competition_service,
    delta_service,
    player_service,
    record_service,
    snapshot_service,
)
from groupstats.app.utils.level import (
    MAX_COMBAT_LEVEL,
    MAX_TOTAL_LEVEL,
    get_200ms_count,
    get_combat_level,
    get_level,
    get_total_level,
)
from groupstats.app.utils.verification import generate_verification, verify_code


logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 30
MAX_CLAN_CHAT_LENGTH = 12
MAX_ROLE_LENGTH = 40

# A member is outdated this long after its last stats refresh.
OUTDATED_MEMBER_MINUTES = 10

_INVALID_USERNAMES_MESSAGE = (
    "{count} Invalid usernames: Names must be 1-12 characters long, "
    "contain no special characters, and/or contain no space at the "
    "beginning or end of the name."
)


# ── Private helpers ────────────────────────────────────────────────────────

def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_id(value, code: str, message: str) -> int:
    """Coerces a positive integer id or raises BadRequestError(code)."""
    if value is None or isinstance(value, bool):
        raise BadRequestError(code, message)
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise BadRequestError(code, message) from None
    if parsed <= 0:
        raise BadRequestError(code, message)
    return parsed


def _parse_group_id(group_id) -> int:
    return _parse_id(group_id, ErrorCode.INVALID_GROUP_ID, "Invalid group id.")


def _require_verification_code(verification_code) -> None:
    if not verification_code or not isinstance(verification_code, str):
        raise BadRequestError(
            ErrorCode.INVALID_VERIFICATION_CODE,
            "Invalid verification code.",
        )


def _get_group_or_400(group_id: int, session: Session) -> Group:
    """Returns the Group or raises GROUP_NOT_FOUND."""
    group = session.get(Group, group_id)
    if group is None:
        raise BadRequestError(
            ErrorCode.GROUP_NOT_FOUND,
            f"Group of id {group_id} was not found.",
        )
    return group


def _verify(group: Group, verification_code: str) -> None:
    if not verify_code(group.verification_hash, verification_code):
        raise BadRequestError(
            ErrorCode.INCORRECT_VERIFICATION_CODE,
            "Incorrect verification code.",
        )


def _validate_period(period) -> None:
    if not period or period not in PERIODS:
        raise BadRequestError(ErrorCode.INVALID_PERIOD, f"Invalid period: {period}.")


def _validate_metric(metric) -> None:
    if not metric or metric not in ALL_METRICS:
        raise BadRequestError(ErrorCode.INVALID_METRIC, f"Invalid metric: {metric}.")


def _load_pagination(pagination: dict | None) -> dict:
    try:
        return PaginationSchema().load(pagination or {})
    except ValidationError as err:
        raise BadRequestError(
            ErrorCode.INVALID_FIELD,
            "Invalid pagination.",
            details=err.messages,
        ) from None


def _load_members(members) -> list[dict]:
    """Validates the shape of a members list and fills in default roles."""
    try:
        return MemberSchema(many=True).load(members)
    except ValidationError as err:
        raise BadRequestError(
            ErrorCode.INVALID_MEMBERS,
            "Invalid members list. Each array element must have a username key.",
            details=err.messages,
        ) from None


def _check_usernames(members: list[dict]) -> None:
    invalid = [
        m["username"]
        for m in members
        if not player_service.is_valid_username(m["username"])
    ]
    if invalid:
        raise BadRequestError(
            ErrorCode.INVALID_USERNAMES,
            _INVALID_USERNAMES_MESSAGE.format(count=len(invalid)),
            details=invalid,
        )


def _validate_name(name) -> str:
    """Returns the sanitized group name or raises INVALID_GROUP_NAME."""
    if not name or not isinstance(name, str):
        raise BadRequestError(ErrorCode.INVALID_GROUP_NAME, "Invalid group name.")

    sanitized = sanitize_name(name)

    if not sanitized or len(sanitized) > MAX_NAME_LENGTH:
        raise BadRequestError(
            ErrorCode.INVALID_GROUP_NAME,
            f"Group name must be between 1 and {MAX_NAME_LENGTH} characters.",
        )
    return sanitized


def _validate_clan_chat(clan_chat) -> str:
    """Returns the sanitized clan chat or raises INVALID_CLAN_CHAT."""
    if not isinstance(clan_chat, str):
        raise BadRequestError(ErrorCode.INVALID_CLAN_CHAT, "Invalid clan chat.")

    sanitized = player_service.sanitize(clan_chat)

    if not sanitized or len(sanitized) > MAX_CLAN_CHAT_LENGTH:
        raise BadRequestError(
            ErrorCode.INVALID_CLAN_CHAT,
            f"Clan chat must be between 1 and {MAX_CLAN_CHAT_LENGTH} characters.",
        )
    return sanitized


def _find_by_name(name: str, session: Session) -> Group | None:
    return session.execute(
        select(Group).where(Group.name == name)
    ).scalar_one_or_none()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _get_member_ids(group_id: int, session: Session) -> list[int]:
    stmt = select(Membership.player_id).where(Membership.group_id == group_id)
    return list(session.execute(stmt).scalars().all())


def _get_memberships(group_id: int, session: Session) -> list[Membership]:
    """Memberships of a group with their players loaded."""
    stmt = (
        select(Membership)
        .options(joinedload(Membership.player))
        .where(Membership.group_id == group_id)
        .order_by(Membership.player_id.asc())
    )
    return list(session.execute(stmt).scalars().all())


def _member_dict(player: Player, role: str) -> dict:
    return {**player_service.format_player(player), "role": role}


# ── Formatting ─────────────────────────────────────────────────────────────

def sanitize_name(name: str) -> str:
    """
    Normalises a group name: '_' and '-' become spaces, runs of spaces
    collapse to one, and the result is trimmed. Idempotent.
    """
    name = re.sub(r"[_-]", " ", name)
    name = re.sub(r" {2,}", " ", name)
    return name.strip()


def format_group(group: Group) -> dict:
    """Serialises a Group to a plain dict. The verification hash is never included."""
    return {
        "id": group.id,
        "name": group.name,
        "clan_chat": group.clan_chat,
        "score": group.score,
        "verified": group.verified,
        "created_at": group.created_at.isoformat() if group.created_at else None,
        "updated_at": group.updated_at.isoformat() if group.updated_at else None,
    }


def attach_member_counts(groups: list[dict], session: Session) -> list[dict]:
    """
    Adds a "member_count" key to every group dict.

    All counts come from one grouped COUNT query; groups without any
    membership rows get 0.
    """
    if not groups:
        return []

    stmt = (
        select(Membership.group_id, func.count(Membership.player_id))
        .where(Membership.group_id.in_([g["id"] for g in groups]))
        .group_by(Membership.group_id)
    )
    counts = {group_id: int(count) for group_id, count in session.execute(stmt).all()}

    return [{**g, "member_count": counts.get(g["id"], 0)} for g in groups]


# ── Group queries ──────────────────────────────────────────────────────────

def list_groups(name: str | None, pagination: dict | None, session: Session) -> list[dict]:
    """
    Returns groups whose name partially matches `name` (case-insensitive),
    ordered by score (highest first), then by id. An empty name matches all.
    """
    pagination = _load_pagination(pagination)

    stmt = select(Group)
    if name:
        pattern = f"%{_escape_like(sanitize_name(name))}%"
        stmt = stmt.where(Group.name.ilike(pattern, escape="\\"))

    stmt = (
        stmt.order_by(Group.score.desc(), Group.id.asc())
        .limit(pagination["limit"])
        .offset(pagination["offset"])
    )

    groups = [format_group(g) for g in session.execute(stmt).scalars().all()]
    return attach_member_counts(groups, session)


def find_for_player(player_id, pagination: dict | None, session: Session) -> list[dict]:
    """
    Returns the groups a player belongs to, ordered like list_groups().

    Ordering is applied before pagination, so pages are consistent.
    """
    player_id = _parse_id(player_id, ErrorCode.INVALID_PLAYER_ID, "Invalid player id.")
    pagination = _load_pagination(pagination)

    stmt = (
        select(Group)
        .join(Membership, Membership.group_id == Group.id)
        .where(Membership.player_id == player_id)
        .order_by(Group.score.desc(), Group.id.asc())
        .limit(pagination["limit"])
        .offset(pagination["offset"])
    )

    groups = [format_group(g) for g in session.execute(stmt).scalars().all()]
    return attach_member_counts(groups, session)


def view_group(group_id, session: Session) -> dict:
    group_id = _parse_group_id(group_id)
    return format_group(_get_group_or_400(group_id, session))


def find_one(group_id, session: Session) -> Group | None:
    return session.get(Group, group_id)


def get_members(group_id: int, session: Session) -> list[dict]:
    """Returns every member of a group as a player dict with its "role"."""
    return [_member_dict(m.player, m.role) for m in _get_memberships(group_id, session)]


# ── Leaderboards & statistics ──────────────────────────────────────────────

def get_monthly_top_player(group_id, session: Session) -> dict | None:
    """Returns the member with the highest overall gains this month, if any."""
    group_id = _parse_group_id(group_id)

    member_ids = _get_member_ids(group_id, session)
    if not member_ids:
        return None

    leaderboard = delta_service.get_group_leaderboard(
        "overall", "month", member_ids, {"limit": 1, "offset": 0}, session,
    )
    return leaderboard[0] if leaderboard else None


def get_deltas(group_id, period, metric, pagination: dict | None, session: Session) -> list[dict]:
    """Gains leaderboard for `metric` over `period`, between the group's members."""
    group_id = _parse_group_id(group_id)
    _validate_period(period)
    _validate_metric(metric)
    pagination = _load_pagination(pagination)

    member_ids = _get_member_ids(group_id, session)
    if not member_ids:
        raise BadRequestError(ErrorCode.NO_MEMBERS, "That group has no members.")

    return delta_service.get_group_leaderboard(metric, period, member_ids, pagination, session)


def get_achievements(group_id, pagination: dict | None, session: Session) -> list[dict]:
    """Most recent achievements of the group's members, newest first."""
    group_id = _parse_group_id(group_id)
    pagination = _load_pagination(pagination)

    memberships = _get_memberships(group_id, session)
    if not memberships:
        raise BadRequestError(ErrorCode.NO_MEMBERS, "That group has no members.")

    players = {m.player_id: m.player for m in memberships}
    achievements = achievement_service.find_all_for_group(list(players), pagination, session)

    result = []
    for achievement in achievements:
        player = players[achievement.player_id]
        result.append({
            **achievement_service.format_achievement(achievement),
            "player": {
                "id": player.id,
                "username": player.username,
                "display_name": player.display_name,
                "type": player.type,
            },
        })
    return result


def get_records(group_id, metric, period, pagination: dict | None, session: Session) -> list[dict]:
    """Best `metric` records of `period`, between the group's members."""
    group_id = _parse_group_id(group_id)
    _validate_period(period)
    _validate_metric(metric)
    pagination = _load_pagination(pagination)

    member_ids = _get_member_ids(group_id, session)
    if not member_ids:
        raise BadRequestError(ErrorCode.NO_MEMBERS, "That group has no members.")

    return record_service.get_group_leaderboard(metric, period, member_ids, pagination, session)


def get_members_list(group_id, session: Session) -> list[dict]:
    """
    Returns every member with its role and latest overall experience
    (0 without snapshots), sorted by role.
    """
    group_id = _parse_group_id(group_id)
    _get_group_or_400(group_id, session)

    memberships = _get_memberships(group_id, session)
    if not memberships:
        return []

    experience = snapshot_service.find_latest_experience(
        [m.player_id for m in memberships], session,
    )

    members = [
        {
            **_member_dict(m.player, m.role),
            "overall_experience": experience.get(m.player_id, 0),
        }
        for m in memberships
    ]
    return sorted(members, key=lambda member: member["role"])


def get_hiscores(group_id, metric, pagination: dict | None, session: Session) -> list[dict]:
    """
    Group hiscores for `metric`: each ranked member's latest rank and value
    (plus level for skills), highest value first. Members without a
    snapshot, or unranked in the metric, are left out.
    """
    group_id = _parse_group_id(group_id)
    _validate_metric(metric)
    pagination = _load_pagination(pagination)
    _get_group_or_400(group_id, session)

    memberships = _get_memberships(group_id, session)
    if not memberships:
        return []

    rank_key = get_rank_key(metric)
    value_key = get_value_key(metric)
    measure = get_measure(metric)

    snapshots = snapshot_service.find_latest(
        [m.player_id for m in memberships],
        session,
        order_by_metric=metric,
        pagination=pagination,
    )

    data_by_player: dict[int, dict] = {}
    for snapshot in snapshots:
        row = snapshot_service.to_dict(snapshot)
        data = {
            "rank": int(row[rank_key]),
            measure: int(row[value_key]),
        }
        if is_skill(metric):
            data["level"] = get_total_level(row) if metric == "overall" else get_level(data[measure])
        data_by_player[row["player_id"]] = data

    hiscores = [
        {**player_service.format_player(m.player), **data_by_player[m.player_id]}
        for m in memberships
        if m.player_id in data_by_player and data_by_player[m.player_id]["rank"] > 0
    ]
    return sorted(hiscores, key=lambda entry: entry[measure], reverse=True)


def get_member_stats(group_id, session: Session) -> list[dict]:
    """Returns the latest snapshot (as a dict) of every member that has one."""
    group_id = _parse_group_id(group_id)
    _get_group_or_400(group_id, session)

    member_ids = _get_member_ids(group_id, session)
    if not member_ids:
        return []

    return [snapshot_service.to_dict(s) for s in snapshot_service.find_latest(member_ids, session)]


def get_statistics(group_id, session: Session) -> dict:
    """Aggregate statistics over the members' latest snapshots."""
    group_id = _parse_group_id(group_id)

    stats = get_member_stats(group_id, session)
    if not stats:
        raise BadRequestError(ErrorCode.NO_STATS, "Couldn't find any stats for this group.")

    return {
        "maxed_combat_count": sum(1 for s in stats if get_combat_level(s) == MAX_COMBAT_LEVEL),
        "maxed_total_count": sum(1 for s in stats if get_total_level(s) == MAX_TOTAL_LEVEL),
        "maxed_200ms_count": sum(get_200ms_count(s) for s in stats),
        "average_stats": snapshot_service.format_snapshot(snapshot_service.average(stats)),
    }


# ── Mutations ──────────────────────────────────────────────────────────────

def create_group(name, clan_chat, members, session: Session) -> dict:
    """
    Creates a group, optionally seeding its members.

    Returns: the group dict with "members" and the plaintext
             "verification_code". This is the only time the code is exposed.
    """
    sanitized_name = _validate_name(name)
    sanitized_clan_chat = _validate_clan_chat(clan_chat) if clan_chat else None

    if _find_by_name(sanitized_name, session) is not None:
        raise BadRequestError(
            ErrorCode.GROUP_NAME_TAKEN,
            f"Group name '{sanitized_name}' is already taken.",
        )

    loaded_members = None
    if members is not None:
        loaded_members = _load_members(members)
        _check_usernames(loaded_members)

    verification_code, verification_hash = generate_verification()

    group = Group(
        name=sanitized_name,
        clan_chat=sanitized_clan_chat,
        verification_hash=verification_hash,
    )
    session.add(group)
    session.flush()  # populate group.id before creating memberships

    new_members = set_members(group, loaded_members, session) if loaded_members else []

    logger.info("Created group %s (%r) with %d member(s)", group.id, group.name, len(new_members))

    return {
        **format_group(group),
        "verification_code": verification_code,
        "members": new_members,
    }


def edit_group(group_id, name, clan_chat, verification_code, members, session: Session) -> dict:
    """
    Edits a group's name, clan chat and/or members.

    If `members` is given (even empty) it replaces the existing members;
    if it is None the members are left untouched.
    """
    group_id = _parse_group_id(group_id)
    _require_verification_code(verification_code)

    if not name and members is None and not clan_chat:
        raise BadRequestError(
            ErrorCode.NOTHING_TO_EDIT,
            "You must either include a new name, clan chat or members list.",
        )

    sanitized_clan_chat = _validate_clan_chat(clan_chat) if clan_chat else None

    sanitized_name = None
    if name:
        sanitized_name = _validate_name(name)
        matching = _find_by_name(sanitized_name, session)

        # Renaming to some other group's name.
        if matching is not None and matching.id != group_id:
            raise BadRequestError(
                ErrorCode.GROUP_NAME_TAKEN,
                f"Group name '{sanitized_name}' is already taken.",
            )

    group = _get_group_or_400(group_id, session)
    _verify(group, verification_code)

    if members is not None:
        loaded_members = _load_members(members)
        _check_usernames(loaded_members)
        group_members = set_members(group, loaded_members, session)
        group.updated_at = _now()
    else:
        group_members = get_members(group.id, session)

    if sanitized_name:
        group.name = sanitized_name

    if sanitized_clan_chat:
        group.clan_chat = sanitized_clan_chat

    session.flush()
    logger.info("Edited group %s", group.id)

    return {**format_group(group), "members": group_members}


def delete_group(group_id, verification_code, session: Session) -> str:
    """Permanently deletes a group and its memberships. Returns the group's name."""
    group_id = _parse_group_id(group_id)
    _require_verification_code(verification_code)

    group = _get_group_or_400(group_id, session)
    _verify(group, verification_code)

    name = group.name
    session.delete(group)
    session.flush()

    logger.info("Deleted group %s (%r)", group_id, name)
    return name


def set_members(group: Group, members, session: Session) -> list[dict]:
    """
    Makes `members` the exact member list of `group`.

    Existing rows are reconciled rather than recreated: members that are no
    longer listed are deleted, changed roles are updated in place and new
    players are inserted. Usernames are deduplicated case-insensitively;
    the first occurrence decides the role.
    """
    if group is None:
        raise BadRequestError(ErrorCode.INVALID_GROUP_ID, "Invalid group.")

    members = _load_members(members)

    roles: dict[str, str] = {}
    for member in members:
        roles.setdefault(player_service.standardize(member["username"]), member["role"])

    players = player_service.find_all_or_create([m["username"] for m in members], session)
    desired = {p.id: roles[p.username] for p in players}

    existing = {
        m.player_id: m
        for m in session.execute(
            select(Membership).where(Membership.group_id == group.id)
        ).scalars().all()
    }

    for player_id, membership in existing.items():
        if player_id not in desired:
            session.delete(membership)
        elif membership.role != desired[player_id]:
            membership.role = desired[player_id]

    for player_id, role in desired.items():
        if player_id not in existing:
            session.add(Membership(group_id=group.id, player_id=player_id, role=role))

    session.flush()
    return get_members(group.id, session)


def add_members(group_id, verification_code, members, session: Session) -> list[dict]:
    """
    Adds players to a group, creating untracked players as needed.

    New members get their requested role. Entries flagged "leader" are then
    forced to the leader role, including players that were already members.

    Returns: the full, updated member list.
    """
    group_id = _parse_group_id(group_id)
    _require_verification_code(verification_code)

    if not members:
        raise BadRequestError(ErrorCode.INVALID_MEMBERS, "Invalid members list.")

    members = _load_members(members)
    _check_usernames(members)

    group = _get_group_or_400(group_id, session)
    _verify(group, verification_code)

    existing = {
        m.player_id: m
        for m in session.execute(
            select(Membership).where(Membership.group_id == group_id)
        ).scalars().all()
    }

    roles: dict[str, str] = {}
    for member in members:
        roles.setdefault(player_service.standardize(member["username"]), member["role"])

    players = player_service.find_all_or_create([m["username"] for m in members], session)
    new_players = [p for p in players if p.id not in existing]

    if not new_players:
        raise BadRequestError(ErrorCode.ALREADY_MEMBERS, "All players given are already members.")

    # Any leader-flagged entry wins, even when an earlier duplicate asked for another role.
    leader_usernames = {
        player_service.standardize(m["username"])
        for m in members
        if m["role"] == LEADER_ROLE
    }

    for player in new_players:
        session.add(Membership(
            group_id=group_id,
            player_id=player.id,
            role=(
                LEADER_ROLE
                if player.username in leader_usernames
                else roles.get(player.username, DEFAULT_ROLE)
            ),
        ))

    for player in players:
        membership = existing.get(player.id)
        if membership is not None and player.username in leader_usernames:
            membership.role = LEADER_ROLE

    group.updated_at = _now()
    session.flush()

    logger.info("Added %d member(s) to group %s", len(new_players), group_id)
    return get_members(group_id, session)


def remove_members(group_id, verification_code, usernames, session: Session) -> int:
    """Removes the given usernames from a group. Returns how many were removed."""
    group_id = _parse_group_id(group_id)
    _require_verification_code(verification_code)

    if not usernames:
        raise BadRequestError(ErrorCode.INVALID_MEMBERS, "Invalid members list.")

    group = _get_group_or_400(group_id, session)
    _verify(group, verification_code)

    players = player_service.find_all(usernames, session)
    if not players:
        raise BadRequestError(ErrorCode.NO_TRACKED_PLAYERS, "No valid tracked players were given.")

    memberships = list(session.execute(
        select(Membership).where(
            Membership.group_id == group_id,
            Membership.player_id.in_([p.id for p in players]),
        )
    ).scalars().all())

    if not memberships:
        raise BadRequestError(
            ErrorCode.NOT_A_MEMBER,
            "None of the players given were members of that group.",
        )

    for membership in memberships:
        session.delete(membership)

    group.updated_at = _now()
    session.flush()

    logger.info("Removed %d member(s) from group %s", len(memberships), group_id)
    return len(memberships)


def change_role(group_id, username, role, verification_code, session: Session) -> dict:
    """
    Changes a member's role.

    Returns: {"player": {..., "role": new_role}, "new_role", "old_role"}
    """
    group_id = _parse_group_id(group_id)

    if not username or not isinstance(username, str):
        raise BadRequestError(ErrorCode.INVALID_USERNAME, "Invalid username.")

    if not isinstance(role, str) or not role.strip() or len(role) > MAX_ROLE_LENGTH:
        raise BadRequestError(ErrorCode.INVALID_ROLE, "Invalid group role.")

    _require_verification_code(verification_code)

    group = _get_group_or_400(group_id, session)
    _verify(group, verification_code)

    membership = session.execute(
        select(Membership)
        .join(Player, Membership.player_id == Player.id)
        .options(contains_eager(Membership.player))
        .where(
            Membership.group_id == group_id,
            Player.username == player_service.standardize(username),
        )
    ).scalar_one_or_none()

    if membership is None:
        raise BadRequestError(
            ErrorCode.NOT_A_MEMBER,
            f"'{username}' is not a member of {group.name}.",
        )

    old_role = membership.role

    if old_role == role:
        raise BadRequestError(
            ErrorCode.ROLE_UNCHANGED,
            f"'{username}' already has the role of {role}.",
        )

    membership.role = role
    group.updated_at = _now()
    session.flush()

    logger.info("Changed role of player %s in group %s", membership.player_id, group_id)

    return {
        "player": _member_dict(membership.player, role),
        "new_role": role,
        "old_role": old_role,
    }


# ── Member updates ─────────────────────────────────────────────────────────

def get_outdated_members(group_id, session: Session, now: datetime | None = None) -> list[Player]:
    """Members whose stats were last refreshed more than 10 minutes ago."""
    group_id = _parse_group_id(group_id)

    cutoff = (now or _now()) - timedelta(minutes=OUTDATED_MEMBER_MINUTES)
    stmt = (
        select(Player)
        .join(Membership, Membership.player_id == Player.id)
        .where(
            Membership.group_id == group_id,
            Player.updated_at < cutoff,
        )
        .order_by(Player.id.asc())
    )
    return list(session.execute(stmt).scalars().all())


def update_all_members(
        group_id,
        update_action: Callable[[Player], object],
        session: Session,
) -> list[dict]:
    """
    Calls `update_action(player)` for every outdated member of the group.

    The action (e.g. enqueueing a stats refresh) belongs to the caller, so
    this service never depends on a job queue.

    Returns: the players the action was called for.
    """
    group_id = _parse_group_id(group_id)

    members = get_outdated_members(group_id, session)
    if not members:
        raise BadRequestError(
            ErrorCode.NO_OUTDATED_MEMBERS,
            "This group has no members that should be updated.",
        )

    for player in members:
        update_action(player)

    logger.info("Requested updates for %d member(s) of group %s", len(members), group_id)
    return [player_service.format_player(p) for p in members]


# ── Scoring ────────────────────────────────────────────────────────────────

def calculate_score(group: Group, session: Session, now: datetime | None = None) -> int:
    """
    Weighted-sum ranking heuristic. A group without members scores 0.
    """
    score = 0

    members = get_members_list(group.id, session)
    if not members:
        return score

    competitions = competition_service.get_group_competition_counts(group.id, session, now)
    average_overall_exp = sum(m["overall_experience"] for m in members) / len(members)

    # At least one leader
    if any(m["role"] == LEADER_ROLE for m in members):
        score += 30

    # Size tier: 50+ members replaces the 10+ bonus
    if len(members) >= 50:
        score += 40
    elif len(members) >= 10:
        score += 20

    # Average member overall exp of 30m or more
    if average_overall_exp >= 30_000_000:
        score += 30

    # Average member overall exp of 100m or more
    if average_overall_exp >= 100_000_000:
        score += 60

    # Has a clan chat
    if group.clan_chat:
        score += 50

    # Verified (clan leader is known to the maintainers)
    if group.verified:
        score += 100

    # At least one ongoing competition
    if competitions["ongoing"] >= 1:
        score += 50

    # At least one upcoming competition
    if competitions["upcoming"] >= 1:
        score += 30

    return score


def refresh_scores(session: Session) -> int:
    """
    Recomputes every group's score, writing only the ones that changed.

    Returns: the number of groups whose score changed.
    """
    groups = list(session.execute(select(Group).order_by(Group.id)).scalars().all())
    now = _now()

    updated = 0
    for group in groups:
        new_score = calculate_score(group, session, now)
        if new_score != group.score:
            group.score = new_score
            updated += 1

    if updated:
        session.flush()

    logger.info("Refreshed group scores: %d of %d changed", updated, len(groups))
    return updated
