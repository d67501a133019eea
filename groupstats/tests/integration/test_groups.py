"""
tests/integration/test_groups.py — Group lifecycle against a real database.

Operations covered:
  create_group, list_groups, find_for_player, view_group, find_one,
  edit_group, delete_group

Invariants verified:
  - Group names are unique after sanitization
  - The verification hash is never returned; the plaintext code only once
  - Listing orders by score desc, ties by id asc, and attaches member counts
  - Deleting a group deletes its memberships but keeps players and detaches
    competitions
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from groupstats.app.errors import BadRequestError, ErrorCode
from groupstats.app.models.competition import Competition
from groupstats.app.models.group import Group
from groupstats.app.models.membership import Membership
from groupstats.app.models.player import Player
from groupstats.app.services import group_service

from .conftest import make_competition, make_group, make_player


# ═══════════════════════════════════════════════════════════════════════════
# create_group
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateGroup:

    def test_create_with_members(self, session):
        result = make_group(
            session,
            name="  Iron__Men  ",
            clan_chat="iron_cc",
            members=[{"username": "Zezima", "role": "leader"}, {"username": "Lynx Titan"}],
        )

        assert result["name"] == "Iron Men"
        assert result["clan_chat"] == "iron cc"
        assert result["score"] == 0
        assert result["verified"] is False
        assert "verification_hash" not in result
        assert [(m["username"], m["role"]) for m in result["members"]] == [
            ("zezima", "leader"),
            ("lynx titan", "member"),
        ]

    def test_verification_code_is_returned_once_and_hashed(self, session):
        result = make_group(session)
        group = session.get(Group, result["id"])

        assert result["verification_code"]
        assert group.verification_hash != result["verification_code"]
        assert "verification_code" not in group_service.view_group(group.id, session)

    def test_create_without_members(self, session):
        result = make_group(session, name="Lonely")

        assert result["members"] == []
        assert group_service.get_members(result["id"], session) == []

    def test_create_reuses_tracked_players(self, session):
        existing = make_player(session, "zezima", display_name="Zezima")

        make_group(session, members=[{"username": "ZEZIMA"}])

        players = session.execute(select(Player)).scalars().all()
        assert [p.id for p in players] == [existing.id]

    def test_name_taken_after_sanitization(self, session):
        make_group(session, name="Some Clan")

        with pytest.raises(BadRequestError) as exc_info:
            make_group(session, name="Some_Clan")

        assert exc_info.value.code == ErrorCode.GROUP_NAME_TAKEN

    def test_clan_chat_too_long(self, session):
        with pytest.raises(BadRequestError) as exc_info:
            make_group(session, name="Chatty", clan_chat="a_very_long_clan_chat_name")

        assert exc_info.value.code == ErrorCode.INVALID_CLAN_CHAT
        assert group_service.list_groups("Chatty", None, session) == []

    def test_name_too_long(self, session):
        with pytest.raises(BadRequestError) as exc_info:
            make_group(session, name="x" * 31)

        assert exc_info.value.code == ErrorCode.INVALID_GROUP_NAME


# ═══════════════════════════════════════════════════════════════════════════
# list_groups / find_for_player / view_group
# ═══════════════════════════════════════════════════════════════════════════

class TestListGroups:

    def _scored(self, session, name: str, score: int, members=None) -> int:
        group_id = make_group(session, name=name, members=members)["id"]
        session.get(Group, group_id).score = score
        session.flush()
        return group_id

    def test_orders_by_score_then_id(self, session):
        low = self._scored(session, "Low", 10)
        high = self._scored(session, "High", 100)
        tie = self._scored(session, "Tie", 10)

        result = group_service.list_groups("", {"limit": 20, "offset": 0}, session)

        assert [g["id"] for g in result] == [high, low, tie]

    def test_partial_case_insensitive_match(self, session):
        self._scored(session, "Iron Men", 0)
        self._scored(session, "Skillers", 0)

        result = group_service.list_groups("IRON", None, session)

        assert [g["name"] for g in result] == ["Iron Men"]

    def test_like_wildcards_are_literal(self, session):
        self._scored(session, "Pct Clan", 0)

        assert group_service.list_groups("%", None, session) == []

    def test_pagination(self, session):
        ids = [self._scored(session, f"Group {i}", 100 - i) for i in range(5)]

        page = group_service.list_groups(None, {"limit": 2, "offset": 2}, session)

        assert [g["id"] for g in page] == ids[2:4]

    def test_attaches_member_counts(self, session):
        with_members = self._scored(
            session, "Full", 5, members=[{"username": "a"}, {"username": "b"}],
        )
        empty = self._scored(session, "Empty", 1)

        counts = {g["id"]: g["member_count"] for g in group_service.list_groups("", None, session)}

        assert counts == {with_members: 2, empty: 0}

    def test_find_for_player_sorts_before_paginating(self, session):
        members = [{"username": "zezima"}]
        first = self._scored(session, "First", 1, members=members)
        second = self._scored(session, "Second", 50, members=members)
        third = self._scored(session, "Third", 20, members=members)
        self._scored(session, "Other", 999)
        player = session.execute(select(Player)).scalar_one()

        page_one = group_service.find_for_player(player.id, {"limit": 2, "offset": 0}, session)
        page_two = group_service.find_for_player(player.id, {"limit": 2, "offset": 2}, session)

        assert [g["id"] for g in page_one] == [second, third]
        assert [g["id"] for g in page_two] == [first]
        assert all(g["member_count"] == 1 for g in page_one + page_two)

    def test_view_group(self, session):
        group_id = make_group(session, name="Viewable")["id"]

        result = group_service.view_group(group_id, session)

        assert result["name"] == "Viewable"
        assert "verification_hash" not in result

    def test_view_missing_group(self, session):
        with pytest.raises(BadRequestError) as exc_info:
            group_service.view_group(12345, session)

        assert exc_info.value.code == ErrorCode.GROUP_NOT_FOUND

    def test_find_one(self, session):
        group_id = make_group(session)["id"]

        assert group_service.find_one(group_id, session).id == group_id
        assert group_service.find_one(group_id + 100, session) is None


# ═══════════════════════════════════════════════════════════════════════════
# edit_group
# ═══════════════════════════════════════════════════════════════════════════

class TestEditGroup:

    def test_rename_keeps_members_and_clan_chat(self, session):
        created = make_group(session, name="Old", clan_chat="cc", members=[{"username": "a"}])

        result = group_service.edit_group(
            created["id"], "New_Name", None, created["verification_code"], None, session,
        )

        assert result["name"] == "New Name"
        assert result["clan_chat"] == "cc"
        assert [m["username"] for m in result["members"]] == ["a"]

    def test_replace_members(self, session):
        created = make_group(session, members=[{"username": "a"}, {"username": "b"}])

        result = group_service.edit_group(
            created["id"],
            None,
            None,
            created["verification_code"],
            [{"username": "b", "role": "leader"}, {"username": "c"}],
            session,
        )

        assert sorted((m["username"], m["role"]) for m in result["members"]) == [
            ("b", "leader"),
            ("c", "member"),
        ]

    def test_empty_members_list_clears_members(self, session):
        created = make_group(session, members=[{"username": "a"}])

        result = group_service.edit_group(
            created["id"], None, None, created["verification_code"], [], session,
        )

        assert result["members"] == []

    def test_rename_to_exact_taken_name(self, session):
        make_group(session, name="Taken")
        created = make_group(session, name="Mine")

        with pytest.raises(BadRequestError) as exc_info:
            group_service.edit_group(
                created["id"], "Taken", None, created["verification_code"], None, session,
            )

        assert exc_info.value.code == ErrorCode.GROUP_NAME_TAKEN

    def test_clan_chat_too_long(self, session):
        created = make_group(session, name="Short", clan_chat="cc")

        with pytest.raises(BadRequestError) as exc_info:
            group_service.edit_group(
                created["id"], None, "x" * 13, created["verification_code"], None, session,
            )

        assert exc_info.value.code == ErrorCode.INVALID_CLAN_CHAT
        assert session.get(Group, created["id"]).clan_chat == "cc"

    def test_incorrect_code(self, session):
        created = make_group(session, name="Locked")

        with pytest.raises(BadRequestError) as exc_info:
            group_service.edit_group(created["id"], "Changed", None, "000-000-000", None, session)

        assert exc_info.value.code == ErrorCode.INCORRECT_VERIFICATION_CODE
        assert session.get(Group, created["id"]).name == "Locked"

    def test_missing_group(self, session):
        with pytest.raises(BadRequestError) as exc_info:
            group_service.edit_group(999, "Name", None, "123-456-789", None, session)

        assert exc_info.value.code == ErrorCode.GROUP_NOT_FOUND


# ═══════════════════════════════════════════════════════════════════════════
# delete_group
# ═══════════════════════════════════════════════════════════════════════════

class TestDeleteGroup:

    def test_delete_cascades_memberships(self, session):
        created = make_group(session, name="Doomed", members=[{"username": "a"}, {"username": "b"}])
        competition = make_competition(
            session, created["id"], timedelta(days=1), timedelta(days=8),
        )

        name = group_service.delete_group(created["id"], created["verification_code"], session)
        session.commit()

        assert name == "Doomed"
        assert session.get(Group, created["id"]) is None
        assert session.execute(select(func.count()).select_from(Membership)).scalar_one() == 0
        assert session.execute(select(func.count()).select_from(Player)).scalar_one() == 2
        assert session.get(Competition, competition.id).group_id is None

    def test_delete_with_incorrect_code(self, session):
        created = make_group(session)

        with pytest.raises(BadRequestError) as exc_info:
            group_service.delete_group(created["id"], "000-000-000", session)

        assert exc_info.value.code == ErrorCode.INCORRECT_VERIFICATION_CODE
        assert session.get(Group, created["id"]) is not None
