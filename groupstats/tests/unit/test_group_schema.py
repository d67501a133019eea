"""
tests/unit/test_group_schema.py — Unit tests for the group service input schemas.

  - No database, no Flask application context. Schemas inherit from
    marshmallow.Schema directly, so they can be instantiated bare.
  - Username format is NOT checked here; that lives in player_service.
"""

from __future__ import annotations

import pytest
from marshmallow import ValidationError

from groupstats.app.schemas.group_schema import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MemberSchema,
    PaginationSchema,
)


# ═══════════════════════════════════════════════════════════════════════════
# MemberSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestMemberSchema:

    def _load(self, data, many=False):
        return MemberSchema(many=many).load(data)

    def test_role_defaults_to_member(self):
        assert self._load({"username": "Zezima"}) == {"username": "Zezima", "role": "member"}

    def test_explicit_role_is_kept(self):
        assert self._load({"username": "Zezima", "role": "leader"})["role"] == "leader"

    def test_unknown_keys_are_ignored(self):
        result = self._load({"username": "Zezima", "displayName": "Zezima"})
        assert "displayName" not in result

    def test_missing_username_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"role": "leader"})
        assert "username" in exc.value.messages

    def test_blank_username_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"username": "   "})
        assert "username" in exc.value.messages

    @pytest.mark.parametrize("role", ["", "   ", "r" * 41, None])
    def test_invalid_role_raises(self, role):
        with pytest.raises(ValidationError) as exc:
            self._load({"username": "Zezima", "role": role})
        assert "role" in exc.value.messages

    def test_role_at_max_length_is_accepted(self):
        assert self._load({"username": "Zezima", "role": "r" * 40})["role"] == "r" * 40

    def test_many_reports_failing_index(self):
        with pytest.raises(ValidationError) as exc:
            self._load([{"username": "ok"}, {"role": "leader"}], many=True)
        assert 1 in exc.value.messages
        assert 0 not in exc.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# PaginationSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestPaginationSchema:

    def _load(self, data):
        return PaginationSchema().load(data)

    def test_defaults(self):
        assert self._load({}) == {"limit": DEFAULT_LIMIT, "offset": 0}

    def test_valid_values(self):
        assert self._load({"limit": 5, "offset": 10}) == {"limit": 5, "offset": 10}

    def test_upper_bound_is_inclusive(self):
        assert self._load({"limit": MAX_LIMIT})["limit"] == MAX_LIMIT

    @pytest.mark.parametrize("limit", [0, -1, MAX_LIMIT + 1, "10", 2.5])
    def test_invalid_limit_raises(self, limit):
        with pytest.raises(ValidationError) as exc:
            self._load({"limit": limit})
        assert "limit" in exc.value.messages

    def test_negative_offset_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"offset": -1})
        assert "offset" in exc.value.messages
