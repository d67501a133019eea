"""
Unit tests for verification code generation and checking.

bcrypt runs for real here; _log_rounds is patched to the minimum cost so
the suite stays fast without an application context.
"""

from __future__ import annotations

import re
from unittest.mock import patch

import pytest

from groupstats.app.utils import verification


_CODE_FORMAT = re.compile(r"^\d{3}-\d{3}-\d{3}$")


@pytest.fixture(autouse=True)
def _cheap_bcrypt():
    with patch("groupstats.app.utils.verification._log_rounds", return_value=4):
        yield


def test_generate_code_format():
    for _ in range(20):
        assert _CODE_FORMAT.match(verification.generate_code())


def test_generated_hash_verifies_code():
    code, hashed = verification.generate_verification()

    assert hashed != code
    assert hashed.startswith("$2b$04$")
    assert verification.verify_code(hashed, code) is True


def test_wrong_code_is_rejected():
    code, hashed = verification.generate_verification()
    wrong = "000-000-000" if code != "000-000-000" else "111-111-111"

    assert verification.verify_code(hashed, wrong) is False


@pytest.mark.parametrize("hashed, code", [(None, "123-456-789"), ("", "123-456-789"), ("x", None), ("x", "")])
def test_missing_values_are_rejected(hashed, code):
    assert verification.verify_code(hashed, code) is False


def test_malformed_hash_is_rejected():
    assert verification.verify_code("not-a-bcrypt-hash", "123-456-789") is False

