"""
utils/verification.py — Group verification codes.

A verification code is a capability secret: whoever holds it may edit the
group. Only its bcrypt hash is stored. The plaintext is handed back to the
creator once and is never stored or logged.

The cost factor comes from current_app.config["BCRYPT_LOG_ROUNDS"] when an
application context is active, so tests run with a cheap factor.
"""

from __future__ import annotations

import secrets

import bcrypt
from flask import current_app, has_app_context


DEFAULT_LOG_ROUNDS = 12


def _log_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_LOG_ROUNDS", DEFAULT_LOG_ROUNDS))
    return DEFAULT_LOG_ROUNDS


def generate_code() -> str:
    """Returns a random code formatted as 'XXX-XXX-XXX' (digits)."""
    return "-".join(f"{secrets.randbelow(1000):03d}" for _ in range(3))


def hash_code(code: str) -> str:
    return bcrypt.hashpw(
        code.encode("utf-8"),
        bcrypt.gensalt(rounds=_log_rounds()),
    ).decode("utf-8")


def generate_verification() -> tuple[str, str]:
    """Returns a fresh (code, hash) pair."""
    code = generate_code()
    return code, hash_code(code)


def verify_code(verification_hash: str | None, code: str | None) -> bool:
    """Constant-time check of `code` against the stored bcrypt hash."""
    if not verification_hash or not code:
        return False
    try:
        return bcrypt.checkpw(code.encode("utf-8"), verification_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False
