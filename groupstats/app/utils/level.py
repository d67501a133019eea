"""
utils/level.py — Skill level math.

All helpers that take a `snapshot` expect a plain dict keyed by snapshot
column name (see snapshot_service.to_dict). Unranked skills carry -1
experience, which maps to level 1.
"""

from __future__ import annotations

import math

from groupstats.app.constants.metrics import SKILLS, get_value_key


MAX_LEVEL = 99
MAX_SKILL_EXP = 200_000_000
MAX_COMBAT_LEVEL = 126
MAX_TOTAL_LEVEL = (len(SKILLS) - 1) * MAX_LEVEL  # 2277


def _build_exp_table() -> list[int]:
    """Index i holds the experience needed for level i (index 0 unused)."""
    table = [0, 0]
    points = 0
    for level in range(1, MAX_LEVEL):
        points += math.floor(level + 300 * (2 ** (level / 7)))
        table.append(math.floor(points / 4))
    return table


EXP_TABLE: list[int] = _build_exp_table()


def get_level(experience: int | None) -> int:
    if not experience or experience < 0:
        return 1

    for level in range(MAX_LEVEL, 1, -1):
        if experience >= EXP_TABLE[level]:
            return level

    return 1


def get_combat_level(snapshot: dict) -> int:
    def level_of(skill: str) -> int:
        return get_level(snapshot.get(get_value_key(skill)))

    attack = level_of("attack")
    strength = level_of("strength")
    defence = level_of("defence")
    hitpoints = level_of("hitpoints")
    ranged = level_of("ranged")
    prayer = level_of("prayer")
    magic = level_of("magic")

    base = 0.25 * (defence + max(hitpoints, 10) + math.floor(prayer / 2))
    melee = 0.325 * (attack + strength)
    range_ = 0.325 * math.floor(3 * ranged / 2)
    mage = 0.325 * math.floor(3 * magic / 2)

    return math.floor(base + max(melee, range_, mage))


def get_total_level(snapshot: dict) -> int:
    return sum(
        get_level(snapshot.get(get_value_key(skill)))
        for skill in SKILLS
        if skill != "overall"
    )


def get_200ms_count(snapshot: dict) -> int:
    """Number of skills (excluding overall) at the experience cap."""
    return sum(
        1
        for skill in SKILLS
        if skill != "overall"
        and (snapshot.get(get_value_key(skill)) or 0) >= MAX_SKILL_EXP
    )
