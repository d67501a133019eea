"""
constants/metrics.py — Every tracked hiscores metric.

Each metric is stored on a snapshot as two columns:
  <metric>_rank       hiscores rank (-1 when unranked)
  <metric>_<measure>  experience (skills), score (activities), kills (bosses)
"""

from __future__ import annotations


SKILLS: tuple[str, ...] = (
    "overall",
    "attack",
    "defence",
    "strength",
    "hitpoints",
    "ranged",
    "prayer",
    "magic",
    "cooking",
    "woodcutting",
    "fletching",
    "fishing",
    "firemaking",
    "crafting",
    "smithing",
    "mining",
    "herblore",
    "agility",
    "thieving",
    "slayer",
    "farming",
    "runecrafting",
    "hunter",
    "construction",
)

ACTIVITIES: tuple[str, ...] = (
    "league_points",
    "bounty_hunter_hunter",
    "bounty_hunter_rogue",
    "clue_scrolls_all",
    "clue_scrolls_beginner",
    "clue_scrolls_easy",
    "clue_scrolls_medium",
    "clue_scrolls_hard",
    "clue_scrolls_elite",
    "clue_scrolls_master",
    "last_man_standing",
)

BOSSES: tuple[str, ...] = (
    "abyssal_sire",
    "alchemical_hydra",
    "barrows_chests",
    "bryophyta",
    "callisto",
    "cerberus",
    "chambers_of_xeric",
    "chambers_of_xeric_challenge_mode",
    "chaos_elemental",
    "chaos_fanatic",
    "commander_zilyana",
    "corporeal_beast",
    "crazy_archaeologist",
    "dagannoth_prime",
    "dagannoth_rex",
    "dagannoth_supreme",
    "deranged_archaeologist",
    "general_graardor",
    "giant_mole",
    "grotesque_guardians",
    "hespori",
    "kalphite_queen",
    "king_black_dragon",
    "kraken",
    "kreearra",
    "kril_tsutsaroth",
    "mimic",
    "obor",
    "sarachnis",
    "scorpia",
    "skotizo",
    "the_gauntlet",
    "the_corrupted_gauntlet",
    "theatre_of_blood",
    "thermonuclear_smoke_devil",
    "tzkal_zuk",
    "tztok_jad",
    "venenatis",
    "vetion",
    "vorkath",
    "wintertodt",
    "zalcano",
    "zulrah",
)

ALL_METRICS: tuple[str, ...] = SKILLS + ACTIVITIES + BOSSES

_SKILL_SET = frozenset(SKILLS)
_ACTIVITY_SET = frozenset(ACTIVITIES)
_BOSS_SET = frozenset(BOSSES)


def is_skill(metric: str) -> bool:
    return metric in _SKILL_SET


def is_activity(metric: str) -> bool:
    return metric in _ACTIVITY_SET


def is_boss(metric: str) -> bool:
    return metric in _BOSS_SET


def get_measure(metric: str) -> str:
    """Returns the name of the value a metric is measured in."""
    if is_activity(metric):
        return "score"
    if is_boss(metric):
        return "kills"
    return "experience"


def get_value_key(metric: str) -> str:
    """Snapshot column holding the metric's value, e.g. 'magic_experience'."""
    return f"{metric}_{get_measure(metric)}"


def get_rank_key(metric: str) -> str:
    """Snapshot column holding the metric's rank, e.g. 'magic_rank'."""
    return f"{metric}_rank"
