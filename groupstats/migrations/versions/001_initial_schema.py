"""Initial schema — players, groups, memberships, snapshots, competitions,
participations, records and achievements.

Revision: 001_initial_schema
Created:  2026-10-18

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required (including a new metric), create a NEW
  migration file. For that reason the metric list below is a frozen copy,
  not an import of constants/metrics.py.

Creation order:
  Tables in FK dependency order (players → groups → memberships → snapshots
  → competitions → participations → records → achievements), then indexes.

ON DELETE policies:
  memberships.*            → CASCADE   (membership owned by group and player)
  snapshots.player_id      → CASCADE
  competitions.group_id    → SET NULL  (competitions outlive their group)
  participations.*         → CASCADE
  records / achievements   → CASCADE
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration — no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


_SKILLS = """
    overall attack defence strength hitpoints ranged prayer magic cooking
    woodcutting fletching fishing firemaking crafting smithing mining
    herblore agility thieving slayer farming runecrafting hunter construction
""".split()

_ACTIVITIES = """
    league_points bounty_hunter_hunter bounty_hunter_rogue clue_scrolls_all
    clue_scrolls_beginner clue_scrolls_easy clue_scrolls_medium
    clue_scrolls_hard clue_scrolls_elite clue_scrolls_master last_man_standing
""".split()

_BOSSES = """
    abyssal_sire alchemical_hydra barrows_chests bryophyta callisto cerberus
    chambers_of_xeric chambers_of_xeric_challenge_mode chaos_elemental
    chaos_fanatic commander_zilyana corporeal_beast crazy_archaeologist
    dagannoth_prime dagannoth_rex dagannoth_supreme deranged_archaeologist
    general_graardor giant_mole grotesque_guardians hespori kalphite_queen
    king_black_dragon kraken kreearra kril_tsutsaroth mimic obor sarachnis
    scorpia skotizo the_gauntlet the_corrupted_gauntlet theatre_of_blood
    thermonuclear_smoke_devil tzkal_zuk tztok_jad venenatis vetion vorkath
    wintertodt zalcano zulrah
""".split()


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def _metric_columns() -> list[sa.Column]:
    columns = []
    for measure, metrics in (
        ("experience", _SKILLS),
        ("score", _ACTIVITIES),
        ("kills", _BOSSES),
    ):
        for metric in metrics:
            columns.append(sa.Column(f"{metric}_rank", sa.Integer(), nullable=False))
            columns.append(sa.Column(f"{metric}_{measure}", sa.BigInteger(), nullable=False))
    return columns


def upgrade() -> None:

    # ── players ────────────────────────────────────────────────────────────
    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(12), nullable=False),
        sa.Column("display_name", sa.String(12), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="unknown"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_players"),
        sa.UniqueConstraint("username", name="uq_players_username"),
    )

    # ── groups ─────────────────────────────────────────────────────────────
    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(30), nullable=False),
        sa.Column("clan_chat", sa.String(12), nullable=True),
        sa.Column("verification_hash", sa.String(60), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("score", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_groups"),
        sa.UniqueConstraint("name", name="uq_groups_name"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_groups_name_nonempty",
        ),
    )

    # ── memberships ────────────────────────────────────────────────────────
    # Composite PK: a player belongs to a group at most once.
    op.create_table(
        "memberships",
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="CASCADE", name="fk_memberships_group"),
            nullable=False,
        ),
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("players.id", ondelete="CASCADE", name="fk_memberships_player"),
            nullable=False,
        ),
        sa.Column("role", sa.String(40), nullable=False, server_default="member"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("group_id", "player_id", name="pk_memberships"),
    )

    # ── snapshots ──────────────────────────────────────────────────────────
    op.create_table(
        "snapshots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("players.id", ondelete="CASCADE", name="fk_snapshots_player"),
            nullable=False,
        ),
        _timestamp("created_at"),
        sa.Column("imported_at", sa.DateTime(timezone=True), nullable=True),
        *_metric_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_snapshots"),
    )

    # ── competitions ───────────────────────────────────────────────────────
    op.create_table(
        "competitions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(50), nullable=False),
        sa.Column("metric", sa.String(40), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="SET NULL", name="fk_competitions_group"),
            nullable=True,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_competitions"),
        sa.CheckConstraint("ends_at > starts_at", name="ck_competitions_dates"),
    )

    # ── participations ─────────────────────────────────────────────────────
    op.create_table(
        "participations",
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("players.id", ondelete="CASCADE", name="fk_participations_player"),
            nullable=False,
        ),
        sa.Column(
            "competition_id",
            sa.Integer(),
            sa.ForeignKey(
                "competitions.id", ondelete="CASCADE", name="fk_participations_competition",
            ),
            nullable=False,
        ),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("player_id", "competition_id", name="pk_participations"),
    )

    # ── records ────────────────────────────────────────────────────────────
    op.create_table(
        "records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("players.id", ondelete="CASCADE", name="fk_records_player"),
            nullable=False,
        ),
        sa.Column("period", sa.String(20), nullable=False),
        sa.Column("metric", sa.String(40), nullable=False),
        sa.Column("value", sa.BigInteger(), nullable=False),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_records"),
        sa.UniqueConstraint(
            "player_id", "period", "metric", name="uq_records_player_period_metric",
        ),
    )

    # ── achievements ───────────────────────────────────────────────────────
    op.create_table(
        "achievements",
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("players.id", ondelete="CASCADE", name="fk_achievements_player"),
            nullable=False,
        ),
        sa.Column("type", sa.String(80), nullable=False),
        sa.Column("metric", sa.String(40), nullable=False),
        sa.Column("threshold", sa.BigInteger(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("player_id", "type", name="pk_achievements"),
    )

    # ── Indexes ────────────────────────────────────────────────────────────
    op.create_index("ix_groups_score", "groups", ["score"])
    op.create_index("ix_memberships_player_id", "memberships", ["player_id"])
    op.create_index("idx_snapshots_player_created", "snapshots", ["player_id", "created_at"])
    op.create_index("ix_competitions_group_id", "competitions", ["group_id"])
    op.create_index("ix_participations_competition_id", "participations", ["competition_id"])
    op.create_index("ix_records_player_id", "records", ["player_id"])
    op.create_index("ix_achievements_created_at", "achievements", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_achievements_created_at", table_name="achievements")
    op.drop_index("ix_records_player_id", table_name="records")
    op.drop_index("ix_participations_competition_id", table_name="participations")
    op.drop_index("ix_competitions_group_id", table_name="competitions")
    op.drop_index("idx_snapshots_player_created", table_name="snapshots")
    op.drop_index("ix_memberships_player_id", table_name="memberships")
    op.drop_index("ix_groups_score", table_name="groups")

    op.drop_table("achievements")
    op.drop_table("records")
    op.drop_table("participations")
    op.drop_table("competitions")
    op.drop_table("snapshots")
    op.drop_table("memberships")
    op.drop_table("groups")
    op.drop_table("players")
