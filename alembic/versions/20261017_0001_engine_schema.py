"""engine schema"""

from alembic import op
import sqlalchemy as sa


revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "athletes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(length=80), nullable=False),
        sa.Column("last_name", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False, unique=True),
        sa.Column("identity_mode", sa.String(length=20), nullable=False, server_default="competitive"),
        sa.Column("primary_sport", sa.String(length=20), nullable=False, server_default="running"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "workouts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("athletes.id"), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("discipline", sa.String(length=40), nullable=False, server_default="run"),
        sa.Column("planned", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("duration_min", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tss", sa.Float(), nullable=True),
        sa.Column("intensity", sa.String(length=12), nullable=True),
        sa.CheckConstraint("duration_min >= 0"),
    )
    op.create_index("ix_workouts_athlete_id", "workouts", ["athlete_id"])
    op.create_index("ix_workouts_athlete_day", "workouts", ["athlete_id", "day"])

    op.create_table(
        "diary_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("athletes.id"), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("mood", sa.Integer(), nullable=True),
        sa.Column("energy", sa.Integer(), nullable=True),
        sa.Column("sleep_hours", sa.Float(), nullable=True),
        sa.Column("sleep_quality", sa.Integer(), nullable=True),
        sa.Column("stress", sa.Integer(), nullable=True),
        sa.Column("soreness", sa.Integer(), nullable=True),
        sa.Column("physical_fatigue", sa.Integer(), nullable=True),
        sa.Column("mental_readiness", sa.Integer(), nullable=True),
        sa.Column("motivation", sa.Integer(), nullable=True),
        sa.Column("hrv", sa.Float(), nullable=True),
        sa.Column("hrv_baseline", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("visibility", sa.String(length=16), nullable=False, server_default="FULL_ACCESS"),
        sa.UniqueConstraint("athlete_id", "day", name="uq_diary_daily"),
        sa.CheckConstraint("visibility in ('FULL_ACCESS', 'METRICS_ONLY', 'HIDDEN')"),
    )
    op.create_index("ix_diary_entries_athlete_id", "diary_entries", ["athlete_id"])

    op.create_table(
        "daily_metrics",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("athletes.id"), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("readiness_score", sa.Float(), nullable=True),
        sa.Column("readiness_status", sa.String(length=16), nullable=True),
        sa.Column("readiness_confidence", sa.String(length=8), nullable=True),
        sa.Column("readiness_factors", sa.JSON(), nullable=True),
        sa.Column("fatigue_type", sa.String(length=16), nullable=True),
        sa.Column("fatigue_reasons", sa.JSON(), nullable=True),
        sa.Column("compliance_score", sa.Float(), nullable=True),
        sa.Column("compliance_status", sa.String(length=16), nullable=True),
        sa.Column("compliance_reasons", sa.JSON(), nullable=True),
        sa.Column("planned_workouts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_workouts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("burnout_risk", sa.Float(), nullable=True),
        sa.Column("burnout_status", sa.String(length=16), nullable=True),
        sa.Column("burnout_drivers", sa.JSON(), nullable=True),
        sa.Column("weekly_load", sa.Float(), nullable=False, server_default="0"),
        sa.Column("ramp_rate", sa.Float(), nullable=True),
        sa.Column("ramp_status", sa.String(length=16), nullable=False, server_default="stable"),
        sa.Column("ctl", sa.Float(), nullable=True),
        sa.Column("atl", sa.Float(), nullable=True),
        sa.Column("tsb", sa.Float(), nullable=True),
        sa.UniqueConstraint("athlete_id", "day", name="uq_daily_metric"),
        sa.CheckConstraint("readiness_score is null or readiness_score between 0 and 100"),
        sa.CheckConstraint("compliance_score is null or compliance_score between 0 and 100"),
        sa.CheckConstraint("burnout_risk is null or burnout_risk between 0 and 100"),
    )
    op.create_index("ix_daily_metrics_athlete_id", "daily_metrics", ["athlete_id"])

    op.create_table(
        "simulation_scenarios",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("athletes.id"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("duration_weeks", sa.Integer(), nullable=False),
        sa.Column("params", sa.JSON(), nullable=True),
        sa.Column("applied", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("baseline", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("last_run_at", sa.DateTime(), nullable=True),
        sa.Column("applied_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("duration_weeks between 2 and 12"),
    )
    op.create_index("ix_simulation_scenarios_athlete_id", "simulation_scenarios", ["athlete_id"])

    op.create_table(
        "simulation_results",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "scenario_id",
            sa.Integer(),
            sa.ForeignKey("simulation_scenarios.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("athletes.id"), nullable=False),
        sa.Column("week_index", sa.Integer(), nullable=False),
        sa.Column("simulated_ctl", sa.Float(), nullable=False),
        sa.Column("simulated_atl", sa.Float(), nullable=False),
        sa.Column("simulated_tsb", sa.Float(), nullable=False),
        sa.Column("simulated_readiness_avg", sa.Float(), nullable=False),
        sa.Column("simulated_burnout_risk", sa.Float(), nullable=False),
        sa.Column("weekly_tss", sa.Float(), nullable=False),
        sa.Column("insights", sa.JSON(), nullable=True),
        sa.Column("warnings", sa.JSON(), nullable=True),
        sa.UniqueConstraint("scenario_id", "week_index", name="uq_simulation_week"),
    )
    op.create_index("ix_simulation_results_scenario_id", "simulation_results", ["scenario_id"])
    op.create_index("ix_simulation_results_athlete_id", "simulation_results", ["athlete_id"])


def downgrade() -> None:
    op.drop_table("simulation_results")
    op.drop_table("simulation_scenarios")
    op.drop_table("daily_metrics")
    op.drop_table("diary_entries")
    op.drop_table("workouts")
    op.drop_table("athletes")
