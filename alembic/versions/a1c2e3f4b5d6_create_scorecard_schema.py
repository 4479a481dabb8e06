"""create_scorecard_schema

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-05 10:00:00.000000

스코어카드 스키마 초기 생성:
- profiles, employees (외부 명부, 이메일로 매칭)
- teams, team_members
- roles (책임 관계 자기참조), employee_roles
- scorecards, scorecard_members, metrics, metric_entries
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "a1c2e3f4b5d6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str = "created_at", nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=nullable)


def upgrade() -> None:
    # 1. profiles — 관리자 자기참조
    op.create_table(
        "profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.String(1024), nullable=True),
        sa.Column("manager_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("is_system_admin", sa.Boolean(), server_default="false", nullable=False),
        _timestamp(),
        _timestamp("updated_at"),
    )
    op.create_index("ix_profiles_manager_id", "profiles", ["manager_id"])
    op.create_index("ix_profiles_email_lower", "profiles", [sa.text("lower(email)")])

    # 2. employees — 외부 인사 명부 (FK 없음, 이메일 매칭)
    op.create_table(
        "employees",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("company_email", sa.String(255), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("department", sa.String(255), nullable=True),
        sa.Column("position", sa.String(255), nullable=True),
        sa.Column("manager", sa.String(255), nullable=True),
        sa.Column("manager_email", sa.String(255), nullable=True),
        sa.Column("status", sa.String(50), nullable=True),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp(nullable=True),
    )
    op.create_index("ix_employees_company_email_lower", "employees", [sa.text("lower(company_email)")])

    # 3. teams / team_members
    op.create_table(
        "teams",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp(),
    )
    op.create_table(
        "team_members",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("team_id", UUID(as_uuid=True), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(20), server_default="member", nullable=False),
        _timestamp(),
        sa.UniqueConstraint("team_id", "user_id", name="uq_team_member"),
    )
    op.create_index("ix_team_members_user_id", "team_members", ["user_id"])

    # 4. roles / employee_roles
    op.create_table(
        "roles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "accountable_to_role_id",
            UUID(as_uuid=True),
            sa.ForeignKey("roles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("display_order", sa.Integer(), server_default="0", nullable=False),
        _timestamp(),
        _timestamp("updated_at"),
        sa.CheckConstraint("accountable_to_role_id IS NULL OR accountable_to_role_id <> id", name="ck_role_not_self_accountable"),
    )
    op.create_table(
        "employee_roles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("profile_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role_id", UUID(as_uuid=True), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
        _timestamp(),
        sa.UniqueConstraint("profile_id", "role_id", name="uq_employee_role"),
    )

    # 5. scorecards / scorecard_members
    op.create_table(
        "scorecards",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("type", sa.String(20), server_default="personal", nullable=False),
        sa.Column("owner_user_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("team_id", UUID(as_uuid=True), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("role_id", UUID(as_uuid=True), sa.ForeignKey("roles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("created_by", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        _timestamp(),
    )
    op.create_index("ix_scorecards_owner_user_id", "scorecards", ["owner_user_id"])
    op.create_table(
        "scorecard_members",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("scorecard_id", UUID(as_uuid=True), sa.ForeignKey("scorecards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(20), server_default="viewer", nullable=False),
        _timestamp(),
        sa.UniqueConstraint("scorecard_id", "user_id", name="uq_scorecard_member"),
    )

    # 6. metrics / metric_entries
    op.create_table(
        "metrics",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("scorecard_id", UUID(as_uuid=True), sa.ForeignKey("scorecards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cadence", sa.String(20), server_default="weekly", nullable=False),
        sa.Column("scoring_mode", sa.String(20), server_default="at_least", nullable=False),
        sa.Column("target_value", sa.Float(), nullable=True),
        sa.Column("target_min", sa.Float(), nullable=True),
        sa.Column("target_max", sa.Float(), nullable=True),
        sa.Column("target_boolean", sa.Boolean(), nullable=True),
        sa.Column("unit", sa.String(20), nullable=True),
        sa.Column("owner_user_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("display_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("is_archived", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_by", UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("archive_reason", sa.Text(), nullable=True),
        _timestamp(),
        sa.CheckConstraint("cadence IN ('weekly', 'monthly', 'quarterly')", name="ck_metric_cadence"),
        sa.CheckConstraint(
            "scoring_mode IN ('at_least', 'at_most', 'between', 'yes_no')",
            name="ck_metric_scoring_mode",
        ),
    )
    op.create_index("ix_metrics_scorecard_id", "metrics", ["scorecard_id"])
    op.create_table(
        "metric_entries",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("metric_id", UUID(as_uuid=True), sa.ForeignKey("metrics.id", ondelete="CASCADE"), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_by", UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        _timestamp(),
        sa.UniqueConstraint("metric_id", "period_start", name="uq_metric_entry_period"),
    )


def downgrade() -> None:
    op.drop_table("metric_entries")
    op.drop_index("ix_metrics_scorecard_id", table_name="metrics")
    op.drop_table("metrics")
    op.drop_table("scorecard_members")
    op.drop_index("ix_scorecards_owner_user_id", table_name="scorecards")
    op.drop_table("scorecards")
    op.drop_table("employee_roles")
    op.drop_table("roles")
    op.drop_index("ix_team_members_user_id", table_name="team_members")
    op.drop_table("team_members")
    op.drop_table("teams")
    op.drop_index("ix_employees_company_email_lower", table_name="employees")
    op.drop_table("employees")
    op.drop_index("ix_profiles_email_lower", table_name="profiles")
    op.drop_index("ix_profiles_manager_id", table_name="profiles")
    op.drop_table("profiles")
