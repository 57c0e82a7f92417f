"""core schema: members, programs, memberships, invites, notifications, activity logs

Revision ID: 0001_fitness_core
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_fitness_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # members
    op.create_table(
        "members",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("first_name", sa.String(length=128), nullable=True),
        sa.Column("last_name", sa.String(length=128), nullable=True),
        sa.Column("gender", sa.String(length=32), nullable=True),
        sa.Column("global_role", sa.String(length=32), nullable=False, server_default=sa.text("'standard'")),
        sa.Column("date_joined", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("username", name="uq_members_username"),
    )

    # member_emails
    op.create_table(
        "member_emails",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], name="fk_member_emails_member", ondelete="CASCADE"),
        sa.UniqueConstraint("email", name="uq_member_emails_email"),
    )
    op.create_index("ix_member_emails_member", "member_emails", ["member_id"])

    # programs
    op.create_table(
        "programs",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("status", sa.String(length=64), nullable=False, server_default=sa.text("'planned'")),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["created_by"], ["members.id"], name="fk_programs_created_by", ondelete="SET NULL"),
    )
    op.create_index("ix_programs_created_by", "programs", ["created_by"])

    # program_memberships
    op.create_table(
        "program_memberships",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("program_id", sa.Uuid(), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default=sa.text("'member'")),
        sa.Column("status", sa.String(length=32), nullable=False, server_default=sa.text("'active'")),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("left_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["program_id"], ["programs.id"], name="fk_memberships_program", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], name="fk_memberships_member", ondelete="CASCADE"),
        sa.UniqueConstraint("program_id", "member_id", name="uq_program_membership_member"),
        sa.CheckConstraint("role IN ('admin', 'logger', 'member')", name="ck_program_memberships_role"),
    )
    op.create_index("ix_program_memberships_program_status", "program_memberships", ["program_id", "status"])
    op.create_index("ix_program_memberships_member_status", "program_memberships", ["member_id", "status"])

    # program_invites
    op.create_table(
        "program_invites",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("program_id", sa.Uuid(), nullable=False),
        sa.Column("invited_by", sa.Uuid(), nullable=True),
        sa.Column("invited_username", sa.String(length=64), nullable=True),
        sa.Column("invited_email", sa.String(length=320), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["program_id"], ["programs.id"], name="fk_program_invites_program", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invited_by"], ["members.id"], name="fk_program_invites_invited_by", ondelete="CASCADE"),
    )
    op.create_index("ix_program_invites_program", "program_invites", ["program_id"])
    op.create_index("ix_program_invites_username", "program_invites", ["invited_username"])
    op.create_index("ix_program_invites_email", "program_invites", ["invited_email"])

    # notifications
    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("type", sa.String(length=96), nullable=False),
        sa.Column("program_id", sa.Uuid(), nullable=True),
        sa.Column("actor_member_id", sa.Uuid(), nullable=True),
        sa.Column("title", sa.String(length=256), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["program_id"], ["programs.id"], name="fk_notifications_program", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["actor_member_id"], ["members.id"], name="fk_notifications_actor", ondelete="SET NULL"),
    )
    op.create_index("ix_notifications_actor", "notifications", ["actor_member_id"])
    op.create_index("ix_notifications_created", "notifications", ["created_at"])

    # notification_recipients
    op.create_table(
        "notification_recipients",
        sa.Column("notification_id", sa.Uuid(), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("notification_id", "member_id", name="pk_notification_recipients"),
        sa.ForeignKeyConstraint(["notification_id"], ["notifications.id"], name="fk_recipients_notification", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], name="fk_recipients_member", ondelete="CASCADE"),
    )
    op.create_index("ix_notification_recipients_member_ack", "notification_recipients", ["member_id", "acknowledged_at"])

    # workout_logs / daily_health_logs
    op.create_table(
        "workout_logs",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("membership_id", sa.Uuid(), nullable=False),
        sa.Column("workout_type", sa.String(length=64), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("log_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["membership_id"], ["program_memberships.id"], name="fk_workout_logs_membership", ondelete="CASCADE"),
        sa.CheckConstraint("duration_minutes > 0", name="ck_workout_logs_duration_positive"),
    )
    op.create_index("ix_workout_logs_membership_date", "workout_logs", ["membership_id", "log_date"])

    op.create_table(
        "daily_health_logs",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("membership_id", sa.Uuid(), nullable=False),
        sa.Column("log_date", sa.Date(), nullable=False),
        sa.Column("sleep_hours", sa.Numeric(4, 2), nullable=True),
        sa.Column("food_quality", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["membership_id"], ["program_memberships.id"], name="fk_daily_health_logs_membership", ondelete="CASCADE"),
    )
    op.create_index("ix_daily_health_logs_membership_date", "daily_health_logs", ["membership_id", "log_date"])


def downgrade():
    op.drop_index("ix_daily_health_logs_membership_date", table_name="daily_health_logs")
    op.drop_table("daily_health_logs")
    op.drop_index("ix_workout_logs_membership_date", table_name="workout_logs")
    op.drop_table("workout_logs")
    op.drop_index("ix_notification_recipients_member_ack", table_name="notification_recipients")
    op.drop_table("notification_recipients")
    op.drop_index("ix_notifications_created", table_name="notifications")
    op.drop_index("ix_notifications_actor", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_program_invites_email", table_name="program_invites")
    op.drop_index("ix_program_invites_username", table_name="program_invites")
    op.drop_index("ix_program_invites_program", table_name="program_invites")
    op.drop_table("program_invites")
    op.drop_index("ix_program_memberships_member_status", table_name="program_memberships")
    op.drop_index("ix_program_memberships_program_status", table_name="program_memberships")
    op.drop_table("program_memberships")
    op.drop_index("ix_programs_created_by", table_name="programs")
    op.drop_table("programs")
    op.drop_index("ix_member_emails_member", table_name="member_emails")
    op.drop_table("member_emails")
    op.drop_table("members")
