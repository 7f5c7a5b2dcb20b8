"""
Cronômetros ativos

Revision ID: 002
Revises: 001
Create Date: 2026-10-16 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ========================
    # TABELA: active_time_sessions
    # ========================
    op.create_table(
        "active_time_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("escritorio_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("session_name", sa.String(100), nullable=True),
        sa.Column("entry_type", postgresql.ENUM(name="timeentrytype", create_type=False), nullable=False, server_default="case_work"),
        sa.Column("matter_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("client_subscription_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("service_type", sa.String(50), nullable=True),
        sa.Column("activity_description", sa.Text(), nullable=True),
        sa.Column("is_billable", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("billable_rate", sa.Numeric(10, 2), nullable=True),
        # Tempo
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_heartbeat", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_paused", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("paused_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pause_duration_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["usuarios.id"]),
        sa.UniqueConstraint("escritorio_id", "user_id", name="uq_active_time_sessions_user"),
        sa.CheckConstraint("pause_duration_minutes >= 0", name="ck_active_time_sessions_pause"),
    )
    op.create_index("ix_active_time_sessions_escritorio_id", "active_time_sessions", ["escritorio_id"])


def downgrade() -> None:
    op.drop_table("active_time_sessions")
