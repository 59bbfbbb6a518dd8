"""integrations and health checks

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()

    if "integrations" not in tables:
        op.create_table(
            "integrations",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("type", sa.String(length=32), nullable=False),
            sa.Column("provider", sa.String(length=64), nullable=True),
            sa.Column("status", sa.String(length=16), nullable=False, server_default="unknown"),
            sa.Column("credential_source", sa.String(length=512), nullable=True),
            sa.Column("last_validated", sa.DateTime(), nullable=True),
            sa.Column("validation_message", sa.Text(), nullable=True),
            sa.Column("config", sa.Text(), nullable=True),
            sa.Column("metadata", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.CheckConstraint(
                "type IN ('api_key', 'cli_auth', 'credential_provider', 'mcp_plugin', 'mcp_server', "
                "'webhook', 'cli_tool', 'oauth_token', 'browser_profile', 'cron_job')",
                name="ck_integrations_type",
            ),
            sa.CheckConstraint(
                "status IN ('connected', 'expired', 'broken', 'unconfigured', 'unknown')",
                name="ck_integrations_status",
            ),
        )
        op.create_index("idx_integrations_status", "integrations", ["status"])

    if "health_checks" not in tables:
        op.create_table(
            "health_checks",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("target_type", sa.String(length=16), nullable=False),
            sa.Column("target_id", sa.String(length=36), nullable=False),
            sa.Column("status", sa.String(length=8), nullable=False),
            sa.Column("message", sa.Text(), nullable=True),
            sa.Column("duration_ms", sa.Integer(), nullable=True),
            sa.Column("checked_at", sa.DateTime(), nullable=False),
            sa.CheckConstraint(
                "target_type IN ('capability', 'integration')",
                name="ck_health_checks_target_type",
            ),
            sa.CheckConstraint(
                "status IN ('pass', 'fail', 'warn', 'skip')",
                name="ck_health_checks_status",
            ),
        )
        op.create_index("idx_health_checks_target", "health_checks", ["target_type", "target_id"])
        op.create_index("idx_health_checks_checked", "health_checks", ["checked_at"])


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()
    if "health_checks" in tables:
        op.drop_table("health_checks")
    if "integrations" in tables:
        op.drop_table("integrations")
