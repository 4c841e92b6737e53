"""add ad platforms, platform credentials and operation log tables

Revision ID: add_platform_credentials_tables
Revises:
Create Date: 2026-10-18 12:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "add_platform_credentials_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "ad_platforms",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=False),
        sa.Column("api_base_url", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_ad_platforms_name", "ad_platforms", ["name"], unique=True)

    op.create_table(
        "platform_credentials",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("advertiser_id", sa.String(length=255), nullable=False),
        sa.Column(
            "platform_id",
            sa.String(length=36),
            sa.ForeignKey("ad_platforms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "profile_id",
            sa.String(length=64),
            nullable=True,
            comment="Provider sub-account (advertising profile) used as API scope",
        ),
        sa.Column("access_token_encrypted", sa.String(length=4096), nullable=True),
        sa.Column("refresh_token_encrypted", sa.String(length=4096), nullable=True),
        sa.Column("token_expires_at", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("advertiser_id", "platform_id", name="uq_platform_credentials_advertiser_platform"),
    )
    op.create_index("ix_platform_credentials_advertiser_id", "platform_credentials", ["advertiser_id"])
    op.create_index("ix_platform_credentials_platform_id", "platform_credentials", ["platform_id"])
    op.create_index("ix_platform_credentials_token_expires_at", "platform_credentials", ["token_expires_at"])
    op.create_index(
        "ix_platform_credentials_active_expiry",
        "platform_credentials",
        ["is_active", "token_expires_at"],
    )

    op.create_table(
        "platform_operation_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("advertiser_id", sa.String(length=255), nullable=False),
        sa.Column("platform_id", sa.String(length=36), nullable=False),
        sa.Column("credential_id", sa.String(length=36), nullable=True),
        sa.Column("operation_type", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("request_payload", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_platform_operation_logs_advertiser_id", "platform_operation_logs", ["advertiser_id"])
    op.create_index("ix_platform_operation_logs_platform_id", "platform_operation_logs", ["platform_id"])
    op.create_index("ix_platform_operation_logs_credential_id", "platform_operation_logs", ["credential_id"])
    op.create_index(
        "ix_platform_operation_logs_advertiser_created",
        "platform_operation_logs",
        ["advertiser_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_platform_operation_logs_advertiser_created", table_name="platform_operation_logs")
    op.drop_index("ix_platform_operation_logs_credential_id", table_name="platform_operation_logs")
    op.drop_index("ix_platform_operation_logs_platform_id", table_name="platform_operation_logs")
    op.drop_index("ix_platform_operation_logs_advertiser_id", table_name="platform_operation_logs")
    op.drop_table("platform_operation_logs")

    op.drop_index("ix_platform_credentials_active_expiry", table_name="platform_credentials")
    op.drop_index("ix_platform_credentials_token_expires_at", table_name="platform_credentials")
    op.drop_index("ix_platform_credentials_platform_id", table_name="platform_credentials")
    op.drop_index("ix_platform_credentials_advertiser_id", table_name="platform_credentials")
    op.drop_table("platform_credentials")

    op.drop_index("ix_ad_platforms_name", table_name="ad_platforms")
    op.drop_table("ad_platforms")
