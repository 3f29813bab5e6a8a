"""create_otp_records

Revision ID: 4d2e8a1c9b07
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4d2e8a1c9b07"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create otp_records table and its lookup indexes."""
    op.create_table(
        "otp_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column(
            "purpose",
            sa.Enum(
                "register",
                "login",
                "reset",
                "verify_phone",
                name="otp_purpose",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("code_hash", sa.String(length=60), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "active",
                "consumed",
                "expired",
                "exhausted",
                "revoked",
                name="otp_status",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_otp_records_lookup",
        "otp_records",
        ["phone", "purpose", "status", "created_at"],
        unique=False,
    )
    op.create_index(
        op.f("ix_otp_records_phone"), "otp_records", ["phone"], unique=False
    )
    op.create_index(
        op.f("ix_otp_records_expires_at"), "otp_records", ["expires_at"], unique=False
    )
    op.create_index(
        op.f("ix_otp_records_user_id"), "otp_records", ["user_id"], unique=False
    )


def downgrade() -> None:
    """Drop otp_records table."""
    op.drop_index(op.f("ix_otp_records_user_id"), table_name="otp_records")
    op.drop_index(op.f("ix_otp_records_expires_at"), table_name="otp_records")
    op.drop_index(op.f("ix_otp_records_phone"), table_name="otp_records")
    op.drop_index("ix_otp_records_lookup", table_name="otp_records")
    op.drop_table("otp_records")
