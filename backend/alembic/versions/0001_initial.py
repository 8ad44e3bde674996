"""initial pricing rules, bookings and cleaner roster

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19 00:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            # ORM-managed updated_at (no database trigger).
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "pricing_field_configs",
        sa.Column("rule_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("service_type", sa.String(length=32), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("option", sa.String(length=120), nullable=False),
        sa.Column("label", sa.String(length=255)),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("value_type", sa.String(length=16), nullable=False),
        sa.Column("time", sa.Float()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("category_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint(
            "service_type", "category", "option", name="uq_pricing_field_configs_service_category_option"
        ),
    )
    op.create_index(
        "ix_pricing_field_configs_service_category",
        "pricing_field_configs",
        ["service_type", "category"],
    )

    op.create_table(
        "cleaners",
        sa.Column("cleaner_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("full_name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("hourly_rate", sa.Float()),
        sa.Column("percentage_rate", sa.Float()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "bookings",
        sa.Column("booking_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("service_type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("date_time", sa.DateTime(timezone=True)),
        sa.Column("total_cost", sa.Float(), nullable=False),
        sa.Column("total_hours", sa.Float()),
        sa.Column("cleaning_time", sa.Float()),
        sa.Column("is_first_time_customer", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("cleaner_id", sa.Integer(), sa.ForeignKey("cleaners.cleaner_id")),
        sa.Column("cleaner_rate", sa.Float()),
        sa.Column("cleaner_percentage", sa.Float()),
        sa.Column("cleaner_pay", sa.Float()),
        *_timestamps(),
    )
    op.create_index("ix_bookings_status_date_time", "bookings", ["status", "date_time"])
    op.create_index("ix_bookings_cleaner_id", "bookings", ["cleaner_id"])

    op.create_table(
        "cleaner_payments",
        sa.Column("payment_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "booking_id",
            sa.Integer(),
            sa.ForeignKey("bookings.booking_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("cleaner_id", sa.Integer(), sa.ForeignKey("cleaners.cleaner_id"), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("payment_type", sa.String(length=16), nullable=False),
        sa.Column("hourly_rate", sa.Float()),
        sa.Column("percentage_rate", sa.Float()),
        sa.Column("fixed_amount", sa.Float()),
        sa.Column("hours_assigned", sa.Float()),
        sa.Column("calculated_pay", sa.Float(), nullable=False),
        sa.Column("pay_overridden", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(length=32), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_cleaner_payments_booking_primary", "cleaner_payments", ["booking_id", "is_primary"])
    op.create_index("ix_cleaner_payments_cleaner_id", "cleaner_payments", ["cleaner_id"])


def downgrade() -> None:
    op.drop_index("ix_cleaner_payments_cleaner_id", table_name="cleaner_payments")
    op.drop_index("ix_cleaner_payments_booking_primary", table_name="cleaner_payments")
    op.drop_table("cleaner_payments")
    op.drop_index("ix_bookings_cleaner_id", table_name="bookings")
    op.drop_index("ix_bookings_status_date_time", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("cleaners")
    op.drop_index("ix_pricing_field_configs_service_category", table_name="pricing_field_configs")
    op.drop_table("pricing_field_configs")
