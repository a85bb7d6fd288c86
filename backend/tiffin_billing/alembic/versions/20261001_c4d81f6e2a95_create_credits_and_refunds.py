"""create customer credits, credit usages and refunds tables

Revision ID: c4d81f6e2a95
Revises: 7b2e4d9a0c31
Create Date: 2026-10-01 09:20:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "c4d81f6e2a95"
down_revision = "7b2e4d9a0c31"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "customer_credits",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("source_payment_id", sa.String(length=36), nullable=True),
        sa.Column("original_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("current_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("lifecycle_state", sa.String(length=20), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["source_payment_id"], ["payment_records.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_customer_credits_customer_id"), "customer_credits", ["customer_id"], unique=False
    )
    op.create_index(
        op.f("ix_customer_credits_source_payment_id"),
        "customer_credits",
        ["source_payment_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_customer_credits_status"), "customer_credits", ["status"], unique=False
    )
    op.create_index(
        op.f("ix_customer_credits_created_at"), "customer_credits", ["created_at"], unique=False
    )

    op.create_table(
        "customer_credit_usages",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("credit_id", sa.String(length=36), nullable=False),
        sa.Column("invoice_id", sa.String(length=36), nullable=False),
        sa.Column("amount_used", sa.Numeric(12, 2), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["credit_id"], ["customer_credits.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_customer_credit_usages_credit_id"),
        "customer_credit_usages",
        ["credit_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_customer_credit_usages_invoice_id"),
        "customer_credit_usages",
        ["invoice_id"],
        unique=False,
    )

    op.create_table(
        "refunds",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("source_type", sa.String(length=20), nullable=False),
        sa.Column("credit_id", sa.String(length=36), nullable=True),
        sa.Column("payment_record_id", sa.String(length=36), nullable=True),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("refund_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("refund_method", sa.String(length=20), nullable=False),
        sa.Column("refund_date", sa.Date(), nullable=False),
        sa.Column("reference_number", sa.String(length=255), nullable=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("requested_by", sa.String(length=255), nullable=False),
        sa.Column("approved_by", sa.String(length=255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("lifecycle_state", sa.String(length=20), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["credit_id"], ["customer_credits.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["payment_record_id"], ["payment_records.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_refunds_credit_id"), "refunds", ["credit_id"], unique=False)
    op.create_index(
        op.f("ix_refunds_payment_record_id"), "refunds", ["payment_record_id"], unique=False
    )
    op.create_index(op.f("ix_refunds_customer_id"), "refunds", ["customer_id"], unique=False)
    op.create_index(op.f("ix_refunds_status"), "refunds", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_refunds_status"), table_name="refunds")
    op.drop_index(op.f("ix_refunds_customer_id"), table_name="refunds")
    op.drop_index(op.f("ix_refunds_payment_record_id"), table_name="refunds")
    op.drop_index(op.f("ix_refunds_credit_id"), table_name="refunds")
    op.drop_table("refunds")
    op.drop_index(
        op.f("ix_customer_credit_usages_invoice_id"), table_name="customer_credit_usages"
    )
    op.drop_index(
        op.f("ix_customer_credit_usages_credit_id"), table_name="customer_credit_usages"
    )
    op.drop_table("customer_credit_usages")
    op.drop_index(op.f("ix_customer_credits_created_at"), table_name="customer_credits")
    op.drop_index(op.f("ix_customer_credits_status"), table_name="customer_credits")
    op.drop_index(op.f("ix_customer_credits_source_payment_id"), table_name="customer_credits")
    op.drop_index(op.f("ix_customer_credits_customer_id"), table_name="customer_credits")
    op.drop_table("customer_credits")
