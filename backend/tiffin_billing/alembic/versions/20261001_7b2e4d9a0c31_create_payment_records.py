"""create incoming transfers, payment records, allocations and invoice payments tables

Revision ID: 7b2e4d9a0c31
Revises: 3f9a1c2b7d10
Create Date: 2026-10-01 09:10:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "7b2e4d9a0c31"
down_revision = "3f9a1c2b7d10"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "incoming_transfers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("reference", sa.String(length=255), nullable=False),
        sa.Column("sender_name", sa.String(length=255), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_incoming_transfers_reference"), "incoming_transfers", ["reference"], unique=True
    )
    op.create_index(
        op.f("ix_incoming_transfers_customer_id"),
        "incoming_transfers",
        ["customer_id"],
        unique=False,
    )

    op.create_table(
        "payment_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("source", sa.String(length=20), nullable=False),
        sa.Column("transfer_id", sa.String(length=36), nullable=True),
        sa.Column("payer_name", sa.String(length=255), nullable=True),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_allocated", sa.Numeric(12, 2), nullable=False),
        sa.Column("excess_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("allocation_status", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column("lifecycle_state", sa.String(length=20), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(length=255), nullable=True),
        sa.Column("delete_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["transfer_id"], ["incoming_transfers.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_payment_records_customer_id"), "payment_records", ["customer_id"], unique=False
    )
    op.create_index(
        op.f("ix_payment_records_allocation_status"),
        "payment_records",
        ["allocation_status"],
        unique=False,
    )

    op.create_table(
        "payment_allocations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("payment_record_id", sa.String(length=36), nullable=False),
        sa.Column("invoice_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("allocated_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("invoice_balance_before", sa.Numeric(12, 2), nullable=False),
        sa.Column("invoice_balance_after", sa.Numeric(12, 2), nullable=False),
        sa.Column("resulting_status", sa.String(length=20), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column("lifecycle_state", sa.String(length=20), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["payment_record_id"], ["payment_records.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_payment_allocations_payment_record_id"),
        "payment_allocations",
        ["payment_record_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_payment_allocations_invoice_id"),
        "payment_allocations",
        ["invoice_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_payment_allocations_customer_id"),
        "payment_allocations",
        ["customer_id"],
        unique=False,
    )
    op.create_index(
        "ix_payment_allocations_payment_order",
        "payment_allocations",
        ["payment_record_id", "order_index"],
        unique=False,
    )

    op.create_table(
        "invoice_payments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("invoice_id", sa.String(length=36), nullable=False),
        sa.Column("payment_record_id", sa.String(length=36), nullable=False),
        sa.Column("amount_applied", sa.Numeric(12, 2), nullable=False),
        sa.Column("applied_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["payment_record_id"], ["payment_records.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_invoice_payments_invoice_id"), "invoice_payments", ["invoice_id"], unique=False
    )
    op.create_index(
        op.f("ix_invoice_payments_payment_record_id"),
        "invoice_payments",
        ["payment_record_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_invoice_payments_payment_record_id"), table_name="invoice_payments")
    op.drop_index(op.f("ix_invoice_payments_invoice_id"), table_name="invoice_payments")
    op.drop_table("invoice_payments")
    op.drop_index("ix_payment_allocations_payment_order", table_name="payment_allocations")
    op.drop_index(op.f("ix_payment_allocations_customer_id"), table_name="payment_allocations")
    op.drop_index(op.f("ix_payment_allocations_invoice_id"), table_name="payment_allocations")
    op.drop_index(
        op.f("ix_payment_allocations_payment_record_id"), table_name="payment_allocations"
    )
    op.drop_table("payment_allocations")
    op.drop_index(op.f("ix_payment_records_allocation_status"), table_name="payment_records")
    op.drop_index(op.f("ix_payment_records_customer_id"), table_name="payment_records")
    op.drop_table("payment_records")
    op.drop_index(op.f("ix_incoming_transfers_customer_id"), table_name="incoming_transfers")
    op.drop_index(op.f("ix_incoming_transfers_reference"), table_name="incoming_transfers")
    op.drop_table("incoming_transfers")
