"""create billing tables

Revision ID: 3c1f8a2d9b10
Revises:
Create Date: 2026-03-02 10:14:37.201554

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1f8a2d9b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("type", sa.String(), nullable=False, server_default="business"),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("hourly_rate_cents", sa.Integer(), nullable=False),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("email", name="uq_clients_email"),
        sa.CheckConstraint("hourly_rate_cents >= 0", name="ck_clients_hourly_rate_cents_nonnegative"),
        sa.CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="ck_clients_discount_percent_range",
        ),
    )
    op.create_index("ix_clients_id", "clients", ["id"], unique=False)

    op.create_table(
        "work_types",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.UniqueConstraint("code", name="uq_work_types_code"),
    )
    op.create_index("ix_work_types_id", "work_types", ["id"], unique=False)

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("invoice_number", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("subtotal_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("discount_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="RESTRICT"),
        sa.CheckConstraint(
            "status IN ('draft', 'sent', 'paid', 'partially_paid', 'voided')",
            name="ck_invoices_status_valid",
        ),
        sa.CheckConstraint("subtotal_cents >= 0", name="ck_invoices_subtotal_cents_nonnegative"),
        sa.CheckConstraint("discount_cents >= 0", name="ck_invoices_discount_cents_nonnegative"),
        sa.CheckConstraint(
            "total_cents = subtotal_cents - discount_cents",
            name="ck_invoices_total_cents_balanced",
        ),
    )
    op.create_index("ix_invoices_id", "invoices", ["id"], unique=False)
    op.create_index("ix_invoices_invoice_number", "invoices", ["invoice_number"], unique=True)
    op.create_index("ix_invoices_client_id", "invoices", ["client_id"], unique=False)
    op.create_index("ix_invoices_invoice_date", "invoices", ["invoice_date"], unique=False)
    op.create_index("ix_invoices_status", "invoices", ["status"], unique=False)

    op.create_table(
        "invoice_lines",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("invoice_id", sa.Integer(), nullable=False),
        sa.Column("work_type_id", sa.Integer(), nullable=False),
        sa.Column("project_name", sa.String(), nullable=False, server_default=""),
        sa.Column("total_minutes", sa.Integer(), nullable=False),
        sa.Column("hourly_rate_cents", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("discount_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["work_type_id"], ["work_types.id"], ondelete="RESTRICT"),
        sa.CheckConstraint("total_minutes > 0", name="ck_invoice_lines_total_minutes_positive"),
        sa.CheckConstraint("amount_cents >= 0", name="ck_invoice_lines_amount_cents_nonnegative"),
        sa.CheckConstraint("discount_cents >= 0", name="ck_invoice_lines_discount_cents_nonnegative"),
    )
    op.create_index("ix_invoice_lines_id", "invoice_lines", ["id"], unique=False)
    op.create_index("ix_invoice_lines_invoice_id", "invoice_lines", ["invoice_id"], unique=False)
    op.create_index("ix_invoice_lines_work_type_id", "invoice_lines", ["work_type_id"], unique=False)

    op.create_table(
        "time_entries",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("work_type_id", sa.Integer(), nullable=False),
        sa.Column("project_name", sa.String(), nullable=True),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("minutes_spent", sa.Integer(), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("invoice_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["work_type_id"], ["work_types.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="RESTRICT"),
        sa.CheckConstraint("minutes_spent > 0", name="ck_time_entries_minutes_spent_positive"),
    )
    op.create_index("ix_time_entries_id", "time_entries", ["id"], unique=False)
    op.create_index("ix_time_entries_client_id", "time_entries", ["client_id"], unique=False)
    op.create_index("ix_time_entries_work_type_id", "time_entries", ["work_type_id"], unique=False)
    op.create_index("ix_time_entries_work_date", "time_entries", ["work_date"], unique=False)
    op.create_index("ix_time_entries_invoice_id", "time_entries", ["invoice_id"], unique=False)
    # candidate scan for invoicing: client + uninvoiced + date range
    op.create_index(
        "ix_time_entries_client_invoice_work_date",
        "time_entries",
        ["client_id", "invoice_id", "work_date"],
        unique=False,
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("amount_cents > 0", name="ck_payments_amount_cents_positive"),
    )
    op.create_index("ix_payments_id", "payments", ["id"], unique=False)
    op.create_index("ix_payments_payment_date", "payments", ["payment_date"], unique=False)

    op.create_table(
        "payment_applications",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("payment_id", sa.Integer(), nullable=False),
        sa.Column("invoice_id", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="RESTRICT"),
        sa.CheckConstraint("amount_cents > 0", name="ck_payment_applications_amount_cents_positive"),
    )
    op.create_index("ix_payment_applications_id", "payment_applications", ["id"], unique=False)
    op.create_index("ix_payment_applications_payment_id", "payment_applications", ["payment_id"], unique=False)
    op.create_index("ix_payment_applications_invoice_id", "payment_applications", ["invoice_id"], unique=False)

    op.create_table(
        "system_settings",
        sa.Column("key", sa.String(), primary_key=True, nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("system_settings")

    op.drop_index("ix_payment_applications_invoice_id", table_name="payment_applications")
    op.drop_index("ix_payment_applications_payment_id", table_name="payment_applications")
    op.drop_index("ix_payment_applications_id", table_name="payment_applications")
    op.drop_table("payment_applications")

    op.drop_index("ix_payments_payment_date", table_name="payments")
    op.drop_index("ix_payments_id", table_name="payments")
    op.drop_table("payments")

    op.drop_index("ix_time_entries_client_invoice_work_date", table_name="time_entries")
    op.drop_index("ix_time_entries_invoice_id", table_name="time_entries")
    op.drop_index("ix_time_entries_work_date", table_name="time_entries")
    op.drop_index("ix_time_entries_work_type_id", table_name="time_entries")
    op.drop_index("ix_time_entries_client_id", table_name="time_entries")
    op.drop_index("ix_time_entries_id", table_name="time_entries")
    op.drop_table("time_entries")

    op.drop_index("ix_invoice_lines_work_type_id", table_name="invoice_lines")
    op.drop_index("ix_invoice_lines_invoice_id", table_name="invoice_lines")
    op.drop_index("ix_invoice_lines_id", table_name="invoice_lines")
    op.drop_table("invoice_lines")

    op.drop_index("ix_invoices_status", table_name="invoices")
    op.drop_index("ix_invoices_invoice_date", table_name="invoices")
    op.drop_index("ix_invoices_client_id", table_name="invoices")
    op.drop_index("ix_invoices_invoice_number", table_name="invoices")
    op.drop_index("ix_invoices_id", table_name="invoices")
    op.drop_table("invoices")

    op.drop_index("ix_work_types_id", table_name="work_types")
    op.drop_table("work_types")

    op.drop_index("ix_clients_id", table_name="clients")
    op.drop_table("clients")
