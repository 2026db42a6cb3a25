from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.database import Base

INVOICE_STATUSES = ("draft", "sent", "paid", "partially_paid", "voided")


class Invoice(Base):
    __tablename__ = "invoices"

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'sent', 'paid', 'partially_paid', 'voided')",
            name="ck_invoices_status_valid",
        ),
        CheckConstraint("subtotal_cents >= 0", name="ck_invoices_subtotal_cents_nonnegative"),
        CheckConstraint("discount_cents >= 0", name="ck_invoices_discount_cents_nonnegative"),
        CheckConstraint(
            "total_cents = subtotal_cents - discount_cents",
            name="ck_invoices_total_cents_balanced",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(Integer, nullable=False, unique=True, index=True)

    client_id = Column(
        Integer,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    invoice_date = Column(Date, nullable=False, index=True)
    due_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="draft", index=True)

    subtotal_cents = Column(Integer, nullable=False, default=0)
    discount_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    lines = relationship(
        "InvoiceLine",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLine.id",
    )


class InvoiceLine(Base):
    __tablename__ = "invoice_lines"

    __table_args__ = (
        CheckConstraint("total_minutes > 0", name="ck_invoice_lines_total_minutes_positive"),
        CheckConstraint("amount_cents >= 0", name="ck_invoice_lines_amount_cents_nonnegative"),
        CheckConstraint("discount_cents >= 0", name="ck_invoice_lines_discount_cents_nonnegative"),
    )

    id = Column(Integer, primary_key=True, index=True)

    invoice_id = Column(
        Integer,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    work_type_id = Column(
        Integer,
        ForeignKey("work_types.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    project_name = Column(String, nullable=False, default="")
    total_minutes = Column(Integer, nullable=False)
    hourly_rate_cents = Column(Integer, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    # share of the invoice-level discount, fixed at creation
    discount_cents = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)

    invoice = relationship("Invoice", back_populates="lines")
    work_type = relationship("WorkType")
