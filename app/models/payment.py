from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.orm import relationship

from app.database import Base


class Payment(Base):
    __tablename__ = "payments"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_payments_amount_cents_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    payment_date = Column(Date, nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    applications = relationship(
        "PaymentApplication",
        back_populates="payment",
        cascade="all, delete-orphan",
        order_by="PaymentApplication.id",
    )


class PaymentApplication(Base):
    __tablename__ = "payment_applications"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_payment_applications_amount_cents_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)

    payment_id = Column(
        Integer,
        ForeignKey("payments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invoice_id = Column(
        Integer,
        ForeignKey("invoices.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    amount_cents = Column(Integer, nullable=False)

    payment = relationship("Payment", back_populates="applications")
    invoice = relationship("Invoice")
