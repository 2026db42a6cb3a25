import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import InvalidInputError, NotFoundError
from app.models.client import Client
from app.models.invoice import Invoice
from app.models.payment import Payment, PaymentApplication
from app.services.billing_math import parse_ymd, to_ymd
from app.services.repository import session_scope

logger = logging.getLogger(__name__)


def _positive_cents(value: Any, field: str) -> int:
    try:
        cents = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{field} must be an integer number of cents") from exc
    if cents <= 0:
        raise InvalidInputError(f"{field} must be positive")
    return cents


def _payment_row(payment: Payment, applied_cents: int) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "payment_date": to_ymd(payment.payment_date),
        "amount_cents": payment.amount_cents,
        "note": payment.note,
        "applied_amount_cents": int(applied_cents),
    }


def _applications(db: Session, payment_id: int) -> List[Dict[str, Any]]:
    rows = (
        db.query(PaymentApplication, Invoice, Client)
        .join(Invoice, PaymentApplication.invoice_id == Invoice.id)
        .join(Client, Invoice.client_id == Client.id)
        .filter(PaymentApplication.payment_id == int(payment_id))
        .order_by(PaymentApplication.id.asc())
        .all()
    )
    return [
        {
            "id": pa.id,
            "payment_id": pa.payment_id,
            "invoice_id": pa.invoice_id,
            "amount_cents": pa.amount_cents,
            "invoice_number": inv.invoice_number,
            "invoice_date": to_ymd(inv.invoice_date),
            "client_name": client.name,
        }
        for pa, inv, client in rows
    ]


def list_payments(*, db: Optional[Session] = None) -> List[Dict[str, Any]]:
    with session_scope(db) as session:
        rows = (
            session.query(
                Payment,
                func.coalesce(func.sum(PaymentApplication.amount_cents), 0).label("applied"),
            )
            .outerjoin(PaymentApplication, PaymentApplication.payment_id == Payment.id)
            .group_by(Payment.id)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
            .all()
        )
        return [_payment_row(p, applied) for p, applied in rows]


def get_payment(payment_id: int, *, db: Optional[Session] = None) -> Dict[str, Any]:
    with session_scope(db) as session:
        payment = session.query(Payment).filter(Payment.id == int(payment_id)).first()
        if payment is None:
            raise NotFoundError("Payment not found")

        applications = _applications(session, payment.id)
        result = _payment_row(payment, sum(a["amount_cents"] for a in applications))
        result["applications"] = applications
        return result


def create_payment(
    payment_date: Any,
    amount_cents: Any,
    note: Optional[str] = None,
    applications: Optional[List[Dict[str, Any]]] = None,
    *,
    db: Optional[Session] = None,
) -> Dict[str, Any]:
    """
    Record a payment and its allocation across invoices as one transaction.

    Over-application (sum of applications above the payment amount) is not
    rejected here.
    """
    paid_on = parse_ymd(payment_date, "payment_date")
    amount = _positive_cents(amount_cents, "amount_cents")
    applications = applications or []
    cleaned = [
        (int(a["invoice_id"]), _positive_cents(a.get("amount_cents"), "application amount_cents"))
        for a in applications
    ]

    with session_scope(db, commit=True) as session:
        invoice_ids = {invoice_id for invoice_id, _ in cleaned}
        if invoice_ids:
            found = {i for (i,) in session.query(Invoice.id).filter(Invoice.id.in_(sorted(invoice_ids))).all()}
            missing = sorted(invoice_ids - found)
            if missing:
                raise NotFoundError(f"Invoice with ID {missing[0]} not found")

        payment = Payment(payment_date=paid_on, amount_cents=amount, note=note or None)
        session.add(payment)
        session.flush()

        session.add_all(
            [
                PaymentApplication(payment_id=payment.id, invoice_id=invoice_id, amount_cents=cents)
                for invoice_id, cents in cleaned
            ]
        )
        session.flush()

        logger.info(
            "payment_recorded",
            extra={
                "payment_id": payment.id,
                "amount_cents": amount,
                "application_count": len(cleaned),
                "applied_cents": sum(c for _, c in cleaned),
            },
        )

        detail = _payment_row(payment, sum(c for _, c in cleaned))
        detail["applications"] = _applications(session, payment.id)
        return detail


def delete_payment(payment_id: int, *, db: Optional[Session] = None) -> Dict[str, Any]:
    with session_scope(db, commit=True) as session:
        payment = session.query(Payment).filter(Payment.id == int(payment_id)).first()
        if payment is None:
            raise NotFoundError("Payment not found")

        summary = _payment_row(payment, sum(a.amount_cents for a in payment.applications))
        session.delete(payment)
        session.flush()

        logger.info("payment_deleted", extra={"payment_id": summary["id"]})
        return summary
