from datetime import date
from itertools import count
from typing import Optional

from app.models.client import Client
from app.models.invoice import Invoice
from app.models.payment import Payment, PaymentApplication
from app.models.time_entry import TimeEntry
from app.models.work_type import WorkType

_seq = count(1)


def make_client(db, *, name: Optional[str] = None, hourly_rate_cents: int = 15000, discount_percent=0) -> Client:
    n = next(_seq)
    row = Client(
        type="business",
        name=name or f"Client {n}",
        email=f"client{n}@example.com",
        hourly_rate_cents=hourly_rate_cents,
        discount_percent=discount_percent,
    )
    db.add(row)
    db.flush()
    return row


def make_work_type(db, code: Optional[str] = None, description: str = "Development") -> WorkType:
    row = WorkType(code=code or f"WT{next(_seq)}", description=description)
    db.add(row)
    db.flush()
    return row


def add_time_entry(
    db,
    client: Client,
    work_type: WorkType,
    work_date: date,
    minutes: int,
    project_name: Optional[str] = None,
    detail: Optional[str] = None,
) -> TimeEntry:
    row = TimeEntry(
        client_id=client.id,
        work_type_id=work_type.id,
        project_name=project_name,
        work_date=work_date,
        minutes_spent=minutes,
        detail=detail,
    )
    db.add(row)
    db.flush()
    return row


def make_invoice(
    db,
    client: Client,
    invoice_number: int,
    invoice_date: date,
    total_cents: int,
    status: str = "sent",
) -> Invoice:
    row = Invoice(
        invoice_number=invoice_number,
        client_id=client.id,
        invoice_date=invoice_date,
        due_date=invoice_date,
        status=status,
        subtotal_cents=total_cents,
        discount_cents=0,
        total_cents=total_cents,
    )
    db.add(row)
    db.flush()
    return row


def apply_payment(db, payment_date: date, applications, note: Optional[str] = None) -> Payment:
    """applications: [(invoice, amount_cents), ...]; payment amount is their sum."""
    payment = Payment(
        payment_date=payment_date,
        amount_cents=sum(cents for _, cents in applications),
        note=note,
    )
    db.add(payment)
    db.flush()

    for invoice, cents in applications:
        db.add(PaymentApplication(payment_id=payment.id, invoice_id=invoice.id, amount_cents=cents))
    db.flush()
    return payment
