from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Iterable, Iterator, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError
from app.database import SessionLocal
from app.models.client import Client
from app.models.invoice import Invoice, InvoiceLine
from app.models.payment import Payment, PaymentApplication
from app.models.system_setting import COMPANY_SETTING_KEYS, SystemSetting
from app.models.time_entry import TimeEntry
from app.models.work_type import WorkType


@contextmanager
def session_scope(db: Optional[Session] = None, *, commit: bool = False) -> Iterator[Session]:
    """
    If db is provided, the caller owns the transaction: nothing is committed,
    rolled back or closed here.
    If db is None, a session is opened and closed here; with commit=True the
    whole block commits as one unit and any exception rolls all of it back.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        yield db
        if owns_db and commit:
            db.commit()
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


class BillingRepository:
    """
    Read/write access used by the billing services.

    Never commits: the session (and therefore the transaction) belongs to the
    caller.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------- Clients / work types ----------

    def get_client(self, client_id: int) -> Client:
        row = self.db.query(Client).filter(Client.id == int(client_id)).first()
        if row is None:
            raise NotFoundError(f"Client with ID {client_id} not found")
        return row

    def get_work_types(self, work_type_ids: Iterable[int]) -> Dict[int, WorkType]:
        ids = sorted({int(i) for i in work_type_ids})
        if not ids:
            return {}
        rows = self.db.query(WorkType).filter(WorkType.id.in_(ids)).all()
        return {r.id: r for r in rows}

    # ---------- Time entries ----------

    def list_uninvoiced_time_entries(self, client_id: int, date_from: date, date_to: date) -> List[TimeEntry]:
        return (
            self.db.query(TimeEntry)
            .filter(
                TimeEntry.client_id == int(client_id),
                TimeEntry.invoice_id.is_(None),
                TimeEntry.work_date >= date_from,
                TimeEntry.work_date <= date_to,
            )
            .order_by(TimeEntry.work_date.asc(), TimeEntry.id.asc())
            .all()
        )

    def claim_time_entries(self, time_entry_ids: List[int], invoice_id: int) -> int:
        ids = sorted({int(i) for i in time_entry_ids})
        if not ids:
            return 0

        result = self.db.execute(
            update(TimeEntry)
            .where(TimeEntry.id.in_(ids), TimeEntry.invoice_id.is_(None))
            .values(invoice_id=int(invoice_id))
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != len(ids):
            raise ConflictError("Time entries were claimed by another invoice")
        return int(result.rowcount)

    def release_time_entries(self, invoice_id: int) -> int:
        result = self.db.execute(
            update(TimeEntry)
            .where(TimeEntry.invoice_id == int(invoice_id))
            .values(invoice_id=None)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount)

    # ---------- Invoices ----------

    def get_invoice(self, invoice_id: int) -> Invoice:
        row = self.db.query(Invoice).filter(Invoice.id == int(invoice_id)).first()
        if row is None:
            raise NotFoundError("Invoice not found")
        return row

    def invoice_number_exists(self, invoice_number: int) -> bool:
        row = self.db.query(Invoice.id).filter(Invoice.invoice_number == int(invoice_number)).first()
        return row is not None

    def max_invoice_number(self) -> Optional[int]:
        value = self.db.query(func.max(Invoice.invoice_number)).scalar()
        return None if value is None else int(value)

    def insert_invoice(self, fields: Dict[str, Any]) -> Invoice:
        invoice = Invoice(**fields)
        self.db.add(invoice)
        try:
            self.db.flush()
        except IntegrityError as exc:
            # lost a race on the unique invoice number; anything else propagates
            if "invoice_number" in str(exc.orig):
                raise ConflictError("Invoice number already exists") from exc
            raise
        return invoice

    def insert_invoice_lines(self, invoice_id: int, lines: List[Dict[str, Any]]) -> List[InvoiceLine]:
        rows = [InvoiceLine(invoice_id=int(invoice_id), **line) for line in lines]
        self.db.add_all(rows)
        self.db.flush()
        return rows

    def list_invoice_lines(self, invoice_id: int) -> List[InvoiceLine]:
        return (
            self.db.query(InvoiceLine)
            .filter(InvoiceLine.invoice_id == int(invoice_id))
            .order_by(InvoiceLine.id.asc())
            .all()
        )

    def list_invoices(
        self,
        client_id: int,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        exclude_voided: bool = True,
    ) -> List[Invoice]:
        q = self.db.query(Invoice).filter(Invoice.client_id == int(client_id))

        if date_from is not None:
            q = q.filter(Invoice.invoice_date >= date_from)
        if date_to is not None:
            q = q.filter(Invoice.invoice_date <= date_to)
        if exclude_voided:
            q = q.filter(Invoice.status != "voided")

        return q.order_by(Invoice.invoice_date.asc(), Invoice.invoice_number.asc()).all()

    def sum_invoices_before(self, client_id: int, before: date) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(Invoice.total_cents), 0))
            .filter(Invoice.client_id == int(client_id))
            .filter(Invoice.status != "voided")
            .filter(Invoice.invoice_date < before)
            .scalar()
        )
        return int(total or 0)

    # ---------- Payments ----------

    def _payment_applications_query(self, client_id: int, exclude_voided: bool):
        q = (
            self.db.query(
                PaymentApplication.id.label("application_id"),
                PaymentApplication.payment_id.label("payment_id"),
                PaymentApplication.invoice_id.label("invoice_id"),
                PaymentApplication.amount_cents.label("amount_cents"),
                Payment.payment_date.label("payment_date"),
                Payment.note.label("payment_note"),
                Invoice.invoice_number.label("invoice_number"),
                Invoice.client_id.label("client_id"),
            )
            .join(Payment, PaymentApplication.payment_id == Payment.id)
            .join(Invoice, PaymentApplication.invoice_id == Invoice.id)
            .filter(Invoice.client_id == int(client_id))
        )
        if exclude_voided:
            q = q.filter(Invoice.status != "voided")
        return q

    def list_payment_applications(
        self,
        client_id: int,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        exclude_voided: bool = True,
    ) -> list:
        q = self._payment_applications_query(client_id, exclude_voided)

        if date_from is not None:
            q = q.filter(Payment.payment_date >= date_from)
        if date_to is not None:
            q = q.filter(Payment.payment_date <= date_to)

        return q.order_by(Payment.payment_date.asc(), PaymentApplication.id.asc()).all()

    def sum_payment_applications_before(self, client_id: int, before: date) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(PaymentApplication.amount_cents), 0))
            .join(Payment, PaymentApplication.payment_id == Payment.id)
            .join(Invoice, PaymentApplication.invoice_id == Invoice.id)
            .filter(Invoice.client_id == int(client_id))
            .filter(Invoice.status != "voided")
            .filter(Payment.payment_date < before)
            .scalar()
        )
        return int(total or 0)

    def count_payment_applications_for_invoice(self, invoice_id: int) -> int:
        return int(
            self.db.query(func.count(PaymentApplication.id))
            .filter(PaymentApplication.invoice_id == int(invoice_id))
            .scalar()
            or 0
        )

    # ---------- Settings ----------

    def get_company_settings(self) -> Dict[str, str]:
        rows = self.db.query(SystemSetting).filter(SystemSetting.key.in_(COMPANY_SETTING_KEYS)).all()
        values = {r.key: r.value for r in rows}
        return {key: values.get(key) or "" for key in COMPANY_SETTING_KEYS}
