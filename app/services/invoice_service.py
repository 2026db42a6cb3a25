from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import (
    ConflictError,
    EmptyResultError,
    InvalidInputError,
    LedgerInvariantError,
)
from app.models.client import Client
from app.models.invoice import INVOICE_STATUSES, Invoice, InvoiceLine
from app.models.time_entry import TimeEntry
from app.models.work_type import WorkType
from app.services.billing_math import (
    allocate_cents,
    discount_cents,
    line_amount_cents,
    normalize_project_name,
    parse_ymd,
    to_ymd,
)
from app.services.repository import BillingRepository, session_scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class LineKey:
    work_type_id: int
    project_name: str


@dataclass
class _LineAccumulator:
    key: LineKey
    total_minutes: int = 0
    time_entry_ids: List[int] = field(default_factory=list)
    details: List[str] = field(default_factory=list)


@dataclass
class _Aggregation:
    lines: List[Dict[str, Any]]
    time_entry_ids: List[int]
    subtotal_cents: int
    discount_cents: int
    total_cents: int
    total_entries: int


def _compile_description(details: Iterable[Optional[str]]) -> str:
    seen: List[str] = []
    for detail in details:
        if detail is None or not detail.strip():
            continue
        text = detail.strip()
        if text not in seen:
            seen.append(text)
    return "\n".join(seen)


def group_time_entries(entries: Iterable[TimeEntry]) -> List[_LineAccumulator]:
    """
    Group entries by (work_type_id, project_name), null/blank project -> "".

    Returned in key order so the result never depends on row order.
    """
    groups: Dict[LineKey, _LineAccumulator] = {}

    for entry in sorted(entries, key=lambda e: (e.work_date, e.id)):
        key = LineKey(int(entry.work_type_id), normalize_project_name(entry.project_name))
        acc = groups.get(key)
        if acc is None:
            acc = _LineAccumulator(key=key)
            groups[key] = acc

        acc.total_minutes += int(entry.minutes_spent)
        acc.time_entry_ids.append(int(entry.id))
        acc.details.append(entry.detail)

    return [groups[k] for k in sorted(groups)]


def _aggregate(client: Client, entries: List[TimeEntry], work_types: Dict[int, WorkType]) -> _Aggregation:
    rate = int(client.hourly_rate_cents)
    groups = group_time_entries(entries)

    amounts = [line_amount_cents(g.total_minutes, rate) for g in groups]
    subtotal = sum(amounts)
    discount = discount_cents(subtotal, client.discount_percent)
    line_discounts = allocate_cents(discount, amounts)

    lines: List[Dict[str, Any]] = []
    for g, amount, line_discount in zip(groups, amounts, line_discounts):
        wt = work_types.get(g.key.work_type_id)
        lines.append(
            {
                "work_type_id": g.key.work_type_id,
                "work_type_code": None if wt is None else wt.code,
                "work_type_description": None if wt is None else wt.description,
                "project_name": g.key.project_name,
                "total_minutes": g.total_minutes,
                "hourly_rate_cents": rate,
                "amount_cents": amount,
                "discount_cents": line_discount,
                "entry_count": len(g.time_entry_ids),
                "description": _compile_description(g.details),
                "time_entry_ids": list(g.time_entry_ids),
            }
        )

    return _Aggregation(
        lines=lines,
        time_entry_ids=[i for g in groups for i in g.time_entry_ids],
        subtotal_cents=subtotal,
        discount_cents=discount,
        total_cents=subtotal - discount,
        total_entries=len(entries),
    )


def verify_invoice_totals(
    lines: List[Dict[str, Any]],
    subtotal_cents: int,
    discount_total_cents: int,
    total_cents: int,
) -> None:
    line_sum = sum(int(line["amount_cents"]) for line in lines)
    line_discount_sum = sum(int(line.get("discount_cents", 0)) for line in lines)

    if line_sum != subtotal_cents:
        raise LedgerInvariantError(
            f"Invoice reconciliation failed: line_total={line_sum}, subtotal={subtotal_cents}"
        )
    if line_discount_sum != discount_total_cents:
        raise LedgerInvariantError(
            f"Invoice reconciliation failed: line_discounts={line_discount_sum}, discount={discount_total_cents}"
        )
    if total_cents != subtotal_cents - discount_total_cents:
        raise LedgerInvariantError(
            f"Invoice reconciliation failed: total={total_cents}, "
            f"subtotal={subtotal_cents}, discount={discount_total_cents}"
        )


def _client_snapshot(client: Client) -> Dict[str, Any]:
    return {
        "id": client.id,
        "name": client.name,
        "email": client.email,
        "hourly_rate_cents": int(client.hourly_rate_cents),
        "discount_percent": float(client.discount_percent or 0),
    }


def _load_aggregation(repo: BillingRepository, client: Client, start: date, end: date) -> _Aggregation:
    entries = repo.list_uninvoiced_time_entries(client.id, start, end)
    work_types = repo.get_work_types(e.work_type_id for e in entries)
    return _aggregate(client, entries, work_types)


def preview_invoice(client_id: int, start_date: Any, end_date: Any, *, db: Optional[Session] = None) -> Dict[str, Any]:
    """
    Read-only: what create_invoice_from_time_entries would bill for this range.

    An empty range (or an inverted one) gives an empty preview, not an error.
    """
    start = parse_ymd(start_date, "start_date")
    end = parse_ymd(end_date, "end_date")

    with session_scope(db) as session:
        repo = BillingRepository(session)
        client = repo.get_client(client_id)
        agg = _load_aggregation(repo, client, start, end)

        return {
            "client": _client_snapshot(client),
            "lines": [{k: v for k, v in line.items() if k != "time_entry_ids"} for line in agg.lines],
            "subtotal_cents": agg.subtotal_cents,
            "discount_cents": agg.discount_cents,
            "total_cents": agg.total_cents,
            "total_entries": agg.total_entries,
            "date_range": {"start": start.isoformat(), "end": end.isoformat()},
        }


def _require_invoice_number(invoice_number: Any) -> int:
    try:
        value = int(invoice_number)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError("invoice_number must be an integer") from exc
    if value <= 0:
        raise InvalidInputError("invoice_number must be positive")
    return value


def create_invoice_from_time_entries(
    client_id: int,
    start_date: Any,
    end_date: Any,
    invoice_number: Any,
    invoice_date: Any,
    due_date: Any,
    *,
    db: Optional[Session] = None,
) -> Dict[str, Any]:
    """
    Bill every uninvoiced time entry of the client in [start_date, end_date].

    The invoice row, its lines and the claim on every consumed time entry are
    one unit of work. If db is provided, the caller commits or rolls back;
    otherwise this function commits once at the end, and any failure leaves
    nothing behind.
    """
    start = parse_ymd(start_date, "start_date")
    end = parse_ymd(end_date, "end_date")
    inv_date = parse_ymd(invoice_date, "invoice_date")
    due = parse_ymd(due_date, "due_date")
    number = _require_invoice_number(invoice_number)

    with session_scope(db, commit=True) as session:
        repo = BillingRepository(session)
        client = repo.get_client(client_id)

        if repo.invoice_number_exists(number):
            raise ConflictError("Invoice number already exists")

        agg = _load_aggregation(repo, client, start, end)
        if agg.total_entries == 0:
            raise EmptyResultError("No uninvoiced time entries found for the specified client and date range")

        verify_invoice_totals(agg.lines, agg.subtotal_cents, agg.discount_cents, agg.total_cents)

        invoice = repo.insert_invoice(
            {
                "invoice_number": number,
                "client_id": client.id,
                "invoice_date": inv_date,
                "due_date": due,
                "status": "draft",
                "subtotal_cents": agg.subtotal_cents,
                "discount_cents": agg.discount_cents,
                "total_cents": agg.total_cents,
            }
        )

        repo.insert_invoice_lines(
            invoice.id,
            [
                {
                    "work_type_id": line["work_type_id"],
                    "project_name": line["project_name"],
                    "total_minutes": line["total_minutes"],
                    "hourly_rate_cents": line["hourly_rate_cents"],
                    "amount_cents": line["amount_cents"],
                    "discount_cents": line["discount_cents"],
                    "description": line["description"] or None,
                }
                for line in agg.lines
            ],
        )

        claimed = repo.claim_time_entries(agg.time_entry_ids, invoice.id)

        logger.info(
            "invoice_created_from_time_entries",
            extra={
                "invoice_id": invoice.id,
                "invoice_number": number,
                "client_id": client.id,
                "line_count": len(agg.lines),
                "claimed_entries": claimed,
                "subtotal_cents": agg.subtotal_cents,
                "discount_cents": agg.discount_cents,
                "total_cents": agg.total_cents,
            },
        )

        return _invoice_detail(repo, invoice, client)


def get_next_invoice_number(*, db: Optional[Session] = None) -> int:
    """Advisory only; the uniqueness check in create is the real guard."""
    with session_scope(db) as session:
        current = BillingRepository(session).max_invoice_number()
        return 1 if current is None else current + 1


# ---------- Invoice reads / edits ----------


def _invoice_summary(invoice: Invoice, client: Client) -> Dict[str, Any]:
    return {
        "id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "client_id": invoice.client_id,
        "client_name": client.name,
        "client_email": client.email,
        "client_type": client.type,
        "invoice_date": to_ymd(invoice.invoice_date),
        "due_date": to_ymd(invoice.due_date),
        "status": invoice.status,
        "subtotal_cents": invoice.subtotal_cents,
        "discount_cents": invoice.discount_cents,
        "total_cents": invoice.total_cents,
    }


def _line_detail(line: InvoiceLine, work_types: Dict[int, WorkType]) -> Dict[str, Any]:
    wt = work_types.get(line.work_type_id)
    return {
        "id": line.id,
        "invoice_id": line.invoice_id,
        "work_type_id": line.work_type_id,
        "work_type_code": None if wt is None else wt.code,
        "work_type_description": None if wt is None else wt.description,
        "project_name": line.project_name,
        "total_minutes": line.total_minutes,
        "hourly_rate_cents": line.hourly_rate_cents,
        "amount_cents": line.amount_cents,
        "discount_cents": line.discount_cents,
        "description": line.description,
    }


def _invoice_detail(repo: BillingRepository, invoice: Invoice, client: Client) -> Dict[str, Any]:
    lines = repo.list_invoice_lines(invoice.id)
    work_types = repo.get_work_types(line.work_type_id for line in lines)
    result = _invoice_summary(invoice, client)
    result["lines"] = [_line_detail(line, work_types) for line in lines]
    return result


def get_invoice(invoice_id: int, *, db: Optional[Session] = None) -> Dict[str, Any]:
    with session_scope(db) as session:
        repo = BillingRepository(session)
        invoice = repo.get_invoice(invoice_id)
        return _invoice_detail(repo, invoice, repo.get_client(invoice.client_id))


def list_invoices(
    client_id: Optional[int] = None,
    status: Optional[str] = None,
    *,
    db: Optional[Session] = None,
) -> List[Dict[str, Any]]:
    with session_scope(db) as session:
        q = session.query(Invoice, Client).join(Client, Invoice.client_id == Client.id)

        if client_id is not None:
            q = q.filter(Invoice.client_id == int(client_id))
        if status is not None:
            q = q.filter(Invoice.status == str(status))

        rows = q.order_by(Invoice.invoice_date.desc(), Invoice.id.desc()).all()
        return [_invoice_summary(invoice, client) for invoice, client in rows]


def _require_status(status: Any) -> str:
    if status not in INVOICE_STATUSES:
        raise InvalidInputError(f"status must be one of {', '.join(INVOICE_STATUSES)}")
    return str(status)


def update_invoice(invoice_id: int, fields: Dict[str, Any], *, db: Optional[Session] = None) -> Dict[str, Any]:
    """Header fields only; lines and totals are fixed once the invoice exists."""
    updates: Dict[str, Any] = {}
    if fields.get("invoice_date") is not None:
        updates["invoice_date"] = parse_ymd(fields["invoice_date"], "invoice_date")
    if fields.get("due_date") is not None:
        updates["due_date"] = parse_ymd(fields["due_date"], "due_date")
    if fields.get("status") is not None:
        updates["status"] = _require_status(fields["status"])

    with session_scope(db, commit=True) as session:
        repo = BillingRepository(session)
        invoice = repo.get_invoice(invoice_id)

        for name, value in updates.items():
            setattr(invoice, name, value)
        session.flush()

        logger.info(
            "invoice_updated",
            extra={"invoice_id": invoice.id, "fields": sorted(updates)},
        )
        return _invoice_detail(repo, invoice, repo.get_client(invoice.client_id))


def create_manual_invoice(
    client_id: int,
    invoice_number: Any,
    invoice_date: Any,
    due_date: Any,
    lines: List[Dict[str, Any]],
    *,
    status: str = "draft",
    db: Optional[Session] = None,
) -> Dict[str, Any]:
    """
    Invoice from caller-supplied lines, priced with the same math as the
    time-entry path. No time entries are claimed.
    """
    inv_date = parse_ymd(invoice_date, "invoice_date")
    due = parse_ymd(due_date, "due_date")
    number = _require_invoice_number(invoice_number)
    status = _require_status(status)

    for line in lines:
        if int(line.get("total_minutes") or 0) <= 0:
            raise InvalidInputError("total_minutes must be positive")
        if int(line.get("hourly_rate_cents") or 0) < 0:
            raise InvalidInputError("hourly_rate_cents must be non-negative")

    with session_scope(db, commit=True) as session:
        repo = BillingRepository(session)
        client = repo.get_client(client_id)

        if repo.invoice_number_exists(number):
            raise ConflictError("Invoice number already exists")

        work_types = repo.get_work_types(int(line["work_type_id"]) for line in lines)
        missing = sorted({int(line["work_type_id"]) for line in lines} - set(work_types))
        if missing:
            raise InvalidInputError(f"Unknown work_type_id: {missing[0]}")

        amounts = [line_amount_cents(int(line["total_minutes"]), int(line["hourly_rate_cents"])) for line in lines]
        subtotal = sum(amounts)
        discount = discount_cents(subtotal, client.discount_percent)
        line_discounts = allocate_cents(discount, amounts)

        priced = [
            {
                "work_type_id": int(line["work_type_id"]),
                "project_name": normalize_project_name(line.get("project_name")),
                "total_minutes": int(line["total_minutes"]),
                "hourly_rate_cents": int(line["hourly_rate_cents"]),
                "amount_cents": amount,
                "discount_cents": line_discount,
                "description": line.get("description") or None,
            }
            for line, amount, line_discount in zip(lines, amounts, line_discounts)
        ]
        verify_invoice_totals(priced, subtotal, discount, subtotal - discount)

        invoice = repo.insert_invoice(
            {
                "invoice_number": number,
                "client_id": client.id,
                "invoice_date": inv_date,
                "due_date": due,
                "status": status,
                "subtotal_cents": subtotal,
                "discount_cents": discount,
                "total_cents": subtotal - discount,
            }
        )
        repo.insert_invoice_lines(invoice.id, priced)

        logger.info(
            "invoice_created_manually",
            extra={
                "invoice_id": invoice.id,
                "invoice_number": number,
                "client_id": client.id,
                "line_count": len(priced),
                "total_cents": subtotal - discount,
            },
        )
        return _invoice_detail(repo, invoice, client)


def delete_invoice(invoice_id: int, *, db: Optional[Session] = None) -> Dict[str, Any]:
    """
    Remove an invoice and its lines, returning its time entries to the
    uninvoiced pool. Refused while payments are applied to it.
    """
    with session_scope(db, commit=True) as session:
        repo = BillingRepository(session)
        invoice = repo.get_invoice(invoice_id)

        if repo.count_payment_applications_for_invoice(invoice.id) > 0:
            raise ConflictError("Cannot delete an invoice with applied payments")

        summary = _invoice_summary(invoice, repo.get_client(invoice.client_id))
        released = repo.release_time_entries(invoice.id)
        session.delete(invoice)
        session.flush()

        logger.info(
            "invoice_deleted",
            extra={
                "invoice_id": summary["id"],
                "invoice_number": summary["invoice_number"],
                "released_entries": released,
            },
        )
        return summary
