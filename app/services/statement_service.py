from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import InvalidInputError
from app.services.billing_math import parse_ymd, to_ymd
from app.services.repository import BillingRepository, session_scope

logger = logging.getLogger(__name__)

INVOICE = "invoice"
PAYMENT = "payment"

# invoices sort ahead of payments dated the same day
_TYPE_RANK = {INVOICE: 0, PAYMENT: 1}


def _validate_range(start_date: Any, end_date: Any) -> tuple[date, date]:
    if start_date in (None, "") or end_date in (None, ""):
        raise InvalidInputError("start_date and end_date are required")

    start = parse_ymd(start_date, "start_date")
    end = parse_ymd(end_date, "end_date")

    if start > end:
        raise InvalidInputError("start_date must be less than or equal to end_date")
    return start, end


def calculate_beginning_balance(client_id: int, start_date: Any, *, db: Optional[Session] = None) -> int:
    """
    Balance carried into the period: non-voided invoices dated before
    start_date minus payments (dated before start_date) applied to them.
    Negative means the client has overpaid.
    """
    start = parse_ymd(start_date, "start_date")

    with session_scope(db) as session:
        repo = BillingRepository(session)
        invoiced = repo.sum_invoices_before(client_id, start)
        paid = repo.sum_payment_applications_before(client_id, start)
        return invoiced - paid


def _sort_key(txn: Dict[str, Any]) -> tuple:
    if txn["type"] == INVOICE:
        ref = int(txn["invoice_number"])
        tiebreak = 0
    else:
        ref = int(txn["payment_id"])
        tiebreak = int(txn["application_id"])
    return (txn["date"], _TYPE_RANK[txn["type"]], ref, tiebreak)


def sort_transactions(transactions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(transactions, key=_sort_key)


def fetch_statement_transactions(client_id: int, start: date, end: date, *, db: Session) -> List[Dict[str, Any]]:
    """Invoice (+) and payment application (-) events in [start, end], ordered."""
    repo = BillingRepository(db)
    transactions: List[Dict[str, Any]] = []

    for inv in repo.list_invoices(client_id, date_from=start, date_to=end, exclude_voided=True):
        transactions.append(
            {
                "type": INVOICE,
                "invoice_id": inv.id,
                "invoice_number": inv.invoice_number,
                "date": to_ymd(inv.invoice_date),
                "amount_cents": int(inv.total_cents),
                "status": inv.status,
            }
        )

    for app_row in repo.list_payment_applications(client_id, date_from=start, date_to=end, exclude_voided=True):
        transactions.append(
            {
                "type": PAYMENT,
                "payment_id": app_row.payment_id,
                "application_id": app_row.application_id,
                "invoice_id": app_row.invoice_id,
                "invoice_number": app_row.invoice_number,
                "date": to_ymd(app_row.payment_date),
                "amount_cents": -int(app_row.amount_cents),
                "payment_note": app_row.payment_note,
            }
        )

    return sort_transactions(transactions)


def _format_transaction(txn: Dict[str, Any], running_balance_cents: int) -> Dict[str, Any]:
    if txn["type"] == INVOICE:
        row = {
            "type": INVOICE,
            "date": txn["date"],
            "document_number": f"INV-{txn['invoice_number']}",
            "description": f"Invoice {txn['invoice_number']}",
        }
    else:
        note = txn.get("payment_note")
        row = {
            "type": PAYMENT,
            "date": txn["date"],
            "document_number": f"PAY-{txn['payment_id']}",
            "description": f"Payment on Invoice {txn['invoice_number']}" + (f" - {note}" if note else ""),
            "payment_id": txn["payment_id"],
            "payment_note": note,
        }

    row.update(
        {
            "amount_cents": txn["amount_cents"],
            "running_balance_cents": running_balance_cents,
            "invoice_id": txn["invoice_id"],
            "invoice_number": txn["invoice_number"],
        }
    )
    return row


def calculate_statement(client_id: int, start_date: Any, end_date: Any, *, db: Optional[Session] = None) -> Dict[str, Any]:
    """
    Account statement for [start_date, end_date] (inclusive).

    The balance is a prefix sum over chronological events, so the ending
    balance of one period equals the beginning balance of the next.
    """
    start, end = _validate_range(start_date, end_date)

    with session_scope(db) as session:
        repo = BillingRepository(session)
        client = repo.get_client(client_id)

        beginning = calculate_beginning_balance(client.id, start, db=session)
        raw = fetch_statement_transactions(client.id, start, end, db=session)

        period_invoices = sum(t["amount_cents"] for t in raw if t["type"] == INVOICE)
        period_payments = sum(abs(t["amount_cents"]) for t in raw if t["type"] == PAYMENT)

        running = beginning
        transactions: List[Dict[str, Any]] = []
        for txn in raw:
            running += txn["amount_cents"]
            transactions.append(_format_transaction(txn, running))

        company = repo.get_company_settings()

        logger.debug(
            "statement_calculated",
            extra={
                "client_id": client.id,
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "transaction_count": len(transactions),
                "beginning_balance_cents": beginning,
                "ending_balance_cents": running,
            },
        )

        return {
            "client_id": client.id,
            "client_name": client.name,
            "client_email": client.email,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "beginning_balance_cents": beginning,
            "ending_balance_cents": running,
            "period_invoices_total_cents": period_invoices,
            "period_payments_total_cents": period_payments,
            "transactions": transactions,
            "company_name": company["company_name"],
            "company_address": company["company_address"],
            "company_email": company["company_email"],
        }
