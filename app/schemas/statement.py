from typing import Literal, Optional

from pydantic import BaseModel


class StatementTransaction(BaseModel):
    type: Literal["invoice", "payment"]
    date: str
    document_number: str
    description: str
    amount_cents: int
    running_balance_cents: int
    invoice_id: int
    invoice_number: int
    payment_id: Optional[int] = None
    payment_note: Optional[str] = None


class StatementResponse(BaseModel):
    client_id: int
    client_name: str
    client_email: str
    start_date: str
    end_date: str
    beginning_balance_cents: int
    ending_balance_cents: int
    period_invoices_total_cents: int
    period_payments_total_cents: int
    transactions: list[StatementTransaction]
    company_name: str
    company_address: str
    company_email: str
