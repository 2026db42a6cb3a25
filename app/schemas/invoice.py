from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

InvoiceStatus = Literal["draft", "sent", "paid", "partially_paid", "voided"]


class InvoiceRangeRequest(BaseModel):
    client_id: int
    start_date: date
    end_date: date


class InvoiceFromTimeEntriesRequest(InvoiceRangeRequest):
    invoice_number: int = Field(gt=0)
    invoice_date: date
    due_date: date


class ManualInvoiceLine(BaseModel):
    work_type_id: int
    project_name: Optional[str] = None
    total_minutes: int = Field(gt=0)
    hourly_rate_cents: int = Field(ge=0)
    description: Optional[str] = None


class ManualInvoiceRequest(BaseModel):
    client_id: int
    invoice_number: int = Field(gt=0)
    invoice_date: date
    due_date: date
    status: InvoiceStatus = "draft"
    lines: list[ManualInvoiceLine] = Field(default_factory=list)


class InvoiceUpdate(BaseModel):
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[InvoiceStatus] = None


class ClientSnapshot(BaseModel):
    id: int
    name: str
    email: str
    hourly_rate_cents: int
    discount_percent: float


class PreviewLine(BaseModel):
    work_type_id: int
    work_type_code: Optional[str]
    work_type_description: Optional[str]
    project_name: str
    total_minutes: int
    hourly_rate_cents: int
    amount_cents: int
    discount_cents: int
    entry_count: int
    description: str


class DateRange(BaseModel):
    start: str
    end: str


class InvoicePreviewResponse(BaseModel):
    client: ClientSnapshot
    lines: list[PreviewLine]
    subtotal_cents: int
    discount_cents: int
    total_cents: int
    total_entries: int
    date_range: DateRange


class InvoiceLineResponse(BaseModel):
    id: int
    invoice_id: int
    work_type_id: int
    work_type_code: Optional[str]
    work_type_description: Optional[str]
    project_name: str
    total_minutes: int
    hourly_rate_cents: int
    amount_cents: int
    discount_cents: int
    description: Optional[str]


class InvoiceSummary(BaseModel):
    id: int
    invoice_number: int
    client_id: int
    client_name: str
    client_email: str
    client_type: str
    invoice_date: str
    due_date: str
    status: str
    subtotal_cents: int
    discount_cents: int
    total_cents: int


class InvoiceResponse(InvoiceSummary):
    lines: list[InvoiceLineResponse]


class NextInvoiceNumberResponse(BaseModel):
    next_invoice_number: int
