from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class PaymentApplicationCreate(BaseModel):
    invoice_id: int
    amount_cents: int = Field(gt=0)


class PaymentCreate(BaseModel):
    payment_date: date
    amount_cents: int = Field(gt=0)
    note: Optional[str] = None
    applications: list[PaymentApplicationCreate] = Field(default_factory=list)


class PaymentApplicationRow(BaseModel):
    id: int
    payment_id: int
    invoice_id: int
    amount_cents: int
    invoice_number: int
    invoice_date: str
    client_name: str


class PaymentRow(BaseModel):
    id: int
    payment_date: str
    amount_cents: int
    note: Optional[str]
    applied_amount_cents: int


class PaymentResponse(PaymentRow):
    applications: list[PaymentApplicationRow]
