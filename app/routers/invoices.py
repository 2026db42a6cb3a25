from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import Role, require_role
from app.core.errors import BillingError
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.deps.errors import http_error
from app.schemas.invoice import (
    InvoiceFromTimeEntriesRequest,
    InvoicePreviewResponse,
    InvoiceRangeRequest,
    InvoiceResponse,
    InvoiceStatus,
    InvoiceSummary,
    InvoiceUpdate,
    ManualInvoiceRequest,
    NextInvoiceNumberResponse,
)
from app.services import invoice_service

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.get("", response_model=list[InvoiceSummary])
def list_invoices(
    client_id: Optional[int] = None,
    status: Optional[InvoiceStatus] = None,
    _auth: dict = Depends(require_auth),
):
    db: Session = SessionLocal()
    try:
        return invoice_service.list_invoices(client_id=client_id, status=status, db=db)
    finally:
        db.close()


# declared before /{invoice_id} so the literal path wins
@router.get("/next_invoice_number", response_model=NextInvoiceNumberResponse)
def next_invoice_number(_auth: dict = Depends(require_auth)):
    db: Session = SessionLocal()
    try:
        return {"next_invoice_number": invoice_service.get_next_invoice_number(db=db)}
    finally:
        db.close()


@router.post("/preview_from_time_entries", response_model=InvoicePreviewResponse)
def preview_from_time_entries(payload: InvoiceRangeRequest, _auth: dict = Depends(require_auth)):
    db: Session = SessionLocal()
    try:
        return invoice_service.preview_invoice(
            payload.client_id,
            payload.start_date,
            payload.end_date,
            db=db,
        )
    except BillingError as exc:
        raise http_error(exc) from exc
    finally:
        db.close()


@router.post("/from_time_entries", response_model=InvoiceResponse, status_code=201)
def create_from_time_entries(
    payload: InvoiceFromTimeEntriesRequest,
    _role=Depends(require_role(Role.MANAGER)),
):
    db: Session = SessionLocal()
    try:
        invoice = invoice_service.create_invoice_from_time_entries(
            payload.client_id,
            payload.start_date,
            payload.end_date,
            payload.invoice_number,
            payload.invoice_date,
            payload.due_date,
            db=db,
        )
        db.commit()
        return invoice
    except BillingError as exc:
        db.rollback()
        raise http_error(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("", response_model=InvoiceResponse, status_code=201)
def create_invoice(payload: ManualInvoiceRequest, _role=Depends(require_role(Role.MANAGER))):
    db: Session = SessionLocal()
    try:
        invoice = invoice_service.create_manual_invoice(
            payload.client_id,
            payload.invoice_number,
            payload.invoice_date,
            payload.due_date,
            [line.model_dump() for line in payload.lines],
            status=payload.status,
            db=db,
        )
        db.commit()
        return invoice
    except BillingError as exc:
        db.rollback()
        raise http_error(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: int, _auth: dict = Depends(require_auth)):
    db: Session = SessionLocal()
    try:
        return invoice_service.get_invoice(invoice_id, db=db)
    except BillingError as exc:
        raise http_error(exc) from exc
    finally:
        db.close()


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(invoice_id: int, payload: InvoiceUpdate, _role=Depends(require_role(Role.MANAGER))):
    db: Session = SessionLocal()
    try:
        invoice = invoice_service.update_invoice(invoice_id, payload.model_dump(exclude_unset=True), db=db)
        db.commit()
        return invoice
    except BillingError as exc:
        db.rollback()
        raise http_error(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.delete("/{invoice_id}")
def delete_invoice(invoice_id: int, _role=Depends(require_role(Role.MANAGER))):
    db: Session = SessionLocal()
    try:
        invoice = invoice_service.delete_invoice(invoice_id, db=db)
        db.commit()
        return {"message": "Invoice deleted successfully", "invoice": invoice}
    except BillingError as exc:
        db.rollback()
        raise http_error(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
