from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.errors import BillingError
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.deps.errors import http_error
from app.models.time_entry import TimeEntry
from app.schemas.time_entry import TimeEntryCreate, TimeEntryResponse, TimeEntryUpdate
from app.services import time_entry_service

router = APIRouter(
    prefix="/time_entries",
    tags=["Time Entries"],
)


@router.get("", response_model=list[TimeEntryResponse])
def list_time_entries(
    _auth: dict = Depends(require_auth),
    client_id: Optional[int] = None,
    work_type_id: Optional[int] = None,
    work_date_from: Optional[date] = None,
    work_date_to: Optional[date] = None,
    is_invoiced: Optional[bool] = None,
):
    db: Session = SessionLocal()
    try:
        q = db.query(TimeEntry)

        if client_id is not None:
            q = q.filter(TimeEntry.client_id == int(client_id))
        if work_type_id is not None:
            q = q.filter(TimeEntry.work_type_id == int(work_type_id))
        if work_date_from is not None:
            q = q.filter(TimeEntry.work_date >= work_date_from)
        if work_date_to is not None:
            q = q.filter(TimeEntry.work_date <= work_date_to)
        if is_invoiced is True:
            q = q.filter(TimeEntry.invoice_id.isnot(None))
        elif is_invoiced is False:
            q = q.filter(TimeEntry.invoice_id.is_(None))

        return q.order_by(TimeEntry.work_date.desc(), TimeEntry.id.desc()).all()
    finally:
        db.close()


@router.get("/{time_entry_id}", response_model=TimeEntryResponse)
def get_time_entry(time_entry_id: int, _auth: dict = Depends(require_auth)):
    db: Session = SessionLocal()
    try:
        entry = db.query(TimeEntry).filter(TimeEntry.id == int(time_entry_id)).first()
        if entry is None:
            raise HTTPException(status_code=404, detail="Time entry not found")
        return entry
    finally:
        db.close()


@router.post("", response_model=TimeEntryResponse, status_code=201)
def create_time_entry(payload: TimeEntryCreate, _auth: dict = Depends(require_auth)):
    db: Session = SessionLocal()
    try:
        entry = time_entry_service.create_time_entry(payload.model_dump(), db=db)
        db.commit()
        db.refresh(entry)
        return entry
    except BillingError as exc:
        db.rollback()
        raise http_error(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.put("/{time_entry_id}", response_model=TimeEntryResponse)
def update_time_entry(time_entry_id: int, payload: TimeEntryUpdate, _auth: dict = Depends(require_auth)):
    db: Session = SessionLocal()
    try:
        entry = time_entry_service.update_time_entry(
            time_entry_id,
            payload.model_dump(exclude_unset=True),
            db=db,
        )
        db.commit()
        db.refresh(entry)
        return entry
    except BillingError as exc:
        db.rollback()
        raise http_error(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.delete("/{time_entry_id}")
def delete_time_entry(time_entry_id: int, _auth: dict = Depends(require_auth)):
    db: Session = SessionLocal()
    try:
        entry = time_entry_service.delete_time_entry(time_entry_id, db=db)
        db.commit()
        return {"message": "Time entry deleted successfully", "id": entry.id}
    except BillingError as exc:
        db.rollback()
        raise http_error(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
