from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError

from app.core.authorization import Role, require_role
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.models.work_type import WorkType
from app.schemas.work_type import WorkTypeCreate, WorkTypeResponse

router = APIRouter(prefix="/work_types", tags=["Work Types"])


def _get_or_404(db, work_type_id: int) -> WorkType:
    row = db.query(WorkType).filter(WorkType.id == int(work_type_id)).first()
    if row is None:
        raise HTTPException(status_code=404, detail="Work type not found")
    return row


@router.get("", response_model=List[WorkTypeResponse])
def list_work_types(_auth: dict = Depends(require_auth)):
    db = SessionLocal()
    try:
        return db.query(WorkType).order_by(WorkType.code.asc()).all()
    finally:
        db.close()


@router.get("/{work_type_id}", response_model=WorkTypeResponse)
def get_work_type(work_type_id: int, _auth: dict = Depends(require_auth)):
    db = SessionLocal()
    try:
        return _get_or_404(db, work_type_id)
    finally:
        db.close()


@router.post("", response_model=WorkTypeResponse, status_code=201)
def create_work_type(payload: WorkTypeCreate, _role=Depends(require_role(Role.MANAGER))):
    db = SessionLocal()
    try:
        row = WorkType(code=payload.code.strip(), description=payload.description or None)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail="Work type with this code already exists") from exc
    finally:
        db.close()


@router.put("/{work_type_id}", response_model=WorkTypeResponse)
def update_work_type(work_type_id: int, payload: WorkTypeCreate, _role=Depends(require_role(Role.MANAGER))):
    db = SessionLocal()
    try:
        row = _get_or_404(db, work_type_id)
        row.code = payload.code.strip()
        row.description = payload.description or None
        db.commit()
        db.refresh(row)
        return row
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail="Work type with this code already exists") from exc
    finally:
        db.close()


@router.delete("/{work_type_id}")
def delete_work_type(work_type_id: int, _role=Depends(require_role(Role.MANAGER))):
    db = SessionLocal()
    try:
        row = _get_or_404(db, work_type_id)
        db.delete(row)
        db.commit()
        return {"message": "Work type deleted successfully"}
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=400,
            detail="Cannot delete work type because it is being used by time entries or invoices.",
        ) from exc
    finally:
        db.close()
