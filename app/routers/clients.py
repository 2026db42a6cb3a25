from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError

from app.core.authorization import Role, require_role
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.models.client import Client
from app.schemas.client import ClientCreate, ClientResponse

router = APIRouter(prefix="/clients", tags=["Clients"])


def _get_or_404(db, client_id: int) -> Client:
    row = db.query(Client).filter(Client.id == int(client_id)).first()
    if row is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return row


@router.get("", response_model=List[ClientResponse])
def list_clients(_auth: dict = Depends(require_auth)):
    db = SessionLocal()
    try:
        return db.query(Client).order_by(Client.created_at.desc(), Client.id.desc()).all()
    finally:
        db.close()


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(client_id: int, _auth: dict = Depends(require_auth)):
    db = SessionLocal()
    try:
        return _get_or_404(db, client_id)
    finally:
        db.close()


@router.post("", response_model=ClientResponse, status_code=201)
def create_client(payload: ClientCreate, _role=Depends(require_role(Role.MANAGER))):
    db = SessionLocal()
    try:
        row = Client(**payload.model_dump())
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail="Client with this email already exists") from exc
    finally:
        db.close()


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(client_id: int, payload: ClientCreate, _role=Depends(require_role(Role.MANAGER))):
    db = SessionLocal()
    try:
        row = _get_or_404(db, client_id)
        for name, value in payload.model_dump().items():
            setattr(row, name, value)
        db.commit()
        db.refresh(row)
        return row
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail="Client with this email already exists") from exc
    finally:
        db.close()


@router.delete("/{client_id}")
def delete_client(client_id: int, _role=Depends(require_role(Role.MANAGER))):
    db = SessionLocal()
    try:
        row = _get_or_404(db, client_id)
        db.delete(row)
        db.commit()
        return {"message": "Client deleted successfully", "id": int(client_id)}
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail="Cannot delete client with time entries or invoices",
        ) from exc
    finally:
        db.close()
