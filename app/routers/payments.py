from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import Role, require_role
from app.core.errors import BillingError
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.deps.errors import http_error
from app.schemas.payment import PaymentCreate, PaymentResponse, PaymentRow
from app.services import payment_service

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("", response_model=list[PaymentRow])
def list_payments(_auth: dict = Depends(require_auth)):
    db: Session = SessionLocal()
    try:
        return payment_service.list_payments(db=db)
    finally:
        db.close()


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: int, _auth: dict = Depends(require_auth)):
    db: Session = SessionLocal()
    try:
        return payment_service.get_payment(payment_id, db=db)
    except BillingError as exc:
        raise http_error(exc) from exc
    finally:
        db.close()


@router.post("", response_model=PaymentResponse, status_code=201)
def create_payment(payload: PaymentCreate, _role=Depends(require_role(Role.MANAGER))):
    db: Session = SessionLocal()
    try:
        payment = payment_service.create_payment(
            payload.payment_date,
            payload.amount_cents,
            note=payload.note,
            applications=[a.model_dump() for a in payload.applications],
            db=db,
        )
        db.commit()
        return payment
    except BillingError as exc:
        db.rollback()
        raise http_error(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.delete("/{payment_id}")
def delete_payment(payment_id: int, _role=Depends(require_role(Role.MANAGER))):
    db: Session = SessionLocal()
    try:
        payment = payment_service.delete_payment(payment_id, db=db)
        db.commit()
        return {"message": "Payment deleted successfully", "payment": payment}
    except BillingError as exc:
        db.rollback()
        raise http_error(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
