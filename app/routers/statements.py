from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import BillingError
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.deps.errors import http_error
from app.schemas.statement import StatementResponse
from app.services import statement_service

router = APIRouter(prefix="/statements", tags=["Statements"])


@router.get("/{client_id}", response_model=StatementResponse, response_model_exclude_none=True)
def get_statement(
    client_id: int,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    _auth: dict = Depends(require_auth),
):
    # dates stay strings here; the service owns format and range validation
    db: Session = SessionLocal()
    try:
        return statement_service.calculate_statement(client_id, start_date, end_date, db=db)
    except BillingError as exc:
        raise http_error(exc) from exc
    finally:
        db.close()
