from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import Role, require_role
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.schemas.settings import CompanySettings
from app.services import settings_service

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=CompanySettings)
def get_settings(_auth: dict = Depends(require_auth)):
    db: Session = SessionLocal()
    try:
        return settings_service.get_company_settings(db=db)
    finally:
        db.close()


@router.put("", response_model=CompanySettings)
def update_settings(payload: CompanySettings, _role=Depends(require_role(Role.ADMIN))):
    db: Session = SessionLocal()
    try:
        settings = settings_service.update_company_settings(payload.model_dump(), db=db)
        db.commit()
        return settings
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
