from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.models.system_setting import COMPANY_SETTING_KEYS, SystemSetting
from app.services.repository import BillingRepository, session_scope


def get_company_settings(*, db: Optional[Session] = None) -> Dict[str, str]:
    with session_scope(db) as session:
        return BillingRepository(session).get_company_settings()


def update_company_settings(values: Dict[str, Optional[str]], *, db: Optional[Session] = None) -> Dict[str, str]:
    """Upsert every company key; a missing or blank value clears it."""
    with session_scope(db, commit=True) as session:
        existing = {
            row.key: row
            for row in session.query(SystemSetting).filter(SystemSetting.key.in_(COMPANY_SETTING_KEYS)).all()
        }

        for key in COMPANY_SETTING_KEYS:
            value = values.get(key) or None
            row = existing.get(key)
            if row is None:
                session.add(SystemSetting(key=key, value=value))
            else:
                row.value = value

        session.flush()
        return BillingRepository(session).get_company_settings()
