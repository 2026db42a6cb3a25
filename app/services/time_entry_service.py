from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, InvalidInputError, NotFoundError
from app.models.time_entry import TimeEntry
from app.models.work_type import WorkType
from app.services.billing_math import parse_ymd
from app.services.repository import BillingRepository, session_scope

_EDITABLE_FIELDS = ("client_id", "work_type_id", "project_name", "work_date", "minutes_spent", "detail")


def _get_entry(db: Session, time_entry_id: int) -> TimeEntry:
    entry = db.query(TimeEntry).filter(TimeEntry.id == int(time_entry_id)).first()
    if entry is None:
        raise NotFoundError("Time entry not found")
    return entry


def _require_unclaimed(entry: TimeEntry) -> None:
    if entry.invoice_id is not None:
        raise ConflictError("Time entry is already invoiced and cannot be changed")


def _clean(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {k: fields[k] for k in _EDITABLE_FIELDS if k in fields}

    for name in ("client_id", "work_type_id"):
        if name in cleaned and cleaned[name] is None:
            raise InvalidInputError(f"{name} cannot be null")

    if "minutes_spent" in cleaned:
        try:
            minutes = int(cleaned["minutes_spent"])
        except (TypeError, ValueError) as exc:
            raise InvalidInputError("minutes_spent must be an integer") from exc
        if minutes <= 0:
            raise InvalidInputError("minutes_spent must be positive")
        cleaned["minutes_spent"] = minutes

    if "work_date" in cleaned:
        cleaned["work_date"] = parse_ymd(cleaned["work_date"], "work_date")

    if "project_name" in cleaned and cleaned["project_name"] is not None:
        cleaned["project_name"] = str(cleaned["project_name"]).strip() or None

    return cleaned


def _check_references(db: Session, fields: Dict[str, Any]) -> None:
    if "client_id" in fields:
        BillingRepository(db).get_client(fields["client_id"])
    if "work_type_id" in fields:
        row = db.query(WorkType.id).filter(WorkType.id == int(fields["work_type_id"])).first()
        if row is None:
            raise NotFoundError("Work type not found")


def create_time_entry(fields: Dict[str, Any], *, db: Optional[Session] = None) -> TimeEntry:
    """
    If db is provided, this function will NOT commit/close. Caller owns the transaction.
    """
    cleaned = _clean(fields)
    for required in ("client_id", "work_type_id", "work_date", "minutes_spent"):
        if cleaned.get(required) is None:
            raise InvalidInputError(f"{required} is required")

    with session_scope(db, commit=True) as session:
        _check_references(session, cleaned)

        entry = TimeEntry(**cleaned)
        session.add(entry)
        session.flush()
        session.refresh(entry)
        return entry


def update_time_entry(time_entry_id: int, fields: Dict[str, Any], *, db: Optional[Session] = None) -> TimeEntry:
    cleaned = _clean(fields)

    with session_scope(db, commit=True) as session:
        entry = _get_entry(session, time_entry_id)
        _require_unclaimed(entry)
        _check_references(session, cleaned)

        for name, value in cleaned.items():
            setattr(entry, name, value)

        session.flush()
        session.refresh(entry)
        return entry


def delete_time_entry(time_entry_id: int, *, db: Optional[Session] = None) -> TimeEntry:
    with session_scope(db, commit=True) as session:
        entry = _get_entry(session, time_entry_id)
        _require_unclaimed(entry)

        session.delete(entry)
        session.flush()
        return entry
