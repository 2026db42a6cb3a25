from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TimeEntryCreate(BaseModel):
    client_id: int
    work_type_id: int
    project_name: Optional[str] = None
    work_date: date
    minutes_spent: int
    detail: Optional[str] = None


class TimeEntryUpdate(BaseModel):
    client_id: Optional[int] = None
    work_type_id: Optional[int] = None
    project_name: Optional[str] = None
    work_date: Optional[date] = None
    minutes_spent: Optional[int] = None
    detail: Optional[str] = None


class TimeEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    work_type_id: int
    project_name: Optional[str]
    work_date: date
    minutes_spent: int
    detail: Optional[str]
    invoice_id: Optional[int]
    created_at: datetime
