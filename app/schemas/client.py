from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ClientCreate(BaseModel):
    type: Literal["individual", "business"] = "business"
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    hourly_rate_cents: int = Field(ge=0)
    discount_percent: float = Field(default=0, ge=0, le=100)


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    name: str
    email: str
    hourly_rate_cents: int
    discount_percent: float
    created_at: datetime
