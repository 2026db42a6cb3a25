from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkTypeCreate(BaseModel):
    code: str = Field(min_length=1)
    description: Optional[str] = None


class WorkTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    description: Optional[str]
