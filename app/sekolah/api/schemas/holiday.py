from pydantic import BaseModel, Field, ConfigDict
from uuid import UUID
from datetime import date
from typing import Optional


class HolidayCreateRequest(BaseModel):
    date: date
    name: str = Field(..., min_length=1, description="e.g. 'Idul Fitri'")
    description: Optional[str] = None


class HolidayResponse(BaseModel):
    id: UUID
    date: date
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
