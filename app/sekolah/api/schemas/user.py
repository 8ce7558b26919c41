# app/sekolah/api/schemas/user.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from uuid import UUID

class ProfileResponse(BaseModel):
    id: UUID
    full_name: str
    email: Optional[str] = None
    role: str
    can_teach: Optional[bool] = None

    model_config = ConfigDict(from_attributes=True)

# Internal representation of JWT data
class TokenData(BaseModel):
    sub: Optional[str] = None
    role: Optional[str] = None
