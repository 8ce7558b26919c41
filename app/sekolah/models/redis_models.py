from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID
from .db_models import Profile, SchoolSettings


class UserSessionRedis(BaseModel):
    """
    Cached profile of an authenticated user, keyed by profile id.
    """
    user_data: Profile = Field(..., description="The profile row as read from the database.")
    session_id: UUID = Field(..., description="Unique ID for this cached session.")
    session_start_time: datetime
    session_end_time: datetime


class SchoolSettingsCache(BaseModel):
    """
    Last school settings successfully read from the database.
    """
    settings: SchoolSettings
    cached_at: datetime
