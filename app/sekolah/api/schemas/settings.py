from pydantic import BaseModel, Field, field_validator, model_validator
import re

from ...models.db_models import SchoolSettings

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class SchoolSettingsUpdate(BaseModel):
    """Request model for replacing the school settings. Times must be HH:MM (24h)."""
    school_name: str = Field(..., min_length=1)
    school_address: str = ""
    school_phone: str = ""
    school_icon_url: str = ""
    check_in_time: str = Field(..., description="Start of check-in, e.g. '07:00'.")
    late_time: str = Field(..., description="Check-ins after this are late, e.g. '07:30'.")
    check_out_time: str = Field(..., description="End of the school day, e.g. '14:00'.")

    @field_validator('check_in_time', 'late_time', 'check_out_time')
    def validate_hhmm(cls, v):
        if not HHMM_PATTERN.match(v):
            raise ValueError("Invalid format. Must be HH:MM")
        return v

    @model_validator(mode='after')
    def check_order(self):
        # Zero-padded HH:MM strings compare in clock order.
        if not (self.check_in_time <= self.late_time <= self.check_out_time):
            raise ValueError("Expected check_in_time <= late_time <= check_out_time")
        return self

    def to_settings(self) -> SchoolSettings:
        return SchoolSettings(**self.model_dump())


class SchoolSettingsResponse(SchoolSettings):
    source: str = Field(..., description="Where the values came from: remote, cache or default.")
