from pydantic import BaseModel, Field, field_validator
from datetime import datetime, timezone
from typing import Optional

from ..models.appointment import AppointmentStatus

MAX_REASON_LENGTH = 500

def _normalize_time(value: datetime) -> datetime:
    """Slots start on whole minutes and are stored as naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(second=0, microsecond=0)

def _normalize_reason(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    if len(normalized) > MAX_REASON_LENGTH:
        raise ValueError(f"Reason must be {MAX_REASON_LENGTH} characters or fewer.")
    return normalized

class AppointmentCreate(BaseModel):
    doctor_id: int
    patient_id: int
    appointment_time: datetime
    reason: Optional[str] = None

    @field_validator("appointment_time")
    @classmethod
    def normalize_time(cls, value: datetime) -> datetime:
        return _normalize_time(value)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_reason(value)

class BookingRequest(BaseModel):
    """Booking payload sent by a patient; the patient id comes from the token."""
    doctor_id: int
    appointment_time: datetime
    reason: Optional[str] = None

class AppointmentUpdate(BaseModel):
    doctor_id: Optional[int] = None
    appointment_time: Optional[datetime] = None
    reason: Optional[str] = None

    @field_validator("appointment_time")
    @classmethod
    def normalize_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return _normalize_time(value)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_reason(value)

class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    appointment_time: datetime
    end_time: datetime
    status: AppointmentStatus
    reason: Optional[str] = None

    class Config:
        from_attributes = True

class AppointmentRecord(BaseModel):
    """One row of a doctor's daily schedule."""
    id: int
    patient_id: int
    patient_name: str
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    appointment_time: datetime
    status: AppointmentStatus

class BookingResponse(BaseModel):
    id: int

class StatusResponse(BaseModel):
    id: int
    status: AppointmentStatus

class AvailableSlotsResponse(BaseModel):
    doctor_id: int
    duration_minutes: int
    slots: list[datetime] = Field(default_factory=list)
