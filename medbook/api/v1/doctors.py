from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date

from ...core.config import settings
from ...core.database import get_db
from ...schemas.appointment import AvailableSlotsResponse
from ...services.availability import AvailabilityValidator
from ...services.repository import AppointmentRepository

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("/{doctor_id}/slots", response_model=AvailableSlotsResponse)
def list_available_slots(
    doctor_id: int,
    day: date = Query(..., alias="date"),
    db: Session = Depends(get_db)
):
    """Free slots of a doctor on a given day."""
    validator = AvailabilityValidator(AppointmentRepository(db))
    return AvailableSlotsResponse(
        doctor_id=doctor_id,
        duration_minutes=settings.APPOINTMENT_DURATION_MINUTES,
        slots=validator.available_slots(doctor_id, day)
    )
