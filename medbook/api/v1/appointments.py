from fastapi import APIRouter, Depends, Query, status
from datetime import date, datetime
from typing import Dict, List, Optional

from ...api.deps import (
    get_appointment_service, get_bearer_token, get_patient_identity,
    rate_limit_check
)
from ...schemas.appointment import (
    AppointmentCreate, AppointmentRecord, AppointmentResponse,
    AppointmentUpdate, BookingRequest, BookingResponse, StatusResponse
)
from ...services.appointment_service import AppointmentService
from ...services.token_service import Identity

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    booking: BookingRequest,
    patient: Identity = Depends(get_patient_identity),
    service: AppointmentService = Depends(get_appointment_service),
    _: None = Depends(rate_limit_check)
):
    """Book a slot with a doctor for the calling patient."""
    appointment_id = service.book(AppointmentCreate(
        doctor_id=booking.doctor_id,
        patient_id=patient.user_id,
        appointment_time=booking.appointment_time,
        reason=booking.reason
    ))
    return BookingResponse(id=appointment_id)

@router.get("", response_model=List[AppointmentRecord])
def list_doctor_appointments(
    day: date = Query(..., alias="date"),
    patient_name: Optional[str] = None,
    token: str = Depends(get_bearer_token),
    service: AppointmentService = Depends(get_appointment_service)
):
    """The calling doctor's appointments for one day."""
    return service.query(token, day, patient_name)

@router.get("/by-name", response_model=Dict[str, datetime], deprecated=True)
def list_doctor_appointments_by_name(
    day: date = Query(..., alias="date"),
    patient_name: Optional[str] = None,
    token: str = Depends(get_bearer_token),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Patient name to appointment time; same-name patients collapse into one entry."""
    return service.query_by_patient_name(token, day, patient_name)

@router.get("/mine", response_model=List[AppointmentResponse])
def list_my_appointments(
    token: str = Depends(get_bearer_token),
    service: AppointmentService = Depends(get_appointment_service)
):
    return [
        AppointmentResponse.model_validate(appointment)
        for appointment in service.list_for_patient(token)
    ]

@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    changes: AppointmentUpdate,
    token: str = Depends(get_bearer_token),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Reschedule an appointment or move it to another doctor."""
    appointment = service.update(appointment_id, changes, token)
    return AppointmentResponse.model_validate(appointment)

@router.delete("/{appointment_id}")
def cancel_appointment(
    appointment_id: int,
    token: str = Depends(get_bearer_token),
    service: AppointmentService = Depends(get_appointment_service)
):
    service.cancel(appointment_id, token)
    return {"message": "Appointment cancelled successfully"}

@router.patch("/{appointment_id}/status", response_model=StatusResponse)
def change_appointment_status(
    appointment_id: int,
    token: str = Depends(get_bearer_token),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Toggle between scheduled and completed."""
    new_status = service.change_status(appointment_id, token)
    return StatusResponse(id=appointment_id, status=new_status)
