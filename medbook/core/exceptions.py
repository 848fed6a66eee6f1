"""
Appointment error taxonomy.

Every lifecycle operation either returns its value or raises exactly one of
these. The HTTP layer maps ``status_code`` and ``error`` onto the response.
"""
from fastapi import status


class AppointmentError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Appointment Error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.error)
        self.message = message or self.error


class NotFound(AppointmentError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not Found"

    def __init__(self, appointment_id: int):
        super().__init__(f"Appointment {appointment_id} not found")
        self.appointment_id = appointment_id


class NotOwner(AppointmentError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Not Owner"


class InvalidToken(AppointmentError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Invalid Token"


class StorageError(AppointmentError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "Storage Error"


class UnknownPatient(AppointmentError):
    error = "Unknown Patient"

    def __init__(self, patient_id: int):
        super().__init__(f"Patient {patient_id} does not exist")
        self.patient_id = patient_id


class ValidationFailure(AppointmentError):
    error = "Validation Failure"


class UnknownDoctor(ValidationFailure):
    error = "Unknown Doctor"

    def __init__(self, doctor_id: int):
        super().__init__(f"Doctor {doctor_id} does not exist")
        self.doctor_id = doctor_id


class OutsideWorkingHours(ValidationFailure):
    error = "Outside Working Hours"


class SlotConflict(ValidationFailure):
    status_code = status.HTTP_409_CONFLICT
    error = "Slot Conflict"

    def __init__(self, message: str, conflicting_id: int):
        super().__init__(message)
        self.conflicting_id = conflicting_id


class InvalidRequest(AppointmentError):
    """Update rejected by the availability rules; ``reason`` holds the failure."""
    error = "Invalid Request"

    def __init__(self, reason: ValidationFailure):
        super().__init__(reason.message)
        self.reason = reason
