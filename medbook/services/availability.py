from datetime import date, datetime, time
from typing import List, NamedTuple, Optional

from ..core.config import settings
from ..core.exceptions import OutsideWorkingHours, SlotConflict, UnknownDoctor, ValidationFailure
from ..models.appointment import Appointment, slot_duration
from ..models.doctor import Doctor
from .repository import AppointmentRepository

class WorkingHours(NamedTuple):
    start: time
    end: time

def working_hours(doctor: Doctor) -> WorkingHours:
    """The doctor's daily window, falling back to the configured defaults."""
    return WorkingHours(
        start=doctor.work_start or settings.DEFAULT_WORK_START,
        end=doctor.work_end or settings.DEFAULT_WORK_END,
    )

def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """Half-open interval intersection; back-to-back slots do not overlap."""
    return start < other_end and other_start < end

class AvailabilityValidator:
    """Decides whether a candidate appointment may occupy its slot.

    Read-only: it looks at doctors and existing bookings but never writes.
    """

    def __init__(self, repository: AppointmentRepository):
        self.repository = repository

    def validate(self, candidate: Appointment, excluding_id: Optional[int] = None) -> None:
        """Raise the first ``ValidationFailure`` the candidate runs into."""
        doctor = self.repository.get_doctor(candidate.doctor_id)
        if doctor is None:
            raise UnknownDoctor(candidate.doctor_id)

        start = candidate.appointment_time
        end = start + slot_duration()
        hours = working_hours(doctor)
        day_open = datetime.combine(start.date(), hours.start)
        day_close = datetime.combine(start.date(), hours.end)
        if start < day_open or end > day_close:
            raise OutsideWorkingHours(
                f"Dr. {doctor.last_name} sees patients between "
                f"{hours.start.strftime('%H:%M')} and {hours.end.strftime('%H:%M')}"
            )

        conflicts = self.repository.find_overlapping(
            candidate.doctor_id, start, end, excluding_id=excluding_id
        )
        if conflicts:
            raise SlotConflict(
                f"Dr. {doctor.last_name} is already booked at {conflicts[0].appointment_time:%Y-%m-%d %H:%M}",
                conflicting_id=conflicts[0].id,
            )

    def validate_appointment(self, candidate: Appointment, excluding_id: Optional[int] = None) -> bool:
        try:
            self.validate(candidate, excluding_id=excluding_id)
        except ValidationFailure:
            return False
        return True

    def available_slots(self, doctor_id: int, day: date) -> List[datetime]:
        """Free slot starts for ``day``, stepping by the slot duration."""
        doctor = self.repository.get_doctor(doctor_id)
        if doctor is None:
            raise UnknownDoctor(doctor_id)

        duration = slot_duration()
        hours = working_hours(doctor)
        day_open = datetime.combine(day, hours.start)
        day_close = datetime.combine(day, hours.end)
        booked = [
            (appointment.appointment_time, appointment.end_time)
            for appointment in self.repository.find_overlapping(doctor_id, day_open, day_close)
        ]

        slots: List[datetime] = []
        current = day_open
        while current + duration <= day_close:
            slot_end = current + duration
            if not any(overlaps(current, slot_end, other_start, other_end) for other_start, other_end in booked):
                slots.append(current)
            current = slot_end

        return slots
