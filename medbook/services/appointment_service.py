from sqlalchemy.orm import Session
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional
import logging

from ..core.exceptions import (
    AppointmentError, InvalidRequest, NotFound, NotOwner, UnknownPatient,
    ValidationFailure
)
from ..models.appointment import Appointment, AppointmentStatus
from ..schemas.appointment import AppointmentCreate, AppointmentRecord, AppointmentUpdate
from .availability import AvailabilityValidator
from .locks import appointment_locks, doctor_locks
from .repository import AppointmentRepository
from .token_service import Identity, TokenService

logger = logging.getLogger(__name__)

class AppointmentService:
    """Appointment lifecycle: book, update, cancel, status toggle and queries.

    This is the only writer of appointment rows. Bookings are serialized per
    doctor; update, cancel and status changes are serialized per appointment.
    Locks are always taken appointment first, doctor second.
    """

    def __init__(
        self,
        db: Session,
        token_service: Optional[TokenService] = None,
        validator: Optional[AvailabilityValidator] = None
    ):
        self.db = db
        self.repository = AppointmentRepository(db)
        self.token_service = token_service or TokenService()
        self.validator = validator or AvailabilityValidator(self.repository)

    def book(self, appointment_data: AppointmentCreate) -> int:
        """Validate and store a new appointment, returning its id."""
        doctor_id = appointment_data.doctor_id

        if self.repository.get_patient(appointment_data.patient_id) is None:
            self.db.rollback()
            logger.warning(f"Booking rejected: patient {appointment_data.patient_id} does not exist")
            raise UnknownPatient(appointment_data.patient_id)

        with doctor_locks.hold(doctor_id):
            self.repository.lock_doctor(doctor_id)

            candidate = Appointment(
                doctor_id=doctor_id,
                patient_id=appointment_data.patient_id,
                appointment_time=appointment_data.appointment_time,
                reason=appointment_data.reason,
                status=AppointmentStatus.SCHEDULED
            )

            try:
                self.validator.validate(candidate)
            except ValidationFailure as exc:
                self.db.rollback()
                logger.warning(
                    f"Booking rejected for doctor {doctor_id} at "
                    f"{appointment_data.appointment_time}: {exc.message}"
                )
                raise

            appointment_id = self.repository.save(candidate)

        logger.info(
            f"Booked appointment {appointment_id} for patient {appointment_data.patient_id} "
            f"with doctor {doctor_id} at {appointment_data.appointment_time}"
        )
        return appointment_id

    def update(self, appointment_id: int, changes: AppointmentUpdate, token: str) -> Appointment:
        """Move an appointment to a new time and/or doctor.

        The stored record is left untouched unless every check passes.
        """
        requester = self.token_service.resolve(token)

        with appointment_locks.hold(appointment_id):
            try:
                appointment = self.repository.lock_appointment(appointment_id)
                if appointment is None:
                    raise NotFound(appointment_id)

                self._require_patient_owner(requester, appointment, "update")

                doctor_id = changes.doctor_id if changes.doctor_id is not None else appointment.doctor_id
                appointment_time = changes.appointment_time or appointment.appointment_time

                with doctor_locks.hold(doctor_id):
                    self.repository.lock_doctor(doctor_id)

                    candidate = Appointment(
                        id=appointment.id,
                        doctor_id=doctor_id,
                        patient_id=appointment.patient_id,
                        appointment_time=appointment_time
                    )
                    try:
                        self.validator.validate(candidate, excluding_id=appointment.id)
                    except ValidationFailure as exc:
                        logger.warning(f"Update of appointment {appointment_id} rejected: {exc.message}")
                        raise InvalidRequest(exc) from exc

                    appointment.doctor_id = doctor_id
                    appointment.appointment_time = appointment_time
                    if "reason" in changes.model_fields_set:
                        appointment.reason = changes.reason

                    self.repository.save(appointment)
            except AppointmentError:
                self.db.rollback()
                raise

        logger.info(f"Updated appointment {appointment_id}: doctor {doctor_id} at {appointment_time}")
        return appointment

    def cancel(self, appointment_id: int, token: str) -> None:
        """Delete an appointment on behalf of the patient who owns it."""
        requester = self.token_service.resolve(token)

        with appointment_locks.hold(appointment_id):
            try:
                appointment = self.repository.lock_appointment(appointment_id)
                if appointment is None:
                    raise NotFound(appointment_id)

                self._require_patient_owner(requester, appointment, "cancel")

                self.repository.delete_by_id(appointment_id)
            except AppointmentError:
                self.db.rollback()
                raise

        logger.info(f"Cancelled appointment {appointment_id} for patient {requester.user_id}")

    def change_status(self, appointment_id: int, token: str) -> AppointmentStatus:
        """Flip an appointment between scheduled and completed."""
        requester = self.token_service.resolve(token)

        with appointment_locks.hold(appointment_id):
            try:
                appointment = self.repository.lock_appointment(appointment_id)
                if appointment is None:
                    raise NotFound(appointment_id)

                if not (requester.is_doctor and requester.user_id == appointment.doctor_id):
                    raise NotOwner("Only the appointment's doctor can change its status")

                new_status = AppointmentStatus(appointment.status).toggled()
                self.repository.update_status_atomic(appointment_id, new_status)
            except AppointmentError:
                self.db.rollback()
                raise

        logger.info(f"Appointment {appointment_id} is now {new_status.value}")
        return new_status

    def query(
        self,
        token: str,
        day: date,
        patient_name: Optional[str] = None
    ) -> List[AppointmentRecord]:
        """The acting doctor's appointments for one day, optionally for one patient."""
        doctor = self._require_doctor(token)

        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        appointments = self.repository.find_by_doctor_and_time_range(doctor.user_id, start, end)

        name_filter = (patient_name or "").strip().casefold()
        records = []
        for appointment in appointments:
            patient = appointment.patient
            if patient is None:
                continue
            if name_filter and patient.full_name.casefold() != name_filter:
                continue

            records.append(AppointmentRecord(
                id=appointment.id,
                patient_id=patient.id,
                patient_name=patient.full_name,
                patient_phone=patient.phone_number,
                patient_email=patient.email,
                appointment_time=appointment.appointment_time,
                status=appointment.status
            ))

        return records

    def query_by_patient_name(
        self,
        token: str,
        day: date,
        patient_name: Optional[str] = None
    ) -> Dict[str, datetime]:
        """Deprecated name -> time view of ``query``.

        Patients sharing a display name collapse into one entry; the latest
        appointment of the day wins. Use ``query`` for a lossless result.
        """
        return {
            record.patient_name: record.appointment_time
            for record in self.query(token, day, patient_name)
        }

    def list_for_patient(self, token: str) -> List[Appointment]:
        """All appointments belonging to the requesting patient."""
        requester = self.token_service.resolve(token)
        if not requester.is_patient:
            raise NotOwner("Only patients have personal appointment lists")
        return self.repository.find_by_patient(requester.user_id)

    def _require_doctor(self, token: str) -> Identity:
        requester = self.token_service.resolve(token)
        if not requester.is_doctor:
            raise NotOwner("Only doctors can view their schedule")
        return requester

    def _require_patient_owner(self, requester: Identity, appointment: Appointment, action: str) -> None:
        if not (requester.is_patient and requester.user_id == appointment.patient_id):
            logger.warning(
                f"{requester.role.value} {requester.user_id} tried to {action} "
                f"appointment {appointment.id} owned by patient {appointment.patient_id}"
            )
            raise NotOwner(f"Only the patient who booked this appointment can {action} it")
