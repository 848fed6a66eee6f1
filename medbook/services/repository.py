from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional
import logging

from ..core.exceptions import StorageError
from ..models.appointment import Appointment, AppointmentStatus, slot_duration
from ..models.doctor import Doctor
from ..models.patient import Patient

logger = logging.getLogger(__name__)

class AppointmentRepository:
    """Persistence gateway for appointments and the doctors they belong to.

    Every database failure is rolled back and surfaced as ``StorageError``;
    retries are left to the caller's infrastructure.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _storage(self, action: str):
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Storage failure while trying to {action}: {str(exc)}")
            raise StorageError(f"Could not {action}") from exc

    # Reads
    def find_by_id(self, appointment_id: int) -> Optional[Appointment]:
        with self._storage("load appointment"):
            return self.db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).first()

    def lock_appointment(self, appointment_id: int) -> Optional[Appointment]:
        """Load an appointment and hold its row until the transaction ends."""
        with self._storage("lock appointment"):
            return self.db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).with_for_update().first()

    def get_doctor(self, doctor_id: int) -> Optional[Doctor]:
        with self._storage("load doctor"):
            return self.db.query(Doctor).filter(Doctor.id == doctor_id).first()

    def get_patient(self, patient_id: int) -> Optional[Patient]:
        with self._storage("load patient"):
            return self.db.query(Patient).filter(Patient.id == patient_id).first()

    def lock_doctor(self, doctor_id: int) -> Optional[Doctor]:
        """Serialize bookings for one doctor across database connections."""
        with self._storage("lock doctor"):
            return self.db.query(Doctor).filter(
                Doctor.id == doctor_id
            ).with_for_update().first()

    def find_overlapping(
        self,
        doctor_id: int,
        start: datetime,
        end: datetime,
        excluding_id: Optional[int] = None
    ) -> List[Appointment]:
        """Appointments of a doctor whose slot intersects ``[start, end)``."""
        # other.start < end and other.start + duration > start
        earliest_start = start - slot_duration()
        with self._storage("check doctor schedule"):
            query = self.db.query(Appointment).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_time < end,
                Appointment.appointment_time > earliest_start,
            )
            if excluding_id is not None:
                query = query.filter(Appointment.id != excluding_id)
            return query.order_by(Appointment.appointment_time.asc()).all()

    def find_by_doctor_and_time_range(
        self,
        doctor_id: int,
        start: datetime,
        end: datetime
    ) -> List[Appointment]:
        """Appointments starting in ``[start, end)``, patients preloaded."""
        with self._storage("load doctor schedule"):
            return self.db.query(Appointment).options(
                joinedload(Appointment.patient)
            ).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_time >= start,
                Appointment.appointment_time < end,
            ).order_by(Appointment.appointment_time.asc(), Appointment.id.asc()).all()

    def find_by_patient(self, patient_id: int) -> List[Appointment]:
        with self._storage("load patient appointments"):
            return self.db.query(Appointment).filter(
                Appointment.patient_id == patient_id
            ).order_by(Appointment.appointment_time.asc()).all()

    # Writes
    def save(self, appointment: Appointment) -> int:
        with self._storage("save appointment"):
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
            return appointment.id

    def delete_by_id(self, appointment_id: int) -> None:
        with self._storage("delete appointment"):
            self.db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).delete()
            self.db.commit()

    def update_status_atomic(self, appointment_id: int, new_status: AppointmentStatus) -> None:
        with self._storage("update appointment status"):
            self.db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).update({Appointment.status: new_status})
            self.db.commit()
