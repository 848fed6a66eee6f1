import os

# Set testing environment before the application modules read their settings
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")

import pytest  # noqa: E402
from datetime import time  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from medbook.core.database import Base  # noqa: E402
from medbook.core.security import UserRole, create_access_token  # noqa: E402
from medbook.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from medbook.models.doctor import Doctor  # noqa: E402
from medbook.models.patient import Patient  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    # File-backed so that worker threads get their own connections
    engine = create_engine(
        f"sqlite:///{tmp_path / 'medbook.db'}",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _add(db, instance):
    db.add(instance)
    db.commit()
    db.refresh(instance)
    return instance


@pytest.fixture
def doctor(db):
    return _add(db, Doctor(
        first_name="Gregory",
        last_name="House",
        specialization="Diagnostics",
        email="house@example.com",
        work_start=time(9, 0),
        work_end=time(17, 0)
    ))


@pytest.fixture
def other_doctor(db):
    # No explicit hours: the configured 09:00-17:00 defaults apply
    return _add(db, Doctor(
        first_name="Lisa",
        last_name="Cuddy",
        specialization="Endocrinology",
        email="cuddy@example.com"
    ))


@pytest.fixture
def patient(db):
    return _add(db, Patient(
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone_number="555-0100"
    ))


@pytest.fixture
def other_patient(db):
    return _add(db, Patient(
        first_name="John",
        last_name="Smith",
        email="john@example.com",
        phone_number="555-0199"
    ))


@pytest.fixture
def make_appointment(db):
    """Insert an appointment directly, bypassing the availability rules."""
    def _make(doctor, patient, when, status=AppointmentStatus.SCHEDULED):
        return _add(db, Appointment(
            doctor_id=doctor.id,
            patient_id=patient.id,
            appointment_time=when,
            status=status
        ))
    return _make


@pytest.fixture
def doctor_token(doctor):
    return create_access_token(doctor.id, UserRole.DOCTOR)


@pytest.fixture
def other_doctor_token(other_doctor):
    return create_access_token(other_doctor.id, UserRole.DOCTOR)


@pytest.fixture
def patient_token(patient):
    return create_access_token(patient.id, UserRole.PATIENT)


@pytest.fixture
def other_patient_token(other_patient):
    return create_access_token(other_patient.id, UserRole.PATIENT)
