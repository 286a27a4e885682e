import os
from datetime import date, timedelta
from decimal import Decimal

import pytest

# Must be set before the application modules are imported
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from medibook.main import app  # noqa: E402
from medibook.core.database import get_db, Base  # noqa: E402
from medibook.core.security import UserRole, create_user_token, get_password_hash  # noqa: E402
from medibook.models import Appointment, AppointmentStatus, Availability, DayOfWeek, Doctor, Patient, User  # noqa: E402

SQLALCHEMY_DATABASE_URL = os.environ["TEST_DATABASE_URL"]
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PASSWORD = "TestPassword123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


def next_weekday(day: DayOfWeek, today: date = None) -> date:
    """First date strictly after today that falls on ``day``."""
    today = today or date.today()
    days_ahead = (int(day) - int(DayOfWeek.from_date(today))) % 7 or 7
    return today + timedelta(days=days_ahead)


@pytest.fixture(scope="function")
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role: UserRole, email: str = None, **kwargs) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"{role.value}{counter['n']}@example.com",
            password_hash=TEST_PASSWORD_HASH,
            role=role,
            first_name=kwargs.pop("first_name", role.label),
            last_name=kwargs.pop("last_name", f"User{counter['n']}"),
            is_active=kwargs.pop("is_active", True),
            **kwargs
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_doctor(db_session, make_user):
    counter = {"n": 0}

    def _make_doctor(is_verified: bool = True, fee: str = "150.00", **kwargs) -> Doctor:
        counter["n"] += 1
        user = make_user(UserRole.DOCTOR, first_name="Gregory", last_name=f"House{counter['n']}")
        doctor = Doctor(
            user_id=user.id,
            specialization=kwargs.pop("specialization", "Cardiology"),
            license_number=f"LIC-{counter['n']:05d}",
            consultation_fee=Decimal(fee),
            is_verified=is_verified,
            **kwargs
        )
        db_session.add(doctor)
        db_session.commit()
        db_session.refresh(doctor)
        return doctor

    return _make_doctor


@pytest.fixture
def make_patient(db_session, make_user):
    def _make_patient(**kwargs) -> Patient:
        user = make_user(UserRole.PATIENT, first_name="Jane", last_name="Doe")
        patient = Patient(user_id=user.id, **kwargs)
        db_session.add(patient)
        db_session.commit()
        db_session.refresh(patient)
        return patient

    return _make_patient


@pytest.fixture
def make_availability(db_session):
    def _make_availability(doctor: Doctor, day: DayOfWeek, start, end, is_active: bool = True) -> Availability:
        availability = Availability(
            doctor_id=doctor.id,
            day_of_week=int(day),
            start_time=start,
            end_time=end,
            is_active=is_active
        )
        db_session.add(availability)
        db_session.commit()
        db_session.refresh(availability)
        return availability

    return _make_availability


@pytest.fixture
def make_appointment(db_session):
    def _make_appointment(doctor: Doctor, patient: Patient, appointment_date: date, start, end,
                          status: AppointmentStatus = AppointmentStatus.SCHEDULED) -> Appointment:
        appointment = Appointment(
            doctor_id=doctor.id,
            patient_id=patient.id,
            appointment_date=appointment_date,
            start_time=start,
            end_time=end,
            status=status,
            fee=doctor.consultation_fee
        )
        db_session.add(appointment)
        db_session.commit()
        db_session.refresh(appointment)
        return appointment

    return _make_appointment


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        token = create_user_token(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {token.access_token}"}

    return _auth_headers
