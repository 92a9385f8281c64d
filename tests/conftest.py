"""
Global test fixtures for pytest.

Runs the API against an in-memory SQLite database:
- `db`: session on freshly created + seeded tables
- `client`: FastAPI TestClient
- sample patient / appointment records
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

import dental_clinic.models  # noqa: F401
from dental_clinic.initial_data import seed
from dental_clinic.utils.database import Base, SessionLocal, engine
from main import app


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def patient(client):
    """Patient that has not attended yet."""
    resp = client.post(
        "/patients",
        json={"name": "Jane Wanjiku", "phone": "0712345678", "email": "jane@example.com"},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def appointment(client, patient):
    """Tooth Filling (KSh 10,000) for the sample patient."""
    resp = client.post(
        "/appointments",
        json={
            "patient_name": patient["name"],
            "service": "Tooth Filling",
            "location": "Machakos",
            "scheduled_at": datetime(2099, 3, 5, 10, 30).isoformat(),
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def free_appointment(client, db, patient):
    """Appointment for a no-charge service."""
    from dental_clinic.models.clinic_service_model import ClinicService

    db.add(ClinicService(service_name="Follow-up Visit", price=0, is_active=True))
    db.commit()

    resp = client.post(
        "/appointments",
        json={
            "patient_name": patient["name"],
            "service": "Follow-up Visit",
            "location": "Tassia-Hill",
            "scheduled_at": datetime(2099, 3, 6, 9, 0).isoformat(),
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
