import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette import status

from dental_clinic.models.appointment_model import Appointment
from dental_clinic.models.patient_model import Patient
from dental_clinic.schemas.patient_schema import (
    AttendancePatch,
    PatientCreate,
    PatientOut,
    PatientUpdate,
)
from dental_clinic.schemas.payment_schema import PaymentRowOut
from dental_clinic.utils.clock import now_local
from dental_clinic.utils.database import get_db
from dental_clinic.utils.notifications import notify_attendance_change
from dental_clinic.utils.payment_rows import payment_row

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patient(db: Session, patient_id: int) -> Patient:
    patient = db.query(Patient).filter(Patient.patient_id == patient_id).first()
    if not patient:
        raise HTTPException(404, "Patient not found")
    return patient


def commit_or_conflict(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A patient with this name already exists",
        )


def link_appointments(db: Session, patient: Patient):
    # appointments are booked by name; attach any that were booked before the record existed
    (
        db.query(Appointment)
        .filter(Appointment.patient_name == patient.name, Appointment.patient_id.is_(None))
        .update({Appointment.patient_id: patient.patient_id}, synchronize_session=False)
    )


# CREATE
@router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
def create_patient(payload: PatientCreate, db: Session = Depends(get_db)):
    exists = db.query(Patient).filter(Patient.name == payload.name).first()
    if exists:
        raise HTTPException(409, "A patient with this name already exists")

    patient = Patient(
        name=payload.name,
        phone=payload.phone,
        email=payload.email,
        notes=payload.notes,
        attended=payload.attended,
        created_at=now_local(),
    )
    db.add(patient)
    db.flush()
    link_appointments(db, patient)
    commit_or_conflict(db)
    db.refresh(patient)
    return patient


# READ ALL
@router.get("", response_model=list[PatientOut])
def list_patients(
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
        db: Session = Depends(get_db),
):
    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    q = db.query(Patient)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(
            Patient.name.ilike(like) | Patient.phone.ilike(like) | Patient.email.ilike(like)
        )
    return q.order_by(Patient.name.asc()).offset(offset).limit(limit).all()


# READ ONE
@router.get("/{patient_id}", response_model=PatientOut)
def get_one(patient_id: int, db: Session = Depends(get_db)):
    return get_patient(db, patient_id)


# UPDATE
@router.put("/{patient_id}", response_model=PatientOut)
def update_patient(patient_id: int, payload: PatientUpdate, db: Session = Depends(get_db)):
    patient = get_patient(db, patient_id)
    old_attended = bool(patient.attended)

    if payload.name is not None and payload.name.strip() != patient.name:
        new_name = payload.name.strip()
        dup = (
            db.query(Patient)
            .filter(Patient.name == new_name, Patient.patient_id != patient_id)
            .first()
        )
        if dup:
            raise HTTPException(409, "A patient with this name already exists")
        patient.name = new_name
        (
            db.query(Appointment)
            .filter(Appointment.patient_id == patient_id)
            .update({Appointment.patient_name: new_name}, synchronize_session=False)
        )

    if payload.phone is not None:
        patient.phone = payload.phone
    if payload.email is not None:
        patient.email = payload.email
    if payload.notes is not None:
        patient.notes = payload.notes
    if payload.attended is not None:
        patient.attended = payload.attended

    patient.updated_at = now_local()
    if bool(patient.attended) != old_attended:
        notify_attendance_change(db, patient)

    commit_or_conflict(db)
    db.refresh(patient)
    return patient


@router.patch("/{patient_id}/attendance", response_model=PatientOut)
def set_attendance(patient_id: int, payload: AttendancePatch, db: Session = Depends(get_db)):
    patient = get_patient(db, patient_id)

    changed = bool(patient.attended) != payload.attended
    patient.attended = payload.attended
    patient.updated_at = now_local()
    if changed:
        notify_attendance_change(db, patient)

    db.commit()
    db.refresh(patient)
    return patient


@router.get("/{patient_id}/timeline", response_model=list[PaymentRowOut])
def patient_timeline(patient_id: int, db: Session = Depends(get_db)):
    patient = get_patient(db, patient_id)

    appts = (
        db.query(Appointment)
        .filter((Appointment.patient_id == patient_id) | (Appointment.patient_name == patient.name))
        .order_by(Appointment.scheduled_at.asc())
        .all()
    )
    return [payment_row(a, bool(patient.attended)) for a in appts]


# DELETE
@router.delete("/{patient_id}")
def delete_patient(patient_id: int, db: Session = Depends(get_db)):
    patient = get_patient(db, patient_id)

    (
        db.query(Appointment)
        .filter(Appointment.patient_id == patient_id)
        .update({Appointment.patient_id: None}, synchronize_session=False)
    )
    db.delete(patient)
    db.commit()
    logger.info("Patient %s deleted", patient_id)
    return {"message": "Patient deleted successfully"}
