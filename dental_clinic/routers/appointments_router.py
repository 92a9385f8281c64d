import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from starlette import status

from dental_clinic.initial_data import DEFAULT_LOCATIONS
from dental_clinic.models.appointment_model import Appointment
from dental_clinic.models.clinic_service_model import ClinicService
from dental_clinic.models.patient_model import Patient
from dental_clinic.schemas.appointment_schema import (
    AppointmentCreate,
    AppointmentOut,
    AppointmentUpdate,
    ServiceOut,
    VisitStatusPatch,
)
from dental_clinic.utils.appointments import get_appointment
from dental_clinic.utils.clock import now_local, to_local_naive
from dental_clinic.utils.database import get_db
from dental_clinic.utils.ledger_engine import initial_phase
from dental_clinic.utils.notifications import notify_appointment_booked
from dental_clinic.utils.settings import get_list_setting

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


# -------------------------------------------------
# Helpers
# -------------------------------------------------
def get_active_service(db: Session, name: str) -> ClinicService:
    svc = (
        db.query(ClinicService)
        .filter(ClinicService.service_name == name, ClinicService.is_active.is_(True))
        .first()
    )
    if not svc:
        raise HTTPException(400, f"Unknown service: {name}")
    return svc


def check_location(db: Session, location: str) -> str:
    allowed = get_list_setting(db, "CLINIC_LOCATIONS", DEFAULT_LOCATIONS)
    if location not in allowed:
        raise HTTPException(400, f"Unknown location: {location}")
    return location


def patient_id_for(db: Session, patient_name: str) -> Optional[int]:
    p = db.query(Patient).filter(Patient.name == patient_name).first()
    return p.patient_id if p else None


# =================================================
# 🔹 STATIC ROUTES (ALWAYS FIRST)
# =================================================
@router.get("/services", response_model=list[ServiceOut])
def list_services(db: Session = Depends(get_db)):
    return (
        db.query(ClinicService)
        .filter(ClinicService.is_active.is_(True))
        .order_by(ClinicService.service_name.asc())
        .all()
    )


@router.get("/locations", response_model=list[str])
def list_locations(db: Session = Depends(get_db)):
    return get_list_setting(db, "CLINIC_LOCATIONS", DEFAULT_LOCATIONS)


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def book_appointment(payload: AppointmentCreate, db: Session = Depends(get_db)):
    svc = get_active_service(db, payload.service)
    check_location(db, payload.location)

    appt = Appointment(
        patient_name=payload.patient_name,
        patient_id=patient_id_for(db, payload.patient_name),
        service=svc.service_name,
        location=payload.location,
        scheduled_at=to_local_naive(payload.scheduled_at),
        notes=payload.notes,
        payment=Decimal(str(svc.price)),
        payment_history=[],
        visit_status="Unattended",
    )
    db.add(appt)
    db.flush()
    notify_appointment_booked(db, appt, now=now_local())
    db.commit()
    db.refresh(appt)

    logger.info(
        "Appointment %s booked for %s (%s, %s)",
        appt.appointment_id, appt.patient_name, appt.service, initial_phase(appt.payment).value,
    )
    return appt


@router.get("", response_model=list[AppointmentOut])
def list_appointments(
        search: Optional[str] = None,
        location: Optional[str] = None,
        date_from: Optional[datetime] = Query(None),
        date_to: Optional[datetime] = Query(None),
        limit: int = 50,
        offset: int = 0,
        db: Session = Depends(get_db),
):
    limit = max(1, min(limit, 200))
    offset = max(0, offset)
    date_from = to_local_naive(date_from)
    date_to = to_local_naive(date_to)

    q = db.query(Appointment)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(Appointment.patient_name.ilike(like) | Appointment.service.ilike(like))
    if location:
        q = q.filter(Appointment.location == location)
    if date_from:
        q = q.filter(Appointment.scheduled_at >= date_from)
    if date_to:
        q = q.filter(Appointment.scheduled_at <= date_to)

    return (
        q.order_by(Appointment.scheduled_at.asc(), Appointment.appointment_id.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )


# =================================================
# 🔹 DYNAMIC ROUTES (LAST)
# =================================================
@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_one(appointment_id: int, db: Session = Depends(get_db)):
    return get_appointment(db, appointment_id)


@router.put("/{appointment_id}", response_model=AppointmentOut)
def update_appointment(
        appointment_id: int,
        payload: AppointmentUpdate,
        db: Session = Depends(get_db),
):
    appt = get_appointment(db, appointment_id)

    if payload.service is not None and payload.service != appt.service:
        # total due is fixed once money has been taken against it
        if appt.payment_history:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot change the service of an appointment that already has payments. "
                       "Delete the installments first.",
            )
        svc = get_active_service(db, payload.service)
        appt.service = svc.service_name
        appt.payment = Decimal(str(svc.price))

    if payload.patient_name is not None:
        appt.patient_name = payload.patient_name.strip()
        appt.patient_id = patient_id_for(db, appt.patient_name)
    if payload.location is not None:
        appt.location = check_location(db, payload.location)
    if payload.scheduled_at is not None:
        appt.scheduled_at = to_local_naive(payload.scheduled_at)
    if payload.notes is not None:
        appt.notes = payload.notes

    db.commit()
    db.refresh(appt)
    return appt


@router.patch("/{appointment_id}/visit-status", response_model=AppointmentOut)
def update_visit_status(
        appointment_id: int,
        payload: VisitStatusPatch,
        db: Session = Depends(get_db),
):
    appt = get_appointment(db, appointment_id)
    appt.visit_status = payload.visit_status
    db.commit()
    db.refresh(appt)
    return appt


@router.delete("/{appointment_id}")
def delete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    appt = get_appointment(db, appointment_id)
    db.delete(appt)
    db.commit()
    logger.info("Appointment %s deleted", appointment_id)
    return {"message": "Appointment deleted successfully"}
