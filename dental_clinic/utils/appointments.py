from fastapi import HTTPException
from sqlalchemy.orm import Session

from dental_clinic.models.appointment_model import Appointment


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    appt = db.query(Appointment).filter(Appointment.appointment_id == appointment_id).first()
    if not appt:
        raise HTTPException(404, "Appointment not found")
    return appt
