from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, Text, JSON, ForeignKey, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from dental_clinic.utils.database import Base


class Appointment(Base):
    __tablename__ = "appointments"

    __table_args__ = (
        Index("ix_appointments_patient_name", "patient_name"),
        Index("ix_appointments_scheduled_at", "scheduled_at"),
    )

    appointment_id = Column(Integer, primary_key=True, index=True)

    patient_name = Column(String(150), nullable=False)
    patient_id = Column(
        Integer, ForeignKey("patients.patient_id", ondelete="SET NULL"), nullable=True, index=True
    )

    service = Column(String(100), nullable=False)
    location = Column(String(100), nullable=False)
    scheduled_at = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)

    # total due, fixed from the service price at booking
    payment = Column(Numeric(12, 2), nullable=False, server_default="0")

    # [{"amount": "4000", "date": "2025-03-05T14:30:45"}, ...] in payment order
    payment_history = Column(JSON, nullable=False, default=list)
    payment_completed_at = Column(DateTime, nullable=True)

    # booking screen status: Attended / Unattended
    visit_status = Column(String(20), nullable=False, server_default="Unattended")

    created_on = Column(DateTime, server_default=func.now())

    patient = relationship("Patient", back_populates="appointments")
