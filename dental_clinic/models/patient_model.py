from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from dental_clinic.utils.database import Base


class Patient(Base):
    __tablename__ = "patients"

    patient_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), unique=True, nullable=False, index=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(150), nullable=True)
    notes = Column(Text, nullable=True)

    # attendance flag, independent of any single appointment's ledger
    attended = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=True)
    updated_at = Column(DateTime, nullable=True)

    appointments = relationship("Appointment", back_populates="patient")
