from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime
from sqlalchemy.sql import func

from dental_clinic.utils.database import Base


class ClinicService(Base):
    __tablename__ = "clinic_services"

    service_id = Column(Integer, primary_key=True, index=True)
    service_name = Column(String(100), unique=True, nullable=False)
    price = Column(Numeric(12, 2), nullable=False, default=0)

    is_active = Column(Boolean, default=True)
    created_on = Column(DateTime, server_default=func.now())
