from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func

from dental_clinic.utils.database import Base


class SystemSetting(Base):
    __tablename__ = "system_settings"

    key = Column(String(100), primary_key=True)
    value = Column(String(500), nullable=False)
    description = Column(Text)

    updated_on = Column(DateTime, server_default=func.now(), onupdate=func.now())
