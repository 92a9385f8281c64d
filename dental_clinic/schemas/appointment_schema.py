from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Literal


class AppointmentCreate(BaseModel):
    patient_name: str = Field(..., min_length=1, max_length=150)
    service: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    scheduled_at: datetime
    notes: Optional[str] = None

    @field_validator("patient_name", "service", "location", mode="before")
    def strip_text(cls, v):
        return str(v).strip() if v is not None else v


class AppointmentUpdate(BaseModel):
    patient_name: Optional[str] = Field(None, min_length=1, max_length=150)
    service: Optional[str] = None
    location: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"


class VisitStatusPatch(BaseModel):
    visit_status: Literal["Attended", "Unattended"]


class AppointmentOut(BaseModel):
    appointment_id: int
    patient_name: str
    patient_id: Optional[int] = None
    service: str
    location: str
    scheduled_at: datetime
    notes: Optional[str] = None
    payment: float
    visit_status: str
    payment_completed_at: Optional[datetime] = None
    created_on: Optional[datetime] = None

    class Config:
        from_attributes = True


class ServiceOut(BaseModel):
    service_id: int
    service_name: str
    price: float
    is_active: bool

    class Config:
        from_attributes = True
