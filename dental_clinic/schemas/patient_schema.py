from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


class PatientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    attended: bool = False

    @field_validator("name", mode="before")
    def strip_name(cls, v):
        return str(v).strip() if v is not None else v

    @field_validator("phone", "email", "notes", mode="before")
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class PatientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    attended: Optional[bool] = None

    class Config:
        extra = "forbid"


class AttendancePatch(BaseModel):
    attended: bool


class PatientOut(BaseModel):
    patient_id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    attended: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
