from pydantic import BaseModel, Field
from typing import Optional


class SettingPatch(BaseModel):
    key: str
    value: str = Field(..., min_length=1)


class SettingCreate(BaseModel):
    key: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)
    description: str = Field("", max_length=500)


class SettingOut(BaseModel):
    key: str
    value: str
    description: Optional[str] = None

    class Config:
        from_attributes = True
