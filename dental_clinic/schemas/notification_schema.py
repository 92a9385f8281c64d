from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class NotificationOut(BaseModel):
    notification_id: int
    type: str
    appointment_id: Optional[int] = None
    patient_id: Optional[int] = None
    message: str
    timestamp: datetime
    read: bool

    class Config:
        from_attributes = True


class NotificationListOut(BaseModel):
    total: int
    unread: int
    items: list[NotificationOut]
