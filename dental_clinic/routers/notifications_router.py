from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from dental_clinic.models.notification_model import Notification
from dental_clinic.schemas.notification_schema import NotificationListOut, NotificationOut
from dental_clinic.utils.database import get_db

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListOut)
def list_notifications(
        search: Optional[str] = None,
        type: Optional[str] = None,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0,
        db: Session = Depends(get_db),
):
    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    q = db.query(Notification)
    if search:
        q = q.filter(Notification.message.ilike(f"%{search.strip()}%"))
    if type:
        q = q.filter(Notification.type == type)
    if unread_only:
        q = q.filter(Notification.read.is_(False))

    total = q.count()
    unread = q.filter(Notification.read.is_(False)).count()
    items = (
        q.order_by(Notification.timestamp.desc(), Notification.notification_id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return NotificationListOut(
        total=total,
        unread=unread,
        items=[NotificationOut.model_validate(n) for n in items],
    )


@router.post("/read-all")
def mark_all_read(db: Session = Depends(get_db)):
    updated = (
        db.query(Notification)
        .filter(Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    return {"message": "updated", "count": updated}


@router.get("/unread-count")
def unread_count(db: Session = Depends(get_db)):
    count = db.query(func.count(Notification.notification_id)).filter(Notification.read.is_(False)).scalar()
    return {"unread": int(count or 0)}


@router.patch("/{notification_id}/read", response_model=NotificationOut)
def mark_read(notification_id: int, db: Session = Depends(get_db)):
    n = db.query(Notification).filter(Notification.notification_id == notification_id).first()
    if not n:
        raise HTTPException(404, "Notification not found")

    n.read = True
    db.commit()
    db.refresh(n)
    return n


@router.delete("/{notification_id}")
def delete_notification(notification_id: int, db: Session = Depends(get_db)):
    n = db.query(Notification).filter(Notification.notification_id == notification_id).first()
    if not n:
        raise HTTPException(404, "Notification not found")

    db.delete(n)
    db.commit()
    return {"message": "Notification cleared"}
