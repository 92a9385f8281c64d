from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from dental_clinic.utils.database import get_db
from dental_clinic.models.system_settings_model import SystemSetting
from dental_clinic.schemas.settings_schema import SettingPatch, SettingCreate, SettingOut

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=list[SettingOut])
def list_settings(db: Session = Depends(get_db)):
    return db.query(SystemSetting).order_by(SystemSetting.key.asc()).all()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SettingOut)
def create_setting(payload: SettingCreate, db: Session = Depends(get_db)):
    key = payload.key.strip()
    existing = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if existing:
        raise HTTPException(status_code=409, detail="Setting key already exists")

    obj = SystemSetting(
        key=key,
        value=str(payload.value).strip(),
        description=(payload.description or "").strip(),
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("", response_model=SettingOut)
def update_setting(payload: SettingPatch, db: Session = Depends(get_db)):
    obj = db.query(SystemSetting).filter(SystemSetting.key == payload.key).first()
    if not obj:
        raise HTTPException(404, "Setting not found")

    obj.value = payload.value.strip()
    db.commit()
    db.refresh(obj)
    return obj
