from sqlalchemy.orm import Session

from dental_clinic.models.system_settings_model import SystemSetting


def get_setting(db: Session, key: str, default: str) -> str:
    row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    return row.value if row else default


def get_list_setting(db: Session, key: str, default: list[str]) -> list[str]:
    raw = get_setting(db, key, "")
    items = [x.strip() for x in raw.split(",") if x.strip()]
    return items or list(default)
