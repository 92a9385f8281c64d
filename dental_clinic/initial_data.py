import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from dental_clinic.models.clinic_service_model import ClinicService
from dental_clinic.models.system_settings_model import SystemSetting
from dental_clinic.utils.database import SessionLocal

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = {
    "Tooth Filling": Decimal("10000"),
    "Tooth Extraction": Decimal("15000"),
    "Root Canal": Decimal("30000"),
    "Teeth Whitening": Decimal("20000"),
    "Dental Checkup": Decimal("3000"),
    "Crown Installation": Decimal("25000"),
    "Orthodontic Consultation": Decimal("8000"),
}

DEFAULT_LOCATIONS = ["Tassia-Magic Square", "Machakos", "Tassia-Hill"]

DEFAULT_SETTINGS = {
    "CLINIC_NAME": ("Berkshire Dental Clinic", "Name printed on receipts"),
    "CLINIC_LOCATIONS": (",".join(DEFAULT_LOCATIONS), "Comma separated clinic locations"),
}


def seed(db: Session) -> None:
    for name, price in DEFAULT_SERVICES.items():
        exists = db.query(ClinicService).filter(ClinicService.service_name == name).first()
        if not exists:
            db.add(ClinicService(service_name=name, price=price, is_active=True))
            logger.info("Seeded service %s (%s)", name, price)

    for key, (value, description) in DEFAULT_SETTINGS.items():
        exists = db.query(SystemSetting).filter(SystemSetting.key == key).first()
        if not exists:
            db.add(SystemSetting(key=key, value=value, description=description))
            logger.info("Seeded setting %s", key)

    db.commit()


def init_seed() -> None:
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()
