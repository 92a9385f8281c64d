import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from dental_clinic.core.config import CURRENCY
from dental_clinic.models.appointment_model import Appointment
from dental_clinic.models.notification_model import Notification
from dental_clinic.models.patient_model import Patient
from dental_clinic.utils.clock import now_local
from dental_clinic.utils.formatting import format_amount, format_timestamp
from dental_clinic.utils.ledger_engine import PaymentLedger, PaymentPhase, Transition, initial_phase

logger = logging.getLogger(__name__)

PAYMENT_COMPLETED = "Payment Completed"
PAYMENT_INSTALLMENT = "Payment Installment"
PAYMENT_REOPENED = "Payment Reopened"
PATIENT_ATTENDED = "Patient Attended"
PATIENT_UNATTENDED = "Patient Unattended"
APPOINTMENT_UPCOMING = "Upcoming"
APPOINTMENT_UNATTENDED = "Unattended"

UPCOMING_WINDOW = timedelta(hours=24)

NOTIFICATION_TYPES = (
    PAYMENT_COMPLETED,
    PAYMENT_INSTALLMENT,
    PAYMENT_REOPENED,
    PATIENT_ATTENDED,
    PATIENT_UNATTENDED,
    APPOINTMENT_UPCOMING,
    APPOINTMENT_UNATTENDED,
)


def create_notification(
        db: Session,
        type_: str,
        message: str,
        appointment_id: Optional[int] = None,
        patient_id: Optional[int] = None,
) -> Notification:
    """Adds a notification to the session; the caller commits."""
    n = Notification(
        type=type_,
        appointment_id=appointment_id,
        patient_id=patient_id,
        message=message,
        timestamp=now_local(),
        read=False,
    )
    db.add(n)
    logger.info("Notification %s: %s", type_, message)
    return n


def notify_ledger_transition(
        db: Session,
        appt: Appointment,
        ledger: PaymentLedger,
        transition: Transition,
        amount: Optional[Decimal] = None,
) -> Optional[Notification]:
    if transition == Transition.PAYMENT_COMPLETED_NOW:
        return create_notification(
            db,
            PAYMENT_COMPLETED,
            f"{appt.patient_name} - Full Payment of {CURRENCY} {format_amount(ledger.total_due)} "
            f"({appt.service})",
            appointment_id=appt.appointment_id,
        )

    if transition == Transition.INSTALLMENT and amount is not None:
        return create_notification(
            db,
            PAYMENT_INSTALLMENT,
            f"{appt.patient_name} - Installment of {CURRENCY} {format_amount(amount)} "
            f"({appt.service}, Remaining: {CURRENCY} {format_amount(ledger.remaining)})",
            appointment_id=appt.appointment_id,
        )

    if transition == Transition.PAYMENT_REOPENED:
        return create_notification(
            db,
            PAYMENT_REOPENED,
            f"{appt.patient_name} - Payment reopened, Remaining: {CURRENCY} "
            f"{format_amount(ledger.remaining)} ({appt.service})",
            appointment_id=appt.appointment_id,
        )

    return None


def notify_attendance_change(db: Session, patient: Patient) -> Notification:
    label = "Attended" if patient.attended else "Unattended"
    return create_notification(
        db,
        PATIENT_ATTENDED if patient.attended else PATIENT_UNATTENDED,
        f"{patient.name} - {label}",
        patient_id=patient.patient_id,
    )


def notify_appointment_booked(
        db: Session,
        appt: Appointment,
        now: Optional[datetime] = None,
) -> Optional[Notification]:
    """
    Reminder for a freshly booked appointment:
    - Upcoming: scheduled within the next 24 hours
    - Unattended: already in the past with nothing paid
    Anything else gets no notification.
    """
    now = now or now_local()
    when = appt.scheduled_at

    if now < when <= now + UPCOMING_WINDOW:
        type_, label = APPOINTMENT_UPCOMING, "Scheduled"
    elif when < now and initial_phase(appt.payment) == PaymentPhase.UNPAID:
        type_, label = APPOINTMENT_UNATTENDED, "Due"
    else:
        return None

    return create_notification(
        db,
        type_,
        f"{appt.patient_name} - {appt.service} ({label}: {format_timestamp(when)})",
        appointment_id=appt.appointment_id,
        patient_id=appt.patient_id,
    )
