from sqlalchemy.orm import Session

from dental_clinic.models.appointment_model import Appointment
from dental_clinic.models.patient_model import Patient
from dental_clinic.schemas.payment_schema import InstallmentOut, PaymentRowOut
from dental_clinic.utils.formatting import format_timestamp
from dental_clinic.utils.ledger_engine import PaymentLedger, derive_status
from dental_clinic.utils.ledger_mapping import ledger_from_appointment


def attendance_for(db: Session, appt: Appointment) -> bool:
    """Attendance flag of the appointment's patient (linked id first, then name)."""
    if appt.patient is not None:
        return bool(appt.patient.attended)

    patient = db.query(Patient).filter(Patient.name == appt.patient_name).first()
    return bool(patient.attended) if patient else False


def attendance_by_name(db: Session) -> dict[str, bool]:
    return {p.name: bool(p.attended) for p in db.query(Patient).all()}


def payment_row(appt: Appointment, attended: bool, ledger: PaymentLedger = None) -> PaymentRowOut:
    ledger = ledger or ledger_from_appointment(appt)
    status = derive_status(ledger, attended)

    return PaymentRowOut(
        appointment_id=appt.appointment_id,
        patient_name=appt.patient_name,
        patient_id=appt.patient_id,
        service=appt.service,
        location=appt.location,
        scheduled_at=appt.scheduled_at,
        total_due=float(ledger.total_due),
        paid_to_date=float(ledger.paid_to_date),
        remaining=float(ledger.remaining),
        overpaid_by=float(ledger.overpaid_by),
        payment_phase=status.payment,
        attendance=status.attendance,
        payment_status=status.display,
        payment_completed_at=appt.payment_completed_at,
        installments=[
            InstallmentOut(
                index=i,
                amount=float(inst.amount),
                date=inst.occurred_at,
                date_display=format_timestamp(inst.occurred_at),
            )
            for i, inst in enumerate(ledger.installments)
        ],
        integrity_warning=ledger.has_integrity_issue,
    )
