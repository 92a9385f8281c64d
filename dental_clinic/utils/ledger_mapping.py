import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from dental_clinic.models.appointment_model import Appointment
from dental_clinic.utils.ledger_engine import Installment, PaymentLedger

logger = logging.getLogger(__name__)


def _parse_date(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _stored_amount(appt: Appointment, value) -> Decimal:
    # unreadable amounts load as 0 so the row is flagged instead of failing
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite():
        logger.warning(
            "Appointment %s has an unreadable stored payment amount: %r",
            appt.appointment_id, value,
        )
        return Decimal("0")
    return amount


def ledger_from_appointment(appt: Appointment) -> PaymentLedger:
    """Read the stored payment history of an appointment into ledger shape."""
    return PaymentLedger(
        total_due=Decimal(str(appt.payment or 0)),
        installments=tuple(
            Installment(amount=_stored_amount(appt, p.get("amount")), occurred_at=_parse_date(p["date"]))
            for p in (appt.payment_history or [])
        ),
    )


def history_from_ledger(ledger: PaymentLedger) -> list[dict]:
    """Inverse of ledger_from_appointment (JSON safe)."""
    return [
        {"amount": str(i.amount), "date": i.occurred_at.isoformat()}
        for i in ledger.installments
    ]
