import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session
from starlette import status

from dental_clinic.core.config import CURRENCY
from dental_clinic.models.appointment_model import Appointment
from dental_clinic.schemas.payment_schema import (
    BulkPaymentIn,
    BulkPaymentOut,
    InstallmentIn,
    LedgerMutationOut,
    PaymentRowOut,
)
from dental_clinic.utils.appointments import get_appointment
from dental_clinic.utils.clock import now_local
from dental_clinic.utils.database import get_db
from dental_clinic.utils.formatting import format_amount, format_timestamp
from dental_clinic.utils.ledger_engine import (
    AttendancePhase,
    IndexOutOfRange,
    InvalidAmount,
    LedgerDeletion,
    LedgerError,
    LedgerUpdate,
    NothingOwed,
    PaymentLedger,
    PaymentPhase,
    Transition,
    add_installment,
    delete_installment,
    detect_transition,
    edit_installment,
    process_full_payment,
    resolve_completed_at,
)
from dental_clinic.utils.ledger_mapping import history_from_ledger, ledger_from_appointment
from dental_clinic.utils.notifications import notify_ledger_transition
from dental_clinic.utils.payment_rows import attendance_by_name, attendance_for, payment_row
from dental_clinic.utils.settings import get_setting

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


# -------------------------------------------------
# Helpers
# -------------------------------------------------
def ledger_http_error(exc: LedgerError) -> HTTPException:
    if isinstance(exc, InvalidAmount):
        return HTTPException(422, "Please enter a valid payment amount")
    if isinstance(exc, IndexOutOfRange):
        return HTTPException(status.HTTP_404_NOT_FOUND, str(exc))
    if isinstance(exc, NothingOwed):
        return HTTPException(status.HTTP_409_CONFLICT, "Nothing owed on this appointment")
    return HTTPException(status.HTTP_400_BAD_REQUEST, str(exc))


def store_result(
        db: Session,
        appt: Appointment,
        before: PaymentLedger,
        result,
        amount=None,
) -> None:
    """
    Writes the new installment history back to the appointment (last write
    wins) and records the completion timestamp / notification side effects.
    The caller commits.
    """
    ts = now_local()
    ledger = result.ledger

    appt.payment_history = history_from_ledger(ledger)
    appt.payment_completed_at = resolve_completed_at(appt.payment_completed_at, result, ts)

    if isinstance(result, LedgerUpdate):
        notify_ledger_transition(db, appt, ledger, result.transition, amount=amount)
    else:
        # deletions only notify when they move the ledger across Fully Paid
        transition = detect_transition(before, ledger, default=Transition.CORRECTION)
        notify_ledger_transition(db, appt, ledger, transition)


def mutation_out(db: Session, appt: Appointment, result) -> LedgerMutationOut:
    row = payment_row(appt, attendance_for(db, appt), ledger=result.ledger)
    if isinstance(result, LedgerDeletion):
        return LedgerMutationOut(cleared=result.cleared, payment=row)
    return LedgerMutationOut(transition=result.transition, payment=row)


# =================================================
# 🔹 STATIC ROUTES (ALWAYS FIRST)
# =================================================
@router.get("", response_model=list[PaymentRowOut])
def list_payments(
        search: Optional[str] = None,
        payment_phase: Optional[PaymentPhase] = Query(None),
        attendance: Optional[AttendancePhase] = Query(None),
        limit: int = 50,
        offset: int = 0,
        db: Session = Depends(get_db),
):
    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    q = db.query(Appointment)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(Appointment.patient_name.ilike(like) | Appointment.service.ilike(like))

    attended = attendance_by_name(db)
    rows = []
    for appt in q.order_by(Appointment.scheduled_at.desc(), Appointment.appointment_id.desc()).all():
        flag = appt.patient.attended if appt.patient is not None else attended.get(appt.patient_name, False)
        row = payment_row(appt, bool(flag))
        if payment_phase is not None and row.payment_phase != payment_phase:
            continue
        if attendance is not None and row.attendance != attendance:
            continue
        rows.append(row)

    return rows[offset:offset + limit]


@router.post("/bulk-full", response_model=BulkPaymentOut)
def bulk_full_payment(payload: BulkPaymentIn, db: Session = Depends(get_db)):
    out = BulkPaymentOut()
    ts = now_local()

    for appointment_id in dict.fromkeys(payload.appointment_ids):
        appt = db.query(Appointment).filter(Appointment.appointment_id == appointment_id).first()
        if not appt:
            out.missing.append(appointment_id)
            continue

        ledger = ledger_from_appointment(appt)
        try:
            result = process_full_payment(ledger, ts)
        except NothingOwed:
            out.skipped.append(appointment_id)
            continue

        store_result(db, appt, ledger, result, amount=ledger.remaining)
        out.processed.append(appointment_id)

    db.commit()
    logger.info(
        "Bulk full payment: processed=%s skipped=%s missing=%s",
        out.processed, out.skipped, out.missing,
    )
    return out


# =================================================
# 🔹 DYNAMIC ROUTES (LAST)
# =================================================
@router.get("/{appointment_id}", response_model=PaymentRowOut)
def get_payment(appointment_id: int, db: Session = Depends(get_db)):
    appt = get_appointment(db, appointment_id)
    return payment_row(appt, attendance_for(db, appt))


@router.post("/{appointment_id}/installments", response_model=LedgerMutationOut)
def create_installment(appointment_id: int, payload: InstallmentIn, db: Session = Depends(get_db)):
    appt = get_appointment(db, appointment_id)
    ledger = ledger_from_appointment(appt)

    try:
        result = add_installment(ledger, payload.amount, now_local())
    except LedgerError as e:
        logger.warning("Installment rejected for appointment %s: %s", appointment_id, e)
        raise ledger_http_error(e)

    added = result.ledger.installments[-1].amount
    store_result(db, appt, ledger, result, amount=added)
    db.commit()
    db.refresh(appt)

    logger.info(
        "Installment of %s recorded for appointment %s (%s)",
        added, appointment_id, result.transition.value,
    )
    return mutation_out(db, appt, result)


@router.put("/{appointment_id}/installments/{index}", response_model=LedgerMutationOut)
def update_installment(
        appointment_id: int,
        index: int,
        payload: InstallmentIn,
        db: Session = Depends(get_db),
):
    appt = get_appointment(db, appointment_id)
    ledger = ledger_from_appointment(appt)

    try:
        result = edit_installment(ledger, index, payload.amount)
    except LedgerError as e:
        logger.warning("Installment edit rejected for appointment %s: %s", appointment_id, e)
        raise ledger_http_error(e)

    store_result(db, appt, ledger, result)
    db.commit()
    db.refresh(appt)

    if result.ledger.is_overpaid:
        logger.warning(
            "Appointment %s overpaid by %s after edit", appointment_id, result.ledger.overpaid_by
        )
    return mutation_out(db, appt, result)


@router.delete("/{appointment_id}/installments/{index}", response_model=LedgerMutationOut)
def remove_installment(appointment_id: int, index: int, db: Session = Depends(get_db)):
    appt = get_appointment(db, appointment_id)
    ledger = ledger_from_appointment(appt)

    try:
        result = delete_installment(ledger, index)
    except LedgerError as e:
        raise ledger_http_error(e)

    store_result(db, appt, ledger, result)
    db.commit()
    db.refresh(appt)

    logger.info("Installment %s deleted for appointment %s", index, appointment_id)
    return mutation_out(db, appt, result)


@router.post("/{appointment_id}/full", response_model=LedgerMutationOut)
def full_payment(appointment_id: int, db: Session = Depends(get_db)):
    appt = get_appointment(db, appointment_id)
    ledger = ledger_from_appointment(appt)

    try:
        result = process_full_payment(ledger, now_local())
    except LedgerError as e:
        raise ledger_http_error(e)

    store_result(db, appt, ledger, result, amount=ledger.remaining)
    db.commit()
    db.refresh(appt)

    logger.info("Full payment of %s processed for appointment %s", ledger.remaining, appointment_id)
    return mutation_out(db, appt, result)


@router.get("/{appointment_id}/receipt", response_class=PlainTextResponse)
def receipt(appointment_id: int, db: Session = Depends(get_db)):
    appt = get_appointment(db, appointment_id)
    row = payment_row(appt, attendance_for(db, appt))
    clinic_name = get_setting(db, "CLINIC_NAME", "Dental Clinic")

    history = [
        f"  Installment: {CURRENCY} {format_amount(i.amount)} - {i.date_display}"
        for i in row.installments
    ] or ["  -"]

    lines = [
        clinic_name,
        "=" * len(clinic_name),
        "Receipt",
        f"Patient: {row.patient_name}",
        f"Service: {row.service}",
        f"Total Amount: {CURRENCY} {format_amount(row.total_due)}",
        f"Paid Amount: {CURRENCY} {format_amount(row.paid_to_date)}",
        f"Remaining: {CURRENCY} {format_amount(row.remaining)}",
        "Payment History:",
        *history,
        f"Status: {row.payment_status}",
    ]
    if row.payment_completed_at:
        lines.append(f"Payment Completed: {format_timestamp(row.payment_completed_at)}")
    lines += [
        f"Issued: {format_timestamp(now_local())}",
        "",
        "Thank you for your payment!",
    ]
    return "\n".join(lines) + "\n"
