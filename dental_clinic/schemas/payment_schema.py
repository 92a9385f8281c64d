from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Union

from dental_clinic.utils.ledger_engine import AttendancePhase, PaymentPhase, Transition


class InstallmentIn(BaseModel):
    # validated by the ledger engine so every rejection reads the same
    amount: Union[float, str, None] = None


class InstallmentOut(BaseModel):
    index: int
    amount: float
    date: datetime
    date_display: str


class PaymentRowOut(BaseModel):
    appointment_id: int
    patient_name: str
    patient_id: Optional[int] = None
    service: str
    location: str
    scheduled_at: datetime

    total_due: float
    paid_to_date: float
    remaining: float
    overpaid_by: float

    payment_phase: PaymentPhase
    attendance: AttendancePhase
    payment_status: str

    payment_completed_at: Optional[datetime] = None
    installments: list[InstallmentOut] = []
    integrity_warning: bool = False


class LedgerMutationOut(BaseModel):
    transition: Optional[Transition] = None
    cleared: Optional[bool] = None
    payment: PaymentRowOut


class BulkPaymentIn(BaseModel):
    appointment_ids: list[int] = Field(..., min_length=1)


class BulkPaymentOut(BaseModel):
    processed: list[int] = []
    skipped: list[int] = []
    missing: list[int] = []
