from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import NamedTuple, Optional, Union


ZERO = Decimal("0")


# -------------------------------------------------
# Errors
# -------------------------------------------------
class LedgerError(Exception):
    """Base class for rejected ledger operations."""


class InvalidAmount(LedgerError, ValueError):
    pass


class IndexOutOfRange(LedgerError, IndexError):
    pass


class NothingOwed(LedgerError):
    pass


# -------------------------------------------------
# Phases / transitions
# -------------------------------------------------
class PaymentPhase(str, Enum):
    NO_CHARGE_REQUIRED = "No Charge Required"
    UNPAID = "Unpaid"
    PARTIALLY_PAID = "Partially Paid"
    FULLY_PAID = "Fully Paid"


class AttendancePhase(str, Enum):
    ATTENDED = "Attended"
    NOT_ATTENDED = "Not Attended"

    @classmethod
    def from_flag(cls, attended: bool) -> "AttendancePhase":
        return cls.ATTENDED if attended else cls.NOT_ATTENDED


class Transition(str, Enum):
    INSTALLMENT = "INSTALLMENT"
    PAYMENT_COMPLETED_NOW = "PAYMENT_COMPLETED_NOW"
    CORRECTION = "CORRECTION"
    PAYMENT_REOPENED = "PAYMENT_REOPENED"


# -------------------------------------------------
# Amounts
# -------------------------------------------------
def to_amount(value) -> Decimal:
    """
    Parse a user supplied payment amount.

    Accepts Decimal / int / float / numeric strings. Rejects None, bools,
    non-numeric text, NaN, infinities and anything <= 0.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount(f"Invalid amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Invalid amount: {value!r}") from None

    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"Amount must be a positive number, got {value!r}")
    return amount


def _decimal(x) -> Decimal:
    if x is None:
        return ZERO
    return x if isinstance(x, Decimal) else Decimal(str(x))


# -------------------------------------------------
# Ledger shape
# -------------------------------------------------
@dataclass(frozen=True)
class Installment:
    amount: Decimal
    occurred_at: datetime

    # stored history is loaded as-is; new amounts are validated by
    # add_installment / edit_installment
    def __post_init__(self):
        object.__setattr__(self, "amount", _decimal(self.amount))


@dataclass(frozen=True)
class PaymentLedger:
    total_due: Decimal
    installments: tuple = ()

    def __post_init__(self):
        total = _decimal(self.total_due)
        if not total.is_finite() or total < 0:
            raise InvalidAmount(f"total_due must be >= 0, got {self.total_due!r}")
        object.__setattr__(self, "total_due", total)
        object.__setattr__(self, "installments", tuple(self.installments))

    @property
    def paid_to_date(self) -> Decimal:
        return sum((i.amount for i in self.installments), ZERO)

    @property
    def remaining(self) -> Decimal:
        # not clamped: a negative value is an overpayment to reconcile
        return self.total_due - self.paid_to_date

    @property
    def overpaid_by(self) -> Decimal:
        return max(ZERO, self.paid_to_date - self.total_due)

    @property
    def is_overpaid(self) -> bool:
        return self.overpaid_by > 0

    @property
    def has_integrity_issue(self) -> bool:
        """True when stored history holds non-positive amounts (corrupted data)."""
        return any(i.amount <= 0 for i in self.installments)

    @property
    def phase(self) -> PaymentPhase:
        return compute_payment_phase(self.total_due, self.paid_to_date)


class LedgerUpdate(NamedTuple):
    ledger: PaymentLedger
    transition: Transition


class LedgerDeletion(NamedTuple):
    ledger: PaymentLedger
    cleared: bool


@dataclass(frozen=True)
class CombinedStatus:
    attendance: AttendancePhase
    payment: PaymentPhase

    @property
    def display(self) -> str:
        if self.payment == PaymentPhase.NO_CHARGE_REQUIRED:
            return self.attendance.value
        return f"{self.attendance.value} - {self.payment.value}"

    def matches(
            self,
            attendance: Optional[AttendancePhase] = None,
            payment: Optional[PaymentPhase] = None,
    ) -> bool:
        if attendance is not None and self.attendance != attendance:
            return False
        if payment is not None and self.payment != payment:
            return False
        return True

    def __str__(self) -> str:
        return self.display


# -------------------------------------------------
# Status computation
# -------------------------------------------------
def compute_payment_phase(total_due, paid_to_date) -> PaymentPhase:
    """
    Precedence:
      total_due == 0       -> NO_CHARGE_REQUIRED
      paid == 0            -> UNPAID
      paid < total_due     -> PARTIALLY_PAID
      otherwise            -> FULLY_PAID
    """
    total_due = _decimal(total_due)
    paid_to_date = _decimal(paid_to_date)

    if total_due == 0:
        return PaymentPhase.NO_CHARGE_REQUIRED
    if paid_to_date == 0:
        return PaymentPhase.UNPAID
    if paid_to_date < total_due:
        return PaymentPhase.PARTIALLY_PAID
    return PaymentPhase.FULLY_PAID


def combine_status(attendance: AttendancePhase, payment: PaymentPhase) -> CombinedStatus:
    return CombinedStatus(attendance=AttendancePhase(attendance), payment=PaymentPhase(payment))


def derive_status(ledger: PaymentLedger, attended: bool) -> CombinedStatus:
    return combine_status(AttendancePhase.from_flag(attended), ledger.phase)


def initial_phase(total_due) -> PaymentPhase:
    return compute_payment_phase(total_due, ZERO)


def detect_transition(
        before: PaymentLedger,
        after: PaymentLedger,
        default: Transition = Transition.INSTALLMENT,
) -> Transition:
    was_paid = before.phase == PaymentPhase.FULLY_PAID
    is_paid = after.phase == PaymentPhase.FULLY_PAID

    if is_paid and not was_paid:
        return Transition.PAYMENT_COMPLETED_NOW
    if was_paid and not is_paid:
        return Transition.PAYMENT_REOPENED
    return default


# -------------------------------------------------
# Installment mutations
# -------------------------------------------------
def _check_index(ledger: PaymentLedger, index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise IndexOutOfRange(f"Installment index must be an int, got {index!r}")
    if not 0 <= index < len(ledger.installments):
        raise IndexOutOfRange(
            f"Installment index {index} out of range (0..{len(ledger.installments) - 1})"
        )
    return index


def add_installment(ledger: PaymentLedger, amount, timestamp: datetime) -> LedgerUpdate:
    inst = Installment(amount=to_amount(amount), occurred_at=timestamp)
    new_ledger = replace(ledger, installments=ledger.installments + (inst,))

    return LedgerUpdate(
        new_ledger,
        detect_transition(ledger, new_ledger, default=Transition.INSTALLMENT),
    )


def edit_installment(ledger: PaymentLedger, index: int, new_amount) -> LedgerUpdate:
    index = _check_index(ledger, index)
    amount = to_amount(new_amount)

    items = list(ledger.installments)
    items[index] = replace(items[index], amount=amount)
    new_ledger = replace(ledger, installments=tuple(items))

    return LedgerUpdate(
        new_ledger,
        detect_transition(ledger, new_ledger, default=Transition.CORRECTION),
    )


def delete_installment(ledger: PaymentLedger, index: int) -> LedgerDeletion:
    index = _check_index(ledger, index)

    items = ledger.installments[:index] + ledger.installments[index + 1:]
    new_ledger = replace(ledger, installments=items)
    return LedgerDeletion(new_ledger, cleared=len(items) == 0)


def process_full_payment(ledger: PaymentLedger, timestamp: datetime) -> LedgerUpdate:
    remaining = ledger.remaining
    if remaining <= 0:
        raise NothingOwed(f"Nothing owed (remaining={remaining})")
    return add_installment(ledger, remaining, timestamp)


# -------------------------------------------------
# Completion timestamp (caller side contract)
# -------------------------------------------------
def resolve_completed_at(
        existing: Optional[datetime],
        result: Union[LedgerUpdate, LedgerDeletion],
        timestamp: datetime,
) -> Optional[datetime]:
    """
    Returns the payment completion timestamp to store after a mutation.

    - recorded once, on the first time the ledger reaches FULLY_PAID
    - never overwritten by later mutations
    - cleared only when the installment history becomes empty
    """
    if isinstance(result, LedgerDeletion):
        return None if result.cleared else existing

    if existing is not None:
        return existing
    if result.ledger.phase == PaymentPhase.FULLY_PAID:
        return timestamp
    return None
