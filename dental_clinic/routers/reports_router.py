from collections import Counter, defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dental_clinic.models.appointment_model import Appointment
from dental_clinic.models.notification_model import Notification
from dental_clinic.models.patient_model import Patient
from dental_clinic.utils.clock import to_local_naive
from dental_clinic.utils.database import get_db
from dental_clinic.utils.ledger_engine import PaymentPhase
from dental_clinic.utils.ledger_mapping import ledger_from_appointment

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db)):
    appts = db.query(Appointment).all()
    patients = db.query(Patient).all()

    collected = Decimal("0")
    outstanding = Decimal("0")
    overpaid = Decimal("0")
    phases = Counter({p.value: 0 for p in PaymentPhase})
    services = Counter()

    for a in appts:
        ledger = ledger_from_appointment(a)
        collected += ledger.paid_to_date
        outstanding += max(Decimal("0"), ledger.remaining)
        overpaid += ledger.overpaid_by
        phases[ledger.phase.value] += 1
        services[a.service] += 1

    recent = (
        db.query(Notification)
        .order_by(Notification.timestamp.desc(), Notification.notification_id.desc())
        .limit(5)
        .all()
    )

    return {
        "appointments": len(appts),
        "attended_visits": sum(1 for a in appts if a.visit_status == "Attended"),
        "unattended_visits": sum(1 for a in appts if a.visit_status != "Attended"),
        "patients_total": len(patients),
        "patients_attended": sum(1 for p in patients if p.attended),
        "revenue_collected": float(collected),
        "outstanding": float(outstanding),
        "overpaid": float(overpaid),
        "payment_phases": dict(phases),
        "top_services": [
            {"service": name, "count": count}
            for name, count in services.most_common(5)
        ],
        "recent_activity": [
            {
                "notification_id": n.notification_id,
                "type": n.type,
                "message": n.message,
                "timestamp": n.timestamp,
            }
            for n in recent
        ],
    }


@router.get("/revenue")
def revenue(
        date_from: Optional[datetime] = Query(None),
        date_to: Optional[datetime] = Query(None),
        db: Session = Depends(get_db),
):
    date_from = to_local_naive(date_from)
    date_to = to_local_naive(date_to)
    by_service = defaultdict(Decimal)
    by_location = defaultdict(Decimal)
    total = Decimal("0")

    for a in db.query(Appointment).all():
        for inst in ledger_from_appointment(a).installments:
            if date_from and inst.occurred_at < date_from:
                continue
            if date_to and inst.occurred_at > date_to:
                continue
            by_service[a.service] += inst.amount
            by_location[a.location] += inst.amount
            total += inst.amount

    return {
        "date_from": date_from,
        "date_to": date_to,
        "total_collected": float(total),
        "by_service": {k: float(v) for k, v in sorted(by_service.items())},
        "by_location": {k: float(v) for k, v in sorted(by_location.items())},
    }
