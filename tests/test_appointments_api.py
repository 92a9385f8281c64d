"""
Appointments API tests: booking from the service catalog, booking reminders,
updates, and the rule that the total due is frozen once installments exist.
"""
from datetime import timedelta

from dental_clinic.models.clinic_service_model import ClinicService
from dental_clinic.models.notification_model import Notification
from dental_clinic.utils.clock import now_local


def book(client, **overrides):
    payload = {
        "patient_name": "Jane Wanjiku",
        "service": "Root Canal",
        "location": "Tassia-Hill",
        "scheduled_at": "2025-03-10T11:00:00",
    }
    payload.update(overrides)
    return client.post("/appointments", json=payload)


def test_services_catalog(client):
    services = {s["service_name"]: s["price"] for s in client.get("/appointments/services").json()}
    assert services["Tooth Filling"] == 10000
    assert services["Dental Checkup"] == 3000
    assert len(services) == 7


def test_locations(client):
    assert client.get("/appointments/locations").json() == [
        "Tassia-Magic Square", "Machakos", "Tassia-Hill",
    ]


def test_booking_uses_service_price(client, patient):
    resp = book(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["payment"] == 30000
    assert body["visit_status"] == "Unattended"
    assert body["patient_id"] == patient["patient_id"]


def test_booking_with_timezone_is_stored_in_clinic_time(client):
    body = book(client, scheduled_at="2025-03-10T08:00:00Z").json()
    assert body["scheduled_at"] == "2025-03-10T11:00:00"


def test_booking_rejects_unknown_service_and_location(client):
    assert book(client, service="Brain Surgery").status_code == 400
    assert book(client, location="Mombasa").status_code == 400
    assert book(client, patient_name="").status_code == 422


def test_list_filters(client):
    book(client, scheduled_at="2025-03-01T09:00:00")
    book(client, service="Dental Checkup", location="Machakos", scheduled_at="2025-03-20T09:00:00")

    assert len(client.get("/appointments").json()) == 2
    assert len(client.get("/appointments", params={"location": "Machakos"}).json()) == 1
    assert len(client.get("/appointments", params={"search": "checkup"}).json()) == 1

    ranged = client.get(
        "/appointments",
        params={"date_from": "2025-03-15T00:00:00", "date_to": "2025-03-31T00:00:00"},
    ).json()
    assert [a["service"] for a in ranged] == ["Dental Checkup"]

    page = client.get("/appointments", params={"limit": 1, "offset": 1}).json()
    assert [a["service"] for a in page] == ["Dental Checkup"]


def test_change_service_before_payment(client, appointment):
    aid = appointment["appointment_id"]
    resp = client.put(f"/appointments/{aid}", json={"service": "Crown Installation"})
    assert resp.status_code == 200
    assert resp.json()["payment"] == 25000

    row = client.get(f"/payments/{aid}").json()
    assert row["total_due"] == 25000


def test_change_service_after_payment_is_rejected(client, appointment):
    aid = appointment["appointment_id"]
    client.post(f"/payments/{aid}/installments", json={"amount": 1000})

    resp = client.put(f"/appointments/{aid}", json={"service": "Crown Installation"})
    assert resp.status_code == 409
    assert client.get(f"/appointments/{aid}").json()["payment"] == 10000

    # other fields can still change
    resp = client.put(f"/appointments/{aid}", json={"notes": "Bring x-ray", "location": "Tassia-Hill"})
    assert resp.status_code == 200
    assert resp.json()["location"] == "Tassia-Hill"


def test_visit_status(client, appointment):
    aid = appointment["appointment_id"]
    resp = client.patch(f"/appointments/{aid}/visit-status", json={"visit_status": "Attended"})
    assert resp.status_code == 200
    assert resp.json()["visit_status"] == "Attended"

    resp = client.patch(f"/appointments/{aid}/visit-status", json={"visit_status": "Pending"})
    assert resp.status_code == 422


def test_delete(client, appointment):
    aid = appointment["appointment_id"]
    assert client.delete(f"/appointments/{aid}").status_code == 200
    assert client.get(f"/appointments/{aid}").status_code == 404
    assert client.delete(f"/appointments/{aid}").status_code == 404


def booking_notifications(db):
    db.expire_all()
    return (
        db.query(Notification)
        .filter(Notification.type.in_(["Upcoming", "Unattended"]))
        .order_by(Notification.notification_id.asc())
        .all()
    )


def test_booking_within_a_day_notifies_upcoming(client, db, patient):
    when = (now_local() + timedelta(hours=3)).replace(microsecond=0)
    appt = book(client, scheduled_at=when.isoformat()).json()

    [note] = booking_notifications(db)
    assert note.type == "Upcoming"
    assert note.appointment_id == appt["appointment_id"]
    assert note.patient_id == patient["patient_id"]
    assert note.message.startswith("Jane Wanjiku - Root Canal (Scheduled: ")
    assert note.read is False


def test_booking_in_the_past_unpaid_notifies_unattended(client, db):
    when = (now_local() - timedelta(days=2)).replace(microsecond=0)
    book(client, scheduled_at=when.isoformat())

    [note] = booking_notifications(db)
    assert note.type == "Unattended"
    assert note.message.startswith("Jane Wanjiku - Root Canal (Due: ")


def test_booking_far_ahead_or_free_has_no_reminder(client, db):
    book(client, scheduled_at=(now_local() + timedelta(days=10)).isoformat())

    db.add(ClinicService(service_name="Follow-up Visit", price=0, is_active=True))
    db.commit()
    book(
        client,
        service="Follow-up Visit",
        scheduled_at=(now_local() - timedelta(days=2)).isoformat(),
    )

    assert booking_notifications(db) == []
