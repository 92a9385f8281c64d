"""
Patients API tests: CRUD, attendance changes and their notifications, timeline.
"""
from dental_clinic.models.notification_model import Notification


def attendance_notifications(db):
    db.expire_all()
    return (
        db.query(Notification)
        .filter(Notification.type.in_(["Patient Attended", "Patient Unattended"]))
        .order_by(Notification.notification_id.asc())
        .all()
    )


def test_create_and_get(client, patient):
    assert patient["attended"] is False
    assert patient["created_at"] is not None

    resp = client.get(f"/patients/{patient['patient_id']}")
    assert resp.status_code == 200
    assert resp.json()["email"] == "jane@example.com"


def test_duplicate_name_conflict(client, patient):
    resp = client.post("/patients", json={"name": "Jane Wanjiku"})
    assert resp.status_code == 409


def test_blank_fields_become_null(client):
    resp = client.post("/patients", json={"name": "  Otieno  ", "phone": "  ", "notes": ""})
    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Otieno"
    assert body["phone"] is None
    assert body["notes"] is None


def test_search(client, patient):
    client.post("/patients", json={"name": "Brian Kamau", "phone": "0799000111"})

    assert [p["name"] for p in client.get("/patients", params={"search": "kamau"}).json()] == [
        "Brian Kamau"
    ]
    assert [p["name"] for p in client.get("/patients", params={"search": "0712"}).json()] == [
        "Jane Wanjiku"
    ]
    assert len(client.get("/patients").json()) == 2


def test_attendance_change_notifies(client, db, patient):
    pid = patient["patient_id"]

    resp = client.patch(f"/patients/{pid}/attendance", json={"attended": True})
    assert resp.status_code == 200
    assert resp.json()["attended"] is True
    assert resp.json()["updated_at"] is not None

    # same value again: no new notification
    client.patch(f"/patients/{pid}/attendance", json={"attended": True})
    client.patch(f"/patients/{pid}/attendance", json={"attended": False})

    notes = attendance_notifications(db)
    assert [(n.type, n.message) for n in notes] == [
        ("Patient Attended", "Jane Wanjiku - Attended"),
        ("Patient Unattended", "Jane Wanjiku - Unattended"),
    ]
    assert all(n.patient_id == pid for n in notes)


def test_update_attended_via_put_notifies(client, db, patient):
    pid = patient["patient_id"]
    resp = client.put(f"/patients/{pid}", json={"attended": True, "notes": "Sensitive molar"})
    assert resp.status_code == 200
    assert resp.json()["notes"] == "Sensitive molar"
    assert len(attendance_notifications(db)) == 1

    client.put(f"/patients/{pid}", json={"phone": "0700000000"})
    assert len(attendance_notifications(db)) == 1


def test_rename_follows_appointments(client, patient, appointment):
    pid = patient["patient_id"]
    resp = client.put(f"/patients/{pid}", json={"name": "Jane W. Njeri"})
    assert resp.status_code == 200

    appt = client.get(f"/appointments/{appointment['appointment_id']}").json()
    assert appt["patient_name"] == "Jane W. Njeri"


def test_rename_to_existing_name_conflicts(client, patient):
    client.post("/patients", json={"name": "Brian Kamau"})
    resp = client.put(f"/patients/{patient['patient_id']}", json={"name": "Brian Kamau"})
    assert resp.status_code == 409


def test_update_rejects_unknown_fields(client, patient):
    resp = client.put(f"/patients/{patient['patient_id']}", json={"nickname": "JW"})
    assert resp.status_code == 422


def test_appointment_booked_before_patient_record_is_linked(client):
    appt = client.post(
        "/appointments",
        json={
            "patient_name": "Walk In",
            "service": "Dental Checkup",
            "location": "Machakos",
            "scheduled_at": "2025-04-01T08:00:00",
        },
    ).json()
    assert appt["patient_id"] is None

    p = client.post("/patients", json={"name": "Walk In"}).json()
    linked = client.get(f"/appointments/{appt['appointment_id']}").json()
    assert linked["patient_id"] == p["patient_id"]


def test_timeline(client, patient, appointment):
    client.post(
        "/appointments",
        json={
            "patient_name": patient["name"],
            "service": "Dental Checkup",
            "location": "Machakos",
            "scheduled_at": "2025-01-10T08:00:00",
        },
    )
    client.post(f"/payments/{appointment['appointment_id']}/installments", json={"amount": 2500})

    rows = client.get(f"/patients/{patient['patient_id']}/timeline").json()
    assert [r["service"] for r in rows] == ["Dental Checkup", "Tooth Filling"]
    assert rows[1]["payment_status"] == "Not Attended - Partially Paid"
    assert rows[1]["paid_to_date"] == 2500


def test_delete_keeps_appointments(client, patient, appointment):
    resp = client.delete(f"/patients/{patient['patient_id']}")
    assert resp.status_code == 200
    assert client.get(f"/patients/{patient['patient_id']}").status_code == 404

    appt = client.get(f"/appointments/{appointment['appointment_id']}").json()
    assert appt["patient_id"] is None
    assert appt["patient_name"] == "Jane Wanjiku"


def test_missing_patient(client):
    assert client.get("/patients/404").status_code == 404
    assert client.patch("/patients/404/attendance", json={"attended": True}).status_code == 404
