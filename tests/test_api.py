import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from app.database import get_session
from app.dependencies import get_clock
from app.main import app

from .fakes import FixedClock


@pytest.fixture
def client(engine):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_clock] = lambda: FixedClock()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def doctor_and_patient(client):
    hospital = client.post("/hospitals/", json={
        "name": "City General",
        "address": "1 Main Street",
        "phone": "+1 555 000 0001",
        "email": "Info@CityGeneral.example",
        "registration_number": "HOSP-1",
    })
    assert hospital.status_code == 201, hospital.text
    doctor = client.post("/doctors/", json={
        "first_name": "gregory",
        "last_name": "house",
        "specialization": "Diagnostics",
        "hospital_id": hospital.json()["id"],
    })
    assert doctor.status_code == 201, doctor.text
    patient = client.post("/patients/", json={
        "first_name": "ada",
        "last_name": "lovelace",
        "email": "ADA@example.com",
        "date_of_birth": "1990-12-10",
        "phone": "(555) 123-4567",
    })
    assert patient.status_code == 201, patient.text
    return doctor.json(), patient.json()


def book(client, doctor_id, patient_id, when, **extra):
    payload = {"doctor_id": doctor_id, "patient_id": patient_id, "appointment_date": when}
    payload.update(extra)
    return client.post("/appointments/", json=payload)


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["scheduling"]["slot_interval_minutes"] == 30
    assert "/appointments/{appointment_id}/reschedule" in client.get("/openapi.json").json()["paths"]


def test_directory_records_are_normalised(doctor_and_patient):
    doctor, patient = doctor_and_patient
    assert doctor["display_name"] == "Dr. Gregory House"
    assert patient["full_name"] == "Ada Lovelace"
    assert patient["email"] == "ada@example.com"
    assert patient["phone"] == "5551234567"


def test_booking_and_conflict(client, doctor_and_patient):
    doctor, patient = doctor_and_patient
    first = book(client, doctor["id"], patient["id"], "2030-06-13T09:00:00")
    assert first.status_code == 201, first.text
    body = first.json()
    assert body["end_time"] == "2030-06-13T09:30:00"
    assert body["can_be_cancelled"] is True

    clash = book(client, doctor["id"], patient["id"], "2030-06-13T09:15:00")
    assert clash.status_code == 409
    err = clash.json()
    assert err["success"] is False
    assert {e["subject"] for e in err["errors"]} == {"doctor", "patient"}

    back_to_back = book(client, doctor["id"], patient["id"], "2030-06-13T09:30:00")
    assert back_to_back.status_code == 201


def test_past_booking_rejected_with_field_error(client, doctor_and_patient):
    doctor, patient = doctor_and_patient
    res = book(client, doctor["id"], patient["id"], "2030-06-12T07:00:00")
    assert res.status_code == 422
    assert res.json()["errors"][0]["field"] == "appointment_date"

    done = book(client, doctor["id"], patient["id"], "2030-06-12T07:00:00", status="completed")
    assert done.status_code == 201


def test_malformed_body_uses_error_envelope(client):
    res = client.post("/appointments/", json={"patient_id": 1})
    assert res.status_code == 422
    fields = {e["field"] for e in res.json()["errors"]}
    assert {"doctor_id", "appointment_date"} <= fields


def test_lifecycle_endpoints(client, doctor_and_patient):
    doctor, patient = doctor_and_patient
    soon = book(client, doctor["id"], patient["id"], "2030-06-12T20:00:00").json()
    res = client.patch(f"/appointments/{soon['id']}/cancel")
    assert res.status_code == 422
    assert res.json()["operation"] == "cancel"

    assert client.patch(f"/appointments/{soon['id']}/confirm").json()["status"] == "confirmed"
    assert client.patch(f"/appointments/{soon['id']}/complete").json()["status"] == "completed"
    assert client.delete(f"/appointments/{soon['id']}").status_code == 422

    later = book(client, doctor["id"], patient["id"], "2030-06-20T10:00:00").json()
    moved = client.patch(f"/appointments/{later['id']}/reschedule", json={"appointment_date": "2030-06-21T11:00:00"})
    assert moved.status_code == 200
    assert moved.json()["appointment_date"] == "2030-06-21T11:00:00"
    assert client.patch(f"/appointments/{later['id']}/cancel").json()["status"] == "cancelled"
    assert client.delete(f"/appointments/{later['id']}").status_code == 204
    assert client.get(f"/appointments/{later['id']}").status_code == 404


def test_patch_status_goes_through_lifecycle(client, doctor_and_patient):
    doctor, patient = doctor_and_patient
    soon = book(client, doctor["id"], patient["id"], "2030-06-12T20:00:00").json()
    res = client.patch(f"/appointments/{soon['id']}", json={"status": "cancelled"})
    assert res.status_code == 422
    assert res.json()["operation"] == "cancel"
    assert client.get(f"/appointments/{soon['id']}").json()["status"] == "scheduled"

    ok = client.patch(f"/appointments/{soon['id']}", json={"status": "confirmed"})
    assert ok.status_code == 200
    assert ok.json()["status"] == "confirmed"

    later = book(client, doctor["id"], patient["id"], "2030-06-20T10:00:00").json()
    assert client.patch(f"/appointments/{later['id']}/cancel").json()["status"] == "cancelled"
    revived = client.patch(f"/appointments/{later['id']}", json={"status": "scheduled"})
    assert revived.status_code == 422
    assert client.get(f"/appointments/{later['id']}").json()["status"] == "cancelled"


def test_available_slots_and_schedule(client, doctor_and_patient):
    doctor, patient = doctor_and_patient
    book(client, doctor["id"], patient["id"], "2030-06-14T09:00:00")
    res = client.get("/appointments/available_slots", params={"doctor_id": doctor["id"], "date": "2030-06-14"})
    assert res.status_code == 200
    slots = res.json()["slots"]
    assert len(slots) == 15
    assert "2030-06-14T09:00:00" not in slots

    schedule = client.get(f"/doctors/{doctor['id']}/schedule", params={"date": "2030-06-14"}).json()
    assert len(schedule) == 1
    availability = client.get(f"/doctors/{doctor['id']}/availability").json()
    assert availability["busy_slots"] == [{"start": "2030-06-14T09:00:00", "end": "2030-06-14T09:30:00"}]


def test_statistics_and_patient_views(client, doctor_and_patient):
    doctor, patient = doctor_and_patient
    book(client, doctor["id"], patient["id"], "2030-06-12T15:00:00")
    book(client, doctor["id"], patient["id"], "2030-06-25T15:00:00")
    stats = client.get("/appointments/statistics").json()
    assert stats["total"] == 2
    assert stats["today"] == 1
    assert stats["this_week"] == 1
    assert stats["this_month"] == 2

    doctors = client.get(f"/patients/{patient['id']}/doctors").json()
    assert [d["id"] for d in doctors] == [doctor["id"]]
    upcoming = client.get(f"/patients/{patient['id']}/upcoming_appointments").json()
    assert len(upcoming) == 2


def test_booking_from_patient_page(client, doctor_and_patient):
    doctor, patient = doctor_and_patient
    res = client.post(
        f"/patients/{patient['id']}/book_appointment",
        json={"doctor_id": doctor["id"], "appointment_date": "2030-06-18T10:00:00"},
    )
    assert res.status_code == 201
    assert res.json()["patient_id"] == patient["id"]


def test_doctor_with_upcoming_appointments_cannot_be_deleted(client, doctor_and_patient):
    doctor, patient = doctor_and_patient
    book(client, doctor["id"], patient["id"], "2030-06-18T10:00:00")
    res = client.delete(f"/doctors/{doctor['id']}")
    assert res.status_code == 422
    assert client.get(f"/doctors/{doctor['id']}").status_code == 200


def test_unknown_records_return_404_envelope(client):
    res = client.get("/appointments/999")
    assert res.status_code == 404
    assert res.json() == {"success": False, "data": None, "error": "Appointment not found"}
    assert client.get("/patients/999").status_code == 404
    assert client.get("/clinics/999").status_code == 404


def test_nested_routes_only_reach_own_appointments(client, doctor_and_patient):
    doctor, patient = doctor_and_patient
    appt = book(client, doctor["id"], patient["id"], "2030-06-18T10:00:00").json()
    assert client.patch(f"/patients/{patient['id'] + 1}/appointments/{appt['id']}/cancel").status_code == 404
    res = client.patch(f"/doctors/{doctor['id']}/appointments/{appt['id']}/cancel")
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"
