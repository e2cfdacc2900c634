import threading
from datetime import datetime, timedelta

import pytest
from sqlmodel import Session, create_engine

from app.application.ports.appointments_repo import AppointmentFilters
from app.application.scheduling.policy import SchedulingPolicy
from app.application.services.appointments_service import AppointmentsService
from app.database import create_db_and_tables
from app.exceptions import ConflictError
from app.infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from app.infrastructure.persistence.sqlalchemy.repositories.directory_repository_sql import SqlDirectoryRepository

from .factories import make_appointment, make_doctor, make_hospital, make_patient
from .fakes import NOW, FixedClock

TOMORROW_9 = (NOW + timedelta(days=1)).replace(hour=9, minute=0)


@pytest.fixture
def people(session):
    hospital = make_hospital(session)
    doctor = make_doctor(session, hospital.id)
    other_doctor = make_doctor(session, hospital.id, first_name="Lisa", last_name="Cuddy", specialization="Endocrinology")
    ada = make_patient(session)
    alan = make_patient(session, first_name="Alan", last_name="Turing", email="alan@example.com")
    return doctor, other_doctor, ada, alan


def test_find_active_includes_long_appointment_started_earlier(session, people):
    doctor, _, ada, alan = people
    long_one = make_appointment(session, doctor.id, ada.id, TOMORROW_9 - timedelta(hours=2), duration_minutes=180)
    make_appointment(session, doctor.id, alan.id, TOMORROW_9, status="cancelled")
    repo = SqlAppointmentsRepository(session)

    found = repo.find_active_for_doctor(doctor.id, TOMORROW_9, TOMORROW_9 + timedelta(minutes=30))
    assert [a.id for a in found] == [long_one.id]
    assert repo.find_active_for_patient(alan.id, TOMORROW_9, TOMORROW_9 + timedelta(minutes=30)) == []


def test_list_filters_and_ordering(session, people):
    doctor, other_doctor, ada, alan = people
    a1 = make_appointment(session, doctor.id, ada.id, TOMORROW_9)
    a2 = make_appointment(session, other_doctor.id, alan.id, TOMORROW_9 + timedelta(hours=2), duration_minutes=60)
    a3 = make_appointment(session, doctor.id, alan.id, TOMORROW_9 + timedelta(days=1), status="confirmed")
    repo = SqlAppointmentsRepository(session)

    assert [a.id for a in repo.list(AppointmentFilters())] == [a1.id, a2.id, a3.id]
    assert [a.id for a in repo.list(AppointmentFilters(newest_first=True))] == [a3.id, a2.id, a1.id]
    assert [a.id for a in repo.list(AppointmentFilters(date=TOMORROW_9.date()))] == [a1.id, a2.id]
    assert [a.id for a in repo.list(AppointmentFilters(status="confirmed"))] == [a3.id]
    assert [a.id for a in repo.list(AppointmentFilters(min_duration=45))] == [a2.id]
    assert [a.id for a in repo.list(AppointmentFilters(search="cuddy"))] == [a2.id]
    assert [a.id for a in repo.list(AppointmentFilters(search="turing"))] == [a2.id, a3.id]
    assert [a.id for a in repo.list(AppointmentFilters(skip=1, limit=1))] == [a2.id]


def test_reserve_rolls_back_on_error(session, people):
    doctor, _, ada, _ = people
    repo = SqlAppointmentsRepository(session)
    with pytest.raises(RuntimeError):
        with repo.reserve(doctor.id, ada.id):
            repo.get_by_id(1)
            raise RuntimeError("boom")
    assert repo.list(AppointmentFilters()) == []


def test_update_and_delete(session, people):
    doctor, _, ada, _ = people
    repo = SqlAppointmentsRepository(session)
    created = repo.create(doctor.id, ada.id, TOMORROW_9, 30, "scheduled", None, "checkup")
    updated = repo.update(created.id, status="confirmed", notes="fasting")
    assert updated.status == "confirmed"
    assert updated.notes == "fasting"
    repo.delete(created.id)
    assert repo.get_by_id(created.id) is None


def test_concurrent_overlapping_bookings_only_one_wins(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'booking.db'}", connect_args={"check_same_thread": False})
    create_db_and_tables(engine)
    with Session(engine) as session:
        hospital = make_hospital(session)
        doctor_id = make_doctor(session, hospital.id).id
        patient_ids = [
            make_patient(session).id,
            make_patient(session, first_name="Alan", last_name="Turing", email="alan@example.com").id,
        ]

    barrier = threading.Barrier(2)
    outcomes = []
    outcomes_lock = threading.Lock()

    def attempt(patient_id: int) -> None:
        with Session(engine) as session:
            svc = AppointmentsService(
                repo=SqlAppointmentsRepository(session),
                directory=SqlDirectoryRepository(session),
                clock=FixedClock(),
                policy=SchedulingPolicy(),
            )
            barrier.wait()
            try:
                svc.book(doctor_id, patient_id, TOMORROW_9 + timedelta(minutes=patient_id * 5))
                result = "booked"
            except ConflictError:
                result = "conflict"
            with outcomes_lock:
                outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(pid,)) for pid in patient_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert sorted(outcomes) == ["booked", "conflict"]
    with Session(engine) as session:
        rows = SqlAppointmentsRepository(session).list(AppointmentFilters(doctor_id=doctor_id))
    assert len(rows) == 1
    engine.dispose()


def test_update_stamps_local_wall_clock(session, people):
    doctor, _, ada, _ = people
    appt = make_appointment(session, doctor.id, ada.id, TOMORROW_9)
    repo = SqlAppointmentsRepository(session)
    before = datetime.now()
    repo.update(appt.id, notes="moved")
    session.refresh(appt)
    assert appt.updated_at.tzinfo is None
    assert before <= appt.updated_at <= datetime.now()
