from datetime import date, timedelta

import pytest

from app.exceptions import NotFoundError, ValidationError
from app.schemas import ClinicCreate, DoctorCreate, DoctorFilters, DoctorUpdate, PatientCreate, PatientFilters, PatientUpdate
from app.services import DoctorService, FacilityService, PatientService
from app.db.models import Appointment, Clinic, Hospital

from .factories import make_appointment, make_clinic, make_doctor, make_hospital, make_patient
from .fakes import NOW

TODAY = NOW.date()


def test_doctor_requires_facility(session):
    svc = DoctorService(session)
    with pytest.raises(ValidationError):
        svc.create_doctor(DoctorCreate(first_name="John", last_name="Watson", specialization="Surgery"))
    with pytest.raises(NotFoundError):
        svc.create_doctor(DoctorCreate(first_name="John", last_name="Watson", specialization="Surgery", hospital_id=7))


def test_doctor_filters(session):
    hospital = make_hospital(session)
    clinic = make_clinic(session)
    house = make_doctor(session, hospital.id)
    svc = DoctorService(session)
    watson = svc.create_doctor(DoctorCreate(
        first_name="john", last_name="watson", specialization="Surgery", clinic_id=clinic.id, years_of_experience=5,
    ))
    assert watson.first_name == "John"

    assert [d.id for d in svc.get_all_doctors(DoctorFilters(works_at="clinic"))] == [watson.id]
    assert [d.id for d in svc.get_all_doctors(DoctorFilters(min_experience=10))] == [house.id]
    assert [d.id for d in svc.get_all_doctors(DoctorFilters(search="diag"))] == [house.id]

    patient = make_patient(session)
    make_appointment(session, house.id, patient.id, NOW + timedelta(days=1))
    busy_day = (NOW + timedelta(days=1)).date().isoformat()
    assert [d.id for d in svc.get_all_doctors(DoctorFilters(available_date=busy_day))] == [watson.id]
    with pytest.raises(ValidationError):
        svc.get_all_doctors(DoctorFilters(available_date="13/06/2030"))


def test_doctor_update_and_statistics(session):
    hospital = make_hospital(session)
    doctor = make_doctor(session, hospital.id)
    ada = make_patient(session)
    alan = make_patient(session, first_name="Alan", last_name="Turing", email="alan@example.com")
    make_appointment(session, doctor.id, ada.id, NOW - timedelta(days=3), status="completed")
    make_appointment(session, doctor.id, ada.id, NOW + timedelta(days=3))
    make_appointment(session, doctor.id, alan.id, NOW + timedelta(days=4))
    svc = DoctorService(session)

    updated = svc.update_doctor(doctor.id, DoctorUpdate(specialization="Nephrology"))
    assert updated.specialization == "Nephrology"
    with pytest.raises(ValidationError):
        svc.update_doctor(doctor.id, DoctorUpdate(hospital_id=None))

    stats = svc.get_doctor_statistics(doctor.id, now=NOW)
    assert stats.total_appointments == 3
    assert stats.completed_appointments == 1
    assert stats.upcoming_appointments == 2
    assert stats.unique_patients == 2
    assert [p.id for p in svc.get_doctor_patients(doctor.id)] == [ada.id, alan.id]


def test_doctor_delete_rules(session):
    hospital = make_hospital(session)
    doctor = make_doctor(session, hospital.id)
    patient = make_patient(session)
    past_id = make_appointment(session, doctor.id, patient.id, NOW - timedelta(days=3), status="cancelled").id
    upcoming = make_appointment(session, doctor.id, patient.id, NOW + timedelta(days=3))
    svc = DoctorService(session)

    with pytest.raises(ValidationError):
        svc.delete_doctor(doctor.id, now=NOW)
    session.delete(upcoming)
    session.commit()

    svc.delete_doctor(doctor.id, now=NOW)
    with pytest.raises(NotFoundError):
        svc.get_doctor_by_id(doctor.id)
    assert session.get(Appointment, past_id) is None


def test_patient_unique_email(session):
    svc = PatientService(session)
    svc.create_patient(PatientCreate(first_name="Ada", last_name="Lovelace", email="ada@example.com",
                                     date_of_birth=date(1990, 12, 10)))
    with pytest.raises(ValidationError) as exc:
        svc.create_patient(PatientCreate(first_name="Ada", last_name="King", email="ADA@example.com",
                                         date_of_birth=date(1990, 12, 10)))
    assert exc.value.errors[0].field == "email"


def test_patient_age_group_filter(session):
    minor = make_patient(session, first_name="Tim", email="tim@example.com", date_of_birth=date(2020, 1, 1))
    adult = make_patient(session, first_name="Ada", email="ada@example.com", date_of_birth=date(1990, 12, 10))
    senior = make_patient(session, first_name="Alan", email="alan@example.com", date_of_birth=date(1950, 6, 23))
    svc = PatientService(session)

    def ids(group):
        return [p.id for p in svc.get_all_patients(PatientFilters(age_group=group), today=TODAY)]

    assert ids("minor") == [minor.id]
    assert ids("adult") == [adult.id]
    assert ids("senior") == [senior.id]
    assert [p.id for p in svc.get_all_patients(PatientFilters(birth_year=1950), today=TODAY)] == [senior.id]
    with pytest.raises(ValidationError):
        svc.get_all_patients(PatientFilters(age_group="teen"), today=TODAY)


def test_patient_update(session):
    patient = make_patient(session)
    svc = PatientService(session)
    updated = svc.update_patient(patient.id, PatientUpdate(last_name="king", phone="+44 20 7946 0958"))
    assert updated.last_name == "King"
    assert updated.phone == "+442079460958"
    with pytest.raises(ValidationError):
        svc.update_patient(patient.id, PatientUpdate(email=None))


def test_facility_crud(session):
    hospitals = FacilityService(session, Hospital)
    clinics = FacilityService(session, Clinic)
    clinic = clinics.create(ClinicCreate(
        name="Harbor Clinic",
        address="9 Harbor Road",
        phone="+1 555 100 0001",
        email="desk@harbor.example",
        registration_number="CLIN-1",
        accepts_walk_ins=True,
    ))
    assert clinic.accepts_walk_ins is True
    with pytest.raises(ValidationError):
        clinics.create(ClinicCreate(
            name="Harbor Clinic",
            address="elsewhere",
            phone="+1 555 100 0002",
            email="other@harbor.example",
            registration_number="CLIN-2",
        ))
    assert hospitals.get_all() == []
    assert [c.id for c in clinics.get_all(search="harbor", active=True)] == [clinic.id]

    doctor = DoctorService(session).create_doctor(
        DoctorCreate(first_name="John", last_name="Watson", specialization="Surgery", clinic_id=clinic.id)
    )
    assert [d.id for d in clinics.get_doctors(clinic.id)] == [doctor.id]
    with pytest.raises(ValidationError):
        clinics.delete(clinic.id)
    with pytest.raises(NotFoundError):
        hospitals.get_by_id(clinic.id)
