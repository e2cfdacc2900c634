import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.application.scheduling.policy import SchedulingPolicy
from app.application.services.appointments_service import AppointmentsService
from app.database import create_db_and_tables

from .fakes import FakeAppointmentsRepo, FakeDirectory, FixedClock


@pytest.fixture
def repo():
    return FakeAppointmentsRepo()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def service(repo, clock):
    return AppointmentsService(repo=repo, directory=FakeDirectory(), clock=clock, policy=SchedulingPolicy())


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session
