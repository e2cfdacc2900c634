from sqlmodel import Session, select

from .....db.models import Doctor, Patient
from .....application.ports.directory_repo import DirectoryRepository


class SqlDirectoryRepository(DirectoryRepository):
    def __init__(self, session: Session):
        self.session = session

    def doctor_exists(self, doctor_id: int) -> bool:
        return self.session.exec(select(Doctor.id).where(Doctor.id == doctor_id)).first() is not None

    def patient_exists(self, patient_id: int) -> bool:
        return self.session.exec(select(Patient.id).where(Patient.id == patient_id)).first() is not None
