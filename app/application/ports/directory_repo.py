from typing import Protocol


class DirectoryRepository(Protocol):
    def doctor_exists(self, doctor_id: int) -> bool:
        ...

    def patient_exists(self, patient_id: int) -> bool:
        ...
