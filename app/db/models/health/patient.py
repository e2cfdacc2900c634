# app/db/models/health/patient.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, date

class Patient(SQLModel, table=True):
    __tablename__ = "patients"
    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: str = Field(index=True)
    date_of_birth: date = Field(index=True)
    email: str = Field(unique=True, index=True)
    phone: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
