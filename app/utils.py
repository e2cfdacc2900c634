import re
import logging
from datetime import date
from typing import Any, Optional, Type

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from .exceptions import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r'^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$')
PHONE_REGEX = re.compile(r'^\+?[\d\s\-()]{10,}$')

# =========================
# Normalisation
# =========================
def titleize(value: str) -> str:
    """'  mary  ann ' -> 'Mary Ann'"""
    return " ".join(word.capitalize() for word in value.strip().split())


def normalize_phone(value: str) -> str:
    return re.sub(r'[^0-9+]', '', value)


def age_on(date_of_birth: date, today: date) -> int:
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def age_group(age: int) -> str:
    if age < 18:
        return "minor"
    if age < 65:
        return "adult"
    return "senior"


# =========================
# Persistence helpers
# =========================
def ensure_unique(session: Session, model: Type[SQLModel], field: str, value: Any,
                  exclude_id: Optional[int] = None) -> None:
    """Raise ValidationError when another row already holds ``value`` in ``field``."""
    if value is None:
        return
    column = getattr(model, field)
    query = select(model.id).where(column == value)
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    if session.exec(query).first() is not None:
        raise ValidationError.for_field(field, "has already been taken")


def commit_or_raise(session: Session, action: str) -> None:
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Integrity error {action}: {e.orig}")
        raise ValidationError.for_field("base", "violates a uniqueness or reference constraint")
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error {action}: {e}")
        raise PersistenceError(f"Failed {action}") from e
