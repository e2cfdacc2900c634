# app/schemas/common.py
from pydantic import BaseModel
from typing import List, Optional

class FieldErrorItem(BaseModel):
    field: str
    message: str

class ErrorResponse(BaseModel):
    success: bool = False
    data: Optional[dict] = None
    error: str
    errors: Optional[List[FieldErrorItem]] = None
ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Record not found"},
    409: {"model": ErrorResponse, "description": "Double booking"},
    422: {"model": ErrorResponse, "description": "Invalid record or status transition"},
    503: {"model": ErrorResponse, "description": "Database unavailable"},
}
