from typing import Callable, List, Optional, Type
from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
import logging

from ..dependencies import get_clinic_service, get_hospital_service
from ..schemas.doctors.doctor import DoctorResponse
from ..schemas.facilities.facility import (
    ClinicCreate,
    ClinicResponse,
    ClinicUpdate,
    HospitalCreate,
    HospitalResponse,
    HospitalUpdate,
)
from ..schemas.common.common import ERROR_RESPONSES
from ..services import FacilityService
from ..config import settings

logger = logging.getLogger(__name__)


def build_facility_router(prefix: str, tag: str, get_service: Callable[..., FacilityService],
                          create_schema: Type[BaseModel], update_schema: Type[BaseModel],
                          response_schema: Type[BaseModel]) -> APIRouter:
    """Hospitals and clinics expose the same CRUD surface over separate tables."""
    router = APIRouter(prefix=prefix, tags=[tag], responses=ERROR_RESPONSES)

    def present(facility):
        return response_schema.model_validate(facility, from_attributes=True)

    @router.get("/", response_model=List[response_schema])
    def list_facilities(
        search: Optional[str] = Query(None),
        active: Optional[bool] = Query(None),
        skip: int = Query(0, ge=0),
        limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=500),
        service: FacilityService = Depends(get_service),
    ):
        return [present(f) for f in service.get_all(search=search, active=active, skip=skip, limit=limit)]

    @router.post("/", response_model=response_schema, status_code=201)
    def create_facility(data: create_schema, service: FacilityService = Depends(get_service)):
        return present(service.create(data))

    @router.get("/{facility_id}", response_model=response_schema)
    def get_facility(facility_id: int, service: FacilityService = Depends(get_service)):
        return present(service.get_by_id(facility_id))

    @router.put("/{facility_id}", response_model=response_schema)
    @router.patch("/{facility_id}", response_model=response_schema)
    def update_facility(facility_id: int, data: update_schema, service: FacilityService = Depends(get_service)):
        return present(service.update(facility_id, data))

    @router.delete("/{facility_id}", status_code=204)
    def delete_facility(facility_id: int, service: FacilityService = Depends(get_service)):
        service.delete(facility_id)
        return Response(status_code=204)

    @router.get("/{facility_id}/doctors", response_model=List[DoctorResponse])
    def facility_doctors(facility_id: int, service: FacilityService = Depends(get_service)):
        return [DoctorResponse.from_model(d) for d in service.get_doctors(facility_id)]

    return router


hospitals_router = build_facility_router(
    "/hospitals", "Hospitals", get_hospital_service, HospitalCreate, HospitalUpdate, HospitalResponse
)
clinics_router = build_facility_router(
    "/clinics", "Clinics", get_clinic_service, ClinicCreate, ClinicUpdate, ClinicResponse
)
