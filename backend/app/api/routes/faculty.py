from fastapi import APIRouter, Depends

from app.api.deps import get_data_sources
from app.schemas.faculty import FacultyAvailabilityRequest, FacultyAvailabilityResponse
from app.services.faculty_availability import FacultyAvailabilityChecker
from app.services.sql_data_sources import SqlDataSources

router = APIRouter()


@router.post("/availability", response_model=FacultyAvailabilityResponse)
def check_faculty_availability(
    payload: FacultyAvailabilityRequest,
    sources: SqlDataSources = Depends(get_data_sources),
) -> FacultyAvailabilityResponse:
    checker = FacultyAvailabilityChecker(sources)
    return checker.check(
        payload.faculty_ids,
        payload.date_range,
        payload.schedule,
        exclude_batch_id=payload.exclude_batch_id,
    )
