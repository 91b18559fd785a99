from fastapi import APIRouter, Depends

from app.api.deps import get_app_settings, get_catalog, get_data_sources
from app.core.config import Settings
from app.schemas.batch import BatchSpecification, CandidateSuggestionReport, EndDateRequest, EndDateResponse
from app.services.candidate_suggestions import CandidateSuggestionEngine
from app.services.curriculum_catalog import CurriculumCatalog
from app.services.end_date import project_batch_end_date
from app.services.sql_data_sources import SqlDataSources

router = APIRouter()


@router.post("/suggestions", response_model=CandidateSuggestionReport)
def suggest_candidates(
    payload: BatchSpecification,
    sources: SqlDataSources = Depends(get_data_sources),
    catalog: CurriculumCatalog = Depends(get_catalog),
    settings: Settings = Depends(get_app_settings),
) -> CandidateSuggestionReport:
    engine = CandidateSuggestionEngine(
        students=sources,
        enrollments=sources,
        billing=sources,
        orientation=sources,
        catalog=catalog,
        settings=settings,
    )
    return engine.suggest(payload)


@router.post("/end-date", response_model=EndDateResponse)
def project_end_date(
    payload: EndDateRequest,
    catalog: CurriculumCatalog = Depends(get_catalog),
) -> EndDateResponse:
    projection = project_batch_end_date(payload.start_date, payload.curriculum, payload.schedule, catalog)
    return EndDateResponse(
        start_date=projection.start_date,
        end_date=projection.end_date,
        total_sessions=projection.total_sessions,
        unresolved=list(projection.unresolved),
    )
