from fastapi import APIRouter, Depends

from app.api.deps import get_catalog
from app.schemas.curriculum import CurriculumCatalogOut
from app.services.curriculum_catalog import CurriculumCatalog

router = APIRouter()


@router.get("", response_model=CurriculumCatalogOut)
def list_curriculum(catalog: CurriculumCatalog = Depends(get_catalog)) -> CurriculumCatalogOut:
    return CurriculumCatalogOut(
        match_policy=catalog.match_policy,
        entries=list(catalog.entries),
        aliases=catalog.aliases,
    )
