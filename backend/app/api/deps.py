from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.db.session import SessionLocal
from app.services.curriculum_catalog import CurriculumCatalog, get_curriculum_catalog
from app.services.sql_data_sources import SqlDataSources


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_data_sources(db: Session = Depends(get_db)) -> SqlDataSources:
    return SqlDataSources(db)


def get_catalog() -> CurriculumCatalog:
    return get_curriculum_catalog()


def get_app_settings() -> Settings:
    return get_settings()
