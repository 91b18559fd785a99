from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import batches, curriculum, faculty, health
from app.core.config import get_settings
from app.core.exceptions import AppError
from app.core.logging import configure_logging
from app.services.curriculum_catalog import get_curriculum_catalog

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Fail fast on a broken catalog file instead of on the first request.
    get_curriculum_catalog()
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )

app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(batches.router, prefix=f"{settings.api_prefix}/batches", tags=["batches"])
app.include_router(faculty.router, prefix=f"{settings.api_prefix}/faculty", tags=["faculty"])
app.include_router(curriculum.router, prefix=f"{settings.api_prefix}/curriculum", tags=["curriculum"])
