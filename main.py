import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.cors import CORSMiddleware

from core.config_loader import settings
from core.database import SessionLocal
from organization.router import organization_router
from rating.router import rating_router
from rating.scheduler import analysis_scheduler
from rating import service as rating_service
import models_bootstrap

logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

openapi_tags = [
    {
        "name": "organizations",
        "description": "Organization hierarchy",
    },
    {
        "name": "ratings",
        "description": "Staff ratings and their rollups",
    },
    {
        "name": "Health Checks",
        "description": "Application health checks",
    }
]

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("starting staff rating service (%s)", settings.ENVIRONMENT)
    tasks = []

    if settings.MOCK_DATA_ON_STARTUP and settings.is_development:
        db = SessionLocal()
        try:
            rating_service.generate_mock_ratings(db, weeks=settings.MOCK_DATA_WEEKS)
        except SQLAlchemyError:
            logger.exception("mock data generation failed")
        finally:
            db.close()

    if settings.ANALYSIS_SCHEDULER_ENABLED:
        tasks.append(asyncio.create_task(analysis_scheduler(settings.ANALYSIS_INTERVAL_SECONDS)))

    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info("analysis scheduler stopped")
        logger.info("shutdown complete")

app = FastAPI(title="Staff Rating API", openapi_tags=openapi_tags, lifespan=lifespan)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            str(origin).strip("/") for origin in settings.BACKEND_CORS_ORIGINS
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("validation error on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})

app.include_router(organization_router, prefix="/api")
app.include_router(rating_router, prefix="/api")


@app.get("/health", tags=['Health Checks'])
def read_root():
    return {"health": "true"}
