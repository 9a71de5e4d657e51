import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import (
    ACTIVITY_LOG_LIMIT,
    ACTIVITY_PAGE_SIZE,
    CORS_ALLOW_CREDENTIALS,
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGINS,
    ENFORCE_EVENT_ID,
    EVENT_ID,
    LOG_LEVEL,
)
from backend.routers import admin, core, scans, students
from backend.services.checkin import CheckinService
from database.registry import Registry

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_checkin_service() -> CheckinService:
    return CheckinService(
        Registry(activity_limit=ACTIVITY_LOG_LIMIT),
        event_id=EVENT_ID,
        enforce_event_id=ENFORCE_EVENT_ID,
        activity_page_size=ACTIVITY_PAGE_SIZE,
    )


def create_app(service: CheckinService | None = None) -> FastAPI:
    app = FastAPI(title="Event Check-in API")

    # Each app owns its service; state lives as long as the process.
    app.state.checkin = service if service is not None else build_checkin_service()
    logger.info(
        "check-in service ready event_id=%s students=%d",
        app.state.checkin.event_id,
        len(app.state.checkin.registry),
    )

    # -----------------------------
    # CORS (React dev server)
    # -----------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=CORS_ALLOW_CREDENTIALS,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )

    app.include_router(core.router)
    app.include_router(students.router, prefix="/api")
    app.include_router(scans.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")
    return app


app = create_app()
