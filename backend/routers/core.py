from fastapi import APIRouter, Depends

from backend.config import (
    ENABLE_ADMIN_RESET,
    STATUS_POLL_INTERVAL_SECONDS,
)
from backend.deps import get_checkin_service
from backend.services.checkin import CheckinService

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/config/event")
def event_config(service: CheckinService = Depends(get_checkin_service)):
    return {
        "event_id": service.event_id,
        "enforce_event_id": service.enforce_event_id,
        "activity_log_limit": service.registry.activity_limit,
        "activity_page_size": service.activity_page_size,
        "status_poll_interval_seconds": STATUS_POLL_INTERVAL_SECONDS,
        "admin_reset_enabled": ENABLE_ADMIN_RESET,
    }
