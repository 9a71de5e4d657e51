from fastapi import APIRouter, Depends, HTTPException

from backend.config import ENABLE_ADMIN_RESET
from backend.deps import get_checkin_service
from backend.services.checkin import CheckinService

router = APIRouter()


# Demo/test helper: wipes every pass, entry and log line and re-seeds the roster.
@router.post("/reset-data")
def reset_data(service: CheckinService = Depends(get_checkin_service)):
    if not ENABLE_ADMIN_RESET:
        raise HTTPException(status_code=404, detail="Not found.")
    service.reset()
    return {"success": True, "message": "Data reset successfully"}
