from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.config import ACTIVITY_LOG_LIMIT
from backend.deps import get_checkin_service
from backend.errors import CheckinError, MalformedCredential
from backend.services.checkin import CheckinService, ScanOutcome

router = APIRouter()


class ScanRequest(BaseModel):
    qr_data: str


def _scan_failure(exc: CheckinError) -> JSONResponse:
    if isinstance(exc, MalformedCredential):
        message = exc.message
    else:
        message = f"Invalid QR code: {exc.message}"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "reason": exc.reason, "message": message},
    )


def _scan_payload(outcome: ScanOutcome) -> dict:
    payload = {
        "success": outcome["success"],
        "message": outcome["message"],
        "student": outcome["student"],
    }
    if outcome["reason"]:
        payload["reason"] = outcome["reason"]
    return payload


@router.post("/scan")
def scan(payload: ScanRequest, service: CheckinService = Depends(get_checkin_service)):
    try:
        outcome = service.scan(payload.qr_data)
    except CheckinError as exc:
        return _scan_failure(exc)
    return _scan_payload(outcome)


@router.post("/scan/image")
def scan_image(
    file: UploadFile = File(...),
    service: CheckinService = Depends(get_checkin_service),
):
    if file.content_type not in ("image/jpeg", "image/png"):
        raise HTTPException(status_code=400, detail="Upload JPG/PNG only.")

    data = file.file.read()
    try:
        outcome = service.scan_image(data)
    except CheckinError as exc:
        return _scan_failure(exc)
    return _scan_payload(outcome)


@router.get("/status-log")
def status_log(
    limit: int | None = Query(default=None, ge=1, le=ACTIVITY_LOG_LIMIT),
    service: CheckinService = Depends(get_checkin_service),
):
    return {"logs": service.recent_activity(limit)}


@router.get("/stats")
def stats(service: CheckinService = Depends(get_checkin_service)):
    return service.stats()


@router.get("/entries")
def entries(service: CheckinService = Depends(get_checkin_service)):
    return {"entries": service.list_entries()}
