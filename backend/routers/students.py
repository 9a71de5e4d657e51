from fastapi import APIRouter, Depends, HTTPException

from backend.deps import get_checkin_service
from backend.errors import ParticipantNotFound
from backend.services.checkin import CheckinService

router = APIRouter()


@router.get("/students")
def students(service: CheckinService = Depends(get_checkin_service)):
    return {"students": service.list_students()}


@router.get("/student/{student_id}")
def student_detail(student_id: str, service: CheckinService = Depends(get_checkin_service)):
    try:
        return service.get_student(student_id)
    except ParticipantNotFound as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)


@router.post("/student/{student_id}/generate-pass")
def generate_pass(student_id: str, service: CheckinService = Depends(get_checkin_service)):
    try:
        issued = service.issue_pass(student_id)
    except ParticipantNotFound as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    return {"success": True, "student": issued}


# Polled by the pass page every few seconds; there is no push channel.
@router.post("/student/{student_id}/refresh")
def refresh_student(student_id: str, service: CheckinService = Depends(get_checkin_service)):
    try:
        return service.refresh_student(student_id)
    except ParticipantNotFound as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
