from fastapi import Request

from backend.services.checkin import CheckinService


def get_checkin_service(request: Request) -> CheckinService:
    return request.app.state.checkin
