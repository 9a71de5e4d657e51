class CheckinError(Exception):
    """Base class for failures the API reports back to the caller."""

    status_code = 400
    reason = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ParticipantNotFound(CheckinError):
    status_code = 404
    reason = "not_found"
    default_message = "Student not found"


class MalformedCredential(CheckinError):
    reason = "malformed_credential"
    default_message = "Invalid QR code format"


class InvalidCredential(CheckinError):
    reason = "invalid_credential"
    default_message = "Pass not generated or expired"
