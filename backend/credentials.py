import json
from typing import Any, TypedDict

from backend.errors import MalformedCredential

# issued payloads are ~120 characters
MAX_PAYLOAD_LENGTH = 2048


class Credential(TypedDict):
    student_id: str
    pass_id: str | None
    event_id: str | None
    timestamp: int | None


def encode_credential(credential: Credential) -> str:
    return json.dumps(credential, separators=(",", ":"), sort_keys=True)


def decode_credential(raw: Any) -> Credential:
    """
    Parse a scanned QR payload.

    Only the participant id is required for the payload to count as
    well-formed; a missing or wrong pass id is left for the lifecycle
    check, which reports it as an invalid credential.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedCredential()

    if not isinstance(raw, str) or not raw.strip():
        raise MalformedCredential()
    if len(raw) > MAX_PAYLOAD_LENGTH:
        raise MalformedCredential()

    try:
        payload = json.loads(raw)
    except (ValueError, RecursionError):
        raise MalformedCredential()

    if not isinstance(payload, dict):
        raise MalformedCredential()

    student_id = payload.get("student_id")
    if not isinstance(student_id, str) or not student_id:
        raise MalformedCredential()

    pass_id = payload.get("pass_id")
    event_id = payload.get("event_id")
    timestamp = payload.get("timestamp")
    return {
        "student_id": student_id,
        "pass_id": pass_id if isinstance(pass_id, str) else None,
        "event_id": event_id if isinstance(event_id, str) else None,
        "timestamp": timestamp if isinstance(timestamp, int) and not isinstance(timestamp, bool) else None,
    }
