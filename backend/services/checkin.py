import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Literal, TypedDict

from backend.credentials import Credential, decode_credential, encode_credential
from backend.errors import InvalidCredential, MalformedCredential, ParticipantNotFound
from backend.qr_codes import decode_qr_image, render_qr_data_url
from database.registry import (
    ActivityEvent,
    ActivityKind,
    EntryRecord,
    ParticipantRecord,
    Registry,
)

logger = logging.getLogger(__name__)

ScanReason = Literal["already_entered"]


class StudentSummary(TypedDict):
    student_id: str
    name: str
    email: str
    scanned: bool
    scanned_at: str | None
    pass_generated: bool


class StudentDetail(StudentSummary):
    pass_id: str | None
    generated_at: str | None


class StudentStatus(TypedDict):
    student_id: str
    scanned: bool
    scanned_at: str | None
    pass_generated: bool


class IssuedPass(TypedDict):
    student_id: str
    name: str
    email: str
    pass_id: str
    qr_code_data_url: str
    qr_data: str
    generated_at: str
    scanned: bool


class ScanSnapshot(TypedDict):
    student_id: str
    name: str
    email: str
    scanned: bool
    scanned_at: str | None


class ScanOutcome(TypedDict):
    success: bool
    reason: ScanReason | None
    message: str
    student: ScanSnapshot


class CheckinStats(TypedDict):
    total_students: int
    scanned_count: int
    remaining: int
    passes_generated: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _summary(record: ParticipantRecord) -> StudentSummary:
    return {
        "student_id": record["student_id"],
        "name": record["name"],
        "email": record["email"],
        "scanned": record["scanned"],
        "scanned_at": record["scanned_at"],
        "pass_generated": record["pass_generated"],
    }


def _scan_snapshot(record: ParticipantRecord) -> ScanSnapshot:
    return {
        "student_id": record["student_id"],
        "name": record["name"],
        "email": record["email"],
        "scanned": record["scanned"],
        "scanned_at": record["scanned_at"],
    }


class CheckinService:
    """
    Pass lifecycle for a single event.

    Per participant: no pass -> pass issued (re-issue rotates the token)
    -> entered. Entered is terminal; scanning a still-valid credential
    afterwards is reported as a duplicate and changes nothing.

    All registry access happens under one lock so the read-check-mutate in
    `scan` is atomic even when FastAPI runs handlers on worker threads.
    """

    def __init__(
        self,
        registry: Registry | None = None,
        *,
        event_id: str = "TECHFEST2024",
        enforce_event_id: bool = False,
        activity_page_size: int = 20,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_id,
    ):
        self.registry = registry if registry is not None else Registry()
        self.event_id = event_id
        self.enforce_event_id = enforce_event_id
        self.activity_page_size = activity_page_size
        self._clock = clock
        self._new_id = id_factory
        self._lock = threading.Lock()

    # -----------------------------
    # Lifecycle
    # -----------------------------
    def issue_pass(self, student_id: str) -> IssuedPass:
        with self._lock:
            if self.registry.lookup(student_id) is None:
                logger.warning("issue_pass rejected: unknown student_id=%s", student_id)
                raise ParticipantNotFound()

            now = self._clock()
            generated_at = now.isoformat(timespec="seconds")
            pass_id = self._new_id()
            credential: Credential = {
                "student_id": student_id,
                "pass_id": pass_id,
                "event_id": self.event_id,
                "timestamp": int(now.timestamp() * 1000),
            }
            record = self.registry.store_pass(student_id, pass_id, generated_at)
            self._record_activity(
                record, "issued", f"{record['name']} generated event pass", generated_at
            )

        logger.info("pass issued student_id=%s pass=%s...", student_id, pass_id[:8])
        qr_data = encode_credential(credential)
        return {
            "student_id": record["student_id"],
            "name": record["name"],
            "email": record["email"],
            "pass_id": pass_id,
            "qr_code_data_url": render_qr_data_url(qr_data),
            "qr_data": qr_data,
            "generated_at": generated_at,
            "scanned": record["scanned"],
        }

    def scan(self, qr_data: str | bytes) -> ScanOutcome:
        try:
            credential = decode_credential(qr_data)
        except MalformedCredential:
            logger.warning("scan rejected: malformed payload")
            raise

        student_id = credential["student_id"]
        with self._lock:
            record = self.registry.lookup(student_id)
            if record is None:
                logger.warning("scan rejected: unknown student_id=%s", student_id)
                raise ParticipantNotFound()

            if not record["pass_generated"] or credential["pass_id"] != record["pass_id"]:
                logger.warning("scan rejected: stale or missing pass student_id=%s", student_id)
                raise InvalidCredential()

            if self.enforce_event_id and credential["event_id"] != self.event_id:
                logger.warning(
                    "scan rejected: event mismatch student_id=%s event_id=%s",
                    student_id,
                    credential["event_id"],
                )
                raise InvalidCredential()

            now_iso = self._clock().isoformat(timespec="seconds")
            if record["scanned"]:
                self._record_activity(
                    record, "duplicate", f"Duplicate scan attempt for {record['name']}", now_iso
                )
                logger.info("duplicate scan student_id=%s first_entry=%s", student_id, record["scanned_at"])
                return {
                    "success": False,
                    "reason": "already_entered",
                    "message": "QR code already used - Entry already provided",
                    "student": _scan_snapshot(record),
                }

            record = self.registry.mark_scanned(student_id, now_iso)
            entry: EntryRecord = {
                "id": self._new_id(),
                "student_id": student_id,
                "pass_id": record["pass_id"] or "",
                "event_id": credential["event_id"],
                "scanned_at": now_iso,
            }
            self.registry.record_entry(entry)
            self._record_activity(record, "entered", f"Entry provided for {record['name']}", now_iso)

        logger.info("entry provided student_id=%s", student_id)
        return {
            "success": True,
            "reason": None,
            "message": "Entry provided successfully!",
            "student": _scan_snapshot(record),
        }

    def scan_image(self, image_bytes: bytes) -> ScanOutcome:
        payload, reason = decode_qr_image(image_bytes)
        if payload is None:
            logger.warning("scan_image rejected: %s", reason)
            raise MalformedCredential("No readable QR code in image")
        return self.scan(payload)

    def reset(self) -> None:
        with self._lock:
            self.registry.reset_to_seed()
        logger.info("registry reset to seed roster (%d students)", len(self.registry))

    # -----------------------------
    # Queries
    # -----------------------------
    def get_student(self, student_id: str) -> StudentDetail:
        record = self._require(student_id)
        detail: StudentDetail = {
            **_summary(record),
            "pass_id": record["pass_id"],
            "generated_at": record["generated_at"],
        }
        return detail

    def refresh_student(self, student_id: str) -> StudentStatus:
        record = self._require(student_id)
        return {
            "student_id": record["student_id"],
            "scanned": record["scanned"],
            "scanned_at": record["scanned_at"],
            "pass_generated": record["pass_generated"],
        }

    def list_students(self) -> list[StudentSummary]:
        with self._lock:
            records = self.registry.list_all()
        return [_summary(r) for r in records]

    def stats(self) -> CheckinStats:
        with self._lock:
            records = self.registry.list_all()
        total = len(records)
        scanned = sum(1 for r in records if r["scanned"])
        generated = sum(1 for r in records if r["pass_generated"])
        return {
            "total_students": total,
            "scanned_count": scanned,
            "remaining": total - scanned,
            "passes_generated": generated,
        }

    def recent_activity(self, limit: int | None = None) -> list[ActivityEvent]:
        with self._lock:
            return self.registry.recent_events(limit if limit is not None else self.activity_page_size)

    def list_entries(self) -> list[EntryRecord]:
        with self._lock:
            return self.registry.list_entries()

    # -----------------------------
    # Internals
    # -----------------------------
    def _require(self, student_id: str) -> ParticipantRecord:
        with self._lock:
            record = self.registry.lookup(student_id)
        if record is None:
            raise ParticipantNotFound()
        return record

    def _record_activity(
        self, record: ParticipantRecord, kind: ActivityKind, message: str, timestamp: str
    ) -> None:
        self.registry.record_event({
            "id": self._new_id(),
            "student_id": record["student_id"],
            "name": record["name"],
            "kind": kind,
            "timestamp": timestamp,
            "message": message,
        })
