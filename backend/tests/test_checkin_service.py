import json
import threading
from datetime import datetime, timedelta, timezone

import pytest

from backend.errors import InvalidCredential, MalformedCredential, ParticipantNotFound
from backend.services.checkin import CheckinService
from database.registry import SEED_ROSTER, Registry


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 3, 14, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def service(clock):
    return CheckinService(Registry(), clock=clock)


def _assert_stats_consistent(service: CheckinService) -> None:
    stats = service.stats()
    assert stats["remaining"] == stats["total_students"] - stats["scanned_count"]
    assert stats["scanned_count"] <= stats["passes_generated"] <= stats["total_students"]


@pytest.mark.parametrize("student_id", [p["student_id"] for p in SEED_ROSTER])
def test_issue_then_scan_enters_every_student(service, student_id):
    issued = service.issue_pass(student_id)
    assert service.get_student(student_id)["scanned"] is False

    outcome = service.scan(issued["qr_data"])
    assert outcome["success"] is True
    assert outcome["reason"] is None
    assert outcome["student"]["scanned"] is True
    assert service.get_student(student_id)["scanned"] is True
    _assert_stats_consistent(service)


def test_duplicate_scan_keeps_first_entry_time(service, clock):
    issued = service.issue_pass("STU001")
    first = service.scan(issued["qr_data"])
    entered_at = first["student"]["scanned_at"]
    assert entered_at == "2026-03-14T09:00:00+00:00"

    clock.advance(90)
    second = service.scan(issued["qr_data"])
    assert second["success"] is False
    assert second["reason"] == "already_entered"
    assert second["student"]["scanned_at"] == entered_at
    assert service.get_student("STU001")["scanned_at"] == entered_at

    assert service.stats() == {
        "total_students": 8,
        "scanned_count": 1,
        "remaining": 7,
        "passes_generated": 1,
    }


def test_reissue_rotates_token_and_invalidates_old_credential(service):
    old = service.issue_pass("STU002")
    new = service.issue_pass("STU002")
    assert old["pass_id"] != new["pass_id"]

    with pytest.raises(InvalidCredential):
        service.scan(old["qr_data"])
    assert service.get_student("STU002")["scanned"] is False

    assert service.scan(new["qr_data"])["success"] is True


def test_reissue_after_entry_does_not_clear_entered(service):
    issued = service.issue_pass("STU003")
    service.scan(issued["qr_data"])

    again = service.issue_pass("STU003")
    assert again["scanned"] is True
    outcome = service.scan(again["qr_data"])
    assert outcome["reason"] == "already_entered"

    with pytest.raises(InvalidCredential):
        service.scan(issued["qr_data"])


def test_issue_unknown_student(service):
    with pytest.raises(ParticipantNotFound):
        service.issue_pass("STU999")
    assert service.recent_activity() == []


@pytest.mark.parametrize(
    "qr_data",
    [
        json.dumps({"student_id": "NOBODY", "pass_id": "abc", "event_id": "TECHFEST2024"}),
        json.dumps({"student_id": "NOBODY"}),
        json.dumps({"student_id": "NOBODY", "pass_id": 12, "timestamp": "soon"}),
    ],
)
def test_unknown_student_is_not_found_regardless_of_shape(service, qr_data):
    with pytest.raises(ParticipantNotFound):
        service.scan(qr_data)


@pytest.mark.parametrize(
    "qr_data",
    [
        "",
        "   ",
        "not json",
        "[1, 2]",
        "42",
        json.dumps({"pass_id": "abc"}),
        json.dumps({"student_id": 7}),
        json.dumps({"student_id": ""}),
        "[" * 200000,
        "[" * 1020 + "]" * 1020,
        b"\xff\xfe",
        json.dumps({"student_id": "STU001", "pass_id": "x" * 100000}),
    ],
)
def test_malformed_payloads(service, qr_data):
    with pytest.raises(MalformedCredential):
        service.scan(qr_data)


def test_scan_before_issue_is_invalid(service):
    qr_data = json.dumps({"student_id": "STU004", "pass_id": None})
    with pytest.raises(InvalidCredential):
        service.scan(qr_data)
    assert service.recent_activity() == []


def test_cross_event_credential_accepted_by_default(clock):
    issuer = CheckinService(Registry(), event_id="OTHER2024", clock=clock)
    issued = issuer.issue_pass("STU005")
    payload = json.loads(issued["qr_data"])

    service = CheckinService(Registry(), clock=clock, id_factory=lambda: payload["pass_id"])
    service.issue_pass("STU005")
    assert service.scan(issued["qr_data"])["success"] is True


def test_cross_event_credential_rejected_when_enforced(clock):
    service = CheckinService(Registry(), event_id="TECHFEST2024", enforce_event_id=True, clock=clock)
    issued = service.issue_pass("STU005")
    payload = json.loads(issued["qr_data"])
    payload["event_id"] = "OTHER2024"

    with pytest.raises(InvalidCredential):
        service.scan(json.dumps(payload))
    assert service.scan(issued["qr_data"])["success"] is True


def test_activity_log_kinds_and_order(service):
    issued = service.issue_pass("STU006")
    service.scan(issued["qr_data"])
    service.scan(issued["qr_data"])

    events = service.recent_activity()
    assert [e["kind"] for e in events] == ["duplicate", "entered", "issued"]
    assert all(e["name"] == "Emily Davis" for e in events)
    assert len({e["id"] for e in events}) == 3


def test_activity_log_keeps_most_recent_events(clock):
    service = CheckinService(Registry(activity_limit=5), clock=clock, activity_page_size=5)
    ids = [p["student_id"] for p in SEED_ROSTER][:7]
    for student_id in ids:
        service.issue_pass(student_id)

    events = service.recent_activity(limit=50)
    assert len(events) == 5
    assert [e["student_id"] for e in events] == list(reversed(ids[2:]))


def test_entries_ledger(service):
    issued = service.issue_pass("STU007")
    service.scan(issued["qr_data"])
    service.scan(issued["qr_data"])

    entries = service.list_entries()
    assert len(entries) == 1
    assert entries[0]["student_id"] == "STU007"
    assert entries[0]["pass_id"] == issued["pass_id"]


def test_concurrent_scans_admit_exactly_once(service):
    issued = service.issue_pass("STU008")
    workers = 8
    barrier = threading.Barrier(workers)
    results = []

    def attempt():
        barrier.wait()
        results.append(service.scan(issued["qr_data"]))

    threads = [threading.Thread(target=attempt) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(1 for r in results if r["success"]) == 1
    assert sum(1 for r in results if r["reason"] == "already_entered") == workers - 1
    assert len(service.list_entries()) == 1
    assert service.stats()["scanned_count"] == 1


def test_stats_invariants_hold_through_lifecycle(service):
    _assert_stats_consistent(service)
    a = service.issue_pass("STU001")
    b = service.issue_pass("STU002")
    _assert_stats_consistent(service)
    service.scan(a["qr_data"])
    _assert_stats_consistent(service)
    service.issue_pass("STU002")
    with pytest.raises(InvalidCredential):
        service.scan(b["qr_data"])
    _assert_stats_consistent(service)
    assert service.stats()["passes_generated"] == 2


def test_list_students_hides_tokens(service):
    service.issue_pass("STU001")
    rows = service.list_students()
    assert len(rows) == 8
    assert all("pass_id" not in r for r in rows)
    assert rows[0]["pass_generated"] is True


def test_reset_restores_seed(service):
    issued = service.issue_pass("STU001")
    service.scan(issued["qr_data"])

    service.reset()
    assert service.stats()["passes_generated"] == 0
    assert service.recent_activity() == []
    assert service.list_entries() == []
    assert service.get_student("STU001")["scanned"] is False
    with pytest.raises(InvalidCredential):
        service.scan(issued["qr_data"])


def test_scan_image_without_qr_is_malformed(service):
    with pytest.raises(MalformedCredential):
        service.scan_image(b"")
    with pytest.raises(MalformedCredential):
        service.scan_image(b"not-an-image")


def test_padded_student_id_is_not_found(service):
    issued = service.issue_pass("STU001")
    payload = json.loads(issued["qr_data"])
    payload["student_id"] = " STU001 "

    with pytest.raises(ParticipantNotFound):
        service.scan(json.dumps(payload))
    assert service.get_student("STU001")["scanned"] is False
