import copy
from collections import deque
from typing import Iterable, Literal, TypedDict


ActivityKind = Literal["issued", "entered", "duplicate"]


class SeedParticipant(TypedDict):
    student_id: str
    name: str
    email: str


class ParticipantRecord(TypedDict):
    student_id: str
    name: str
    email: str
    pass_generated: bool
    pass_id: str | None
    generated_at: str | None
    scanned: bool
    scanned_at: str | None


class ActivityEvent(TypedDict):
    id: str
    student_id: str
    name: str
    kind: ActivityKind
    timestamp: str
    message: str


class EntryRecord(TypedDict):
    id: str
    student_id: str
    pass_id: str
    event_id: str | None
    scanned_at: str


SEED_ROSTER: tuple[SeedParticipant, ...] = (
    {"student_id": "STU001", "name": "John Doe", "email": "john@college.edu"},
    {"student_id": "STU002", "name": "Jane Smith", "email": "jane@college.edu"},
    {"student_id": "STU003", "name": "Mike Johnson", "email": "mike@college.edu"},
    {"student_id": "STU004", "name": "Sarah Wilson", "email": "sarah@college.edu"},
    {"student_id": "STU005", "name": "Alex Brown", "email": "alex@college.edu"},
    {"student_id": "STU006", "name": "Emily Davis", "email": "emily@college.edu"},
    {"student_id": "STU007", "name": "David Miller", "email": "david@college.edu"},
    {"student_id": "STU008", "name": "Lisa Taylor", "email": "lisa@college.edu"},
)


class Registry:
    """
    In-memory store of participants, the bounded activity log and the
    entry ledger.

    Callers only ever receive copies; every state change goes through the
    methods below. The registry does no locking of its own, the owning
    service serializes access.
    """

    def __init__(self, roster: Iterable[SeedParticipant] = SEED_ROSTER, activity_limit: int = 50):
        if activity_limit < 1:
            raise ValueError("activity_limit must be at least 1")
        self._roster = tuple(dict(p) for p in roster)
        self.activity_limit = activity_limit
        self._participants: dict[str, ParticipantRecord] = {}
        self._activity: deque[ActivityEvent] = deque(maxlen=activity_limit)
        self._entries: list[EntryRecord] = []
        self.reset_to_seed()

    def reset_to_seed(self) -> None:
        self._participants.clear()
        self._activity.clear()
        self._entries.clear()
        for seed in self._roster:
            self._participants[seed["student_id"]] = {
                "student_id": seed["student_id"],
                "name": seed["name"],
                "email": seed["email"],
                "pass_generated": False,
                "pass_id": None,
                "generated_at": None,
                "scanned": False,
                "scanned_at": None,
            }

    def __len__(self) -> int:
        return len(self._participants)

    def lookup(self, student_id: str) -> ParticipantRecord | None:
        record = self._participants.get(student_id)
        if record is None:
            return None
        return copy.copy(record)

    def list_all(self) -> list[ParticipantRecord]:
        # dicts keep insertion order, which is the seed roster order
        return [copy.copy(r) for r in self._participants.values()]

    def store_pass(self, student_id: str, pass_id: str, generated_at: str) -> ParticipantRecord:
        record = self._require(student_id)
        record["pass_generated"] = True
        record["pass_id"] = pass_id
        record["generated_at"] = generated_at
        return copy.copy(record)

    def mark_scanned(self, student_id: str, scanned_at: str) -> ParticipantRecord:
        record = self._require(student_id)
        if not record["pass_generated"]:
            raise ValueError(f"participant {student_id} has no pass")
        if record["scanned"]:
            raise ValueError(f"participant {student_id} already scanned")
        record["scanned"] = True
        record["scanned_at"] = scanned_at
        return copy.copy(record)

    def record_event(self, event: ActivityEvent) -> None:
        # deque(maxlen) drops from the right end: the oldest entry
        self._activity.appendleft(copy.copy(event))

    def recent_events(self, limit: int | None = None) -> list[ActivityEvent]:
        events = list(self._activity)
        if limit is not None:
            events = events[: max(0, limit)]
        return [copy.copy(e) for e in events]

    def record_entry(self, entry: EntryRecord) -> None:
        self._entries.append(copy.copy(entry))

    def list_entries(self) -> list[EntryRecord]:
        return [copy.copy(e) for e in self._entries]

    def _require(self, student_id: str) -> ParticipantRecord:
        record = self._participants.get(student_id)
        if record is None:
            raise KeyError(student_id)
        return record
