import os

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env(name: str) -> str | None:
    value = os.getenv(f"CHECKIN_{name}")
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_bool(value: str | None, fallback: bool) -> bool:
    normalized = (value or "").lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    return fallback


def _parse_int(value: str | None, fallback: int, *, minimum: int = 0) -> int:
    try:
        return max(minimum, int(value)) if value else fallback
    except ValueError:
        return fallback


def _parse_csv(value: str | None, fallback: list[str]) -> list[str]:
    parsed = [item.strip() for item in (value or "").split(",") if item.strip()]
    return parsed or fallback


EVENT_ID = _env("EVENT_ID") or "TECHFEST2024"
ENFORCE_EVENT_ID = _parse_bool(_env("ENFORCE_EVENT_ID"), False)
ENABLE_ADMIN_RESET = _parse_bool(_env("ENABLE_ADMIN_RESET"), True)

# Activity log retention (most recent N) and the default page served to clients
ACTIVITY_LOG_LIMIT = _parse_int(_env("ACTIVITY_LOG_LIMIT"), 50, minimum=1)
ACTIVITY_PAGE_SIZE = min(
    ACTIVITY_LOG_LIMIT,
    _parse_int(_env("ACTIVITY_PAGE_SIZE"), 20, minimum=1),
)
STATUS_POLL_INTERVAL_SECONDS = _parse_int(
    _env("STATUS_POLL_INTERVAL_SECONDS"), 3, minimum=1
)

QR_BOX_SIZE = _parse_int(_env("QR_BOX_SIZE"), 10, minimum=1)
QR_BORDER = _parse_int(_env("QR_BORDER"), 4, minimum=4)

LOG_LEVEL = (_env("LOG_LEVEL") or "INFO").upper()

CORS_ALLOW_ORIGINS = _parse_csv(
    _env("CORS_ALLOW_ORIGINS"),
    ["http://localhost:5173", "http://127.0.0.1:5173"],
)
CORS_ALLOW_METHODS = _parse_csv(
    _env("CORS_ALLOW_METHODS"),
    ["GET", "POST", "OPTIONS"],
)
CORS_ALLOW_HEADERS = _parse_csv(
    _env("CORS_ALLOW_HEADERS"),
    ["Content-Type", "Accept"],
)
CORS_ALLOW_CREDENTIALS = _parse_bool(_env("CORS_ALLOW_CREDENTIALS"), True)
