import pytest

import backend.config as config


def test_env_strips_and_prefixes(monkeypatch):
    monkeypatch.setenv("CHECKIN_EVENT_ID", "  HACKDAY  ")
    monkeypatch.setenv("CHECKIN_LOG_LEVEL", "   ")
    assert config._env("EVENT_ID") == "HACKDAY"
    assert config._env("LOG_LEVEL") is None
    assert config._env("NOT_SET_ANYWHERE") is None


@pytest.mark.parametrize(
    "value, expected",
    [("true", True), ("ON", True), ("0", False), ("no", False), ("maybe", None), (None, None)],
)
def test_parse_bool(value, expected):
    fallback = object()
    result = config._parse_bool(value, fallback)
    assert result is (fallback if expected is None else expected)


def test_parse_int_applies_minimum_and_fallback():
    assert config._parse_int("75", 50, minimum=1) == 75
    assert config._parse_int("0", 50, minimum=1) == 1
    assert config._parse_int("fifty", 50) == 50
    assert config._parse_int(None, 50) == 50


def test_parse_csv():
    assert config._parse_csv("a, b,,c ", ["x"]) == ["a", "b", "c"]
    assert config._parse_csv(" , ", ["x"]) == ["x"]
    assert config._parse_csv(None, ["x"]) == ["x"]


def test_defaults():
    assert config.ACTIVITY_PAGE_SIZE <= config.ACTIVITY_LOG_LIMIT
    assert config.QR_BORDER >= 4
