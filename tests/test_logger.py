import asyncio
import logging

import pytest

from office_checkin.utils import logger as logger_module
from office_checkin.utils.logger import LayeredFormatter, get_logger, set_log_profile, spinner


def _record(level: int, message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("office_checkin.test", level, __file__, 1, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def plain_output(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logger_module, "NO_COLOR", True)


@pytest.mark.parametrize(
    "level,extra,expected",
    [
        (logging.INFO, {"layer": "step"}, "▶ Checking in"),
        (logging.INFO, {"layer": "success"}, "✓ Checking in"),
        (logging.WARNING, {}, "! Checking in"),
        (logging.ERROR, {}, "✗ Checking in"),
        (logging.DEBUG, {}, "[debug] Checking in"),
        (logging.INFO, {}, "• Checking in"),
    ],
)
def test_formatter_prefixes_by_layer(level: int, extra: dict, expected: str) -> None:
    formatter = LayeredFormatter("%(message)s")

    assert formatter.format(_record(level, "Checking in", **extra)) == expected


def test_get_logger_nests_under_package_logger() -> None:
    adapter = get_logger("gate")

    assert adapter.logger.name == "office_checkin.gate"
    assert adapter.extra == {"layer": "user"}


def test_set_log_profile_adjusts_console_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_PROFILE", "user")
    base = logging.getLogger("office_checkin")
    handler = next(h for h in base.handlers if type(h) is logging.StreamHandler)
    original = handler.level

    try:
        set_log_profile("quiet")
        assert handler.level == logging.WARNING
        set_log_profile("debug")
        assert handler.level == logging.DEBUG
    finally:
        handler.setLevel(original)
        monkeypatch.setattr(logger_module, "LOG_PROFILE", "user")


def test_spinner_propagates_errors() -> None:
    async def scenario():
        async with spinner("Getting your location"):
            raise RuntimeError("no fix")

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())
