# tests/modweaver/core/test_logging.py
from __future__ import annotations
import json
import logging
import logging.handlers

from modweaver.core.logging import (
    clearLogContext,
    configureLogging,
    getLogContext,
    getModLogger,
    logContext,
    setLogContext,
)
from modweaver.core.logging.filters import RecurringSuppressFilter
from modweaver.core.logging.formatters import DevFormatter, JsonFormatter


def _record(msg: str = "hello", name: str = "modweaver.test", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_recurring_filter_suppresses_after_limit() -> None:
    clock = FakeClock()
    flt = RecurringSuppressFilter(windowSeconds=10, maxPerWindow=2, clock=clock)

    results = [flt.filter(_record()) for _ in range(4)]

    assert results == [True, True, False, False]
    assert flt.filter(_record("other")) is True


def test_recurring_filter_resumes_and_summarizes(caplog) -> None:
    clock = FakeClock()
    flt = RecurringSuppressFilter(windowSeconds=10, maxPerWindow=1, clock=clock)

    assert flt.filter(_record()) is True
    assert flt.filter(_record()) is False
    clock.now += 60

    with caplog.at_level(logging.INFO, logger="modweaver.test"):
        assert flt.filter(_record()) is True

    assert "Suppressed 1 repeated logs: hello" in caplog.text


def test_recurring_filter_counts_each_mod_separately() -> None:
    clock = FakeClock()
    flt = RecurringSuppressFilter(windowSeconds=10, maxPerWindow=1, clock=clock)

    with logContext(modId="a"):
        assert flt.filter(_record("Injected")) is True
        assert flt.filter(_record("Injected")) is False
    with logContext(modId="b"):
        assert flt.filter(_record("Injected")) is True


def test_log_context_set_and_clear() -> None:
    clearLogContext()
    setLogContext(operation="patch", modId=None)
    setLogContext(modId="a")

    assert getLogContext() == {"operation": "patch", "modId": "a"}
    clearLogContext()
    assert getLogContext() is None


def test_log_context_manager_restores_previous() -> None:
    clearLogContext()
    with logContext(operation="patch"):
        with logContext(modId="a"):
            assert getLogContext() == {"operation": "patch", "modId": "a"}
        assert getLogContext() == {"operation": "patch"}
    assert getLogContext() is None


def test_formatters_render_context() -> None:
    with logContext(operation="patch", modId="a"):
        dev = DevFormatter().format(_record())
        payload = json.loads(JsonFormatter().format(_record()))

    assert dev == "INFO: [modweaver.test] hello [patch/a]"
    assert payload["msg"] == "hello"
    assert payload["level"] == "info"
    assert payload["ctx"] == {"operation": "patch", "modId": "a"}


def test_json_formatter_includes_exception() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, __import__("sys").exc_info())

    payload = json.loads(JsonFormatter().format(record))

    assert payload["exc"]["type"] == "ValueError"
    assert payload["exc"]["message"] == "boom"


def test_getModLogger_namespace() -> None:
    assert getModLogger(" a ").name == "mods.a"


def test_configureLogging_installs_console_and_rotating_file(tmp_path) -> None:
    root = logging.getLogger()
    saved = (root.handlers[:], root.level)
    logFile = tmp_path / "logs" / "modweaver.log"
    try:
        configureLogging(logFile=str(logFile))

        kinds = [type(handler) for handler in root.handlers]
        assert logging.StreamHandler in kinds
        assert logging.handlers.RotatingFileHandler in kinds
        assert logFile.parent.is_dir()

        logging.getLogger("modweaver.test").info("written")
        for handler in root.handlers:
            handler.flush()
        lines = logFile.read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[-1])["msg"] == "written"
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])
