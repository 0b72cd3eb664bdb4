import io
import json
import logging
import sys

from cargo_syu.args import parse_args
from cargo_syu.logging_utils import JSONFormatter, configure_logging, log_event


def _configure(argv):
    args = parse_args(argv)
    configure_logging(args.verbose, args.log_file, args.log_json, args.log_level)
    return args


def test_logging_default_level(caplog):
    _configure([])
    logging.debug("debug")
    logging.info("info")
    logging.warning("warn")
    assert [r.getMessage() for r in caplog.records] == ["warn"]


def test_logging_verbose_level(caplog):
    _configure(["--verbose"])
    logging.debug("debug")
    logging.info("info")
    logging.warning("warn")
    assert [r.getMessage() for r in caplog.records] == ["debug", "info", "warn"]


def test_explicit_log_level_overrides_verbose(caplog):
    _configure(["--verbose", "--log-level", "error"])
    logging.warning("warn")
    logging.error("error")
    assert [r.getMessage() for r in caplog.records] == ["error"]


def test_log_file_handler(tmp_path):
    log_path = tmp_path / "test.log"
    _configure(["--log-file", str(log_path), "--verbose"])
    logging.info("file-log")
    assert "file-log" in log_path.read_text(encoding="utf-8")


def test_log_json_handler(monkeypatch):
    buf = io.StringIO()
    monkeypatch.setattr(sys, "stdout", buf)
    _configure(["--log-json"])
    msg = 'bad "quote" \\ newline\nhere'
    logging.warning(msg)
    json_output = buf.getvalue().strip().splitlines()[-1]
    assert json.loads(json_output) == {"level": "WARNING", "message": msg}


def test_log_event_structured_fields(monkeypatch):
    buf = io.StringIO()
    monkeypatch.setattr(sys, "stdout", buf)
    _configure(["--log-json"])
    log_event(
        "resolve_failed",
        level=logging.WARNING,
        package="ripgrep",
        kind="registry",
        error="network failure",
        duration_ms=12,
    )
    payload = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert payload == {
        "level": "WARNING",
        "message": "resolve_failed",
        "event": "resolve_failed",
        "package": "ripgrep",
        "kind": "registry",
        "error": "network failure",
        "duration_ms": 12,
    }


def test_json_formatter_ignores_unknown_extras():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    record.secret = "nope"
    record.count = 3
    assert json.loads(JSONFormatter().format(record)) == {
        "level": "INFO",
        "message": "msg",
        "count": 3,
    }


def test_log_event_never_raises(monkeypatch):
    def boom(*a, **k):
        raise RuntimeError("broken handler")

    monkeypatch.setattr(logging.Logger, "log", boom)
    log_event("anything", package="x")


def test_reconfigure_logging_replaces_handlers():
    _configure([])
    _configure([])
    ours = [
        h
        for h in logging.getLogger().handlers
        if getattr(h, "_added_by_configure_logging", False)
    ]
    assert len(ours) == 1


def test_reconfigure_logging_closes_file_handlers(tmp_path):
    log1 = tmp_path / "one.log"
    _configure(["--log-file", str(log1)])
    logger = logging.getLogger()
    old = next(
        h
        for h in logger.handlers
        if isinstance(h, logging.FileHandler)
        and getattr(h, "_added_by_configure_logging", False)
    )

    _configure(["--log-file", str(tmp_path / "two.log")])

    assert old.stream is None or old.stream.closed
