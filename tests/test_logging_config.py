import json
import logging

from lawton.logging_config import AUDIT_LOGGER_NAME, MinimalJSONFormatter, build_logging_config
from lawton.telemetry import emit_exception, log_event


def _record(msg, **extra) -> logging.LogRecord:
    record = logging.LogRecord("lawton.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_dict_messages_are_merged_into_the_payload():
    output = json.loads(MinimalJSONFormatter().format(_record({"step": "ingest", "chunks": 3})))

    assert output["step"] == "ingest"
    assert output["chunks"] == 3
    assert output["level"] == "INFO"
    assert output["logger"] == "lawton.test"
    assert output["ts"].endswith("Z")


def test_plain_messages_and_extras():
    output = json.loads(MinimalJSONFormatter().format(_record("hello", doc_id="abc")))

    assert output["message"] == "hello"
    assert output["doc_id"] == "abc"


def test_log_event_emits_structured_dict(caplog):
    logger = logging.getLogger("lawton.telemetry.test")

    with caplog.at_level(logging.INFO, logger="lawton.telemetry.test"):
        log_event(logger, "store.scan", duration_ms=1.23456, details={"count": 2})

    event = caplog.records[-1].msg
    assert event == {
        "step": "store.scan",
        "module": "lawton.telemetry.test",
        "duration_ms": 1.235,
        "details": {"count": 2},
    }


def test_audit_logger_writes_only_to_the_audit_file(tmp_path):
    config = build_logging_config(tmp_path, level="debug")

    assert config["root"] == {"level": "DEBUG", "handlers": ["console"]}
    assert config["handlers"]["ingest_audit"]["filename"] == str(tmp_path / "ingest_audit.log")
    assert config["loggers"][AUDIT_LOGGER_NAME] == {
        "level": "INFO",
        "handlers": ["ingest_audit"],
        "propagate": False,
    }


def test_emit_exception_logs_module_and_traceback(caplog):
    try:
        raise OSError("disk full")
    except OSError as error:
        with caplog.at_level(logging.ERROR, logger="lawton.telemetry"):
            emit_exception(module="lawton.ingest.pipeline.store", error=error, suggestion="retry")

    event = caplog.records[-1].msg
    assert event["step"] == "exception"
    assert event["details"] == {"module": "lawton.ingest.pipeline.store", "suggestion": "retry"}
    assert "OSError: disk full" in event["exc"]
    assert "req_id" not in event
