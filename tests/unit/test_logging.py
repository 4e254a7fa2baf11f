from __future__ import annotations

import json
import logging

from pdfraster import logger as package_logger
from pdfraster.logging import bind_request_context, clear_request_context, configure_logging, get_logger
from pdfraster.settings import Settings


def test_stdlib_logger_is_configured(capsys) -> None:
    configure_logging(settings=Settings(log_json=False, log_level="INFO"), force=True)
    logger = get_logger("tests")
    logger.info("hello")

    captured = capsys.readouterr()
    assert "hello" in captured.err.lower()


def test_json_logs_use_message_key(capsys) -> None:
    configure_logging(settings=Settings(log_json=True, log_level="INFO"), force=True)
    get_logger("tests.json").info("page rendered", page_index=3)

    captured = capsys.readouterr()
    assert '"message": "page rendered"' in captured.err
    assert '"page_index": 3' in captured.err


def test_noisy_client_loggers_are_raised_to_warning() -> None:
    configure_logging(settings=Settings(log_json=False, log_level="DEBUG"), force=True)

    assert logging.getLogger("botocore").level == logging.WARNING


def test_package_logger_created_on_import() -> None:
    assert callable(getattr(package_logger, "info", None))


def test_json_logs_carry_service_fields_and_request_context(capsys) -> None:
    configure_logging(settings=Settings(log_json=True, log_level="INFO", app_env="ci"), force=True)
    bind_request_context(request_id="abc123", path="/")
    try:
        get_logger("tests.context").info("upload received")
    finally:
        clear_request_context()

    entry = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert entry["message"] == "upload received"
    assert entry["service"] == "pdfraster"
    assert entry["env"] == "ci"
    assert entry["request_id"] == "abc123"


def test_clear_request_context_removes_bound_values(capsys) -> None:
    configure_logging(settings=Settings(log_json=True, log_level="INFO"), force=True)
    bind_request_context(request_id="abc123")
    clear_request_context()

    get_logger("tests.context").info("after request")

    entry = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert "request_id" not in entry
