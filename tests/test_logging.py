from __future__ import annotations

import json
import logging

import structlog

from bazaar.config import Settings
from bazaar.logging import bind_request_context, clear_request_context, configure_logging


def test_production_renders_json_with_request_context(capsys):
    configure_logging(Settings().with_environment("production"))
    bind_request_context(user_id="alice")
    try:
        structlog.get_logger("bazaar.test").info("checkout.committed", total=60)
    finally:
        clear_request_context()

    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "checkout.committed"
    assert record["total"] == 60
    assert record["user_id"] == "alice"
    assert record["level"] == "info"


def test_level_applied_to_root_logger():
    configure_logging(Settings(log_level="WARNING"))

    assert logging.getLogger().level == logging.WARNING
