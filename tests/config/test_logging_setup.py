"""Tests for structlog setup."""

import json
import logging

import structlog

from prf_engine.config.logging import setup_logging


def test_json_logs_render_event_and_context(capsys):
    try:
        setup_logging("INFO", json_logs=True)
        structlog.get_logger("prf_engine.test").info("NEWQUERY", query_id="q1", query="a^1.0")
        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["event"] == "NEWQUERY"
        assert payload["query_id"] == "q1"
        assert payload["level"] == "info"
    finally:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()


def test_level_filters_debug(capsys):
    try:
        setup_logging("WARNING")
        structlog.get_logger("prf_engine.test").info("hidden_event")
        assert "hidden_event" not in capsys.readouterr().err
    finally:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
