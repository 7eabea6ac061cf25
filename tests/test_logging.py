import json
import logging

import pytest
import structlog

from mcp_env_setup.logging import (
    CompactJSONRenderer,
    add_caller_info,
    add_timestamp,
    configure_logging,
    get_logger,
    make_level_filter,
)


def test_compact_json_renderer():
    """Test events render as a single JSON line"""
    output = CompactJSONRenderer()(None, "info", {
        "event": "venv_created",
        "level": "info",
        "timestamp": "2024-01-01T00:00:00",
        "file": "venv.py",
        "line": 10,
        "root": "/tmp/env",
    })

    assert "\n" not in output
    data = json.loads(output)
    assert data["msg"] == "venv_created"
    assert data["lvl"] == "info"
    assert data["ts"] == "2024-01-01T00:00:00"
    assert data["file"] == "venv.py"
    assert data["data"] == {"root": "/tmp/env"}


def test_compact_json_renderer_without_data():
    data = json.loads(CompactJSONRenderer()(None, "info", {"event": "x", "level": "info"}))
    assert "data" not in data


def test_compact_json_renderer_non_serializable():
    from pathlib import Path

    data = json.loads(CompactJSONRenderer()(None, "info", {"event": "x", "path": Path("/a")}))
    assert data["data"]["path"] == "/a"


@pytest.mark.parametrize(
    "method,dropped",
    [("debug", True), ("info", False), ("warning", False), ("error", False)],
)
def test_level_filter(method, dropped):
    level_filter = make_level_filter("INFO")
    if dropped:
        with pytest.raises(structlog.DropEvent):
            level_filter(None, method, {"event": "x"})
    else:
        assert level_filter(None, method, {"event": "x"}) == {"event": "x"}


def test_add_timestamp_keeps_existing():
    assert add_timestamp(None, "info", {"timestamp": "t"}) == {"timestamp": "t"}
    assert "timestamp" in add_timestamp(None, "info", {})


def test_add_caller_info():
    event_dict = add_caller_info(None, "info", {})
    assert event_dict["file"] == "test_logging.py"
    assert event_dict["module"] == "test_add_caller_info"


def test_configure_logging_sets_level():
    configure_logging("WARNING", "json")
    assert logging.getLogger().level == logging.WARNING

    configure_logging("DEBUG", "console")
    assert logging.getLogger().level == logging.DEBUG
    structlog.reset_defaults()


def test_get_logger():
    logger = get_logger("mcp_env_setup.test")
    assert hasattr(logger, "info")
