"""Tests for structlog processors."""

import pytest
import structlog

from folio.core.logger import (
    BusinessRulesProcessor,
    LogIcon,
    LoggerConfig,
    LoggerError,
    ServiceNameProcessor,
    dev_pipeline_renderer,
    setup_logging,
)


class TestBusinessRulesProcessor:
    """Tests for the event-shaping processor."""

    def test_uppercases_and_truncates(self) -> None:
        """Verify events are uppercased and cut to 80 characters."""
        processor = BusinessRulesProcessor(debug=False)
        result = processor(None, "info", {"event": "a" * 100})
        assert result["event"] == "A" * 80

    def test_icon_prefix_in_debug(self) -> None:
        """Verify the icon is prepended only in debug mode."""
        processor = BusinessRulesProcessor(debug=True)
        result = processor(None, "info", {"event": "upload accepted", "icon": LogIcon.UPLOAD})
        assert result["event"] == f"{LogIcon.UPLOAD.value} UPLOAD ACCEPTED"
        assert "icon" not in result

    def test_invalid_icon_raises(self) -> None:
        """Verify unknown icons raise LoggerError."""
        processor = BusinessRulesProcessor(debug=False)
        with pytest.raises(LoggerError, match="Wrong Icon"):
            processor(None, "info", {"event": "x", "icon": "not-an-icon"})


def test_dev_pipeline_renderer_formats_fields() -> None:
    """Verify the dev renderer joins known and extra fields with pipes."""
    line = dev_pipeline_renderer(
        None,
        "info",
        {
            "timestamp": "2026-01-01T00:00:00Z",
            "level": "warning",
            "event": "REJECTED MULTIPART UPLOAD",
            "error": "no_file_found",
            "filename": "router.py",
            "lineno": 12,
        },
    )
    assert line == "2026-01-01T00:00:00Z | WARNING | REJECTED MULTIPART UPLOAD | error=no_file_found | router.py:12"


class TestServiceName:
    """Tests for the service name attached to JSON log events."""

    def test_processor_adds_service(self) -> None:
        """Verify every event carries the configured service name."""
        result = ServiceNameProcessor("folio")(None, "info", {"event": "UPLOAD ACCEPTED"})
        assert result["service"] == "folio"

    def test_json_pipeline_includes_processor(self) -> None:
        """Verify the JSON pipeline stamps the service on each event, not once at import."""
        setup_logging(LoggerConfig(debug=False, app_name="folio-test"))
        try:
            processors = structlog.get_config()["processors"]
        finally:
            setup_logging(LoggerConfig())

        (processor,) = [p for p in processors if isinstance(p, ServiceNameProcessor)]
        assert processor.app_name == "folio-test"
        assert "service" not in structlog.contextvars.get_contextvars()
