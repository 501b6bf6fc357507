"""Tests for logging configuration."""

import json
import logging
import threading

import pytest
from pydantic import ValidationError
from home_inventory.common.logging import LogContext, StructuredFormatter, bound_fields, setup_logging
from home_inventory.common.logging_config import LoggingConfig


class TestLoggingConfig:
    """Test LoggingConfig validation."""
    
    def test_default_values(self):
        """Test default values."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.format == "simple"
        assert config.file is None
    
    def test_rejects_invalid_log_level(self):
        """Test that invalid log levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="TRACE")
    
    def test_rejects_invalid_format(self):
        """Test that invalid formats are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")
    
    def test_case_insensitive_values(self):
        """Level is upper-cased, format lower-cased."""
        config = LoggingConfig(level="debug", format="JSON")
        assert config.level == "DEBUG"
        assert config.format == "json"
    
    def test_rejects_unknown_keys(self):
        """Test that unknown keys are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(colour=True)
    
    def test_rotation_settings(self):
        config = LoggingConfig(max_file_size_mb=1, backup_count=0)
        assert config.max_file_size_mb == 1
        with pytest.raises(ValidationError):
            LoggingConfig(max_file_size_mb=0)
    
    def test_file_path_variables_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setattr("tempfile.gettempdir", lambda: str(tmp_path))
        assert LoggingConfig(file="${TEMP}/inventory.log").file == f"{tmp_path}/inventory.log"


class TestStructuredLogging:
    """Tests for the JSON formatter and LogContext."""
    
    def _record(self, logger_name="home_inventory.test"):
        return logging.getLogger(logger_name).makeRecord(
            logger_name, logging.INFO, __file__, 10, "restored %d items", (3,), None
        )
    
    def test_structured_formatter_emits_json(self):
        """Each record becomes one JSON object."""
        data = json.loads(StructuredFormatter().format(self._record()))
        assert data["level"] == "INFO"
        assert data["message"] == "restored 3 items"
        assert data["logger"] == "home_inventory.test"
    
    def test_log_context_adds_fields(self):
        """Fields from LogContext appear in records created inside it."""
        with LogContext(operation="restore"):
            record = self._record()
        data = json.loads(StructuredFormatter().format(record))
        assert data["operation"] == "restore"
    
    def test_no_fields_after_block(self):
        """Records created after the block carry no extra fields."""
        with LogContext(operation="backup"):
            pass
        assert not hasattr(self._record(), "extra_fields")
    
    def test_nested_contexts_merge_and_unwind(self):
        with LogContext(operation="restore"):
            with LogContext(entry="images/a.jpg"):
                assert bound_fields() == {"operation": "restore", "entry": "images/a.jpg"}
            assert bound_fields() == {"operation": "restore"}
        assert bound_fields() == {}
    
    def test_context_does_not_leak_to_other_threads(self):
        """Records from another thread stay untagged while a context is active."""
        records = []
        
        def log_elsewhere():
            records.append(self._record("home_inventory.other"))
        
        with LogContext(operation="backup"):
            worker = threading.Thread(target=log_elsewhere)
            worker.start()
            worker.join()
            inside = self._record()
        
        assert inside.extra_fields == {"operation": "backup"}
        assert not hasattr(records[0], "extra_fields")
    
    def test_setup_logging_with_file(self, tmp_path):
        """A log file gets a rotating handler."""
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging(level="DEBUG", format="detailed", log_file=tmp_path / "logs" / "app.log")
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 2
            assert (tmp_path / "logs").is_dir()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
