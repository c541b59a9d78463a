"""
Tests for configuration and structured logging
"""

import json
import logging
import io
import sys

import pytest

from point_ledger.config import LedgerConfig, get_config, reload_config
from point_ledger.logging_config import (
    JSONFormatter, setup_logging, setup_logging_from_config, get_logger, log_action
)


class TestLedgerConfig:
    """Test environment-based configuration"""
    
    def test_defaults(self, monkeypatch):
        """Test defaults when nothing is set"""
        for name in ("STORE_BACKEND", "SQLITE_PATH", "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(f"POINT_LEDGER_{name}", raising=False)
        
        config = LedgerConfig(_env_file=None)
        
        assert config.store_backend == "memory"
        assert config.log_level == "INFO"
        assert config.log_format == "json"
        assert config.log_file is None
    
    def test_environment_overrides(self, monkeypatch):
        """Test POINT_LEDGER_ variables override defaults"""
        monkeypatch.setenv("POINT_LEDGER_STORE_BACKEND", "sqlite")
        monkeypatch.setenv("point_ledger_sqlite_path", "/tmp/ledger.db")
        
        config = LedgerConfig(_env_file=None)
        
        assert config.store_backend == "sqlite"
        assert config.sqlite_path == "/tmp/ledger.db"
    
    def test_reload_config(self, monkeypatch):
        """Test reload picks up new environment values"""
        monkeypatch.setenv("POINT_LEDGER_LOG_LEVEL", "DEBUG")
        
        reloaded = reload_config()
        
        assert reloaded.log_level == "DEBUG"
        assert get_config() is reloaded


class TestJSONFormatter:
    """Test JSON log line layout"""
    
    def _format(self, **fields):
        record = logging.LogRecord("point_ledger.test", logging.INFO, __file__, 1,
                                   "Ledger created", (), None)
        for key, value in fields.items():
            setattr(record, key, value)
        return json.loads(JSONFormatter().format(record))
    
    def test_structured_fields(self):
        """Test ledger fields are emitted and empty ones dropped"""
        entry = self._format(operation="1", account_id="acc1", extra={"balance_after": 5})
        
        assert entry["level"] == "INFO"
        assert entry["message"] == "Ledger created"
        assert entry["operation"] == "1"
        assert entry["account_id"] == "acc1"
        assert entry["extra"] == {"balance_after": 5}
        assert "correlation_id" not in entry
        assert "timestamp" in entry
    
    def test_exception_included(self):
        """Test exception info is rendered"""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("point_ledger.test", logging.ERROR, __file__, 1,
                                       "failed", (), None)
            record.exc_info = sys.exc_info()
        
        entry = json.loads(JSONFormatter().format(record))
        
        assert "RuntimeError: boom" in entry["exception"]


class TestSetupLogging:
    """Test logger configuration"""
    
    def test_setup_json_logging(self):
        """Test a single JSON handler is installed"""
        logger = setup_logging("DEBUG", "point_ledger_test_json")
        setup_logging("DEBUG", "point_ledger_test_json")
        
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
    
    def test_setup_text_logging(self):
        """Test the plain text format"""
        logger = setup_logging("WARNING", "point_ledger_test_text", log_format="text")
        
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.level == logging.WARNING
    
    def test_setup_from_config(self, tmp_path):
        """Test logging configured from LedgerConfig writes to a file"""
        log_file = tmp_path / "ledger.log"
        config = LedgerConfig(_env_file=None, logger_name="point_ledger_test_file",
                              log_file=str(log_file), log_level="INFO")
        
        logger = setup_logging_from_config(config)
        log_action(logger, "info", "Ledger created", operation="0", account_id="acc1")
        logger.handlers[0].flush()
        
        entry = json.loads(log_file.read_text().strip())
        assert entry["account_id"] == "acc1"
        assert entry["operation"] == "0"
        
        logger.handlers[0].close()
        logger.handlers.clear()
    
    def test_log_action_writes_structured_line(self):
        """Test log_action output through a JSON handler"""
        stream = io.StringIO()
        logger = setup_logging("INFO", "point_ledger_test_action")
        logger.handlers[0].setStream(stream)
        
        log_action(logger, "warning", "Invocation failed", operation="Q",
                   correlation_id="req-1", extra={"error": "NOT_FOUND"})
        
        entry = json.loads(stream.getvalue())
        assert entry["level"] == "WARNING"
        assert entry["correlation_id"] == "req-1"
        assert entry["extra"] == {"error": "NOT_FOUND"}
        assert "account_id" not in entry
    
    def test_get_logger(self):
        assert get_logger("point_ledger.engine").name == "point_ledger.engine"
