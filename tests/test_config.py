"""Tests for configuration loading and logging setup."""

import logging

import pytest

from config import ConfigurationManager, get_config
from docintake.utils.logger import get_logger, setup_logger


class TestConfigurationManager:

    def test_defaults(self):
        assert get_config("ocr.language") == "pol+eng"
        assert get_config("pdf.dpi") == 300
        assert get_config("jobs.pool_size") == 1
        assert get_config("app.default_document_class") == "invoice"

    def test_missing_key_returns_default(self):
        assert get_config("nonexistent.key", "fallback") == "fallback"
        assert get_config("pdf.dpi.value", 1) == 1

    def test_singleton(self):
        assert ConfigurationManager() is ConfigurationManager()

    def test_override_file_is_merged(self, tmp_path):
        override = tmp_path / "override.yaml"
        override.write_text("jobs:\n  pool_size: 4\nocr:\n  psm: 6\n", encoding="utf-8")

        ConfigurationManager.reset()
        ConfigurationManager(str(override))

        assert get_config("jobs.pool_size") == 4
        assert get_config("ocr.psm") == 6
        assert get_config("ocr.language") == "pol+eng"
        assert get_config("jobs.wait_timeout") == 60

    def test_missing_override_file(self, tmp_path):
        ConfigurationManager.reset()
        with pytest.raises(FileNotFoundError):
            ConfigurationManager(str(tmp_path / "missing.yaml"))

    def test_get_all_is_a_copy(self):
        settings = ConfigurationManager().get_all()
        settings["jobs"] = None
        assert get_config("jobs.pool_size") == 1


class TestLogging:

    def test_module_loggers_share_namespace(self):
        assert get_logger("docintake.jobs.manager").name == "docintake.jobs.manager"
        assert get_logger("main").name == "docintake.main"

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "docintake.log"

        app_logger = setup_logger(level="DEBUG", log_file=str(log_file), colorize=False)
        get_logger("tests").info("Job queued")
        for handler in app_logger.handlers:
            handler.flush()

        assert "Job queued" in log_file.read_text(encoding="utf-8")
        assert app_logger.level == logging.DEBUG

        for handler in list(app_logger.handlers):
            handler.close()
            app_logger.removeHandler(handler)
