"""Tests for layered configuration and logging setup."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from docsync.config import COMBINED_LOG, DEFAULT_MAX_BODY_BYTES, ERROR_LOG
from docsync.server.config_manager import ConfigManager, ServerSettings
from docsync.server.logging import configure_logging

_ENV_KEYS = [
    "DOCSYNC_ENV", "PROTOCOL", "HOST", "PORT", "STORAGE_DIR",
    "LIASCRIPT_EDITOR_DIST", "DOCSYNC_LOG_LEVEL", "DOCSYNC_LOG_DIR",
    "DOCSYNC_REWRITE_BLOB_LINKS", "DOCSYNC_BLOB_SUBDIR",
    "DOCSYNC_MAX_BODY_BYTES", "DOCSYNC_CORS_ORIGINS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# ConfigManager
# ---------------------------------------------------------------------------


class TestConfigManager:
    def test_defaults(self, tmp_path: Path):
        settings = ConfigManager().load_settings(tmp_path)

        assert settings.env == "development"
        assert settings.base_url == "http://localhost:9000"
        assert settings.storage_dir == Path("storage")
        assert settings.editor_dist == Path("liascript-editor")
        assert settings.log_level == "DEBUG"
        assert settings.rewrite_blob_links is False
        assert settings.blob_subdir == ""
        assert settings.max_body_bytes == DEFAULT_MAX_BODY_BYTES
        assert settings.cors_origins == ["*"]

    def test_env_vars_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PROTOCOL", "https")
        monkeypatch.setenv("HOST", "docs.example.org")
        monkeypatch.setenv("PORT", "8443")
        monkeypatch.setenv("DOCSYNC_REWRITE_BLOB_LINKS", "true")
        monkeypatch.setenv("DOCSYNC_BLOB_SUBDIR", "/blobs/")

        settings = ConfigManager().load_settings(tmp_path)

        assert settings.base_url == "https://docs.example.org:8443"
        assert settings.rewrite_blob_links is True
        assert settings.blob_subdir == "blobs"

    def test_production_profile(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DOCSYNC_ENV", "production")
        settings = ConfigManager().load_settings(tmp_path)
        assert settings.env == "production"
        assert settings.log_level == "INFO"

    def test_testing_profile_disables_log_files(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DOCSYNC_ENV", "testing")
        assert ConfigManager().load_settings(tmp_path).log_dir is None

    def test_config_json_layer(self, tmp_path: Path):
        (tmp_path / ".docsync").mkdir()
        (tmp_path / ".docsync" / "config.json").write_text(
            json.dumps({"STORAGE_DIR": "/srv/docs", "PORT": 7000}), encoding="utf-8",
        )

        settings = ConfigManager().load_settings(tmp_path)

        assert settings.storage_dir == Path("/srv/docs")
        assert settings.port == 7000

    def test_dotenv_over_config_json(self, tmp_path: Path):
        (tmp_path / ".docsync").mkdir()
        (tmp_path / ".docsync" / "config.json").write_text(
            json.dumps({"PORT": "7000"}), encoding="utf-8",
        )
        (tmp_path / ".env").write_text(
            "# comment\nPORT=7100\nDOCSYNC_CORS_ORIGINS=http://a.test, http://b.test\n",
            encoding="utf-8",
        )

        settings = ConfigManager().load_settings(tmp_path)

        assert settings.port == 7100
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_env_over_dotenv(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".env").write_text("PORT=7100\n", encoding="utf-8")
        monkeypatch.setenv("PORT", "7200")
        assert ConfigManager().load_settings(tmp_path).port == 7200

    def test_corrupt_config_json_ignored(self, tmp_path: Path):
        (tmp_path / ".docsync").mkdir()
        (tmp_path / ".docsync" / "config.json").write_text("{not json", encoding="utf-8")
        assert ConfigManager().load_settings(tmp_path).port == 9000

    def test_profile_from_dotenv(self, tmp_path: Path):
        (tmp_path / ".env").write_text("DOCSYNC_ENV=production\n", encoding="utf-8")

        settings = ConfigManager().load_settings(tmp_path)

        assert settings.env == "production"
        assert settings.log_level == "INFO"

    def test_profile_from_config_json(self, tmp_path: Path):
        (tmp_path / ".docsync").mkdir()
        (tmp_path / ".docsync" / "config.json").write_text(
            json.dumps({"DOCSYNC_ENV": "testing"}), encoding="utf-8",
        )

        settings = ConfigManager().load_settings(tmp_path)

        assert settings.env == "testing"
        assert settings.log_dir is None

    def test_profile_from_env_var_beats_dotenv(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".env").write_text("DOCSYNC_ENV=testing\n", encoding="utf-8")
        monkeypatch.setenv("DOCSYNC_ENV", "production")

        settings = ConfigManager().load_settings(tmp_path)

        assert settings.env == "production"
        assert settings.log_level == "INFO"
        assert settings.log_dir == Path(".")

    def test_explicit_value_beats_profile(self, tmp_path: Path):
        (tmp_path / ".env").write_text(
            "DOCSYNC_ENV=production\nDOCSYNC_LOG_LEVEL=warning\n", encoding="utf-8",
        )
        assert ConfigManager().load_settings(tmp_path).log_level == "WARNING"

    def test_unknown_profile_keeps_defaults(self, tmp_path: Path, monkeypatch, caplog):
        monkeypatch.setenv("DOCSYNC_ENV", "staging")

        with caplog.at_level("WARNING", logger="docsync"):
            settings = ConfigManager().load_settings(tmp_path)

        assert settings.env == "staging"
        assert settings.log_level == "INFO"
        assert "staging" in caplog.text

    def test_dotenv_export_and_quotes(self, tmp_path: Path):
        (tmp_path / ".env").write_text(
            "export HOST=\"docs.example.org\"\nSTORAGE_DIR='/srv/my docs'\n", encoding="utf-8",
        )

        settings = ConfigManager().load_settings(tmp_path)

        assert settings.host == "docs.example.org"
        assert settings.storage_dir == Path("/srv/my docs")

    def test_generate_env_template(self, tmp_path: Path):
        path = ConfigManager().generate_env_template(tmp_path)

        text = path.read_text(encoding="utf-8")
        assert path.name == ".env.example"
        assert "STORAGE_DIR=./storage" in text
        assert "DOCSYNC_REWRITE_BLOB_LINKS=false" in text
        assert "development, production, testing" in text

    def test_generate_env_template_keeps_existing(self, tmp_path: Path):
        (tmp_path / ".env.example").write_text("PORT=1\n", encoding="utf-8")
        manager = ConfigManager()

        path = manager.generate_env_template(tmp_path)
        assert path.read_text(encoding="utf-8") == "PORT=1\n"

        manager.generate_env_template(tmp_path, overwrite=True)
        assert "PORT=9000" in path.read_text(encoding="utf-8")


class TestServerSettings:
    def test_base_url(self):
        settings = ServerSettings(protocol="https", host="example.org", port=443)
        assert settings.base_url == "https://example.org:443"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture
def restore_docsync_logger():
    logger = logging.getLogger("docsync")
    level, propagate = logger.level, logger.propagate
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    logger.propagate = propagate


class TestConfigureLogging:
    def test_console_only(self, restore_docsync_logger):
        configure_logging("WARNING", None)

        logger = restore_docsync_logger
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

    def test_file_handlers_write_json(self, tmp_path: Path, restore_docsync_logger):
        configure_logging("DEBUG", tmp_path / "logs")

        log = logging.getLogger("docsync.sync.manager")
        log.info("Written main file at %s", "a/doc.md")
        log.error("Error processing sync request", extra={"document_id": "a/doc.md"})
        for handler in restore_docsync_logger.handlers:
            handler.flush()

        combined = (tmp_path / "logs" / COMBINED_LOG).read_text(encoding="utf-8").splitlines()
        errors = (tmp_path / "logs" / ERROR_LOG).read_text(encoding="utf-8").splitlines()

        assert len(combined) == 2
        assert json.loads(combined[0])["message"] == "Written main file at a/doc.md"
        assert len(errors) == 1
        entry = json.loads(errors[0])
        assert entry["level"] == "error"
        assert entry["document_id"] == "a/doc.md"

    def test_reconfigure_replaces_handlers(self, tmp_path: Path, restore_docsync_logger):
        configure_logging("INFO", tmp_path)
        configure_logging("INFO", tmp_path)
        assert len(restore_docsync_logger.handlers) == 3
