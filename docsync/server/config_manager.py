"""ConfigManager — environment profiles and server settings."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from docsync.config import DEFAULT_EDITOR_DIST, DEFAULT_MAX_BODY_BYTES, DEFAULT_STORAGE_DIR

logger = logging.getLogger(__name__)

# All known configuration keys with defaults
_CONFIG_KEYS: dict[str, dict[str, Any]] = {
    "DOCSYNC_ENV": {"default": "development", "description": "Environment profile"},
    "PROTOCOL": {"default": "http", "description": "Scheme of the public base URL"},
    "HOST": {"default": "localhost", "description": "Host to bind and to use in the base URL"},
    "PORT": {"default": "9000", "description": "Port to bind and to use in the base URL"},
    "STORAGE_DIR": {"default": f"./{DEFAULT_STORAGE_DIR}", "description": "Storage root for documents"},
    "LIASCRIPT_EDITOR_DIST": {"default": f"./{DEFAULT_EDITOR_DIST}", "description": "Editor bundle directory"},
    "DOCSYNC_LOG_LEVEL": {"default": "INFO", "description": "Logging level"},
    "DOCSYNC_LOG_DIR": {"default": ".", "description": "Directory for log files (empty disables)"},
    "DOCSYNC_REWRITE_BLOB_LINKS": {"default": "false", "description": "Rewrite (blob) links to absolute URLs"},
    "DOCSYNC_BLOB_SUBDIR": {"default": "", "description": "Blob sub-directory (empty stores blobs next to the document)"},
    "DOCSYNC_MAX_BODY_BYTES": {"default": str(DEFAULT_MAX_BODY_BYTES), "description": "Largest accepted request body"},
    "DOCSYNC_CORS_ORIGINS": {"default": "*", "description": "Comma-separated allowed CORS origins"},
}

_PROFILES: dict[str, dict[str, str]] = {
    "development": {
        "DOCSYNC_ENV": "development",
        "DOCSYNC_LOG_LEVEL": "DEBUG",
    },
    "production": {
        "DOCSYNC_ENV": "production",
        "DOCSYNC_LOG_LEVEL": "INFO",
    },
    "testing": {
        "DOCSYNC_ENV": "testing",
        "DOCSYNC_LOG_LEVEL": "DEBUG",
        "DOCSYNC_LOG_DIR": "",
    },
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ServerSettings(BaseModel):
    """Typed view of the merged configuration."""

    env: str = "development"
    protocol: str = "http"
    host: str = "localhost"
    port: int = 9000
    storage_dir: Path = Field(default_factory=lambda: DEFAULT_STORAGE_DIR)
    editor_dist: Path = Field(default_factory=lambda: DEFAULT_EDITOR_DIST)
    log_level: str = "INFO"
    log_dir: Path | None = None
    rewrite_blob_links: bool = False
    blob_subdir: str = ""
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    @classmethod
    def from_config(cls, config: dict[str, str]) -> ServerSettings:
        """Build settings from a flat ``load_config`` dict."""
        log_dir = config.get("DOCSYNC_LOG_DIR", "")
        origins = [o.strip() for o in config.get("DOCSYNC_CORS_ORIGINS", "*").split(",") if o.strip()]
        return cls(
            env=config["DOCSYNC_ENV"],
            protocol=config["PROTOCOL"],
            host=config["HOST"],
            port=int(config["PORT"]),
            storage_dir=Path(config["STORAGE_DIR"]),
            editor_dist=Path(config["LIASCRIPT_EDITOR_DIST"]),
            log_level=config["DOCSYNC_LOG_LEVEL"].upper(),
            log_dir=Path(log_dir) if log_dir else None,
            rewrite_blob_links=config["DOCSYNC_REWRITE_BLOB_LINKS"].strip().lower() in _TRUE_VALUES,
            blob_subdir=config["DOCSYNC_BLOB_SUBDIR"].strip("/"),
            max_body_bytes=int(config["DOCSYNC_MAX_BODY_BYTES"]),
            cors_origins=origins,
        )


def _read_config_json(root: Path) -> dict[str, str]:
    path = root / ".docsync" / "config.json"
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        logger.warning("Ignoring unreadable %s", path, exc_info=True)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", path)
        return {}
    return {str(k): str(v) for k, v in data.items()}


def _read_dotenv(root: Path) -> dict[str, str]:
    """Parse ``KEY=value`` lines. ``export`` prefixes and matching quotes are stripped."""
    path = root / ".env"
    if not path.is_file():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        logger.warning("Ignoring unreadable %s", path, exc_info=True)
        return {}

    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key.strip()] = value
    return values


class ConfigManager:
    """Manage docsync configuration across environments."""

    def generate_env_template(self, project_path: str | Path, *, overwrite: bool = False) -> Path:
        """Write ``.env.example`` listing every key with its default.

        An existing template is left alone unless *overwrite* is set.
        Returns the path to the template.
        """
        env_path = Path(project_path) / ".env.example"
        if env_path.exists() and not overwrite:
            logger.info("Keeping existing %s", env_path)
            return env_path

        lines = [
            "# docsync server configuration",
            f"# Profiles for DOCSYNC_ENV: {', '.join(_PROFILES)}",
            "",
        ]
        for key, info in _CONFIG_KEYS.items():
            lines += [f"# {info['description']}", f"{key}={info['default']}", ""]

        env_path.write_text("\n".join(lines), encoding="utf-8")
        return env_path

    def load_config(self, project_path: str | Path) -> dict[str, str]:
        """Load merged config: defaults -> profile -> config.json -> .env -> env vars.

        The profile is chosen from the highest layer that sets
        ``DOCSYNC_ENV``, so a ``.env`` or ``config.json`` can select it.
        Returns a flat dict of configuration values.
        """
        root = Path(project_path)
        layers = [
            _read_config_json(root),
            _read_dotenv(root),
            {key: os.environ[key] for key in _CONFIG_KEYS if key in os.environ},
        ]

        config = {key: str(info["default"]) for key, info in _CONFIG_KEYS.items()}
        env_name = config["DOCSYNC_ENV"]
        for layer in layers:
            env_name = layer.get("DOCSYNC_ENV", env_name)

        profile = _PROFILES.get(env_name)
        if profile is None:
            logger.warning("Unknown DOCSYNC_ENV %r, no profile applied", env_name)
        else:
            config.update(profile)

        for layer in layers:
            config.update(layer)
        return config

    def load_settings(self, project_path: str | Path = ".") -> ServerSettings:
        """Load the merged config and return it as ServerSettings."""
        return ServerSettings.from_config(self.load_config(project_path))
