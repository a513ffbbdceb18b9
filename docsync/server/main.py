"""Entry point: ``docsync-server``."""

from __future__ import annotations

from docsync.server.app import create_app
from docsync.server.config_manager import ConfigManager
from docsync.server.logging import configure_logging


def main() -> None:
    """Load configuration from the working directory and serve."""
    import uvicorn

    settings = ConfigManager().load_settings(".")
    configure_logging(settings.log_level, settings.log_dir)

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
