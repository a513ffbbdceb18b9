"""Global configuration: routes, constants, defaults."""

from pathlib import Path

# URL prefix under which the storage root is served read-only
STATIC_PREFIX = "/static"

# Route that accepts document sync requests
SYNC_ROUTE = "/sync"

# Default storage root and editor bundle locations
DEFAULT_STORAGE_DIR = Path("storage")
DEFAULT_EDITOR_DIST = Path("liascript-editor")

# Entry page of the editor single-page app
EDITOR_INDEX = "index.html"

# Largest accepted request body (500 MiB)
DEFAULT_MAX_BODY_BYTES = 500 * 1024 * 1024

# Log file names written below the configured log directory
COMBINED_LOG = "combined.log"
ERROR_LOG = "error.log"
