"""HTTP server, configuration and logging for docsync."""
