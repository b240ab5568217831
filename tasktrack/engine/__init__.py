"""TaskTrack Engine — Errors, configuration, structured logging, session context."""
