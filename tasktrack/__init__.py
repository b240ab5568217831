"""
TaskTrack — per-user task tracker on a hosted Supabase backend.

Packages:
    engine   errors, configuration, structured logging, session context
    rules    input sanitization and validation
    records  Task, AuthUser, Credential, Notification
    backend  auth / row-store ports and their Supabase and in-memory adapters
    flows    credential flow, task reconciler, notification channel
    ui       Reflex state and pages
"""

__version__ = "1.0.0"
__all__ = ["engine", "rules", "records", "backend", "flows", "ui"]
