"""TaskTrack UI — Reflex state, shared components and pages."""
