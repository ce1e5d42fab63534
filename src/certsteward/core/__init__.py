"""Core utilities: logging and reconcile context."""
