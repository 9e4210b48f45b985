"""Core coverage engine components."""
