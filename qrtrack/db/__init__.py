"""Persistence plumbing: engine/session helpers and SQLite schema upgrades."""
