"""Configuration, error taxonomy, logging and small shared helpers."""
