"""Data access helpers for items, history, workers and the code sequence."""
