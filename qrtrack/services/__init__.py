"""Lifecycle services: transaction engine, attendance toggle and scan dispatcher."""
