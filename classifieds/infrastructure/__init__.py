"""Kuzu storage: connection manager, schema and repositories."""
