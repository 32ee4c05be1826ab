"""Shared cross-cutting code: telemetry, datetime and id helpers."""
