"""Batch task protocol, registry, and concrete tasks."""
