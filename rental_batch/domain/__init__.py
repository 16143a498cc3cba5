"""Batch domain: frozen DTOs and pure schedule evaluation (ZERO I/O)."""
