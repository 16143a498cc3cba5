"""Batch services: executor and scheduler."""
