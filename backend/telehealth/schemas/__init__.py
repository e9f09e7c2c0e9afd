"""Enums and API schemas."""
