"""Telehealth clinical decision-support service."""

__version__ = "0.1.0"
