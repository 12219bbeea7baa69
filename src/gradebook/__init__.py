"""Gradebook: persistence and queries for a classroom grading service."""

__version__ = "0.1.0"
