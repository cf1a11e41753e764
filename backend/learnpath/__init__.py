"""Lesson progress tracking and sequential unlocking for course catalogs."""

__version__ = "0.1.0"
