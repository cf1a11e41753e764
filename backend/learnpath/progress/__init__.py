"""Progress module for tracking lesson completion and unlocking."""

from learnpath.progress.models import ProgressRecord


__all__ = ["ProgressRecord"]
