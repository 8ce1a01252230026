from __future__ import annotations


class AssistantError(Exception):
    """Base error for the task assistant core."""


class ValidationError(AssistantError, ValueError):
    """Raised when an operation is rejected; nothing was changed."""


class StorageError(AssistantError, RuntimeError):
    """Raised when the stored collections cannot be read."""
