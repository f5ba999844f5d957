"""
Error types raised by the Virtual Try-On AI core.
"""


class TryOnError(Exception):
    """Base class for errors surfaced by the core."""


class InvalidInput(TryOnError, ValueError):
    """Request parameters were rejected (bad budget, undecodable image...)."""


class ModelLoadFailure(TryOnError):
    """A model could not be loaded. Retryable on the next call."""

    def __init__(self, model_name: str, cause: Exception = None):
        self.model_name = model_name
        self.cause = cause
        message = f"Failed to load {model_name} model"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
