"""
Error Taxonomy
==============
Exceptions raised inside the rendering pipeline.

InvalidInput is recovered by the UI binding (the field keeps its value and no
render is requested). GenerationFailure and RenderFailure are caught by the
RenderScheduler at the flush boundary and turned into status text.
"""
from typing import Any


class FractalViewError(Exception):
    """Base class for all application errors."""


class InvalidInput(FractalViewError, ValueError):
    """A raw control value could not be coerced for its field."""

    def __init__(self, field: str, raw: Any, reason: str = "") -> None:
        self.field = field
        self.raw = raw
        self.reason = reason
        message = f"Invalid value {raw!r} for '{field}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class GenerationFailure(FractalViewError):
    """The generator could not produce a point set."""


class RenderFailure(FractalViewError):
    """Drawing a point set onto the surface failed."""
