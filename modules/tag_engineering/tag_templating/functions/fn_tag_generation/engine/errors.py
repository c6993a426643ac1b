"""Exceptions raised by the tag generation engine."""

from typing import List, Optional


class TagEngineError(Exception):
    """Base class for all tag engine errors."""


class TemplateStructureError(TagEngineError):
    """A template is malformed (configuration error, not user input)."""


class TagValidationError(TagEngineError):
    """User input was rejected; generation or edit is refused."""

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "; ".join(self.errors))
