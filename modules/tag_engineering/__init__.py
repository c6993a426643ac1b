"""
Tag Engineering Module

This package contains the tag templating and numbering engine.
"""

from .tag_templating.functions.fn_tag_generation.engine.tag_generation_engine import (
    GenerationResult,
    TagGenerationEngine,
)

__all__ = [
    "TagGenerationEngine",
    "GenerationResult",
]
