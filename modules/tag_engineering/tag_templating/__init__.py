"""
Tag Templating Module

Template-driven generation of equipment, instrument and line tags: prefix
computation and counters, dictionary/variable/parent resolution, batch
generation and assembly pattern expansion. Supports standalone usage and
CDF-compatible workflows.
"""

# Engine exports
from .functions.fn_tag_generation.engine import (
    AssemblyEntry,
    CounterEngine,
    CounterKey,
    DatasetSnapshot,
    GenerationResult,
    TagEngineError,
    TagGenerationEngine,
    TagValidationError,
    TemplateStructureError,
    compute_prefix,
    expand_assembly,
    load_snapshot,
    resolve_dictionary,
    resolve_global_var,
    resolve_parent_ref,
)

# CDF-compatible exports
from .functions.fn_tag_generation.cdf_adapter import RawTagSink, load_snapshot_from_raw
from .functions.fn_tag_generation.handler import handle as cdf_tag_generation_handle
from .functions.fn_tag_generation.pipeline import tag_generation as cdf_tag_generation

__all__ = [
    # Core engine
    "TagGenerationEngine",
    "GenerationResult",
    "CounterEngine",
    "CounterKey",
    "DatasetSnapshot",
    "AssemblyEntry",
    "TagEngineError",
    "TagValidationError",
    "TemplateStructureError",
    "compute_prefix",
    "expand_assembly",
    "load_snapshot",
    "resolve_dictionary",
    "resolve_global_var",
    "resolve_parent_ref",
    # CDF-compatible exports
    "cdf_tag_generation_handle",
    "cdf_tag_generation",
    "RawTagSink",
    "load_snapshot_from_raw",
]
