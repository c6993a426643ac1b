"""Tag templating and numbering engine."""

from .assembly_expander import (
    AssemblyEntry,
    assembly_to_tags,
    expand_assembly,
    extract_number_pattern,
)
from .counter_engine import CounterEngine, CounterKey, compute_prefix
from .dataset import (
    DatasetSnapshot,
    SnapshotTagSink,
    TagSink,
    load_snapshot,
    save_snapshot,
)
from .errors import TagEngineError, TagValidationError, TemplateStructureError
from .library_import import (
    describe_template,
    import_library_template,
    required_category_mappings,
)
from .parent_inheritance import resolve_parent_ref
from .registry import recent_activity, search_tags, status_summary
from .resolvers import DictionaryRegistry, resolve_dictionary, resolve_global_var
from .settings import TagEngineConfig
from .tag_generation_engine import GenerationResult, TagGenerationEngine
from .template_model import (
    AbstractAssembly,
    AbstractComponent,
    AutoNumberBlock,
    BlockKind,
    DictionaryItem,
    DictionaryRefBlock,
    GenerationMode,
    GlobalVariable,
    GlobalVarRefBlock,
    LegacyParentRefBlock,
    LibraryTemplate,
    LiteralBlock,
    ParentRefBlock,
    ParentSource,
    ReservedRange,
    SeparatorBlock,
    SuffixBlock,
    Tag,
    TagStatus,
    Template,
    assemble_full_tag,
)

__all__ = [
    "AbstractAssembly",
    "AbstractComponent",
    "AssemblyEntry",
    "AutoNumberBlock",
    "BlockKind",
    "CounterEngine",
    "CounterKey",
    "DatasetSnapshot",
    "DictionaryItem",
    "DictionaryRefBlock",
    "DictionaryRegistry",
    "GenerationMode",
    "GenerationResult",
    "GlobalVariable",
    "GlobalVarRefBlock",
    "LegacyParentRefBlock",
    "LibraryTemplate",
    "LiteralBlock",
    "ParentRefBlock",
    "ParentSource",
    "ReservedRange",
    "SeparatorBlock",
    "SnapshotTagSink",
    "SuffixBlock",
    "Tag",
    "TagEngineConfig",
    "TagEngineError",
    "TagGenerationEngine",
    "TagSink",
    "TagStatus",
    "TagValidationError",
    "Template",
    "TemplateStructureError",
    "assemble_full_tag",
    "assembly_to_tags",
    "compute_prefix",
    "describe_template",
    "expand_assembly",
    "extract_number_pattern",
    "import_library_template",
    "load_snapshot",
    "recent_activity",
    "required_category_mappings",
    "resolve_dictionary",
    "resolve_global_var",
    "resolve_parent_ref",
    "save_snapshot",
    "search_tags",
    "status_summary",
]
