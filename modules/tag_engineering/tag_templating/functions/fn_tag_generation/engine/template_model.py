"""
Template and Tag Data Model

Data definitions for tag templates (an ordered sequence of blocks), the tags
generated from them, and the project-scoped reference data the engine reads:
dictionaries, global variables and reserved number ranges.

Blocks form a closed tagged union discriminated on ``kind``. A template holds
at most one auto-number block and at most one suffix block; the literal
portion before the first of those is the tag *prefix* used for numbering.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .errors import TemplateStructureError


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BlockKind(str, Enum):
    """Enumeration of template block kinds."""

    LITERAL = "literal"
    SEPARATOR = "separator"
    DICTIONARY = "dictionary"
    GLOBAL_VAR = "global_var"
    AUTO_NUMBER = "auto_number"
    SUFFIX = "suffix"
    PARENT_REF = "parent_ref"
    LEGACY_PARENT_REF = "legacy_parent_ref"


class ParentSource(str, Enum):
    """Which value a parent-reference block copies from the parent tag."""

    NUMBER = "number"
    WBS = "wbs"
    FULL_TAG = "full_tag"


class TagStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    REVIEW = "review"
    APPROVED = "approved"
    ARCHIVED = "archived"
    RESERVED = "reserved"


class GenerationMode(str, Enum):
    """Batch generation modes."""

    SEQUENCE = "sequence"  # consecutive numbers
    PARALLEL = "parallel"  # one number, suffixes A, B, C...


# Block types


class LiteralBlock(BaseModel):
    kind: Literal["literal"] = "literal"
    id: str = Field(default_factory=_new_id)
    text: str = ""


class SeparatorBlock(BaseModel):
    kind: Literal["separator"] = "separator"
    id: str = Field(default_factory=_new_id)
    char: str = "-"


class DictionaryRefBlock(BaseModel):
    kind: Literal["dictionary"] = "dictionary"
    id: str = Field(default_factory=_new_id)
    category_id: str = Field(..., description="Dictionary category, e.g. 'Проект'.")
    sub_category_id: Optional[str] = None


class GlobalVarRefBlock(BaseModel):
    kind: Literal["global_var"] = "global_var"
    id: str = Field(default_factory=_new_id)
    key: str = Field(..., description="Global variable key, matched case-sensitively.")


class AutoNumberBlock(BaseModel):
    kind: Literal["auto_number"] = "auto_number"
    id: str = Field(default_factory=_new_id)
    padding: Optional[int] = Field(None, ge=1, le=10, description="Digits; unset uses the configured default.")

    def width(self, default_padding: int = 3) -> int:
        return self.padding if self.padding is not None else default_padding

    def format(self, number: int, default_padding: int = 3) -> str:
        return str(number).zfill(self.width(default_padding))


class SuffixBlock(BaseModel):
    kind: Literal["suffix"] = "suffix"
    id: str = Field(default_factory=_new_id)


class ParentRefBlock(BaseModel):
    kind: Literal["parent_ref"] = "parent_ref"
    id: str = Field(default_factory=_new_id)
    source: ParentSource = ParentSource.FULL_TAG


class LegacyParentRefBlock(BaseModel):
    kind: Literal["legacy_parent_ref"] = "legacy_parent_ref"
    id: str = Field(default_factory=_new_id)


TemplateBlock = Annotated[
    Union[
        LiteralBlock,
        SeparatorBlock,
        DictionaryRefBlock,
        GlobalVarRefBlock,
        AutoNumberBlock,
        SuffixBlock,
        ParentRefBlock,
        LegacyParentRefBlock,
    ],
    Field(discriminator="kind"),
]


class Template(BaseModel):
    """An ordered block sequence describing how a tag string is assembled."""

    id: str = Field(default_factory=_new_id)
    project_id: str = "default"
    name: str = ""
    description: str = ""
    blocks: List[TemplateBlock] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    def blocks_of(self, kind: BlockKind) -> List[TemplateBlock]:
        return [b for b in self.blocks if b.kind == kind]

    def validate_structure(self) -> None:
        """Raise TemplateStructureError for templates the engine cannot assemble."""
        problems = []
        if len(self.blocks_of(BlockKind.AUTO_NUMBER)) > 1:
            problems.append("more than one auto-number block")
        if len(self.blocks_of(BlockKind.SUFFIX)) > 1:
            problems.append("more than one suffix block")

        seen = set()
        for block in self.blocks:
            if block.id in seen:
                problems.append(f"duplicate block id '{block.id}'")
            seen.add(block.id)

        if problems:
            raise TemplateStructureError(
                f"Template '{self.name or self.id}' is malformed: {', '.join(problems)}"
            )

    @property
    def auto_number_block(self) -> Optional[AutoNumberBlock]:
        self.validate_structure()
        found = self.blocks_of(BlockKind.AUTO_NUMBER)
        return found[0] if found else None

    @property
    def suffix_block(self) -> Optional[SuffixBlock]:
        self.validate_structure()
        found = self.blocks_of(BlockKind.SUFFIX)
        return found[0] if found else None

    @property
    def requires_parent(self) -> bool:
        return any(b.kind == BlockKind.PARENT_REF for b in self.blocks)

    def prefix_blocks(self) -> List[TemplateBlock]:
        """Blocks strictly before the auto-number block, or the suffix block if there is none."""
        anchor = self.auto_number_block or self.suffix_block
        if anchor is None:
            return list(self.blocks)
        index = next(i for i, b in enumerate(self.blocks) if b.id == anchor.id)
        return list(self.blocks[:index])


# Reference data


class DictionaryItem(BaseModel):
    id: str = Field(default_factory=_new_id)
    project_id: str = "default"
    category: str
    sub_category: Optional[str] = None
    code: str
    value: str = ""
    description: Optional[str] = None


class GlobalVariable(BaseModel):
    id: str = Field(default_factory=_new_id)
    project_id: str = "default"
    key: str
    value: str = ""
    description: Optional[str] = None


class ReservedRange(BaseModel):
    id: str = Field(default_factory=_new_id)
    project_id: str = "default"
    scope: str = Field(..., description="Prefix string the range applies to.")
    start: int
    end: int
    reason: str = ""

    def covers(self, number: int) -> bool:
        return self.start <= number <= self.end


# Tags


class AuditLog(BaseModel):
    action: str
    timestamp: datetime = Field(default_factory=_utcnow)
    user: str
    details: Optional[str] = None


class Tag(BaseModel):
    id: str = Field(default_factory=_new_id)
    project_id: str = "default"
    full_tag: str
    parts: Dict[str, str] = Field(default_factory=dict)
    template_id: str
    status: TagStatus = TagStatus.DRAFT
    parent_id: Optional[str] = None
    notes: Optional[str] = None
    history: List[AuditLog] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


def assemble_full_tag(template: Template, parts: Dict[str, str]) -> str:
    """Concatenate block values in template order; literal blocks fall back to their text."""
    pieces = []
    for block in template.blocks:
        if block.id in parts:
            pieces.append(parts[block.id])
        elif block.kind == BlockKind.LITERAL:
            pieces.append(block.text)
        elif block.kind == BlockKind.SEPARATOR:
            pieces.append(block.char)
    return "".join(pieces)


# Global library


class LibraryTemplate(BaseModel):
    """A template published to the cross-project library."""

    id: str = Field(default_factory=_new_id)
    name: str
    description: str = ""
    category: str = ""
    blocks: List[TemplateBlock] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    created_by: str = ""


class AbstractComponent(BaseModel):
    """A role in a reusable equipment assembly (e.g. 'Supply Fan Motor', prefix 'M')."""

    id: str = Field(default_factory=_new_id)
    name: str
    default_prefix: str = ""
    description: Optional[str] = None
    children: List["AbstractComponent"] = Field(default_factory=list)


AbstractComponent.model_rebuild()


class AbstractAssembly(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    description: str = ""
    category: str = ""
    root_component: AbstractComponent


def describe_block(block: TemplateBlock) -> str:
    """Short human label for a block, used in audit details and messages."""
    if block.kind == BlockKind.DICTIONARY:
        return f"dictionary '{block.category_id}'"
    if block.kind == BlockKind.GLOBAL_VAR:
        return f"variable '{block.key}'"
    if block.kind == BlockKind.PARENT_REF:
        return f"parent {block.source.value}"
    if block.kind == BlockKind.LEGACY_PARENT_REF:
        return "manual parent value"
    if block.kind == BlockKind.AUTO_NUMBER:
        return "number"
    if block.kind == BlockKind.SUFFIX:
        return "suffix"
    if block.kind == BlockKind.SEPARATOR:
        return f"separator '{block.char}'"
    return f"literal '{block.text}'"
