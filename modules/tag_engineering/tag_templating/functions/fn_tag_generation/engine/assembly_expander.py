"""
Assembly pattern expansion.

Turns an abstract equipment hierarchy plus one concrete root tag into a flat
list of tags: the root keeps its tag, each descendant gets its default prefix
followed by the number and letter suffix found at the end of the root tag.

    AHU-101 / child prefix M  ->  M-101
    PU-2001B / child prefix V ->  V-2001B
"""

import logging
import re
import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from .template_model import AbstractAssembly, AbstractComponent, AuditLog, Tag, TagStatus

logger = logging.getLogger(__name__)

NUMBER_SUFFIX_PATTERN = re.compile(r"([0-9]+)([a-zA-Z]*)$")
ASSEMBLY_TEMPLATE_ID = "assembly_generated"


@dataclass
class AssemblyEntry:
    """One tag produced by expanding an assembly."""

    full_tag: str
    parent_temp_id: Optional[str]
    description: Optional[str]
    temp_id: str
    component_id: Optional[str] = None


def extract_number_pattern(root_tag: str) -> Tuple[str, str]:
    """
    Trailing digit run and letter suffix of a tag.

    Examples:
        >>> extract_number_pattern("AHU-101")
        ('101', '')
        >>> extract_number_pattern("PU-2001B")
        ('2001', 'B')
        >>> extract_number_pattern("SKID")
        ('', '')
    """
    match = NUMBER_SUFFIX_PATTERN.search(root_tag)
    if not match:
        return "", ""
    return match.group(1), match.group(2)


def expand_assembly(
    tree: Union[AbstractAssembly, AbstractComponent], root_tag: str
) -> List[AssemblyEntry]:
    """
    Flatten an assembly tree depth-first into tag entries.

    Args:
        tree: Assembly (or its root component)
        root_tag: Concrete tag for the root component, kept verbatim

    Returns:
        Entries in pre-order; each child points at its parent's temp id
    """
    root = tree.root_component if isinstance(tree, AbstractAssembly) else tree
    number, suffix = extract_number_pattern(root_tag)
    if not number:
        logger.warning(f"No trailing number in root tag '{root_tag}', child tags get no number")

    entries: List[AssemblyEntry] = []

    def walk(node: AbstractComponent, parent_temp_id: Optional[str], is_root: bool) -> None:
        temp_id = str(uuid.uuid4())
        full_tag = root_tag if is_root else f"{node.default_prefix}-{number}{suffix}"
        entries.append(
            AssemblyEntry(
                full_tag=full_tag,
                parent_temp_id=parent_temp_id,
                description=node.name,
                temp_id=temp_id,
                component_id=node.id,
            )
        )
        for child in node.children:
            walk(child, temp_id, False)

    walk(root, None, True)
    return entries


def assembly_to_tags(
    entries: List[AssemblyEntry],
    project_id: str,
    actor: str,
    action: str = "Imported from Assembly",
) -> List[Tag]:
    """Draft tags for expanded entries; temp ids become tag ids so parent links hold."""
    return [
        Tag(
            id=entry.temp_id,
            project_id=project_id,
            full_tag=entry.full_tag,
            parts={},
            template_id=ASSEMBLY_TEMPLATE_ID,
            status=TagStatus.DRAFT,
            parent_id=entry.parent_temp_id,
            notes=entry.description,
            history=[AuditLog(action=action, user=actor)],
        )
        for entry in entries
    ]
