"""
Parent inheritance resolution.

Copies values from an existing tag into parent-reference blocks of a new tag:
the parent's full tag, its auto-number value, or the code of its
project/system dictionary block.
"""

from typing import Iterable, List, Optional

from .template_model import BlockKind, ParentRefBlock, ParentSource, Tag, Template

DEFAULT_WBS_CATEGORIES = ["Проект", "Система", "Project", "System", "WBS"]


def resolve_parent_ref(
    block: ParentRefBlock,
    parent: Optional[Tag],
    parent_template: Optional[Template],
    wbs_categories: Iterable[str] = DEFAULT_WBS_CATEGORIES,
) -> Optional[str]:
    """
    Resolve one parent-reference block against the selected parent tag.

    Args:
        block: The parent-reference block
        parent: Selected parent tag, or None if nothing was chosen yet
        parent_template: Template the parent was generated from
        wbs_categories: Dictionary category names treated as project/system codes

    Returns:
        Inherited value, or None when it is not available
    """
    if parent is None:
        return None

    if block.source == ParentSource.FULL_TAG:
        return parent.full_tag or None

    if parent_template is None:
        return None

    if block.source == ParentSource.NUMBER:
        number_block = parent_template.auto_number_block
        if number_block is None:
            return None
        return parent.parts.get(number_block.id) or None

    categories = set(wbs_categories)
    for candidate in parent_template.blocks:
        if candidate.kind == BlockKind.DICTIONARY and candidate.category_id in categories:
            return parent.parts.get(candidate.id) or None
    return None


def parent_ref_errors(
    template: Template,
    parent: Optional[Tag],
    parent_template: Optional[Template],
    wbs_categories: Iterable[str] = DEFAULT_WBS_CATEGORIES,
) -> List[str]:
    """Validation messages for a template that inherits from a parent tag."""
    if not template.requires_parent:
        return []
    if parent is None:
        return [f"Template '{template.name or template.id}' requires a parent tag selection"]

    errors = []
    wbs_categories = list(wbs_categories)
    for block in template.blocks_of(BlockKind.PARENT_REF):
        if not resolve_parent_ref(block, parent, parent_template, wbs_categories):
            errors.append(
                f"Parent tag '{parent.full_tag}' has no value for source "
                f"'{block.source.value}' (block {block.id})"
            )
    if parent.project_id != template.project_id:
        errors.append(
            f"Parent tag '{parent.full_tag}' belongs to project '{parent.project_id}', "
            f"not '{template.project_id}'"
        )
    return errors
