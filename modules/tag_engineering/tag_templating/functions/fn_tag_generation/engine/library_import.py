"""
Global library helpers.

Copying library templates into a project (re-pointing abstract dictionary
categories onto the project's own) and rendering the structural preview shown
while a template is being built.
"""

from typing import Dict, List, Optional

from .errors import TagValidationError
from .template_model import BlockKind, LibraryTemplate, Template, TemplateBlock, _new_id


def required_category_mappings(template: LibraryTemplate) -> List[str]:
    """Abstract dictionary categories the template uses, in block order."""
    categories = []
    for block in template.blocks:
        if block.kind == BlockKind.DICTIONARY and block.category_id not in categories:
            categories.append(block.category_id)
    return categories


def import_library_template(
    library_template: LibraryTemplate,
    project_id: str,
    category_mappings: Dict[str, str],
    name: Optional[str] = None,
) -> Template:
    """
    Copy a library template into a project.

    Args:
        library_template: Template from the global library
        project_id: Target project
        category_mappings: Abstract category -> project category
        name: Name for the project template (defaults to the library name)

    Returns:
        A new project template with fresh block ids

    Raises:
        TagValidationError: If an abstract category has no mapping
    """
    missing = [
        category
        for category in required_category_mappings(library_template)
        if not category_mappings.get(category)
    ]
    if missing:
        raise TagValidationError(
            [f"No project category mapped for '{category}'" for category in missing]
        )

    blocks = []
    for block in library_template.blocks:
        update = {"id": _new_id()}
        if block.kind == BlockKind.DICTIONARY:
            update["category_id"] = category_mappings[block.category_id]
        blocks.append(block.model_copy(update=update))

    return Template(
        project_id=project_id,
        name=name or library_template.name,
        description=library_template.description,
        blocks=blocks,
    )


def _describe(block: TemplateBlock) -> str:
    if block.kind == BlockKind.LITERAL:
        return block.text
    if block.kind == BlockKind.SEPARATOR:
        return block.char
    if block.kind == BlockKind.DICTIONARY:
        return f"[{block.category_id}]"
    if block.kind == BlockKind.GLOBAL_VAR:
        return "{" + block.key + "}"
    if block.kind == BlockKind.AUTO_NUMBER:
        return "0" * block.width()
    if block.kind == BlockKind.SUFFIX:
        return "[A]"
    if block.kind == BlockKind.PARENT_REF:
        return f"[PARENT:{block.source.value.upper()}]"
    return "[PARENT]"


def describe_template(template: Template) -> str:
    """
    Structural preview of a template.

    Examples:
        [Тип Оборудования]-[Проект]00
        {PLANT}-[PARENT:NUMBER]-000[A]
    """
    return "".join(_describe(block) for block in template.blocks)
