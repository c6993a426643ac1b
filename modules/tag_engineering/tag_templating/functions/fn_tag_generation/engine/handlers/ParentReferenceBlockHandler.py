"""Handler for blocks that inherit a value from the selected parent tag."""

from typing import Any, Optional

from ..parent_inheritance import resolve_parent_ref
from .BlockValueHandler import BlockContext, BlockValueHandler


class ParentReferenceBlockHandler(BlockValueHandler):
    def resolve(self, block: Any, context: BlockContext) -> Optional[str]:
        return resolve_parent_ref(
            block, context.parent, context.parent_template, context.wbs_categories
        )
