"""Handler for dictionary-reference blocks."""

from typing import Any, Optional

from ..resolvers import find_dictionary_item
from .BlockValueHandler import BlockContext, BlockValueHandler


class DictionaryBlockHandler(BlockValueHandler):
    """
    Emits the code chosen for the block's category.

    The code only counts as resolved when the project dictionary holds an
    item for (category, code); unknown codes are reported and left open.
    """

    def resolve(self, block: Any, context: BlockContext) -> Optional[str]:
        code = context.values.get(block.id)
        if not code:
            return None
        code = str(code)

        item = find_dictionary_item(
            context.snapshot, context.project_id, block.category_id, code
        )
        if item is None:
            self.logger.verbose(
                "DEBUG",
                f"Code '{code}' not found in category '{block.category_id}' "
                f"for project {context.project_id}",
            )
            return None
        return item.code
