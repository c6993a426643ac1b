"""Handler for the suffix block."""

from typing import Any, Optional

from .BlockValueHandler import BlockContext, BlockValueHandler


class SuffixBlockHandler(BlockValueHandler):
    """
    Emits the batch suffix letter in parallel mode, otherwise the user's
    own suffix text. An absent suffix is an empty string, not a gap.
    """

    def resolve(self, block: Any, context: BlockContext) -> Optional[str]:
        if context.suffix is not None:
            return context.suffix
        value = context.values.get(block.id)
        return "" if value is None else str(value)
