"""Handler for the auto-number block."""

from typing import Any, Optional

from .BlockValueHandler import BlockContext, BlockValueHandler


class AutoNumberBlockHandler(BlockValueHandler):
    """Formats the issued number, zero-padded to the block's width."""

    def resolve(self, block: Any, context: BlockContext) -> Optional[str]:
        if context.number is None:
            return None
        return block.format(context.number, context.default_padding)

    def placeholder(self, block: Any, context: BlockContext) -> str:
        return context.number_placeholder * block.width(context.default_padding)
