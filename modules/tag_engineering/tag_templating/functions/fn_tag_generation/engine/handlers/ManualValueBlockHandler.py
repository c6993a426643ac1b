"""Handler for legacy parent-reference blocks, filled in by hand."""

from typing import Any, Optional

from .BlockValueHandler import BlockContext, BlockValueHandler


class ManualValueBlockHandler(BlockValueHandler):
    """Emits whatever text the user typed for the block."""

    def resolve(self, block: Any, context: BlockContext) -> Optional[str]:
        value = context.values.get(block.id)
        if value is None or value == "":
            return None
        return str(value)
