"""Handler for fixed text: literal and separator blocks."""

from typing import Any, Optional

from ..template_model import BlockKind
from .BlockValueHandler import BlockContext, BlockValueHandler


class LiteralBlockHandler(BlockValueHandler):
    """Emits the block's own text verbatim."""

    def resolve(self, block: Any, context: BlockContext) -> Optional[str]:
        if block.kind == BlockKind.SEPARATOR:
            return block.char
        return block.text
