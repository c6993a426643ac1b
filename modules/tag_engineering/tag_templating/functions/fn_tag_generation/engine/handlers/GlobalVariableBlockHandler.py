"""Handler for global-variable reference blocks."""

from typing import Any, Optional

from ..resolvers import resolve_global_var
from .BlockValueHandler import BlockContext, BlockValueHandler


class GlobalVariableBlockHandler(BlockValueHandler):
    """Emits the project-wide value stored under the block's key."""

    def resolve(self, block: Any, context: BlockContext) -> Optional[str]:
        value = resolve_global_var(context.snapshot, context.project_id, block.key)
        if value is None:
            self.logger.verbose(
                "DEBUG",
                f"Global variable '{block.key}' is not defined for project {context.project_id}",
            )
        return value

    def placeholder(self, block: Any, context: BlockContext) -> str:
        return "{" + block.key + "}"
