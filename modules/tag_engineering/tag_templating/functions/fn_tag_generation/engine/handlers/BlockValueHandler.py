"""Base handler class for template block values."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...common.logger import TagEngineLogger
from ..dataset import DatasetSnapshot
from ..template_model import Tag, Template


@dataclass
class BlockContext:
    """Everything a handler may read while resolving one block."""

    snapshot: DatasetSnapshot
    project_id: str
    values: Dict[str, Any] = field(default_factory=dict)
    parent: Optional[Tag] = None
    parent_template: Optional[Template] = None
    wbs_categories: List[str] = field(default_factory=list)
    number: Optional[int] = None
    suffix: Optional[str] = None
    placeholder: str = "?"
    number_placeholder: str = "#"
    default_padding: int = 3


class BlockValueHandler(ABC):
    """Abstract base class for block value handlers."""

    def __init__(self, logger: Optional[TagEngineLogger] = None):
        self.logger = logger or TagEngineLogger("INFO", False)

    @abstractmethod
    def resolve(self, block: Any, context: BlockContext) -> Optional[str]:
        """Resolved value for the block, or None when it cannot be resolved."""
        pass

    def placeholder(self, block: Any, context: BlockContext) -> str:
        """Text shown in previews while the block is unresolved."""
        return context.placeholder
