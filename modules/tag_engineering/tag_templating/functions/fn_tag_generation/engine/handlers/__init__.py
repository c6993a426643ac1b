"""Block value handlers module."""

from .AutoNumberBlockHandler import AutoNumberBlockHandler
from .BlockValueHandler import BlockContext, BlockValueHandler
from .DictionaryBlockHandler import DictionaryBlockHandler
from .GlobalVariableBlockHandler import GlobalVariableBlockHandler
from .LiteralBlockHandler import LiteralBlockHandler
from .ManualValueBlockHandler import ManualValueBlockHandler
from .ParentReferenceBlockHandler import ParentReferenceBlockHandler
from .SuffixBlockHandler import SuffixBlockHandler

__all__ = [
    "BlockContext",
    "BlockValueHandler",
    "LiteralBlockHandler",
    "DictionaryBlockHandler",
    "GlobalVariableBlockHandler",
    "ParentReferenceBlockHandler",
    "ManualValueBlockHandler",
    "AutoNumberBlockHandler",
    "SuffixBlockHandler",
]
