"""
Dictionary and global variable resolution.

Lookups are pure and never raise for missing data; callers decide whether a
gap becomes an empty string (assembly) or a placeholder (preview).
"""

from typing import List, Optional, Tuple

from .dataset import DatasetSnapshot
from .errors import TagValidationError
from .template_model import DictionaryItem


def find_dictionary_item(
    snapshot: DatasetSnapshot, project_id: str, category_id: str, code: str
) -> Optional[DictionaryItem]:
    """First dictionary item in the project matching (category, code)."""
    if not code:
        return None
    for item in snapshot.dictionaries:
        if (
            item.project_id == project_id
            and item.category == category_id
            and item.code == code
        ):
            return item
    return None


def resolve_dictionary(
    snapshot: DatasetSnapshot, project_id: str, category_id: str, code: str
) -> Optional[str]:
    """
    Resolve a dictionary code to its value.

    Returns:
        The value of the first matching item, or None when the code is unknown
    """
    item = find_dictionary_item(snapshot, project_id, category_id, code)
    return item.value if item else None


def resolve_global_var(
    snapshot: DatasetSnapshot, project_id: str, key: str
) -> Optional[str]:
    """Value of the first project global variable whose key matches exactly."""
    for variable in snapshot.global_variables:
        if variable.project_id == project_id and variable.key == key:
            return variable.value
    return None


class DictionaryRegistry:
    """Write-side helper that keeps codes unique within a project category."""

    def __init__(self, snapshot: DatasetSnapshot):
        self.snapshot = snapshot

    def add_item(self, item: DictionaryItem) -> DictionaryItem:
        existing = find_dictionary_item(
            self.snapshot, item.project_id, item.category, item.code
        )
        if existing is not None:
            raise TagValidationError(
                [
                    f"Code '{item.code}' already exists in category '{item.category}' "
                    f"(item {existing.id})"
                ]
            )
        self.snapshot.dictionaries.append(item)
        return item

    def remove_item(self, item_id: str) -> bool:
        before = len(self.snapshot.dictionaries)
        self.snapshot.dictionaries = [
            d for d in self.snapshot.dictionaries if d.id != item_id
        ]
        return len(self.snapshot.dictionaries) < before

    def categories(self, project_id: str) -> List[str]:
        """Distinct categories in first-seen order."""
        seen = []
        for item in self.snapshot.dictionaries_for(project_id):
            if item.category not in seen:
                seen.append(item.category)
        return seen

    def options(self, project_id: str, category: str) -> List[Tuple[str, str]]:
        """(code, label) pairs for a category, as offered in generation forms."""
        return [
            (item.code, f"{item.code} - {item.value}")
            for item in self.snapshot.dictionaries_for(project_id)
            if item.category == category
        ]
