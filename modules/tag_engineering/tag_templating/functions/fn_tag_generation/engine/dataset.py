"""
Dataset snapshot and tag sinks.

The engine reads a project-scoped view of tags, templates, dictionaries,
global variables and reserved ranges, and appends newly created tags through
a sink. The in-memory snapshot is the single owner of that data within one
process.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import yaml
from pydantic import BaseModel, Field

from .template_model import (
    DictionaryItem,
    GlobalVariable,
    ReservedRange,
    Tag,
    Template,
)

logger = logging.getLogger(__name__)


class DatasetSnapshot(BaseModel):
    """In-memory dataset the engine resolves against."""

    tags: List[Tag] = Field(default_factory=list)
    templates: List[Template] = Field(default_factory=list)
    dictionaries: List[DictionaryItem] = Field(default_factory=list)
    global_variables: List[GlobalVariable] = Field(default_factory=list)
    reserved_ranges: List[ReservedRange] = Field(default_factory=list)

    def tags_for(self, project_id: str) -> List[Tag]:
        return [t for t in self.tags if t.project_id == project_id]

    def dictionaries_for(self, project_id: str) -> List[DictionaryItem]:
        return [d for d in self.dictionaries if d.project_id == project_id]

    def global_variables_for(self, project_id: str) -> List[GlobalVariable]:
        return [v for v in self.global_variables if v.project_id == project_id]

    def reserved_ranges_for(self, project_id: str, scope: str) -> List[ReservedRange]:
        return [
            r
            for r in self.reserved_ranges
            if r.project_id == project_id and r.scope == scope
        ]

    def template_by_id(self, template_id: str) -> Optional[Template]:
        return next((t for t in self.templates if t.id == template_id), None)

    def tag_by_id(self, tag_id: str) -> Optional[Tag]:
        return next((t for t in self.tags if t.id == tag_id), None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatasetSnapshot":
        """Build a snapshot from the persisted JSON/YAML layout (camelCase keys accepted)."""
        return cls(
            tags=data.get("tags", []),
            templates=data.get("templates", []),
            dictionaries=data.get("dictionaries", []),
            global_variables=data.get("global_variables", data.get("globalVariables", [])),
            reserved_ranges=data.get("reserved_ranges", data.get("reservedRanges", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def load_snapshot(file_path: Union[str, Path]) -> DatasetSnapshot:
    """
    Load a dataset snapshot from a JSON or YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        if file_path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f) or {}

    snapshot = DatasetSnapshot.from_dict(data)
    logger.info(
        f"Loaded snapshot {file_path.name}: {len(snapshot.tags)} tags, "
        f"{len(snapshot.templates)} templates, {len(snapshot.dictionaries)} dictionary items"
    )
    return snapshot


def save_snapshot(snapshot: DatasetSnapshot, file_path: Union[str, Path]) -> str:
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        if file_path.suffix.lower() == ".json":
            json.dump(snapshot.to_dict(), f, indent=2, ensure_ascii=False)
        else:
            yaml.safe_dump(snapshot.to_dict(), f, allow_unicode=True, sort_keys=False)
    return str(file_path)


class TagSink(Protocol):
    """Write side for created and edited tags; a tag id already written is replaced."""

    def write(self, tags: List[Tag]) -> None: ...


class SnapshotTagSink:
    """Writes tags into the in-memory snapshot they were generated from.

    A tag whose id is already present replaces that entry, others are appended.
    """

    def __init__(self, snapshot: DatasetSnapshot):
        self.snapshot = snapshot

    def write(self, tags: List[Tag]) -> None:
        positions = {t.id: i for i, t in enumerate(self.snapshot.tags)}
        for tag in tags:
            if tag.id in positions:
                self.snapshot.tags[positions[tag.id]] = tag
            else:
                positions[tag.id] = len(self.snapshot.tags)
                self.snapshot.tags.append(tag)
