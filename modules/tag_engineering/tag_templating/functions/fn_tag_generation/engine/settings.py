"""Runtime settings for the tag generation engine."""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from .parent_inheritance import DEFAULT_WBS_CATEGORIES


@dataclass
class GenerationSettings:
    max_batch_size: int = 50
    default_padding: int = 3
    require_complete_values: bool = False
    default_actor: str = "system"


@dataclass
class PreviewSettings:
    placeholder: str = "?"
    number_placeholder: str = "#"


@dataclass
class InheritanceSettings:
    wbs_categories: List[str] = field(
        default_factory=lambda: list(DEFAULT_WBS_CATEGORIES)
    )


@dataclass
class HistorySettings:
    created_action: str = "Created"
    edited_action: str = "Edited"
    assembly_action: str = "Imported from Assembly"


def _section(cls, data: Optional[Dict[str, Any]]):
    """Build a settings dataclass from a dict, ignoring unknown keys."""
    data = data or {}
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class TagEngineConfig:
    generation: GenerationSettings = field(default_factory=GenerationSettings)
    preview: PreviewSettings = field(default_factory=PreviewSettings)
    inheritance: InheritanceSettings = field(default_factory=InheritanceSettings)
    history: HistorySettings = field(default_factory=HistorySettings)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TagEngineConfig":
        data = data or {}
        return cls(
            generation=_section(GenerationSettings, data.get("generation")),
            preview=_section(PreviewSettings, data.get("preview")),
            inheritance=_section(InheritanceSettings, data.get("inheritance")),
            history=_section(HistorySettings, data.get("history")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
