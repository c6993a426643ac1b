from __future__ import annotations

from typing import Any, Dict, Literal, Optional

import yaml
from cognite.client import CogniteClient
from cognite.client.exceptions import CogniteAPIError
from pydantic import BaseModel, Field

from .engine.settings import (
    GenerationSettings,
    HistorySettings,
    InheritanceSettings,
    PreviewSettings,
    TagEngineConfig,
)

__all__ = [
    "GenerationSettings",
    "HistorySettings",
    "InheritanceSettings",
    "PreviewSettings",
    "TagEngineConfig",
    "Parameters",
    "HandlerRequest",
    "load_config_parameters",
]


# Function input
class Parameters(BaseModel):
    debug: bool = Field(False, description="Log at DEBUG level")
    verbose: bool = Field(False, description="Enable verbose log output")
    dry_run: bool = Field(False, description="Generate without writing through the sink")
    raw_db: Optional[str] = Field(None, description="RAW database holding the dataset")
    raw_table_tags: str = Field("tags", description="RAW table for tags")
    raw_table_templates: str = Field("templates", description="RAW table for templates")
    raw_table_dictionaries: str = Field("dictionaries", description="RAW table for dictionary items")
    raw_table_global_variables: str = Field("global_variables", description="RAW table for global variables")
    raw_table_reserved_ranges: str = Field("reserved_ranges", description="RAW table for reserved ranges")

    @property
    def raw_tables(self) -> Dict[str, str]:
        return {
            "tags": self.raw_table_tags,
            "templates": self.raw_table_templates,
            "dictionaries": self.raw_table_dictionaries,
            "global_variables": self.raw_table_global_variables,
            "reserved_ranges": self.raw_table_reserved_ranges,
        }


class HandlerRequest(BaseModel):
    """Payload accepted by the function handler."""

    operation: Literal["generate", "preview", "expand_assembly"] = "generate"
    template_id: Optional[str] = Field(None, alias="templateId")
    values: Dict[str, Any] = Field(default_factory=dict)
    quantity: int = 1
    mode: Literal["sequence", "parallel"] = "sequence"
    parent_tag_id: Optional[str] = Field(None, alias="parentTagId")
    hierarchy_parent_id: Optional[str] = Field(None, alias="hierarchyParentId")
    actor: Optional[str] = None
    project_id: Optional[str] = Field(None, alias="projectId")
    root_tag: Optional[str] = Field(None, alias="rootTag")
    assembly: Optional[Dict[str, Any]] = None
    snapshot: Optional[Dict[str, Any]] = None
    snapshot_path: Optional[str] = Field(None, alias="snapshotPath")
    settings: Dict[str, Any] = Field(default_factory=dict)
    config_path: Optional[str] = Field(None, alias="configPath")
    parameters: Parameters = Field(default_factory=Parameters)

    model_config = {"populate_by_name": True}


def load_config_parameters(
    client: CogniteClient, function_data: dict[str, Any]
) -> TagEngineConfig:
    """Retrieves engine settings from the extraction pipeline config referenced in the function data."""
    if "ExtractionPipelineExtId" not in function_data:
        raise ValueError(
            "Missing key 'ExtractionPipelineExtId' in input data to the function"
        )

    pipeline_ext_id = function_data["ExtractionPipelineExtId"]
    try:
        raw_config = client.extraction_pipelines.config.retrieve(pipeline_ext_id)
        if raw_config.config is None:
            raise ValueError(
                f"No config found for extraction pipeline: {pipeline_ext_id!r}"
            )
    except CogniteAPIError as e:
        raise RuntimeError(
            f"Not able to retrieve pipeline config for extraction pipeline: {pipeline_ext_id!r} Due to: {e}"
        )

    config_dict = yaml.safe_load(raw_config.config) or {}
    return TagEngineConfig.from_dict(config_dict)
