"""
CDF Handler for Tag Generation

This module provides a CDF-compatible handler function that can be used in
CDF Functions or called directly. It builds the dataset snapshot (inline,
from a snapshot file, or from RAW), picks the tag sink and runs the pipeline.
"""

from typing import Any, Dict, Optional

from cognite.client import CogniteClient

from .cdf_adapter import RawTagSink, load_snapshot_from_raw
from .common.config_utils import load_config_from_yaml
from .config import HandlerRequest, TagEngineConfig, load_config_parameters
from .dependencies import create_client, create_logger_service, get_env_variables
from .engine.dataset import DatasetSnapshot, SnapshotTagSink, load_snapshot, save_snapshot
from .engine.tag_generation_engine import TagGenerationEngine
from .pipeline import tag_generation


def _build_snapshot(
    request: HandlerRequest, client: Optional[CogniteClient], logger
) -> DatasetSnapshot:
    if request.snapshot is not None:
        logger.info("Using snapshot provided in input data")
        return DatasetSnapshot.from_dict(request.snapshot)
    if request.snapshot_path:
        logger.info(f"Loading snapshot from {request.snapshot_path}")
        return load_snapshot(request.snapshot_path)
    if client is not None and request.parameters.raw_db:
        logger.info(f"Loading snapshot from RAW database {request.parameters.raw_db}")
        return load_snapshot_from_raw(
            client, request.parameters.raw_db, request.parameters.raw_tables
        )
    raise ValueError(
        "No dataset available: provide 'snapshot', 'snapshotPath' or a client with parameters.raw_db"
    )


def handle(data: Dict[str, Any], client: CogniteClient = None) -> Dict[str, Any]:
    """
    CDF-compatible handler function for tag generation.

    Args:
        data: Dictionary containing:
            - operation: "generate" (default), "preview" or "expand_assembly"
            - snapshot / snapshotPath: dataset to work on (or parameters.raw_db with a client)
              (a snapshotPath file is saved back after generate or expand_assembly)
            - templateId, values, quantity, mode, parentTagId, hierarchyParentId, actor
            - rootTag, assembly, projectId for assembly expansion
            - ExtractionPipelineExtId: Optional extraction pipeline holding engine settings
            - configPath: Optional YAML file with engine settings (else "settings" inline)
            - logLevel: Optional log level (DEBUG, INFO, WARNING, ERROR)
        client: CogniteClient instance (required for RAW or extraction pipeline config)

    Returns:
        {"status": "succeeded", "data": data} or {"status": "failure", "message": ...}
    """
    logger = None

    try:
        parameters = data.get("parameters") or {}
        loglevel = "DEBUG" if parameters.get("debug") else data.get("logLevel", "INFO")
        verbose = bool(data.get("verbose", False) or parameters.get("verbose"))
        logger = create_logger_service(loglevel, verbose)
        logger.info(f"Starting tag generation with loglevel = {loglevel} with verbose set to {verbose}")

        request = HandlerRequest.model_validate(data)
        data["_request"] = request

        if client and "ExtractionPipelineExtId" in data:
            logger.info(f"Loading config from extraction pipeline: {data['ExtractionPipelineExtId']}")
            config = load_config_parameters(client, data)
        elif request.config_path:
            logger.info(f"Loading config from {request.config_path}")
            config = TagEngineConfig.from_dict(load_config_from_yaml(request.config_path, logger))
        else:
            config = TagEngineConfig.from_dict(request.settings)

        snapshot = _build_snapshot(request, client, logger)
        if client is not None and request.parameters.raw_db:
            sink = RawTagSink(
                client, request.parameters.raw_db, request.parameters.raw_table_tags, logger
            )
        else:
            sink = SnapshotTagSink(snapshot)

        engine = TagGenerationEngine(snapshot, sink=sink, config=config, logger=logger)
        tag_generation(client=client, logger=logger, data=data, engine=engine)

        if (
            request.snapshot is None
            and request.snapshot_path
            and isinstance(sink, SnapshotTagSink)
            and request.operation != "preview"
            and not request.parameters.dry_run
        ):
            save_snapshot(snapshot, request.snapshot_path)
            logger.info(f"Snapshot updated: {request.snapshot_path}")

        data.pop("_request", None)
        return {"status": "succeeded", "data": data}

    except Exception as e:
        message = f"Tag generation pipeline failed: {e!s}"

        if logger:
            logger.error(message)
        else:
            print(f"[ERROR] {message}")

        data.pop("_request", None)
        return {"status": "failure", "message": message}


def run_locally():
    """Run handler locally against RAW (requires .env file)."""
    env_config = get_env_variables()
    client = create_client(env_config, debug=False)

    data = {
        "logLevel": "DEBUG",
        "verbose": True,
        "operation": "preview",
        "templateId": "tpl-pump",
        "values": {},
        "parameters": {"raw_db": "db_tag_engineering", "dry_run": True},
    }

    print("Starting tag generation pipeline...")
    result = handle(data, client)

    if result["status"] == "succeeded":
        print("Pipeline completed successfully!")
    else:
        print(f"Pipeline failed: {result.get('message', 'Unknown error')}")

    return result


if __name__ == "__main__":
    result = run_locally()
    print(f"Final result: {result}")
