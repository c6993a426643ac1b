"""
CDF Pipeline for Tag Generation

This module provides the main pipeline function that runs one tag generation
request (generate, preview or assembly expansion) against the
TagGenerationEngine and stores the outcome in the function data.
"""

from typing import Any, Dict, Optional

from cognite.client import CogniteClient

from .config import HandlerRequest
from .engine.tag_generation_engine import TagGenerationEngine
from .engine.template_model import AbstractAssembly, AbstractComponent, Template


def _template_for(engine: TagGenerationEngine, request: HandlerRequest) -> Template:
    if not request.template_id:
        raise ValueError("Missing 'templateId' in input data")
    template = engine.snapshot.template_by_id(request.template_id)
    if template is None:
        raise ValueError(f"Template '{request.template_id}' not found in snapshot")
    return template


def _assembly_tree(payload: Optional[Dict[str, Any]]):
    if not payload:
        raise ValueError("Missing 'assembly' in input data")
    if "root_component" in payload:
        return AbstractAssembly.model_validate(payload)
    if "rootComponent" in payload:
        payload = {**payload, "root_component": payload["rootComponent"]}
        return AbstractAssembly.model_validate(payload)
    return AbstractComponent.model_validate(payload)


def tag_generation(
    client: Optional[CogniteClient],
    logger: Any,
    data: Dict[str, Any],
    engine: TagGenerationEngine,
) -> None:
    """
    Main pipeline function for tag generation in CDF format.

    Args:
        client: CogniteClient instance (optional)
        logger: TagEngineLogger instance
        data: Function input; results are written back into it
        engine: Initialized TagGenerationEngine instance
    """
    request = data.get("_request") or HandlerRequest.model_validate(data)
    dry_run = request.parameters.dry_run
    logger.info(f"Starting Tag Generation Pipeline: operation={request.operation}, dry_run={dry_run}")

    try:
        if request.operation == "preview":
            template = _template_for(engine, request)
            preview = engine.compute_preview(
                template, request.values, parent=request.parent_tag_id
            )
            data["preview"] = preview
            logger.info(f"Preview for template '{template.name}': {preview}")

        elif request.operation == "expand_assembly":
            if not request.root_tag:
                raise ValueError("Missing 'rootTag' in input data")
            tags = engine.import_assembly(
                _assembly_tree(request.assembly),
                request.root_tag,
                request.project_id or "default",
                actor=request.actor,
                dry_run=dry_run,
            )
            data["assembly_tags"] = [t.model_dump(mode="json") for t in tags]

        else:
            template = _template_for(engine, request)
            result = engine.generate(
                template,
                request.values,
                quantity=request.quantity,
                mode=request.mode,
                parent=request.parent_tag_id,
                hierarchy_parent_id=request.hierarchy_parent_id,
                actor=request.actor,
                dry_run=dry_run,
            )
            data["generation_result"] = result.to_dict()
            if result.stopped_on_collision:
                logger.warning(
                    f"Generation stopped on collision with '{result.collided_tag}': "
                    f"{len(result.created)} of {result.requested} tag(s) created"
                )

        logger.info("Tag Generation Pipeline completed")

    except Exception as e:
        logger.error(f"Tag generation failed: {e}")
        raise
