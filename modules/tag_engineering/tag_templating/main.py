"""
Main Entry Point - Generate tags, preview templates and expand assemblies
against a snapshot file.

Reads a dataset snapshot (JSON or YAML), runs the tag generation engine with
settings from config/default.yaml (plus optional environment overrides, or
TAG_ENGINE_* variables with --env-config) and writes created tags back into
the snapshot unless --dry-run is given.
Results are printed, or written as JSON with --output.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

import yaml

SCRIPT_DIR = Path(__file__).resolve().parent
REPO_ROOT = SCRIPT_DIR.parent.parent.parent
sys.path.insert(0, str(REPO_ROOT))

from modules.tag_engineering.tag_templating.config.configuration_manager import (  # noqa: E402
    ConfigurationManager,
    load_config_from_env,
)
from modules.tag_engineering.tag_templating.functions.fn_tag_generation.common.logger import (  # noqa: E402
    TagEngineLogger,
)
from modules.tag_engineering.tag_templating.functions.fn_tag_generation.engine import (  # noqa: E402
    AbstractAssembly,
    AbstractComponent,
    TagEngineError,
    TagGenerationEngine,
    load_snapshot,
    save_snapshot,
)

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _load_env() -> None:
    """Load environment variables from .env if present. Prefer repo root .env."""
    from dotenv import load_dotenv

    env_path = REPO_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()


def _parse_values(pairs: List[str]) -> Dict[str, str]:
    """Parse repeated BLOCK_ID=VALUE arguments."""
    values = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Expected BLOCK_ID=VALUE, got {pair!r}")
        block_id, value = pair.split("=", 1)
        values[block_id.strip()] = value
    return values


def _load_assembly(file_path: str):
    path = Path(file_path)
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f) if path.suffix.lower() == ".json" else yaml.safe_load(f)
    if "root_component" in payload:
        return AbstractAssembly.model_validate(payload)
    return AbstractComponent.model_validate(payload)


def _write_output(result: Dict[str, Any], output: str = None) -> None:
    text = json.dumps(result, indent=2, ensure_ascii=False, default=str)
    if output:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        Path(output).write_text(text, encoding="utf-8")
        logger.info(f"Results written to {output}")
    else:
        print(text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate structured equipment tags from templates"
    )
    parser.add_argument("--snapshot", required=True, help="Dataset snapshot (JSON or YAML)")
    parser.add_argument("--config-dir", default=str(SCRIPT_DIR / "config"), help="Directory holding <config>.yaml")
    parser.add_argument("--config", default="default", help="Configuration name. Default 'default'.")
    parser.add_argument("--environment", default=None, help="Environment override, e.g. 'dev'")
    parser.add_argument(
        "--env-config",
        action="store_true",
        help="Read settings from TAG_ENGINE_* environment variables (.env supported) instead of YAML",
    )
    parser.add_argument("--output", default=None, help="Write results as JSON to this file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run without writing created tags back to the snapshot",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("generate", "Generate a batch of tags from a template"),
        ("preview", "Show the tag a template would produce"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--template-id", required=True)
        sub.add_argument("--value", action="append", default=[], metavar="BLOCK_ID=VALUE")
        sub.add_argument("--parent", default=None, help="Id of the inheritance-source tag")
        if name == "generate":
            sub.add_argument("--quantity", type=int, default=1)
            sub.add_argument("--mode", choices=["sequence", "parallel"], default="sequence")
            sub.add_argument("--hierarchy-parent", default=None, help="Tag id to place new tags under")
            sub.add_argument("--actor", default=None)

    expand = subparsers.add_parser("expand", help="Expand an assembly pattern under a root tag")
    expand.add_argument("--assembly", required=True, help="Assembly definition (JSON or YAML)")
    expand.add_argument("--root-tag", required=True)
    expand.add_argument("--project", default="default")
    expand.add_argument("--actor", default=None)

    return parser


def main():
    """Run one engine command against a snapshot file."""
    args = build_parser().parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    _load_env()

    if args.env_config:
        config = load_config_from_env()
    else:
        config = ConfigurationManager(args.config_dir).load_config(args.config, args.environment)
    snapshot = load_snapshot(args.snapshot)
    engine_logger = TagEngineLogger("DEBUG" if args.verbose else "INFO", args.verbose)
    engine = TagGenerationEngine(snapshot, config=config, logger=engine_logger)

    try:
        if args.command == "expand":
            tags = engine.import_assembly(
                _load_assembly(args.assembly),
                args.root_tag,
                args.project,
                actor=args.actor,
                dry_run=args.dry_run,
            )
            result = {"assembly_tags": [t.model_dump(mode="json") for t in tags]}
        else:
            template = snapshot.template_by_id(args.template_id)
            if template is None:
                logger.error(f"Template '{args.template_id}' not found in {args.snapshot}")
                sys.exit(1)
            values = _parse_values(args.value)

            if args.command == "preview":
                result = {"preview": engine.compute_preview(template, values, parent=args.parent)}
            else:
                generation = engine.generate(
                    template,
                    values,
                    quantity=args.quantity,
                    mode=args.mode,
                    parent=args.parent,
                    hierarchy_parent_id=args.hierarchy_parent,
                    actor=args.actor,
                    dry_run=args.dry_run,
                )
                result = generation.to_dict()
    except TagEngineError as e:
        logger.error(str(e))
        sys.exit(1)

    if args.command != "preview" and not args.dry_run:
        save_snapshot(snapshot, args.snapshot)
        logger.info(f"Snapshot updated: {args.snapshot}")

    _write_output(result, args.output)


if __name__ == "__main__":
    main()
