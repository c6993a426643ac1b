"""
Test configuration and fixtures for the tag templating engine.
"""

import sys
from pathlib import Path
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest

project_root = Path(__file__).resolve().parents[4]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from modules.tag_engineering.tag_templating.functions.fn_tag_generation.common.logger import (  # noqa: E402
    TagEngineLogger,
)
from modules.tag_engineering.tag_templating.functions.fn_tag_generation.engine.tag_generation_engine import (  # noqa: E402
    TagGenerationEngine,
)
from modules.tag_engineering.tag_templating.tests.fixtures.sample_data import (  # noqa: E402
    make_pump_template,
    make_snapshot,
)


@pytest.fixture
def quiet_logger() -> TagEngineLogger:
    """Function logger that prints warnings and errors only."""
    return TagEngineLogger("WARNING", False)


@pytest.fixture
def pump_template():
    return make_pump_template()


@pytest.fixture
def suffix_template():
    return make_pump_template(template_id="tpl-pump-sfx", with_suffix=True)


@pytest.fixture
def snapshot(pump_template, suffix_template):
    return make_snapshot(templates=[pump_template, suffix_template])


@pytest.fixture
def engine(snapshot, quiet_logger) -> TagGenerationEngine:
    return TagGenerationEngine(snapshot, logger=quiet_logger)


@pytest.fixture
def snapshot_payload(snapshot) -> Dict[str, Any]:
    """Snapshot as the JSON layout accepted by the function handler."""
    return snapshot.to_dict()


@pytest.fixture
def mock_cognite_client():
    """Mock CogniteClient for RAW and extraction pipeline tests."""
    client = MagicMock()
    client.raw.databases.list.return_value.as_names.return_value = []
    client.raw.tables.list.return_value.as_names.return_value = []
    return client
