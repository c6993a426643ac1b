"""
CDF adapter for the tag generation engine.

Reads the dataset the engine works on from CDF RAW tables and writes created
tags back to RAW, one row per tag keyed by tag id.
"""

import logging
from typing import Any, Dict, List, Optional

import pandas as pd
from cognite.client import CogniteClient
from cognite.client.data_classes import Row
from cognite.extractorutils.uploader import RawUploadQueue

from .common.cdf_utils import create_table_if_not_exists
from .common.logger import TagEngineLogger
from .engine.dataset import DatasetSnapshot
from .engine.template_model import Tag

logger = logging.getLogger(__name__)

DEFAULT_RAW_TABLES = {
    "tags": "tags",
    "templates": "templates",
    "dictionaries": "dictionaries",
    "global_variables": "global_variables",
    "reserved_ranges": "reserved_ranges",
}


def tag_to_row(tag: Tag) -> Row:
    columns = tag.model_dump(mode="json")
    columns.pop("id")
    return Row(key=tag.id, columns=columns)


class RawTagSink:
    """Writes created tags as rows into a RAW table."""

    def __init__(
        self,
        client: CogniteClient,
        raw_db: str,
        raw_table: str = "tags",
        logger: Optional[TagEngineLogger] = None,
    ):
        self.client = client
        self.raw_db = raw_db
        self.raw_table = raw_table
        self.logger = logger or TagEngineLogger("INFO", False)
        self._table_ready = False

    def write(self, tags: List[Tag]) -> None:
        if not tags:
            return
        if not self._table_ready:
            create_table_if_not_exists(self.client, self.raw_db, self.raw_table, self.logger)
            self._table_ready = True

        raw_uploader = RawUploadQueue(
            cdf_client=self.client, max_queue_size=50000, trigger_log_level="INFO"
        )
        for tag in tags:
            raw_uploader.add_to_upload_queue(
                database=self.raw_db, table=self.raw_table, raw_row=tag_to_row(tag)
            )

        self.logger.debug(f"Uploading {raw_uploader.upload_queue_size} rows to RAW")
        raw_uploader.upload()
        self.logger.info(
            f"Wrote {len(tags)} tag(s) to RAW {self.raw_db}.{self.raw_table}"
        )


def _frame_to_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """RAW rows as dicts, row key as 'id' and missing columns as None."""
    if frame.empty:
        return []
    frame = frame.astype(object).where(pd.notna(frame), None)
    records = []
    for key, columns in frame.to_dict(orient="index").items():
        record = {k: v for k, v in columns.items() if v is not None}
        record.setdefault("id", str(key))
        records.append(record)
    return records


def load_snapshot_from_raw(
    client: CogniteClient,
    raw_db: str,
    tables: Optional[Dict[str, str]] = None,
) -> DatasetSnapshot:
    """
    Build a dataset snapshot from RAW tables.

    Args:
        client: CogniteClient instance
        raw_db: RAW database name
        tables: Snapshot section -> RAW table name; missing sections use DEFAULT_RAW_TABLES

    Returns:
        DatasetSnapshot holding every row of the configured tables
    """
    tables = {**DEFAULT_RAW_TABLES, **(tables or {})}
    existing_tables = set(client.raw.tables.list(raw_db, limit=-1).as_names())

    data: Dict[str, List[Dict[str, Any]]] = {}
    for section, table in tables.items():
        if table not in existing_tables:
            logger.warning(f"RAW table {raw_db}.{table} not found, '{section}' left empty")
            data[section] = []
            continue
        rows = client.raw.rows.list(raw_db, table, limit=-1).to_pandas()
        data[section] = _frame_to_records(rows)
        logger.info(f"Read {len(data[section])} {section} row(s) from {raw_db}.{table}")

    return DatasetSnapshot.from_dict(data)
