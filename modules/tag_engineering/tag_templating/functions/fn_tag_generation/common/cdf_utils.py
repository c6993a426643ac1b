"""
CDF utility functions for RAW table operations.
"""

from typing import Optional

from cognite.client import CogniteClient

from .logger import TagEngineLogger


def create_table_if_not_exists(
    client: CogniteClient,
    raw_db: str,
    tbl: str,
    logger: Optional[TagEngineLogger] = None,
) -> None:
    """
    Create RAW database and table if they don't exist.

    Args:
        client: CogniteClient instance
        raw_db: RAW database name
        tbl: RAW table name
        logger: Optional logger instance
    """
    if raw_db not in client.raw.databases.list(limit=-1).as_names():
        client.raw.databases.create(raw_db)
        if logger:
            logger.info(f"Created RAW database {raw_db}")

    if tbl not in client.raw.tables.list(raw_db, limit=-1).as_names():
        client.raw.tables.create(raw_db, tbl)
        if logger:
            logger.info(f"Created RAW table {raw_db}.{tbl}")
