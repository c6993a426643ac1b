"""
Tag registry queries: search, status summary and recent activity.
"""

from typing import Any, Dict, List

import pandas as pd

from .template_model import Tag, TagStatus


def search_tags(tags: List[Tag], term: str) -> List[Tag]:
    """Tags whose full tag or status contains the term, case-insensitively."""
    term = (term or "").strip().lower()
    if not term:
        return list(tags)
    return [
        tag
        for tag in tags
        if term in tag.full_tag.lower() or term in tag.status.value.lower()
    ]


def tags_to_dataframe(tags: List[Tag]) -> pd.DataFrame:
    """One row per tag with its registry columns."""
    columns = ["id", "full_tag", "status", "template_id", "parent_id", "notes", "created_at"]
    rows = [
        {
            "id": tag.id,
            "full_tag": tag.full_tag,
            "status": tag.status.value,
            "template_id": tag.template_id,
            "parent_id": tag.parent_id,
            "notes": tag.notes,
            "created_at": tag.created_at,
        }
        for tag in tags
    ]
    return pd.DataFrame(rows, columns=columns)


def status_summary(tags: List[Tag]) -> pd.DataFrame:
    """Count of tags per status, every status listed (zero when unused)."""
    counts = tags_to_dataframe(tags)["status"].value_counts()
    statuses = [status.value for status in TagStatus]
    return pd.DataFrame(
        {
            "status": statuses,
            "count": [int(counts.get(status, 0)) for status in statuses],
        }
    )


def recent_activity(tags: List[Tag], limit: int = 10) -> List[Dict[str, Any]]:
    """History entries across tags, newest first."""
    events = [
        {
            "tag_id": tag.id,
            "full_tag": tag.full_tag,
            "action": entry.action,
            "user": entry.user,
            "timestamp": entry.timestamp,
            "details": entry.details,
        }
        for tag in tags
        for entry in tag.history
    ]
    events.sort(key=lambda event: event["timestamp"], reverse=True)
    return events[:limit]
