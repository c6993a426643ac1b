"""
Prefix and Counter Engine

Computes the literal prefix that precedes a template's numeric block and
issues the next free number for that prefix within a project, skipping
reserved ranges.

Counters are cached per (project, prefix). The cache lives in this process
only: two processes sharing a dataset need an external atomic counter, this
engine does not attempt to coordinate them.
"""

import re
from typing import Dict, Mapping, NamedTuple, Optional

from ..common.logger import TagEngineLogger
from .dataset import DatasetSnapshot
from .template_model import BlockKind, Template

LEADING_DIGITS = re.compile(r"^([0-9]+)")


class CounterKey(NamedTuple):
    project_id: str
    prefix: str


def compute_prefix(
    template: Template,
    resolved_values: Mapping[str, Optional[str]],
    placeholder: str = "?",
) -> str:
    """
    Concatenate resolved values of the blocks before the number (or suffix) block.

    Args:
        template: Template to read the block order from
        resolved_values: Block id -> resolved value, None for unresolved blocks
        placeholder: Stand-in for unresolved blocks ("" when assembling real tags)

    Returns:
        Prefix string
    """
    pieces = []
    for block in template.prefix_blocks():
        value = resolved_values.get(block.id)
        if value is None:
            if block.kind == BlockKind.LITERAL:
                value = block.text
            elif block.kind == BlockKind.SEPARATOR:
                value = block.char
            else:
                value = placeholder
        pieces.append(value)
    return "".join(pieces)


def leading_number(text: str) -> Optional[int]:
    """Longest leading run of digits as an int, or None."""
    match = LEADING_DIGITS.match(text)
    return int(match.group(1)) if match else None


class CounterEngine:
    """Owns the per-prefix counter cache and the numbering rules."""

    def __init__(
        self,
        snapshot: DatasetSnapshot,
        logger: Optional[TagEngineLogger] = None,
    ):
        self.snapshot = snapshot
        self.logger = logger or TagEngineLogger("INFO", False)
        self.counters: Dict[CounterKey, int] = {}

    def scan_max_number(self, project_id: str, prefix: str) -> int:
        """Highest number used after `prefix` by existing project tags (0 if none)."""
        max_num = 0
        for tag in self.snapshot.tags_for(project_id):
            if not tag.full_tag.startswith(prefix):
                continue
            number = leading_number(tag.full_tag[len(prefix):])
            if number is not None and number > max_num:
                max_num = number
        return max_num

    def _skip_reserved(self, project_id: str, prefix: str, candidate: int) -> int:
        ranges = self.snapshot.reserved_ranges_for(project_id, prefix)
        blocked = True
        while blocked:
            blocked = False
            for reserved in ranges:
                if reserved.covers(candidate):
                    self.logger.verbose(
                        "DEBUG",
                        f"Number {candidate} for prefix '{prefix}' is reserved "
                        f"({reserved.start}-{reserved.end}: {reserved.reason}), skipping",
                    )
                    candidate = reserved.end + 1
                    blocked = True
        return candidate

    def peek_next_number(self, project_id: str, prefix: str, padding: int = 3) -> int:
        """Next number for the prefix without touching the cache."""
        key = CounterKey(project_id, prefix)
        cached = self.counters.get(key)
        max_num = cached if cached else self.scan_max_number(project_id, prefix)
        return self._skip_reserved(project_id, prefix, max_num + 1)

    def get_next_number(self, project_id: str, prefix: str, padding: int = 3) -> int:
        """
        Issue the next free number for a prefix and remember it.

        Successive calls for the same (project, prefix) return strictly
        increasing numbers, never one inside a reserved range whose scope is
        the prefix.

        Args:
            project_id: Project the counter belongs to
            prefix: Literal tag portion preceding the number
            padding: Width of the number block, used in log output only

        Returns:
            The issued number
        """
        number = self.peek_next_number(project_id, prefix, padding)
        self.counters[CounterKey(project_id, prefix)] = number
        self.logger.verbose(
            "DEBUG", f"Issued {str(number).zfill(padding)} for prefix '{prefix}'"
        )
        return number

    def record_issued(self, project_id: str, prefix: str, number: int) -> None:
        """Advance the cache to the last number actually committed."""
        key = CounterKey(project_id, prefix)
        if number > self.counters.get(key, 0):
            self.counters[key] = number

    def rebuild(self, project_id: str, prefix: str) -> int:
        """Drop a stale cache entry and rescan existing tags."""
        key = CounterKey(project_id, prefix)
        self.counters.pop(key, None)
        max_num = self.scan_max_number(project_id, prefix)
        if max_num:
            self.counters[key] = max_num
        return max_num
