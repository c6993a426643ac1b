"""
Function logger for tag generation.

Prints level-prefixed messages to stdout so output is captured by the function
runtime, and optionally appends the same lines to a log file.
"""

from pathlib import Path
from typing import Optional, Union

LOG_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


class TagEngineLogger:
    """Level-filtered stdout logger used by the engine, handlers and pipeline."""

    def __init__(
        self,
        log_level: str = "INFO",
        write: bool = False,
        filepath: Optional[Union[str, Path]] = None,
    ):
        self.log_level = log_level.upper()
        if self.log_level not in LOG_LEVELS:
            self.log_level = "INFO"
        self.write = write
        self.filepath = Path(filepath) if filepath else None

    def _enabled(self, level: str) -> bool:
        return LOG_LEVELS.get(level, 20) >= LOG_LEVELS[self.log_level]

    def _emit(self, level: str, message: str) -> None:
        if not self._enabled(level):
            return
        prefix = f"[{level}]"
        lines = str(message).splitlines() or [""]
        for line in lines:
            print(f"{prefix} {line}")
        if self.write and self.filepath:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(self.filepath, "a", encoding="utf-8") as f:
                for line in lines:
                    f.write(f"{prefix} {line}\n")

    def debug(self, message: str) -> None:
        self._emit("DEBUG", message)

    def info(self, message: str) -> None:
        self._emit("INFO", message)

    def warning(self, message: str) -> None:
        self._emit("WARNING", message)

    def error(self, message: str) -> None:
        self._emit("ERROR", message)

    def verbose(self, log_level: str, message: str) -> None:
        """Log at an explicit level only when the logger was created with write/verbose on."""
        if not self.write and log_level.upper() == "DEBUG":
            return
        self._emit(log_level.upper(), message)
