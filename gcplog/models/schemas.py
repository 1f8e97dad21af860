"""Cloud Logging structured entry schema.

Field aliases match the special keys the Cloud Logging agent lifts out of a
JSON payload on Cloud Run / GKE, so that the trace and source location show
up in the Logs Explorer instead of inside ``jsonPayload``.
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Stdlib logging has no TRACE level; register one below DEBUG.
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class Severity(str, Enum):
    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def levelno(self) -> int:
        return _LEVELNOS[self]

    @classmethod
    def from_levelno(cls, levelno: int) -> "Severity":
        """Map a stdlib level number onto the closest severity at or below it."""
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Parse a level name case-insensitively. ``WARNING`` is accepted as WARN."""
        name = value.strip().upper()
        if name == "WARNING":
            name = "WARN"
        return cls(name)


_LEVELNOS = {
    Severity.TRACE: TRACE,
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class SourceLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: str
    line: str
    function: str


class LogEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    severity: Severity
    message: str = ""
    time: str
    trace: str | None = Field(default=None, alias="logging.googleapis.com/trace")
    source_location: SourceLocation | None = Field(
        default=None, alias="logging.googleapis.com/sourceLocation"
    )

    def to_json(self) -> str:
        """Render as a single-line JSON object, omitting absent optional fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True)
