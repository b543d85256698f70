"""Document models for locations and interaction logs."""

from auslocator.models.location import Coordinates, Location, SelectedLocation
from auslocator.models.log_entry import (
    LOG_TYPES,
    LogEntry,
    LogType,
    SourceLogEntry,
    VerifierInput,
    VerifierLogEntry,
    VerifierResult,
    log_entry_adapter,
)

__all__ = [
    "Coordinates",
    "Location",
    "SelectedLocation",
    "LOG_TYPES",
    "LogEntry",
    "LogType",
    "SourceLogEntry",
    "VerifierInput",
    "VerifierLogEntry",
    "VerifierResult",
    "log_entry_adapter",
]
