"""Interaction log entries: one document per verification or location pick.

``LogEntry`` is a discriminated union on ``type``: each variant carries only
its own fields, and entries are frozen once built.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from auslocator.models.location import Location, SelectedLocation
from auslocator.utils.session import generate_session_id
from auslocator.utils.states import StateCode


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T03:04:05.678Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class VerifierInput(BaseModel):
    postcode: str
    suburb: str
    state: StateCode


class VerifierResult(BaseModel):
    isValid: bool
    message: str
    location: Location | None = None


class _BaseLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    timestamp: str = Field(default_factory=utc_timestamp)
    sessionId: str = Field(default_factory=generate_session_id)
    userAgent: str | None = None
    ipAddress: str | None = None

    @field_validator("sessionId", mode="before")
    @classmethod
    def _fill_session_id(cls, value):
        return value or generate_session_id()

    def to_document(self) -> dict:
        """Serialized form written to the index (unset optionals omitted)."""
        return self.model_dump(mode="json", exclude_none=True)


class VerifierLogEntry(_BaseLogEntry):
    """Outcome of an address verification."""

    type: Literal["verifier"] = "verifier"
    input: VerifierInput
    result: VerifierResult


class SourceLogEntry(_BaseLogEntry):
    """A location the user selected from search results."""

    type: Literal["source"] = "source"
    searchQuery: str
    selectedLocation: SelectedLocation


LogEntry = Annotated[Union[VerifierLogEntry, SourceLogEntry], Field(discriminator="type")]

LogType = Literal["verifier", "source"]

LOG_TYPES: tuple[str, ...] = ("verifier", "source")

log_entry_adapter: TypeAdapter[LogEntry] = TypeAdapter(LogEntry)
