"""Pydantic models for API input/output.

Split into: request bodies, lookup results, and log query/report shapes.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from auslocator.models import LogEntry, LogType, Location
from auslocator.utils.states import StateCode


# ═══════════════ REQUESTS ═══════════════

class VerifyAddressRequest(BaseModel):
    postcode: str
    suburb: str = Field(min_length=1, max_length=100)
    state: StateCode

    @field_validator("postcode")
    @classmethod
    def _four_digits(cls, value: str) -> str:
        if len(value) != 4:
            raise ValueError("Postcode must be 4 digits")
        if not value.isdigit():
            raise ValueError("Postcode must contain only numbers")
        return value


class SearchLocationsRequest(BaseModel):
    query: str = Field(min_length=1, max_length=100)
    category: str | None = None


class SearchLocationsPage(SearchLocationsRequest):
    """Search request with an explicit result window (GraphQL)."""
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


# ═══════════════ LOOKUP RESULTS ═══════════════

class ValidationResult(BaseModel):
    isValid: bool
    message: str
    location: Location | None = None


class SearchResult(BaseModel):
    locations: list[Location] = Field(default_factory=list)
    total: int = 0


# ═══════════════ LOGS ═══════════════

class LogQuery(BaseModel):
    """Filter and window for reading the interaction log."""
    type: LogType | None = None
    limit: int = Field(default=50, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)
    startDate: str | None = None
    endDate: str | None = None
    searchTerm: str | None = None


class Pagination(BaseModel):
    limit: int
    offset: int
    hasMore: bool


class LogPage(BaseModel):
    logs: list[LogEntry] = Field(default_factory=list)
    total: int = 0
    pagination: Pagination


class LogStatistics(BaseModel):
    totalLogs: int = 0
    verifierLogs: int = 0
    sourceLogs: int = 0
    successfulVerifications: int = 0
    failedVerifications: int = 0


class StatisticsReport(BaseModel):
    healthy: bool
    stats: LogStatistics = Field(default_factory=LogStatistics)
