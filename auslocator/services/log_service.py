"""Log ingestion/query service: the boundary between HTTP and the log store.

Responsibilities:
  - Validate inbound log writes and dispatch them by type
  - Make sure the index exists before the first read or write
  - Shape paginated reads and statistics for the API
"""

import logging
from typing import Any

from pydantic import ValidationError

from auslocator.models import LOG_TYPES, LogEntry, SourceLogEntry, VerifierLogEntry
from auslocator.schemas import LogPage, LogQuery, LogStatistics, Pagination, StatisticsReport
from auslocator.services.log_store import InteractionLogStore, log_store

logger = logging.getLogger(__name__)


class InvalidLogRequest(ValueError):
    """Client error: unknown log type or a payload that does not fit it."""

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.details = details or []


class LogService:
    """Accepts log writes/reads and delegates to the interaction log store."""

    def __init__(self, store: InteractionLogStore):
        self.store = store
        self._index_ready = False

    async def ensure_index(self) -> bool:
        """Create the index once; a successful result is remembered."""
        if not self._index_ready:
            self._index_ready = await self.store.ensure_index()
        return self._index_ready

    def build_entry(
        self,
        log_type: str | None,
        payload: dict[str, Any],
        session_id: str | None = None,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> LogEntry:
        """Validate a raw payload into the entry variant named by ``log_type``."""
        if log_type not in LOG_TYPES:
            raise InvalidLogRequest('Invalid log type. Must be "verifier" or "source"')

        common = {"sessionId": session_id, "userAgent": user_agent, "ipAddress": ip_address}
        try:
            if log_type == "verifier":
                return VerifierLogEntry(
                    input=payload.get("input"), result=payload.get("result"), **common,
                )
            return SourceLogEntry(
                searchQuery=payload.get("searchQuery"),
                selectedLocation=payload.get("selectedLocation"),
                **common,
            )
        except ValidationError as e:
            raise InvalidLogRequest(
                f"Invalid {log_type} log payload",
                details=e.errors(include_url=False, include_context=False, include_input=False),
            ) from e

    async def submit(
        self,
        log_type: str | None,
        payload: dict[str, Any],
        session_id: str | None = None,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> bool:
        """Record one interaction. Raises InvalidLogRequest; store failures return False."""
        entry = self.build_entry(log_type, payload, session_id, user_agent, ip_address)
        await self.ensure_index()
        return await self.store.append(entry)

    async def list(self, options: LogQuery | None = None) -> LogPage:
        options = options or LogQuery()
        await self.ensure_index()
        logs, total = await self.store.query(options)
        return LogPage(
            logs=logs,
            total=total,
            pagination=Pagination(
                limit=options.limit,
                offset=options.offset,
                hasMore=total > options.offset + options.limit,
            ),
        )

    async def get_statistics(self) -> StatisticsReport:
        """Counts per type/outcome; zeroed and unhealthy if the backend is down."""
        if not await self.store.health_check():
            logger.warning("Log statistics requested but Elasticsearch is not available")
            return StatisticsReport(healthy=False, stats=LogStatistics())
        return StatisticsReport(healthy=True, stats=await self.store.statistics())

    async def reset(self) -> bool:
        ok = await self.store.reset_index()
        self._index_ready = ok
        return ok


log_service = LogService(log_store)


def get_log_service() -> LogService:
    """FastAPI dependency: the shared log service."""
    return log_service
