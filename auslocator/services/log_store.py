"""Interaction log store backed by an Elasticsearch index.

Append-only: entries are written once and only removed by a full index reset.
Logging is observability, never a dependency of verify/search, so every
operation here degrades to a neutral result (False / empty / zero) when the
backend is unconfigured, unreachable, or returns an error.
"""

import asyncio
import logging
from typing import Any

from elasticsearch import AsyncElasticsearch, BadRequestError
from pydantic import ValidationError

from auslocator.config import settings
from auslocator.models import LogEntry, log_entry_adapter
from auslocator.schemas import LogQuery, LogStatistics

logger = logging.getLogger(__name__)

LOGS_MAPPING: dict[str, Any] = {
    "properties": {
        "type": {"type": "keyword"},
        "timestamp": {"type": "date"},
        "sessionId": {"type": "keyword"},
        "input": {
            "properties": {
                "postcode": {"type": "keyword"},
                "suburb": {"type": "text"},
                "state": {"type": "keyword"},
            },
        },
        "result": {
            "properties": {
                "isValid": {"type": "boolean"},
                "message": {"type": "text"},
            },
        },
        "searchQuery": {"type": "text"},
        "selectedLocation": {
            "properties": {
                "location": {"type": "text"},
                "state": {"type": "keyword"},
                "postcode": {"type": "integer"},
                "coordinates": {"type": "geo_point"},
                "latitude": {"type": "float"},
                "longitude": {"type": "float"},
                "category": {"type": "keyword"},
            },
        },
        "userAgent": {"type": "text"},
        "ipAddress": {"type": "ip"},
    },
}

SEARCH_FIELDS = [
    "input.suburb",
    "result.message",
    "searchQuery",
    "selectedLocation.location",
]


def build_query(options: LogQuery) -> dict[str, Any]:
    """Translate a LogQuery into an Elasticsearch query clause."""
    must: list[dict[str, Any]] = []

    if options.type:
        must.append({"term": {"type": options.type}})

    if options.startDate or options.endDate:
        bounds = {}
        if options.startDate:
            bounds["gte"] = options.startDate
        if options.endDate:
            bounds["lte"] = options.endDate
        must.append({"range": {"timestamp": bounds}})

    if options.searchTerm:
        must.append({"multi_match": {"query": options.searchTerm, "fields": SEARCH_FIELDS}})

    return {"bool": {"must": must}} if must else {"match_all": {}}


class InteractionLogStore:
    """Owns the interaction log index and the connection to it."""

    def __init__(
        self,
        node: str | None = None,
        api_key: str | None = None,
        index: str | None = None,
        verify_certs: bool | None = None,
        client: AsyncElasticsearch | None = None,
    ):
        self.node = settings.elasticsearch_node if node is None else node
        self.api_key = settings.elasticsearch_api_key if api_key is None else api_key
        self.index = index or settings.logs_index
        self.verify_certs = settings.elasticsearch_verify_certs if verify_certs is None else verify_certs
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self.node)

    def _get_client(self) -> AsyncElasticsearch | None:
        """Create the client on first use, then reuse it.

        Two racing first calls may both construct a client; the last one wins
        and the other is garbage collected unused.
        """
        if self._client is not None:
            return self._client
        if not self.node:
            logger.warning("Elasticsearch node not configured, interaction logging disabled")
            return None
        options: dict[str, Any] = {}
        if self.api_key:
            options["api_key"] = self.api_key
        if self.node.startswith("https"):
            options["verify_certs"] = self.verify_certs
        try:
            self._client = AsyncElasticsearch(hosts=[self.node], **options)
        except Exception as e:
            logger.error("Failed to initialize Elasticsearch client: %s", str(e)[:200])
            return None
        return self._client

    async def close(self):
        """Close the backend connection (app shutdown)."""
        if self._client is not None:
            try:
                await self._client.close()
            except Exception as e:
                logger.debug("Elasticsearch close error: %s", str(e)[:100])
            self._client = None

    # ─── index lifecycle ───

    async def ensure_index(self) -> bool:
        """Create the index with its mapping if it does not exist yet."""
        client = self._get_client()
        if client is None:
            return False

        try:
            if not await client.indices.exists(index=self.index):
                try:
                    await client.indices.create(index=self.index, mappings=LOGS_MAPPING)
                    logger.info("Elasticsearch index created | index=%s", self.index)
                except BadRequestError as e:
                    if e.error != "resource_already_exists_exception":
                        raise
                    logger.info("Elasticsearch index already exists | index=%s", self.index)
            return True
        except Exception as e:
            logger.error("Failed to initialize Elasticsearch index: %s", str(e)[:200])
            return False

    async def reset_index(self) -> bool:
        """Delete the index (if present) and recreate it empty."""
        client = self._get_client()
        if client is None:
            return False

        try:
            if await client.indices.exists(index=self.index):
                await client.indices.delete(index=self.index)
                logger.info("Elasticsearch index deleted | index=%s", self.index)
        except Exception as e:
            logger.error("Failed to reset Elasticsearch index: %s", str(e)[:200])
            return False

        return await self.ensure_index()

    # ─── writes ───

    async def append(self, entry: LogEntry) -> bool:
        """Index a single entry. Never raises."""
        client = self._get_client()
        if client is None:
            logger.info("Elasticsearch not available, skipping %s log", entry.type)
            return False

        try:
            await client.index(index=self.index, document=entry.to_document())
        except Exception as e:
            logger.error("Failed to log %s interaction: %s", entry.type, str(e)[:200])
            return False

        logger.info("Logged %s interaction | session=%s", entry.type, entry.sessionId)
        return True

    # ─── reads ───

    async def query(self, options: LogQuery | None = None) -> tuple[list[LogEntry], int]:
        """Most-recent-first page of entries plus the total match count."""
        options = options or LogQuery()
        client = self._get_client()
        if client is None:
            return [], 0

        try:
            resp = await client.search(
                index=self.index,
                query=build_query(options),
                sort=[{"timestamp": {"order": "desc"}}],
                size=options.limit,
                from_=options.offset,
                track_total_hits=True,
            )
        except Exception as e:
            logger.error("Failed to retrieve logs: %s", str(e)[:200])
            return [], 0

        hits = resp["hits"]
        total = hits["total"]
        if isinstance(total, dict):
            total = total.get("value", 0)

        entries: list[LogEntry] = []
        for hit in hits["hits"]:
            try:
                entries.append(log_entry_adapter.validate_python(hit["_source"]))
            except ValidationError as e:
                logger.warning("Skipping unreadable log document | id=%s | %s", hit.get("_id"), str(e)[:200])
        return entries, int(total or 0)

    async def _count(self, client: AsyncElasticsearch, query: dict[str, Any] | None = None) -> int:
        if query is None:
            resp = await client.count(index=self.index)
        else:
            resp = await client.count(index=self.index, query=query)
        return int(resp["count"])

    async def statistics(self) -> LogStatistics:
        """Totals per type and verification outcome."""
        client = self._get_client()
        if client is None:
            return LogStatistics()

        verifier = {"term": {"type": "verifier"}}
        try:
            total, verifier_count, source_count, successful, failed = await asyncio.gather(
                self._count(client),
                self._count(client, verifier),
                self._count(client, {"term": {"type": "source"}}),
                self._count(client, {"bool": {"must": [verifier, {"term": {"result.isValid": True}}]}}),
                self._count(client, {"bool": {"must": [verifier, {"term": {"result.isValid": False}}]}}),
            )
        except Exception as e:
            logger.error("Failed to get log statistics: %s", str(e)[:200])
            return LogStatistics()

        return LogStatistics(
            totalLogs=total,
            verifierLogs=verifier_count,
            sourceLogs=source_count,
            successfulVerifications=successful,
            failedVerifications=failed,
        )

    async def health_check(self) -> bool:
        """Reachability probe; does not require the index to exist."""
        client = self._get_client()
        if client is None:
            return False
        try:
            return bool(await client.ping())
        except Exception as e:
            logger.error("Elasticsearch health check failed: %s", str(e)[:200])
            return False


# Singleton instance
log_store = InteractionLogStore()
