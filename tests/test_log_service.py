"""Tests for the log ingestion/query service."""

import pytest

from auslocator.schemas import LogQuery
from auslocator.services.log_service import InvalidLogRequest, LogService


class TestSubmit:
    @pytest.mark.asyncio
    async def test_verifier(self, log_service, fake_es, verifier_payload):
        ok = await log_service.submit("verifier", verifier_payload, session_id="sess-1")
        assert ok is True
        doc = fake_es.documents["test-logs"][0]
        assert doc["type"] == "verifier"
        assert doc["sessionId"] == "sess-1"

    @pytest.mark.asyncio
    async def test_source(self, log_service, fake_es, source_payload):
        assert await log_service.submit("source", source_payload) is True
        doc = fake_es.documents["test-logs"][0]
        assert doc["type"] == "source"
        assert doc["sessionId"]

    @pytest.mark.asyncio
    async def test_creates_index_before_first_write(self, log_service, fake_es, source_payload):
        await log_service.submit("source", source_payload)
        assert "test-logs" in fake_es.mappings

    @pytest.mark.asyncio
    async def test_empty_session_id_generated(self, log_service, fake_es, source_payload):
        await log_service.submit("source", source_payload, session_id="")
        assert fake_es.documents["test-logs"][0]["sessionId"].startswith("session_")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("log_type", ["search", "", None])
    async def test_unknown_type(self, log_service, fake_es, source_payload, log_type):
        with pytest.raises(InvalidLogRequest):
            await log_service.submit(log_type, source_payload)
        assert fake_es.documents == {}

    @pytest.mark.asyncio
    async def test_payload_for_wrong_variant(self, log_service, source_payload):
        with pytest.raises(InvalidLogRequest) as exc:
            await log_service.submit("verifier", source_payload)
        assert exc.value.details

    @pytest.mark.asyncio
    async def test_cross_variant_fields_dropped(self, log_service, fake_es, verifier_payload):
        payload = dict(verifier_payload, searchQuery="leak")
        await log_service.submit("verifier", payload)
        assert "searchQuery" not in fake_es.documents["test-logs"][0]

    @pytest.mark.asyncio
    async def test_backend_down_returns_false(self, down_store, verifier_payload):
        service = LogService(down_store)
        assert await service.submit("verifier", verifier_payload) is False


class TestEnsureIndex:
    @pytest.mark.asyncio
    async def test_result_remembered(self, log_service, fake_es, source_payload):
        assert await log_service.ensure_index() is True
        await log_service.submit("source", source_payload)
        await log_service.list()
        assert fake_es.exists_calls == 1

    @pytest.mark.asyncio
    async def test_retried_while_unavailable(self, down_store):
        service = LogService(down_store)
        assert await service.ensure_index() is False
        assert await service.ensure_index() is False


class TestList:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit,offset,expected", [
        (2, 0, True),
        (2, 1, True),
        (2, 2, False),
        (4, 0, False),
        (10, 0, False),
        (1, 3, False),
    ])
    async def test_has_more(self, log_service, source_payload, limit, offset, expected):
        for _ in range(4):
            await log_service.submit("source", source_payload)
        page = await log_service.list(LogQuery(limit=limit, offset=offset))
        assert page.total == 4
        assert page.pagination.hasMore is expected
        assert page.pagination.hasMore == (page.total > offset + limit)
        assert len(page.logs) == min(limit, max(page.total - offset, 0))

    @pytest.mark.asyncio
    async def test_defaults(self, log_service):
        page = await log_service.list()
        assert page.total == 0
        assert page.pagination.limit == 50
        assert page.pagination.offset == 0
        assert page.pagination.hasMore is False


class TestStatistics:
    @pytest.mark.asyncio
    async def test_healthy(self, log_service, verifier_payload, source_payload):
        await log_service.submit("verifier", verifier_payload)
        await log_service.submit("source", source_payload)
        report = await log_service.get_statistics()
        assert report.healthy is True
        assert report.stats.totalLogs == 2
        assert report.stats.successfulVerifications == 1

    @pytest.mark.asyncio
    async def test_unhealthy_skips_counting(self, down_store, monkeypatch):
        service = LogService(down_store)

        async def fail():
            raise AssertionError("statistics must not be queried when unhealthy")

        monkeypatch.setattr(down_store, "statistics", fail)
        report = await service.get_statistics()
        assert report.healthy is False
        assert report.stats.totalLogs == 0


class TestReset:
    @pytest.mark.asyncio
    async def test_reset(self, log_service, fake_es, source_payload):
        await log_service.submit("source", source_payload)
        assert await log_service.reset() is True
        assert (await log_service.list()).total == 0

    @pytest.mark.asyncio
    async def test_reset_backend_down(self, down_store):
        assert await LogService(down_store).reset() is False
