"""Shared test fixtures and configuration."""

import copy
import os

import pytest

# No real backends during tests
os.environ.setdefault("AUSTRALIA_POST_API_KEY", "test-key")

from auslocator.services.log_service import LogService  # noqa: E402
from auslocator.services.log_store import InteractionLogStore  # noqa: E402


# ═══════════════ Australia Post payloads ═══════════════


def make_locality(id, location, postcode, state="VIC", category="Delivery Area",
                  latitude=-37.81, longitude=144.96):
    locality = {
        "id": id,
        "location": location,
        "postcode": postcode,
        "state": state,
        "category": category,
    }
    if latitude is not None:
        locality["latitude"] = latitude
    if longitude is not None:
        locality["longitude"] = longitude
    return locality


@pytest.fixture
def melbourne_vic_response():
    """Upstream reply for q=Melbourne&state=VIC."""
    return {
        "localities": {
            "locality": [
                make_locality(658, "MELBOURNE", 3000),
                make_locality(659, "MELBOURNE", 3004),
                make_locality(660, "MELBOURNE", 8001, category="Post Office Boxes",
                              latitude=None, longitude=None),
            ],
        },
    }


@pytest.fixture
def melbourne_search_response():
    """Upstream reply for q=melbourne: 25 localities, 3 of them PO boxes."""
    names = [
        "MELBOURNE", "EAST MELBOURNE", "NORTH MELBOURNE", "WEST MELBOURNE",
        "SOUTH MELBOURNE", "PORT MELBOURNE", "MELBOURNE AIRPORT",
        "MELBOURNE UNIVERSITY", "ST KILDA ROAD MELBOURNE",
    ]
    localities = []
    for i in range(22):
        localities.append(
            make_locality(1000 + i, names[i % len(names)], 3000 + i)
        )
    for i in range(3):
        localities.append(
            make_locality(2000 + i, "MELBOURNE", 8001 + i, category="Post Office Boxes",
                          latitude=None, longitude=None)
        )
    return {"localities": {"locality": localities}}


@pytest.fixture
def single_locality_response():
    """A single match comes back as an object, not an array."""
    return {
        "localities": {
            "locality": make_locality(
                4010, "PARRAMATTA", 2150, state="NSW", latitude=-33.81, longitude=151.0,
            ),
        },
    }


@pytest.fixture
def empty_response():
    """No matches: ``localities`` is an empty string."""
    return {"localities": ""}


# ═══════════════ Elasticsearch ═══════════════


def _field(doc, path):
    value = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _matches(doc, query):
    if not query or "match_all" in query:
        return True
    if "bool" in query:
        return all(_matches(doc, clause) for clause in query["bool"].get("must", []))
    if "term" in query:
        (field, value), = query["term"].items()
        return _field(doc, field) == value
    if "range" in query:
        (field, bounds), = query["range"].items()
        value = _field(doc, field)
        if value is None:
            return False
        if "gte" in bounds and value < bounds["gte"]:
            return False
        if "lte" in bounds and value > bounds["lte"]:
            return False
        return True
    if "multi_match" in query:
        needle = query["multi_match"]["query"].lower()
        return any(
            needle in str(_field(doc, field) or "").lower()
            for field in query["multi_match"]["fields"]
        )
    raise AssertionError(f"unsupported query: {query}")


class _FakeIndices:
    def __init__(self, es):
        self._es = es

    async def exists(self, index):
        self._es._check()
        self._es.exists_calls += 1
        return index in self._es.documents

    async def create(self, index, mappings=None):
        self._es._check()
        self._es.documents[index] = []
        self._es.mappings[index] = mappings

    async def delete(self, index):
        self._es._check()
        del self._es.documents[index]
        self._es.mappings.pop(index, None)


class FakeElasticsearch:
    """In-memory stand-in for the AsyncElasticsearch calls the store makes."""

    def __init__(self, reachable=True):
        self.reachable = reachable
        self.documents = {}
        self.mappings = {}
        self.indices = _FakeIndices(self)
        self.closed = False
        self.exists_calls = 0

    def _check(self):
        if not self.reachable:
            raise ConnectionError("Connection refused")

    async def index(self, index, document):
        self._check()
        self.documents.setdefault(index, []).append(copy.deepcopy(document))
        return {"result": "created"}

    async def search(self, index, query=None, sort=None, size=10, from_=0, track_total_hits=None):
        self._check()
        docs = [d for d in self.documents.get(index, []) if _matches(d, query)]
        docs.sort(key=lambda d: d["timestamp"], reverse=True)
        window = docs[from_:from_ + size]
        return {
            "hits": {
                "total": {"value": len(docs), "relation": "eq"},
                "hits": [{"_id": str(i), "_source": copy.deepcopy(d)} for i, d in enumerate(window)],
            },
        }

    async def count(self, index, query=None):
        self._check()
        return {"count": sum(1 for d in self.documents.get(index, []) if _matches(d, query))}

    async def ping(self):
        return self.reachable

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_es():
    return FakeElasticsearch()


@pytest.fixture
def store(fake_es):
    return InteractionLogStore(node="http://es.test:9200", index="test-logs", client=fake_es)


@pytest.fixture
def down_store():
    """A store whose backend refuses every call."""
    return InteractionLogStore(
        node="http://es.test:9200", index="test-logs", client=FakeElasticsearch(reachable=False),
    )


@pytest.fixture
def log_service(store):
    return LogService(store)


@pytest.fixture
def verifier_payload():
    return {
        "input": {"postcode": "3000", "suburb": "Melbourne", "state": "VIC"},
        "result": {
            "isValid": True,
            "message": "The postcode, suburb, and state input are valid.",
            "location": make_locality(658, "MELBOURNE", 3000),
        },
    }


@pytest.fixture
def source_payload():
    return {
        "searchQuery": "parramatta",
        "selectedLocation": make_locality(
            4010, "PARRAMATTA", 2150, state="NSW", latitude=-33.81, longitude=151.0,
        ),
    }
