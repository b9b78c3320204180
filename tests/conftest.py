"""
Pytest configuration and fixtures
"""

import io
import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from schemas.envelope import KissEnvelope

OBJECTEN_BASE_URL = "https://objecten.example.nl"
OBJECTTYPES_BASE_URL = "https://objecttypen.example.nl"
ELASTIC_BASE_URL = "https://enterprise-search.example.nl"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled"""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)


def routes(mapping: Dict[str, Any]) -> Callable[[httpx.Request], httpx.Response]:
    """
    Build a handler answering by exact url.

    Values are either a JSON body (served with 200) or an httpx.Response.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url not in mapping:
            return httpx.Response(404, json={"detail": f"no route for {url}"})
        value = mapping[url]
        if isinstance(value, httpx.Response):
            return value
        return httpx.Response(200, json=value)

    return handler


def object_item(uuid: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """One result of the objects API"""
    return {
        "url": f"{OBJECTEN_BASE_URL}/api/v2/objects/{uuid}",
        "uuid": uuid,
        "type": f"{OBJECTTYPES_BASE_URL}/api/v2/objecttypes/1",
        "record": {"index": 1, "typeVersion": 1, "data": data},
    }


def zgw_page(results: List[Any], next_url: Any = None) -> Dict[str, Any]:
    return {"count": len(results), "next": next_url, "previous": None, "results": results}


def make_envelopes(count: int, prefix: str = "vac") -> List[KissEnvelope]:
    return [
        KissEnvelope(id=f"{prefix}_{i}", title=f"Vraag {i}", payload={"vraag": f"Vraag {i}"})
        for i in range(count)
    ]


async def as_async_iter(items):
    for item in items:
        yield item


def bulk_documents(request: httpx.Request) -> List[Dict[str, Any]]:
    """Decode the JSON array sent to the documents endpoint"""
    return json.loads(request.content)


@pytest.fixture
def mock_client():
    """Factory for AsyncClients backed by a recording MockTransport"""
    def factory(handler):
        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport

    return factory


@pytest.fixture
def output_streams():
    """Replacement stdout and stderr for the sink"""
    return io.StringIO(), io.StringIO()


@pytest.fixture
def mock_medewerker_data():
    """Employee objects as stored in the objects API"""
    return [
        object_item("0f1c", {
            "id": "mw-001",
            "contact": {"voornaam": "Jan", "voorvoegselAchternaam": "", "achternaam": "Jansen"},
            "function": "Adviseur",
            "department": "Burgerzaken",
            "skills": "Paspoorten",
        }),
        object_item("7a2b", {
            "id": "mw-002",
            "contact": {"voornaam": "Kees", "voorvoegselAchternaam": "van der", "achternaam": "Berg"},
            "function": "Teamleider",
            "department": "Belastingen",
        }),
    ]
