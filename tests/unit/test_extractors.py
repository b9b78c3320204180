"""
Unit tests for source clients
"""

import httpx
import pytest

from conftest import (
    OBJECTEN_BASE_URL,
    OBJECTTYPES_BASE_URL,
    object_item,
    routes,
    zgw_page,
)
from core.exceptions import AuthenticationError, FetchError, ObjectTypeNotFoundError
from ingestion.extractors.medewerker_client import ObjectenMedewerkerClient
from ingestion.extractors.objecten_client import ObjectenSourceClient
from ingestion.extractors.sdg_client import SdgProductClient
from ingestion.extractors.sharepoint_client import (
    SharePointPageSourceClient,
    parse_site_identifier,
)

OBJECTTYPES_URL = f"{OBJECTTYPES_BASE_URL}/api/v2/objecttypes"
MEDEWERKER_TYPE = f"{OBJECTTYPES_URL}/1"
MEDEWERKER_TYPE_2 = f"{OBJECTTYPES_URL}/7"
VAC_TYPE = f"{OBJECTTYPES_URL}/2"


async def collect(iterator):
    return [item async for item in iterator]


def object_type(name, url):
    return {"url": url, "uuid": url.rsplit("/", 1)[-1], "name": name, "namePlural": name + "s"}


def objecten_handler(objecttype_pages, objects_by_type):
    """Serve object type listings by url and objects by ``type`` parameter"""
    def handler(request):
        if request.url.host == "objecttypen.example.nl":
            return routes(objecttype_pages)(request)

        object_type_url = request.url.params.get("type")
        if object_type_url not in objects_by_type:
            return httpx.Response(400, json={"type": ["Invalid object type"]})
        value = objects_by_type[object_type_url]
        if isinstance(value, httpx.Response):
            return value
        return httpx.Response(200, json=value)

    return handler


def medewerker_client(client):
    return ObjectenMedewerkerClient(
        objecten_base_url=OBJECTEN_BASE_URL,
        objecten_token="objecten-token",
        objecttypes_base_url=OBJECTTYPES_BASE_URL + "/",
        objecttypes_token="objecttypes-token",
        client=client,
    )


class TestObjectenMedewerkerClient:
    """Test employee extraction"""

    @pytest.mark.asyncio
    async def test_get_medewerkers(self, mock_client, mock_medewerker_data):
        client, transport = mock_client(objecten_handler(
            {OBJECTTYPES_URL: zgw_page([
                object_type("Afdeling", f"{OBJECTTYPES_URL}/3"),
                object_type("Medewerker", MEDEWERKER_TYPE),
            ])},
            {MEDEWERKER_TYPE: zgw_page(mock_medewerker_data)},
        ))

        async with medewerker_client(client) as source:
            envelopes = await collect(source.get())

        assert [e.id for e in envelopes] == ["smoelenboek_mw-001", "smoelenboek_mw-002"]
        assert envelopes[0].title == "Jan Jansen"
        assert source.source == "Smoelenboek"

        types_request, objects_request = transport.requests
        assert types_request.headers["Authorization"] == "Token objecttypes-token"
        assert objects_request.headers["Authorization"] == "Token objecten-token"
        assert objects_request.url.path == "/api/v2/objects"
        assert objects_request.url.params["type"] == MEDEWERKER_TYPE

    @pytest.mark.asyncio
    async def test_every_matching_type_is_listed(self, mock_client, mock_medewerker_data):
        client, _ = mock_client(objecten_handler(
            {
                OBJECTTYPES_URL: zgw_page(
                    [object_type("Medewerker", MEDEWERKER_TYPE)],
                    OBJECTTYPES_URL + "?page=2",
                ),
                OBJECTTYPES_URL + "?page=2": zgw_page([
                    object_type("medewerker", MEDEWERKER_TYPE_2),
                    object_type("MEDEWERKER", f"{OBJECTTYPES_URL}/8"),
                    {"name": "Medewerker", "url": ""},
                ]),
            },
            {
                MEDEWERKER_TYPE: zgw_page(mock_medewerker_data[:1]),
                MEDEWERKER_TYPE_2: zgw_page(mock_medewerker_data[1:]),
            },
        ))

        async with medewerker_client(client) as source:
            envelopes = await collect(source.get())

        assert [e.id for e in envelopes] == ["smoelenboek_mw-001", "smoelenboek_mw-002"]

    @pytest.mark.asyncio
    async def test_bad_type_does_not_stop_other_types(self, mock_client, mock_medewerker_data):
        client, _ = mock_client(objecten_handler(
            {OBJECTTYPES_URL: zgw_page([
                object_type("Medewerker", MEDEWERKER_TYPE),
                object_type("Medewerker", MEDEWERKER_TYPE_2),
            ])},
            {MEDEWERKER_TYPE_2: zgw_page(mock_medewerker_data)},
        ))

        async with medewerker_client(client) as source:
            envelopes = await collect(source.get())

        assert len(envelopes) == 2

    @pytest.mark.asyncio
    async def test_missing_object_type_fails_before_fetching_objects(self, mock_client):
        client, transport = mock_client(objecten_handler(
            {OBJECTTYPES_URL: zgw_page([object_type("Afdeling", f"{OBJECTTYPES_URL}/3")])},
            {},
        ))

        async with medewerker_client(client) as source:
            with pytest.raises(ObjectTypeNotFoundError) as exc_info:
                await collect(source.get())

        assert "Medewerker" in exc_info.value.message
        assert all(r.url.host == "objecttypen.example.nl" for r in transport.requests)

    @pytest.mark.asyncio
    async def test_object_type_server_error_is_fatal(self, mock_client):
        client, _ = mock_client(objecten_handler(
            {OBJECTTYPES_URL: httpx.Response(503, text="unavailable")},
            {},
        ))

        async with medewerker_client(client) as source:
            with pytest.raises(FetchError):
                await collect(source.get())

    @pytest.mark.asyncio
    async def test_client_is_closed_on_exit(self, mock_client):
        client, _ = mock_client(routes({}))

        async with medewerker_client(client):
            pass

        assert client.is_closed


class TestObjectenSourceClient:
    """Test the generic objects source"""

    @pytest.mark.asyncio
    async def test_get_vac_objects(self, mock_client):
        vac = {"vraag": "Hoe vraag ik een paspoort aan?", "antwoord": "Maak een afspraak."}
        client, _ = mock_client(objecten_handler(
            {},
            {VAC_TYPE: zgw_page([
                object_item("a-1", vac),
                {"uuid": "broken"},
            ])},
        ))

        source = ObjectenSourceClient(
            source="VAC",
            base_url=OBJECTEN_BASE_URL,
            token="objecten-token",
            object_type=VAC_TYPE,
            completion_fields=("vraag",),
            client=client,
        )

        async with source:
            envelopes = await collect(source.get())

        assert len(envelopes) == 1
        assert envelopes[0].id == "vac_a-1"
        assert envelopes[0].payload == vac
        assert source.completion_fields == ("vraag",)


class TestSdgProductClient:
    """Test the product catalogue source"""

    @pytest.mark.asyncio
    async def test_get_products(self, mock_client):
        products_url = "https://sdg.example.nl/api/v1/producten"
        client, transport = mock_client(routes({
            products_url: zgw_page(
                [{"uuid": "p-1", "vertalingen": [{"taal": "nl", "productTitelDecentraal": "Paspoort"}]}],
                products_url + "?page=2",
            ),
            products_url + "?page=2": zgw_page([{"uuid": "p-2"}, {"geen": "uuid"}]),
        }))

        async with SdgProductClient("https://sdg.example.nl/", "sdg-key", client=client) as source:
            envelopes = await collect(source.get())

        assert [e.id for e in envelopes] == ["kennisartikel_p-1", "kennisartikel_p-2"]
        assert envelopes[0].title == "Paspoort"
        assert transport.requests[0].headers["Authorization"] == "Token sdg-key"


GRAPH = "https://graph.microsoft.com/v1.0"
TOKEN_URL = "https://login.microsoftonline.com/tenant-1/oauth2/v2.0/token"
SITE_URL = "https://tenant.sharepoint.com/sites/kiss"


def sharepoint_source(client):
    return SharePointPageSourceClient(
        tenant_id="tenant-1",
        client_id="client-1",
        client_secret="secret",
        site_url=SITE_URL,
        client=client,
    )


class TestSharePointPageSourceClient:
    """Test the SharePoint page source"""

    def test_parse_site_identifier(self):
        assert parse_site_identifier(SITE_URL) == "tenant.sharepoint.com:/sites/kiss"

    @pytest.mark.asyncio
    async def test_get_pages(self, mock_client):
        pages_url = f"{GRAPH}/sites/site-guid/pages/microsoft.graph.sitePage"

        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "jwt", "expires_in": 3599})
            if request.url.path == "/v1.0/sites/tenant.sharepoint.com:/sites/kiss":
                return httpx.Response(200, json={"id": "site-guid", "displayName": "KISS"})
            if request.url.path == "/v1.0/sites/site-guid/pages/microsoft.graph.sitePage":
                if request.url.params.get("$skiptoken"):
                    return httpx.Response(200, json={"value": [{"id": "p2", "title": "Tweede"}]})
                return httpx.Response(200, json={
                    "value": [{
                        "id": "p1",
                        "title": "Eerste",
                        "webUrl": f"{SITE_URL}/SitePages/Eerste.aspx",
                        "webParts": [{"innerHtml": "<h2>Kop</h2><p>Tekst</p>"}],
                    }],
                    "@odata.nextLink": pages_url + "?$skiptoken=abc",
                })
            return httpx.Response(404)

        client, transport = mock_client(handler)

        async with sharepoint_source(client) as source:
            envelopes = await collect(source.get())

        assert [e.id for e in envelopes] == ["sharepoint_p1", "sharepoint_p2"]
        assert envelopes[0].payload["content"] == ["Kop Tekst"]
        assert envelopes[0].payload["headings"] == ["Kop"]
        assert envelopes[0].url == f"{SITE_URL}/SitePages/Eerste.aspx"

        token_request = transport.requests[0]
        assert b"grant_type=client_credentials" in token_request.content
        assert all(r.headers["Authorization"] == "Bearer jwt" for r in transport.requests[1:])
        assert transport.requests[2].url.params["$expand"] == "webparts"

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, mock_client):
        client, _ = mock_client(lambda request: httpx.Response(401, json={"error": "invalid_client"}))

        async with sharepoint_source(client) as source:
            with pytest.raises(AuthenticationError):
                await collect(source.get())

    @pytest.mark.asyncio
    async def test_unknown_site(self, mock_client):
        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "jwt"})
            return httpx.Response(404, json={"error": {"code": "itemNotFound"}})

        client, _ = mock_client(handler)

        async with sharepoint_source(client) as source:
            with pytest.raises(FetchError) as exc_info:
                await collect(source.get())

        assert "Site niet gevonden" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_expired_token_is_renewed_between_pages(self, mock_client):
        pages_url = f"{GRAPH}/sites/site-guid/pages/microsoft.graph.sitePage"
        issued = []

        def handler(request):
            if str(request.url) == TOKEN_URL:
                issued.append(f"t{len(issued) + 1}")
                return httpx.Response(200, json={"access_token": issued[-1], "expires_in": 0})
            if request.url.path == "/v1.0/sites/tenant.sharepoint.com:/sites/kiss":
                return httpx.Response(200, json={"id": "site-guid"})
            if request.url.params.get("$skiptoken"):
                return httpx.Response(200, json={"value": [{"id": "p2", "title": "Tweede"}]})
            return httpx.Response(200, json={
                "value": [{"id": "p1", "title": "Eerste"}],
                "@odata.nextLink": pages_url + "?$skiptoken=abc",
            })

        client, transport = mock_client(handler)

        async with sharepoint_source(client) as source:
            envelopes = await collect(source.get())

        assert [e.id for e in envelopes] == ["sharepoint_p1", "sharepoint_p2"]

        graph_requests = [r for r in transport.requests if r.url.host == "graph.microsoft.com"]
        assert [r.headers["Authorization"] for r in graph_requests] == [
            "Bearer t1",
            "Bearer t2",
            "Bearer t3",
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token_response", [
        httpx.Response(200, text="<html>login</html>"),
        httpx.Response(200, json={"access_token": "jwt", "expires_in": "soon"}),
    ])
    async def test_unusable_token_response(self, mock_client, token_response):
        client, _ = mock_client(routes({TOKEN_URL: token_response}))

        async with sharepoint_source(client) as source:
            with pytest.raises(AuthenticationError):
                await collect(source.get())

    @pytest.mark.asyncio
    async def test_site_lookup_with_invalid_json(self, mock_client):
        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "jwt"})
            return httpx.Response(200, text="not json")

        client, _ = mock_client(handler)

        async with sharepoint_source(client) as source:
            with pytest.raises(FetchError) as exc_info:
                await collect(source.get())

        assert "invalid JSON" in exc_info.value.message
