"""
SharePoint site pages extractor (Microsoft Graph)
"""

import json
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import urlparse

import httpx

from core.config import settings
from core.exceptions import FetchError
from ingestion.auth import ClientCredentialsAuth, ClientCredentialsProvider
from ingestion.base import SourceClient
from ingestion.pagination import ODATA, PaginatedFetcher, RESPONSE_BODY_LIMIT
from ingestion.transformers.normalizer import PageNormalizer
from schemas.envelope import KissEnvelope
import logging

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"


def parse_site_identifier(site_url: str) -> str:
    """
    Turn a site url into a Graph site identifier.

    ``https://{hostname}/{path}`` becomes ``{hostname}:{path}``
    """
    parsed = urlparse(site_url)
    return f"{parsed.netloc}:{parsed.path or '/'}"


class SharePointClient:
    """Read the pages of one SharePoint site through the Graph API"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: ClientCredentialsProvider,
        site_url: str,
        graph_base_url: str = GRAPH_BASE_URL
    ):
        self.client = client
        self.credentials = credentials
        self.site_url = site_url
        self.site_identifier = parse_site_identifier(site_url)
        self.graph_base_url = graph_base_url.rstrip("/")

    async def get_site(self, auth: httpx.Auth) -> Dict[str, Any]:
        url = f"{self.graph_base_url}/sites/{self.site_identifier}"
        try:
            response = await self.client.get(url, auth=auth)
        except httpx.TransportError as e:
            raise FetchError(
                f"Request to {url} failed",
                context={"url": url},
                original_exception=e
            )

        if not response.is_success:
            logger.error(f"Site lookup for {self.site_url} failed with status {response.status_code}: {response.text}")
            raise FetchError(
                f"Site niet gevonden: {self.site_url} (identifier: {self.site_identifier})",
                context={
                    "url": url,
                    "status_code": response.status_code,
                    "response_body": response.text[:RESPONSE_BODY_LIMIT]
                }
            )

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FetchError(
                f"Site lookup for {self.site_url} returned invalid JSON",
                context={
                    "url": url,
                    "response_body": response.text[:RESPONSE_BODY_LIMIT]
                },
                original_exception=e
            )

    async def get_all_pages(self) -> AsyncIterator[Dict[str, Any]]:
        """Yield every site page, web parts expanded"""
        auth = ClientCredentialsAuth(self.credentials)
        site = await self.get_site(auth)
        site_id = site.get("id") if isinstance(site, dict) else None
        if not site_id:
            raise FetchError(
                f"Site niet gevonden: {self.site_url} (identifier: {self.site_identifier})",
                context={"url": self.site_url}
            )

        logger.info(f"Reading pages of site {site.get('displayName', self.site_url)}")

        fetcher = PaginatedFetcher(self.client, pagination=ODATA, auth=auth)
        url = f"{self.graph_base_url}/sites/{site_id}/pages/microsoft.graph.sitePage"

        async for page in fetcher.fetch(
            url,
            extract=lambda item: item if isinstance(item, dict) else None,
            params={"$expand": "webparts"}
        ):
            yield page


class SharePointPageSourceClient(SourceClient):
    """Extract SharePoint site pages as plain text envelopes"""

    source = "SharePoint"
    completion_fields = ("title", "content")

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        site_url: str,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(client)
        credentials = ClientCredentialsProvider(
            self.client,
            tenant_id=tenant_id,
            client_id=client_id,
            client_secret=client_secret
        )
        self.sharepoint = SharePointClient(self.client, credentials, site_url)
        self.normalizer = PageNormalizer(self.id_prefix)

    @classmethod
    def create(cls) -> "SharePointPageSourceClient":
        """Build the page source from settings"""
        return cls(
            tenant_id=settings.require("SHAREPOINT_TENANT_ID"),
            client_id=settings.require("SHAREPOINT_CLIENT_ID"),
            client_secret=settings.require("SHAREPOINT_CLIENT_SECRET"),
            site_url=settings.require_url("SHAREPOINT_SITE_URL", "sharepoint"),
        )

    async def get(self) -> AsyncIterator[KissEnvelope]:
        async for page in self.sharepoint.get_all_pages():
            envelope = self.normalizer.normalize(page)
            if envelope is None:
                continue
            logger.info(f"Page extracted: {envelope.title}")
            yield envelope
