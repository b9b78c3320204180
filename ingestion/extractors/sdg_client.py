"""
Product catalogue (SDG) extractor for kennisartikelen
"""

from typing import AsyncIterator, Optional

import httpx

from core.config import settings
from ingestion.auth import token_header
from ingestion.base import SourceClient
from ingestion.pagination import PaginatedFetcher
from ingestion.transformers.normalizer import ProductNormalizer
from schemas.envelope import KissEnvelope

PRODUCTS_PATH = "/api/v1/producten"


class SdgProductClient(SourceClient):
    """Extract every product of the catalogue as a kennisartikel"""

    source = "Kennisartikel"
    completion_fields = ("title",)

    def __init__(
        self,
        base_url: str,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(client)
        self.products_url = base_url.rstrip("/") + PRODUCTS_PATH
        self.fetcher = PaginatedFetcher(
            self.client,
            headers={"Authorization": token_header(api_key)}
        )
        self.normalizer = ProductNormalizer(self.id_prefix)

    @classmethod
    def create(cls) -> "SdgProductClient":
        """Build the product source from settings"""
        return cls(
            base_url=settings.require_url("SDG_BASE_URL", "sdg"),
            api_key=settings.require("SDG_API_KEY"),
        )

    async def get(self) -> AsyncIterator[KissEnvelope]:
        async for envelope in self.fetcher.fetch(
            self.products_url,
            extract=self.normalizer.normalize
        ):
            yield envelope
