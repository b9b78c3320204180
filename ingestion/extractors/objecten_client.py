"""
Objects API (ZGW Objecten) extractor
"""

from typing import Any, AsyncIterator, Callable, Optional

import httpx

from core.config import settings
from ingestion.auth import token_header
from ingestion.base import SourceClient
from ingestion.pagination import PaginatedFetcher, get_object_data
from ingestion.transformers.normalizer import ObjectNormalizer
from schemas.envelope import KissEnvelope
import logging

logger = logging.getLogger(__name__)

OBJECTS_PATH = "/api/v2/objects"


def objects_url(base_url: str) -> str:
    """Listing url of the objects API below ``base_url``"""
    return base_url.rstrip("/") + OBJECTS_PATH


class ObjectenClient:
    """
    List the objects of one object type.

    HTTP 400 for a type (for example a type that was removed) yields no
    objects instead of failing the run.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str, token: str):
        self.base_url = base_url
        self.fetcher = PaginatedFetcher(
            client,
            headers={"Authorization": token_header(token)}
        )

    def get_objecten(
        self,
        object_type: str,
        extract: Optional[Callable[[Any], Any]] = get_object_data
    ) -> AsyncIterator[Any]:
        """
        Args:
            object_type: Url of the object type
            extract: Per-result extraction, defaults to ``record.data``
        """
        return self.fetcher.fetch(
            objects_url(self.base_url),
            extract=extract,
            params={"type": object_type}
        )


class ObjectenSourceClient(SourceClient):
    """
    Generic objects source: every object of one type, payload as-is.

    Used for VAC (vraag-antwoord combinaties).
    """

    def __init__(
        self,
        source: str,
        base_url: str,
        token: str,
        object_type: str,
        completion_fields=("title",),
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(client)
        self.source = source
        self.completion_fields = tuple(completion_fields)
        self.object_type = object_type
        self.objecten = ObjectenClient(self.client, base_url, token)
        self.normalizer = ObjectNormalizer(self.id_prefix)

    @classmethod
    def create_vac(cls) -> "ObjectenSourceClient":
        """Build the VAC source from settings"""
        return cls(
            source="VAC",
            base_url=settings.require_url("OBJECTEN_BASE_URL", "objecten"),
            token=settings.require("OBJECTEN_TOKEN"),
            object_type=settings.require("VAC_OBJECTTYPE_URL"),
            completion_fields=("vraag",),
        )

    async def get(self) -> AsyncIterator[KissEnvelope]:
        async for envelope in self.objecten.get_objecten(
            self.object_type,
            extract=self.normalizer.normalize
        ):
            yield envelope
