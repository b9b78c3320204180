"""
Employee (smoelenboek) extractor on top of the Objects and Objecttypes APIs
"""

from typing import Any, AsyncIterator, Optional

import httpx

from core.config import settings
from core.exceptions import ObjectTypeNotFoundError
from ingestion.auth import token_header
from ingestion.base import SourceClient
from ingestion.extractors.objecten_client import ObjectenClient
from ingestion.pagination import PaginatedFetcher
from ingestion.transformers.normalizer import MedewerkerNormalizer
from schemas.envelope import KissEnvelope
import logging

logger = logging.getLogger(__name__)

OBJECTTYPES_PATH = "/api/v2/objecttypes"
MEDEWERKER_TYPE_NAMES = ("Medewerker", "medewerker")


def get_medewerker_type_url(object_type: Any) -> Optional[str]:
    """Return the url of an object type named Medewerker, else None"""
    if not isinstance(object_type, dict):
        return None
    if object_type.get("name") not in MEDEWERKER_TYPE_NAMES:
        return None
    url = object_type.get("url")
    if not isinstance(url, str) or not url.strip():
        return None
    return url


class ObjectenMedewerkerClient(SourceClient):
    """
    Extract employees.

    Every object type named "Medewerker" is looked up first; the objects
    of each matching type are listed in turn. Finding no such type at all
    is a configuration error, not an empty source.
    """

    source = "Smoelenboek"
    completion_fields = ("title",)

    def __init__(
        self,
        objecten_base_url: str,
        objecten_token: str,
        objecttypes_base_url: str,
        objecttypes_token: str,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(client)
        self.objecttypes_url = objecttypes_base_url.rstrip("/") + OBJECTTYPES_PATH
        self.objecttypes = PaginatedFetcher(
            self.client,
            headers={"Authorization": token_header(objecttypes_token)}
        )
        self.objecten = ObjectenClient(self.client, objecten_base_url, objecten_token)
        self.normalizer = MedewerkerNormalizer()

    @classmethod
    def create(cls) -> "ObjectenMedewerkerClient":
        """Build the employee source from settings"""
        return cls(
            objecten_base_url=settings.require_url("OBJECTEN_BASE_URL", "objecten"),
            objecten_token=settings.require("OBJECTEN_TOKEN"),
            objecttypes_base_url=settings.require_url("OBJECTTYPES_BASE_URL", "objecttypes"),
            objecttypes_token=settings.require("OBJECTTYPES_TOKEN"),
        )

    async def get_medewerker_object_types(self) -> AsyncIterator[str]:
        async for url in self.objecttypes.fetch(
            self.objecttypes_url,
            extract=get_medewerker_type_url
        ):
            yield url

    async def get(self) -> AsyncIterator[KissEnvelope]:
        # Collect the types up front so a missing type fails before any
        # objects are requested
        type_urls = [url async for url in self.get_medewerker_object_types()]

        if not type_urls:
            raise ObjectTypeNotFoundError(
                "Kan objecttype 'Medewerker' niet vinden",
                context={
                    "object_type": "Medewerker",
                    "url": self.objecttypes_url
                }
            )

        logger.info(f"Found {len(type_urls)} Medewerker object type(s)")

        for type_url in type_urls:
            async for envelope in self.objecten.get_objecten(
                type_url,
                extract=self.normalizer.normalize
            ):
                yield envelope
