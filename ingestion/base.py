"""
Abstract base class for sync sources
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional, Sequence

import httpx

from core.config import settings
from schemas.envelope import KissEnvelope
import logging

logger = logging.getLogger(__name__)


class SourceClient(ABC):
    """
    Abstract base class for all sync sources.

    Responsibilities:
    - Own one HTTP client for the duration of a run
    - Expose the source slug and its autocomplete fields
    - Produce a lazy sequence of envelopes

    Use as an async context manager so the HTTP client is closed on every
    exit path, including cancellation:

        async with ObjectenSourceClient(...) as source:
            async for envelope in source.get():
                ...
    """

    source: str = ""
    completion_fields: Sequence[str] = ("title",)

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)

    @abstractmethod
    def get(self) -> AsyncIterator[KissEnvelope]:
        """
        Yield the envelopes of this source in upstream order.

        Returns:
            Async iterator of envelopes
        """
        pass

    @property
    def id_prefix(self) -> str:
        """Namespace for envelope ids"""
        return self.source.lower()

    async def aclose(self):
        """Close the HTTP client"""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
