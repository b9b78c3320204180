"""
Load envelopes into an Elastic Enterprise Search (App Search) engine.

Envelopes are sent in batches through the bulk documents endpoint.
Enterprise Search demands a Content-Length header, so each batch is
serialized into a temporary file first: the size is known in advance
without holding the batch in memory. Backend responses are forwarded to
stdout (success) or stderr (failure) as an audit trail of what was sent.
"""

import asyncio
import json
import sys
import tempfile
from contextlib import aclosing, nullcontext
from typing import Any, AsyncIterable, AsyncIterator, Dict, IO, Optional, TextIO

import httpx

from core.config import settings
from core.exceptions import ConfigurationError, CrawlerError, SinkTransmissionError
from schemas.envelope import KissEnvelope
import logging

logger = logging.getLogger(__name__)

MAX_DOCUMENTS = 100
CHUNK_SIZE = 64 * 1024


async def read_chunks(spool: IO[bytes]) -> AsyncIterator[bytes]:
    """Stream a spool file without blocking the event loop"""
    while True:
        chunk = await asyncio.to_thread(spool.read, CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


class ElasticEnterpriseSearchClient:
    """
    Bulk indexer and crawler trigger for one engine.

    Ensures:
    - At most ``batch_size`` documents per request
    - One request in flight at a time, in source order
    - A half-built batch is dropped, never sent, when the run is cancelled

    A rejected batch raises; batches sent before it stay indexed.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        engine: str,
        verify: bool = True,
        batch_size: int = MAX_DOCUMENTS,
        timeout: float = 30.0,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not 1 <= batch_size <= MAX_DOCUMENTS:
            raise ConfigurationError(
                f"Batch size must be between 1 and {MAX_DOCUMENTS}, got {batch_size}",
                context={"batch_size": batch_size}
            )

        self.engine = engine
        self.batch_size = batch_size
        self._stdout = stdout
        self._stderr = stderr
        # verify=False is needed where the cluster serves a local certificate
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_key}"},
            verify=verify,
            timeout=timeout,
            transport=transport
        )

    @classmethod
    def create(cls) -> "ElasticEnterpriseSearchClient":
        """Build the client from settings"""
        return cls(
            base_url=settings.require_url("ENTERPRISE_SEARCH_BASE_URL", "elastic"),
            api_key=settings.require("ENTERPRISE_SEARCH_PRIVATE_API_KEY"),
            engine=settings.require("ENTERPRISE_SEARCH_ENGINE"),
            verify=settings.ENTERPRISE_SEARCH_VERIFY_TLS,
            batch_size=settings.BATCH_SIZE,
            timeout=settings.HTTP_TIMEOUT,
        )

    @property
    def stdout(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr or sys.stderr

    @property
    def documents_url(self) -> str:
        return f"/api/as/v1/engines/{self.engine}/documents"

    async def index_documents(
        self,
        documents: AsyncIterable[KissEnvelope],
        bron: str
    ) -> Dict[str, Any]:
        """
        Index every envelope of ``documents`` under source slug ``bron``.

        Args:
            documents: Envelopes in the order they should be indexed
            bron: Source slug, written as ``object_bron`` and payload key

        Returns:
            Dictionary with ``documents`` and ``batches`` counts

        Raises:
            SinkTransmissionError: If the backend rejects a batch
        """
        total = 0
        batches = 0
        count = 0
        spool: Optional[IO[bytes]] = None

        # Source generators are closed here, not by the garbage collector
        scope = aclosing(documents) if hasattr(documents, "aclose") else nullcontext(documents)

        try:
            async with scope as envelopes:
                async for envelope in envelopes:
                    if spool is None:
                        spool = tempfile.TemporaryFile()
                        spool.write(b"[")
                        count = 0
                    elif count:
                        spool.write(b",")

                    document = envelope.to_document(bron)
                    spool.write(json.dumps(document, ensure_ascii=False).encode("utf-8"))
                    count += 1

                    if count >= self.batch_size:
                        batches += 1
                        await self._flush(spool, count, batches)
                        total += count
                        spool.close()
                        spool = None

                if spool is not None:
                    batches += 1
                    await self._flush(spool, count, batches)
                    total += count
        finally:
            if spool is not None:
                spool.close()

        logger.info(f"Indexed {total} documents for {bron} in {batches} batch(es)")
        return {"documents": total, "batches": batches}

    async def _flush(self, spool: IO[bytes], count: int, batch_number: int):
        """Close the JSON array in ``spool`` and post it"""
        spool.write(b"]")
        spool.flush()
        size = spool.tell()
        spool.seek(0)

        logger.info(f"Sending batch {batch_number}: {count} documents, {size} bytes")

        try:
            async with self.client.stream(
                "POST",
                self.documents_url,
                content=read_chunks(spool),
                headers={
                    "Content-Type": "application/json",
                    "Content-Length": str(size)
                }
            ) as response:
                await self._forward(response)
        except httpx.TransportError as e:
            raise SinkTransmissionError(
                f"Sending batch {batch_number} failed",
                context={
                    "url": self.documents_url,
                    "batch_number": batch_number
                },
                original_exception=e
            )

        if not response.is_success:
            raise SinkTransmissionError(
                f"Enterprise Search rejected batch {batch_number} with status {response.status_code}",
                context={
                    "url": self.documents_url,
                    "status_code": response.status_code,
                    "batch_number": batch_number
                }
            )

    async def _forward(self, response: httpx.Response):
        """Copy a response body to stdout or stderr, newline terminated"""
        output = self.stdout if response.is_success else self.stderr
        async for text in response.aiter_text():
            output.write(text)
        output.write("\n")
        output.flush()

    async def crawl_domain(self, domain_url: str):
        """
        Register ``domain_url`` with the engine's crawler and start a crawl.

        A domain that is already registered is reused.

        Raises:
            CrawlerError: If registration or the crawl request fails
        """
        domains_url = f"/api/as/v1/engines/{self.engine}/crawler/domains"
        response = await self._post_crawler(domains_url, {"name": domain_url}, domain_url)

        if response.status_code == httpx.codes.BAD_REQUEST and "already exists" in response.text.lower():
            logger.info(f"Domain {domain_url} is already registered")
        elif not response.is_success:
            raise CrawlerError(
                f"Registering domain {domain_url} failed with status {response.status_code}",
                context={"domain": domain_url, "status_code": response.status_code}
            )

        crawl_url = f"/api/as/v1/engines/{self.engine}/crawler/crawl_requests"
        response = await self._post_crawler(
            crawl_url,
            {"overrides": {"domain_allowlist": [domain_url]}},
            domain_url
        )

        if not response.is_success:
            raise CrawlerError(
                f"Starting crawl of {domain_url} failed with status {response.status_code}",
                context={"domain": domain_url, "status_code": response.status_code}
            )

        logger.info(f"Crawl requested for {domain_url}")

    async def _post_crawler(self, url: str, body: Dict[str, Any], domain_url: str) -> httpx.Response:
        try:
            response = await self.client.post(url, json=body)
        except httpx.TransportError as e:
            raise CrawlerError(
                f"Request to {url} failed",
                context={"domain": domain_url, "url": url},
                original_exception=e
            )

        output = self.stdout if response.is_success else self.stderr
        output.write(response.text)
        output.write("\n")
        output.flush()
        return response

    async def aclose(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
