# ============================================================================
# File: ingestion/runner.py
# Description: Drives one source into the Enterprise Search engine
# ============================================================================
"""
Sync Runner - streams one source into the search engine.

Extraction, normalization and loading form a single lazy pipeline: the
loader pulls envelopes from the source one at a time, so memory use does
not depend on the size of the source. Any fatal error propagates to the
caller unchanged after it has been logged.
"""

from typing import Dict, Any
import logging

from ingestion.base import SourceClient
from ingestion.loaders.enterprise_search import ElasticEnterpriseSearchClient
from core.exceptions import SyncException

logger = logging.getLogger(__name__)


class SyncRunner:
    """
    Sync orchestrator

    Responsibilities:
    - Own the source and the sink for the duration of the run
    - Stream source → sink
    - Report run statistics
    """

    def __init__(self, sink: ElasticEnterpriseSearchClient):
        self.sink = sink

    async def run(self, source: SourceClient) -> Dict[str, Any]:
        """
        Run a full sync of ``source``.

        Both the source and the sink are closed when the run ends, whether
        it succeeded, failed or was cancelled.

        Returns:
            Dictionary with run statistics:
            - status: "success"
            - source: The source slug
            - records_indexed: Number of envelopes sent
            - batches: Number of bulk requests

        Raises:
            SyncException: For any fatal extraction or load error
        """
        logger.info(
            f"Starting sync for {source.source} "
            f"(completion fields: {', '.join(source.completion_fields)})"
        )

        try:
            async with source, self.sink:
                stats = await self.sink.index_documents(source.get(), source.source)

        except SyncException as e:
            logger.error(
                f"Sync failed for {source.source}: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            raise

        result = {
            "status": "success",
            "source": source.source,
            "records_indexed": stats["documents"],
            "batches": stats["batches"],
        }

        logger.info(
            f"Sync completed for {source.source}: "
            f"Indexed={result['records_indexed']}, Batches={result['batches']}"
        )

        return result

    async def crawl(self, domain_url: str):
        """Provision the crawler for ``domain_url`` and start a crawl"""
        logger.info(f"Starting crawl for {domain_url}")
        async with self.sink:
            await self.sink.crawl_domain(domain_url)
