"""
Sync pipeline components: upstream extraction and Enterprise Search loading.

Modules:
    base: Abstract source client owning one HTTP client per run
    pagination: Lazy walker for cursor-paginated JSON APIs
    auth: Token and client-credentials authorization
    runner: Orchestrator streaming one source into the engine
    sources: Source selection from command line arguments

Subpackages:
    extractors: Source clients (product catalogue, VAC, smoelenboek, SharePoint)
    transformers: Per-source normalizers and HTML text extraction
    loaders: Enterprise Search bulk indexer and crawler trigger

Architecture:
    The pipeline is one lazily evaluated chain:

    1. Extract - Walk paginated listings page by page
    2. Transform - Map each raw record onto a KissEnvelope (or skip it)
    3. Load - Batch envelopes into bulk requests of at most 100 documents

    Nothing runs concurrently within a run; the loader pulls the next
    envelope only after the previous one was written to its batch.

Usage:
    from ingestion.sources import create_source
    from ingestion.loaders.enterprise_search import ElasticEnterpriseSearchClient
    from ingestion.runner import SyncRunner

Example:
    runner = SyncRunner(ElasticEnterpriseSearchClient.create())
    result = await runner.run(create_source(["smoelenboek"]))

    print(f"Indexed {result['records_indexed']} records")

Error Handling:
    HTTP 400 on a listing, unparsable pagination envelopes and malformed
    records are tolerated locally. Everything else raises one of the
    exceptions in core.exceptions and aborts the run.
"""

__all__ = [
    "base",
    "pagination",
    "auth",
    "runner",
    "sources",
    "extractors",
    "transformers",
    "loaders",
]
