"""
Script to sync one source into Enterprise Search, or start a domain crawl

Usage:
    kiss-elastic-sync                 # kennisartikelen (product catalogue)
    kiss-elastic-sync vac
    kiss-elastic-sync smoelenboek
    kiss-elastic-sync sharepoint
    kiss-elastic-sync domain <url>
"""

import asyncio
import signal
import sys
import logging
from typing import List, Optional

from core.exceptions import ConfigurationError
from core.logging import setup_logging
from ingestion.loaders.enterprise_search import ElasticEnterpriseSearchClient
from ingestion.runner import SyncRunner
from ingestion.sources import create_source

logger = logging.getLogger(__name__)


async def run_sync(args: List[str]):
    """Run the sync selected by ``args``"""
    sink = ElasticEnterpriseSearchClient.create()
    runner = SyncRunner(sink)

    if args and args[0].lower() == "domain":
        if len(args) < 2:
            await sink.aclose()
            raise ConfigurationError("Usage: domain <url>")
        await runner.crawl(args[1])
        return

    try:
        source = create_source(args)
    except Exception:
        await sink.aclose()
        raise

    await runner.run(source)


async def main_async(args: List[str]) -> int:
    """Run the sync as a task that SIGINT/SIGTERM cancel"""
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(run_sync(args))

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, task.cancel)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass

    try:
        await task
    except asyncio.CancelledError:
        logger.warning("Sync cancelled")
        return 0
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                pass

    return 0


def main(argv: Optional[List[str]] = None):
    setup_logging()
    args = sys.argv[1:] if argv is None else argv
    sys.exit(asyncio.run(main_async(args)))


if __name__ == "__main__":
    main()
