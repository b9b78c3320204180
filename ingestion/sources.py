"""
Select a source client from command line arguments
"""

from typing import Callable, Dict, Sequence

from core.exceptions import ConfigurationError
from ingestion.base import SourceClient
from ingestion.extractors.medewerker_client import ObjectenMedewerkerClient
from ingestion.extractors.objecten_client import ObjectenSourceClient
from ingestion.extractors.sdg_client import SdgProductClient
from ingestion.extractors.sharepoint_client import SharePointPageSourceClient

DEFAULT_SOURCE = "kennisartikel"

SOURCE_FACTORIES: Dict[str, Callable[[], SourceClient]] = {
    "kennisartikel": SdgProductClient.create,
    "vac": ObjectenSourceClient.create_vac,
    "smoelenboek": ObjectenMedewerkerClient.create,
    "sharepoint": SharePointPageSourceClient.create,
}


def create_source(args: Sequence[str]) -> SourceClient:
    """
    Build the source named by the first argument.

    No arguments selects the product catalogue.

    Raises:
        ConfigurationError: For an unknown source or missing settings
    """
    name = args[0].lower() if args else DEFAULT_SOURCE
    factory = SOURCE_FACTORIES.get(name)
    if factory is None:
        raise ConfigurationError(
            f"Unknown source: {args[0]}",
            context={"known_sources": ", ".join(sorted(SOURCE_FACTORIES))}
        )
    return factory()
