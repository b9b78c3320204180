"""
Lazy walker for cursor-paginated JSON APIs.

Pages are requested strictly one after another: the next page is only
requested once the consumer has pulled every record of the current one.
A listing that answers HTTP 400, or whose body is not a recognizable
pagination envelope, ends the sequence without an error. Records that
fail the caller's extraction are skipped.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

import httpx

from core.exceptions import FetchError

logger = logging.getLogger(__name__)

RESPONSE_BODY_LIMIT = 500


@dataclass(frozen=True)
class PaginationFormat:
    """Names of the results array and the continuation link in a page body."""

    results_key: str
    next_key: str


# {"count": 12, "next": "https://...?page=2", "previous": null, "results": [...]}
ZGW = PaginationFormat(results_key="results", next_key="next")

# {"value": [...], "@odata.nextLink": "https://graph.microsoft.com/..."}
ODATA = PaginationFormat(results_key="value", next_key="@odata.nextLink")


def parse_pagination(
    body: Any,
    fmt: PaginationFormat = ZGW
) -> Optional[Tuple[List[Any], Optional[str]]]:
    """
    Split a page body into its records and its continuation link.

    Returns:
        (records, next) or None when the body is not a pagination envelope
    """
    if not isinstance(body, dict):
        return None

    records = body.get(fmt.results_key)
    if not isinstance(records, list):
        return None

    next_url = body.get(fmt.next_key)
    if next_url is not None and not isinstance(next_url, str):
        return None

    if next_url is not None and not next_url.strip():
        next_url = None

    return records, next_url


def get_object_data(item: Any) -> Optional[Dict[str, Any]]:
    """Return ``record.data`` of an objects API result, or None."""
    if not isinstance(item, dict):
        return None
    record = item.get("record")
    if not isinstance(record, dict):
        return None
    data = record.get("data")
    if not isinstance(data, dict):
        return None
    return data


class PaginatedFetcher:
    """
    Walk a paginated listing and yield extracted records.

    The fetcher does not own the HTTP client; the source client that
    creates it opens and closes the client around the whole run.

    Example:
        fetcher = PaginatedFetcher(client, headers={"Authorization": "Token abc"})
        async for data in fetcher.fetch(url, extract=get_object_data):
            ...
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        headers: Optional[Dict[str, str]] = None,
        pagination: PaginationFormat = ZGW,
        auth: Optional[httpx.Auth] = None
    ):
        self.client = client
        self.headers = headers or {}
        self.pagination = pagination
        # Applied per page, so expiring credentials are renewed mid-listing
        self.auth = auth

    async def fetch(
        self,
        url: str,
        extract: Optional[Callable[[Any], Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> AsyncIterator[Any]:
        """
        Yield the records of every page, starting at ``url``.

        Args:
            url: First page url
            extract: Maps one result to the value to yield; None skips it
            params: Query parameters for the first page only, later pages
                are requested verbatim from the continuation link

        Raises:
            FetchError: For any non-success status except 400, and for
                transport failures
        """
        current_url: Optional[str] = url
        current_params = params
        page = 0

        while current_url:
            page += 1
            logger.info(f"Fetching page {page} from {current_url}")

            body = await self._get_page(current_url, current_params)
            if body is None:
                return

            parsed = parse_pagination(body, self.pagination)
            if parsed is None:
                logger.warning(
                    f"Response from {current_url} is not a pagination envelope, "
                    f"stopping this listing"
                )
                return

            records, next_url = parsed
            skipped = 0

            for item in records:
                value = extract(item) if extract else item
                if value is None:
                    skipped += 1
                    continue
                yield value

            if skipped:
                logger.debug(f"Skipped {skipped} invalid records on page {page}")

            current_url = next_url
            current_params = None

    async def _get_page(
        self,
        url: str,
        params: Optional[Dict[str, Any]]
    ) -> Optional[Any]:
        """
        Request one page and decode its JSON body.

        Returns:
            The decoded body, or None when the listing should stop silently
        """
        try:
            response = await self.client.get(url, headers=self.headers, params=params, auth=self.auth)
        except httpx.TransportError as e:
            raise FetchError(
                f"Request to {url} failed",
                context={"url": url},
                original_exception=e
            )

        if response.status_code == httpx.codes.BAD_REQUEST:
            # Usually a misconfigured or removed object type; siblings continue
            logger.warning(f"Ignoring 400 Bad Request from {url}: {response.text[:RESPONSE_BODY_LIMIT]}")
            return None

        if not response.is_success:
            logger.error(
                f"Request to {url} failed with status {response.status_code}: {response.text}"
            )
            raise FetchError(
                f"Request to {url} failed with status {response.status_code}",
                context={
                    "url": url,
                    "status_code": response.status_code,
                    "response_body": response.text[:RESPONSE_BODY_LIMIT]
                }
            )

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning(f"Response from {url} is not valid JSON, stopping this listing")
            return None
