"""Map-service layer downloading client."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiohttp

from layer_extractor.core.config import DOWNLOAD_TIMEOUT, QUERY_SUFFIX
from layer_extractor.models.catalog import Catalog

logger = logging.getLogger(__name__)


def build_query_url(base_url: str, layer_id: int) -> str:
    """Build the query URL requesting every record and field of a layer as JSON."""
    return f"{base_url.rstrip('/')}/{layer_id}/{QUERY_SUFFIX}"


@dataclass
class FetchResult:
    """Outcome of fetching one layer."""

    layer_id: int
    url: str
    path: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LayerFetcher:
    """Client for downloading layer documents from one catalog."""

    def __init__(
        self,
        catalog: Catalog,
        timeout: float = DOWNLOAD_TIMEOUT,
        log: Optional[logging.Logger] = None,
    ):
        """
        Initialize layer fetcher.

        Args:
            catalog: Catalog providing base URL, name table and output directory
            timeout: Total timeout per request in seconds
            log: Logger receiving progress and error entries
        """
        self.catalog = catalog
        self.timeout = timeout
        self.log = log or logger
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.session:
            await self.session.close()

    async def fetch_layer(self, layer_id: int) -> FetchResult:
        """
        Download a single layer and write its body verbatim.

        Args:
            layer_id: 1-based layer identifier

        Returns:
            FetchResult; failures are logged and reported, never raised
        """
        url = build_query_url(self.catalog.base_url, layer_id)
        self.log.info(f"Requesting JSON layer data at URL: {url}")

        try:
            output_path = self.catalog.raw_layer_path(layer_id)
            async with self.session.get(url) as response:
                response.raise_for_status()
                content = await response.read()
            output_path.write_bytes(content)
        except Exception as e:
            message = str(e) or type(e).__name__
            self.log.error(f"Error while requesting JSON layer data at URL: {url}: {message}")
            return FetchResult(layer_id=layer_id, url=url, error=message)

        self.log.debug(f"Saved layer {layer_id} ({len(content)} bytes) to {output_path}")
        return FetchResult(layer_id=layer_id, url=url, path=output_path)

    async def fetch_layers(self, layer_ids: list[int]) -> list[FetchResult]:
        """
        Download layers one after another.

        Args:
            layer_ids: Layer identifiers in request order

        Returns:
            One FetchResult per identifier, in the same order
        """
        try:
            self.catalog.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.log.error(f"Error creating output directory: {self.catalog.output_dir}: {e}")
            return [
                FetchResult(layer_id=layer_id, url=build_query_url(self.catalog.base_url, layer_id), error=str(e))
                for layer_id in layer_ids
            ]

        results = []
        for layer_id in layer_ids:
            results.append(await self.fetch_layer(layer_id))
        return results


def fetch_catalog(
    catalog: Catalog,
    layer_ids: list[int],
    timeout: float = DOWNLOAD_TIMEOUT,
    log: Optional[logging.Logger] = None,
) -> list[FetchResult]:
    """
    Download every configured layer of a catalog (blocking).

    Args:
        catalog: Catalog to fetch
        layer_ids: Layer identifiers in request order
        timeout: Total timeout per request in seconds
        log: Logger receiving progress and error entries

    Returns:
        One FetchResult per identifier
    """

    async def _run():
        async with LayerFetcher(catalog, timeout=timeout, log=log) as fetcher:
            return await fetcher.fetch_layers(layer_ids)

    results = asyncio.run(_run())

    failed = [r for r in results if not r.ok]
    (log or logger).info(
        f"Fetched {len(results) - len(failed)}/{len(results)} layers into {catalog.output_dir}"
    )
    return results
