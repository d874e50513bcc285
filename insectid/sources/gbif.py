"""
GBIF (Global Biodiversity Information Facility) Taxonomy Lookup
================================================================
Name suggestions and name-usage details from the GBIF species API.
https://www.gbif.org/developer/species
"""
from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..config import settings
from ..exceptions import GbifError
from ..schemas import GbifNameUsage, Taxon

logger = logging.getLogger(__name__)

HEADERS = {"User-Agent": "insectid/0.1"}


def map_gbif_name_usage(record: object) -> Optional[Taxon]:
    """Map a raw GBIF name usage to a Taxon, or None if it is malformed."""
    try:
        return GbifNameUsage.model_validate(record).to_taxon()
    except ValidationError as e:
        logger.debug(f"Skipping malformed GBIF record: {e.error_count()} errors")
        return None


async def search_taxa(
    query: str,
    *,
    limit: Optional[int] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Taxon]:
    """
    Suggest taxa whose names start with ``query``.

    Never raises: transport, status and payload errors are logged and give
    an empty list, the same as a search with no matches.
    """
    if not query or len(query.strip()) < settings.search_min_length:
        return []

    close_client = False
    if client is None:
        client = httpx.AsyncClient()
        close_client = True
    try:
        response = await client.get(
            f"{settings.gbif_base_url}/species/suggest",
            params={"q": query, "limit": limit or settings.search_limit},
            timeout=settings.http_timeout,
            headers=HEADERS,
        )
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error searching taxa for {query!r}: {e}")
        return []
    finally:
        if close_client:
            await client.aclose()

    if not isinstance(payload, list):
        logger.error(f"Unexpected GBIF suggest payload: {type(payload).__name__}")
        return []

    taxa = []
    for record in payload:
        taxon = map_gbif_name_usage(record)
        if taxon is not None:
            taxa.append(taxon)
    return taxa


async def get_taxon_details(
    taxon_key: int,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Taxon:
    """Fetch one name usage by its GBIF key. Raises GbifError on failure."""
    close_client = False
    if client is None:
        client = httpx.AsyncClient()
        close_client = True
    try:
        response = await client.get(
            f"{settings.gbif_base_url}/species/{taxon_key}",
            timeout=settings.http_timeout,
            headers=HEADERS,
        )
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error fetching taxon details for {taxon_key}: {e}")
        raise GbifError(f"Failed to fetch taxon details for {taxon_key}") from e
    finally:
        if close_client:
            await client.aclose()

    try:
        return GbifNameUsage.model_validate(payload).to_taxon()
    except ValidationError as e:
        raise GbifError(f"Unexpected GBIF record for {taxon_key}") from e


def species_page_url(taxon_key: int) -> str:
    return f"{settings.gbif_species_page_url}/{taxon_key}"
