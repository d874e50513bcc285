from __future__ import annotations

import asyncio

import httpx
import pytest
import respx

from insectid.config import settings
from insectid.exceptions import GbifError
from insectid.sources import gbif

SUGGEST_URL = f"{settings.gbif_base_url}/species/suggest"

SUGGESTIONS = [
    {
        "key": 1341976,
        "scientificName": "Apis mellifera Linnaeus, 1758",
        "canonicalName": "Apis mellifera",
        "rank": "SPECIES",
        "status": "ACCEPTED",
        "kingdom": "Animalia",
        "phylum": "Arthropoda",
        "class": "Insecta",
        "order": "Hymenoptera",
        "family": "Apidae",
        "genus": "Apis",
        "species": "Apis mellifera",
        "higherClassificationMap": {"1": "Animalia"},
    },
    {
        "key": 7799978,
        "scientificName": "Apis mellifica Linnaeus, 1761",
        "rank": "SPECIES",
        "status": "SYNONYM",
        "accepted": "Apis mellifera Linnaeus, 1758",
        "acceptedKey": 1341976,
    },
]


def test_search_maps_suggestions():
    with respx.mock as mock:
        route = mock.get(SUGGEST_URL).mock(return_value=httpx.Response(200, json=SUGGESTIONS))
        taxa = asyncio.run(gbif.search_taxa("Apis mell"))

    assert route.call_count == 1
    params = route.calls.last.request.url.params
    assert params["q"] == "Apis mell"
    assert params["limit"] == str(settings.search_limit)

    assert [t.key for t in taxa] == [1341976, 7799978]
    apis = taxa[0]
    assert apis.class_ == "Insecta"
    assert apis.canonical_name == "Apis mellifera"
    assert apis.hierarchy()[:3] == [("Kingdom", "Animalia"), ("Phylum", "Arthropoda"), ("Class", "Insecta")]
    synonym = taxa[1]
    assert synonym.accepted_name == "Apis mellifera Linnaeus, 1758"
    assert synonym.is_synonym


def test_short_query_skips_network():
    with respx.mock as mock:
        route = mock.get(SUGGEST_URL).mock(return_value=httpx.Response(200, json=SUGGESTIONS))
        assert asyncio.run(gbif.search_taxa("A")) == []
        assert asyncio.run(gbif.search_taxa("  A  ")) == []
    assert route.call_count == 0


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="Internal error"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"results": []}),
    ],
)
def test_search_fails_soft_on_bad_responses(response):
    with respx.mock as mock:
        mock.get(SUGGEST_URL).mock(return_value=response)
        assert asyncio.run(gbif.search_taxa("Bombus")) == []


def test_search_fails_soft_on_transport_error():
    with respx.mock as mock:
        mock.get(SUGGEST_URL).mock(side_effect=httpx.ConnectError("unreachable"))
        assert asyncio.run(gbif.search_taxa("Bombus")) == []


def test_malformed_items_are_skipped():
    payload = [
        {"scientificName": "No key"},
        {"key": "not-a-number", "scientificName": "Bad key"},
        {"key": 1340278, "scientificName": "Bombus terrestris (Linnaeus, 1758)", "rank": "SPECIES"},
    ]
    with respx.mock as mock:
        mock.get(SUGGEST_URL).mock(return_value=httpx.Response(200, json=payload))
        taxa = asyncio.run(gbif.search_taxa("Bombus"))
    assert [t.key for t in taxa] == [1340278]


def test_search_uses_given_client():
    async def run():
        async with httpx.AsyncClient() as client:
            return await gbif.search_taxa("Apis", limit=3, client=client)

    with respx.mock as mock:
        route = mock.get(SUGGEST_URL).mock(return_value=httpx.Response(200, json=SUGGESTIONS[:1]))
        taxa = asyncio.run(run())
    assert route.calls.last.request.url.params["limit"] == "3"
    assert len(taxa) == 1


def test_get_taxon_details():
    detail = dict(SUGGESTIONS[0], taxonomicStatus="ACCEPTED")
    detail.pop("status")
    with respx.mock as mock:
        mock.get(f"{settings.gbif_base_url}/species/1341976").mock(
            return_value=httpx.Response(200, json=detail)
        )
        taxon = asyncio.run(gbif.get_taxon_details(1341976))
    assert taxon.scientific_name == "Apis mellifera Linnaeus, 1758"
    assert taxon.status == "ACCEPTED"


def test_get_taxon_details_raises():
    with respx.mock as mock:
        mock.get(f"{settings.gbif_base_url}/species/1").mock(return_value=httpx.Response(404))
        with pytest.raises(GbifError):
            asyncio.run(gbif.get_taxon_details(1))


def test_species_page_url():
    assert gbif.species_page_url(1341976) == "https://www.gbif.org/species/1341976"
