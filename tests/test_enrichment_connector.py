"""
Enrichment connector tests using an httpx mock transport.
"""

import httpx
import pytest

from connectors import enrichment
from connectors.enrichment import EnrichmentClient
from connectors.exceptions import EnrichmentTimeout, EnrichmentUnavailable, InvalidEnrichmentResponse


def _patch_transport(monkeypatch, handler):
    real = httpx.AsyncClient

    def factory(**kwargs):
        return real(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(enrichment.httpx, "AsyncClient", factory)


@pytest.mark.asyncio
async def test_enrich_parses_response_and_sends_prompt(monkeypatch):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = request.content
        return httpx.Response(200, json={
            "analysis": " Likely a bad deploy ",
            "recommended_actions": ["Roll back", " "],
            "severity": "critical",
        })

    _patch_transport(monkeypatch, handler)
    client = EnrichmentClient("http://llm.local/", timeout=2, api_key="k")
    result = await client.enrich("why?")
    assert result.analysis == "Likely a bad deploy"
    assert result.recommended_actions == ["Roll back"]
    assert result.severity == "critical"
    assert seen["url"] == "http://llm.local/v1/analyze"
    assert seen["auth"] == "Bearer k"
    assert b'"prompt":"why?"' in seen["body"].replace(b" ", b"")


@pytest.mark.asyncio
async def test_client_error_is_invalid_response(monkeypatch):
    _patch_transport(monkeypatch, lambda request: httpx.Response(400, text="bad prompt"))
    with pytest.raises(InvalidEnrichmentResponse):
        await EnrichmentClient("http://llm.local").enrich("x")


@pytest.mark.asyncio
async def test_server_error_is_unavailable_after_retry(monkeypatch):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    _patch_transport(monkeypatch, handler)
    with pytest.raises(EnrichmentUnavailable):
        await EnrichmentClient("http://llm.local").enrich("x")
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_timeout_maps_to_enrichment_timeout(monkeypatch):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    _patch_transport(monkeypatch, handler)
    with pytest.raises(EnrichmentTimeout):
        await EnrichmentClient("http://llm.local").enrich("x")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [[], {"analysis": ""}, {"analysis": "ok", "recommended_actions": "do it"}, {"analysis": "ok", "recommended_actions": [1]}],
)
async def test_malformed_payloads_are_rejected(monkeypatch, payload):
    _patch_transport(monkeypatch, lambda request: httpx.Response(200, json=payload))
    with pytest.raises(InvalidEnrichmentResponse):
        await EnrichmentClient("http://llm.local").enrich("x")


@pytest.mark.asyncio
async def test_non_json_body_is_rejected(monkeypatch):
    _patch_transport(monkeypatch, lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(InvalidEnrichmentResponse):
        await EnrichmentClient("http://llm.local").enrich("x")
