import httpx
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from connectors.exceptions import (
    EnrichmentTimeout,
    EnrichmentUnavailable,
    InvalidEnrichmentResponse,
)
from connectors.retry import retry

ENRICH_PATH = "/v1/analyze"


@dataclass(frozen=True)
class Enrichment:
    analysis: str
    recommended_actions: List[str] = field(default_factory=list)
    severity: Optional[str] = None


def _parse(payload: Any) -> Enrichment:
    if not isinstance(payload, dict):
        raise InvalidEnrichmentResponse("enrichment response must be a JSON object")
    analysis = payload.get("analysis")
    if not isinstance(analysis, str) or not analysis.strip():
        raise InvalidEnrichmentResponse("enrichment response is missing analysis")
    actions = payload.get("recommended_actions") or []
    if not isinstance(actions, list) or not all(isinstance(a, str) for a in actions):
        raise InvalidEnrichmentResponse("recommended_actions must be a list of strings")
    severity = payload.get("severity")
    return Enrichment(
        analysis=analysis.strip(),
        recommended_actions=[a.strip() for a in actions if a.strip()],
        severity=severity if isinstance(severity, str) else None,
    )


class EnrichmentClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        api_key: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = str(base_url).rstrip("/")
        self.timeout = timeout
        self.api_key = api_key
        self.headers = headers or {}

    @property
    def url(self) -> str:
        return f"{self.base_url}{ENRICH_PATH}"

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            return dict(self.headers)
        return {**self.headers, "Authorization": f"Bearer {self.api_key}"}

    @retry(attempts=2, exceptions=(EnrichmentUnavailable,))
    async def enrich(self, prompt: str) -> Enrichment:
        body = {
            "prompt": prompt,
            "response_schema": {
                "analysis": "string",
                "recommended_actions": "string[]",
                "severity": "string",
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.url, json=body, headers=self._headers())
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code >= 500:
                raise EnrichmentUnavailable(
                    f"Enrichment service error [{e.response.status_code}]"
                ) from e
            raise InvalidEnrichmentResponse(
                f"Enrichment request rejected [{e.response.status_code}]: {e.response.text}"
            ) from e
        except httpx.TimeoutException as e:
            raise EnrichmentTimeout("Enrichment request timed out") from e
        except httpx.RequestError as e:
            raise EnrichmentUnavailable(f"Cannot reach enrichment service at {self.url}") from e
        except ValueError as e:
            raise InvalidEnrichmentResponse("Enrichment response is not valid JSON") from e
        return _parse(payload)
