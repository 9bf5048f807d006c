"""Google AI Studio generateContent client (Gemma / Gemini models).

One attempt per call, bounded by the client timeout, with no retry. Every
failure is raised as ProviderError with a short reason the caller can count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from finguard.config import Settings
from finguard.errors import ProviderError


@dataclass(frozen=True)
class Sampling:
    temperature: float
    top_p: float
    top_k: int
    max_output_tokens: int

    def as_generation_config(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "topP": self.top_p,
            "topK": self.top_k,
            "maxOutputTokens": self.max_output_tokens,
        }


class GoogleAiClient:
    """Thin async adapter over ``POST {base}/{model}:generateContent``.

    The underlying httpx.AsyncClient is owned by this object when it creates
    it, and closed by aclose(); an injected client is left open.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 15.0,
        http: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ValueError("api_key required")
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @classmethod
    def from_settings(
        cls, s: Settings, http: Optional[httpx.AsyncClient] = None
    ) -> Optional["GoogleAiClient"]:
        """Build a client, or None when the provider is disabled or has no key."""
        if not s.narrative_configured():
            return None
        return cls(
            api_key=s.provider_key(),
            model=s.NARRATIVE_MODEL,
            base_url=s.NARRATIVE_BASE_URL,
            timeout=s.NARRATIVE_TIMEOUT_SEC,
            http=http,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    async def generate(self, prompt: str, sampling: Sampling) -> str:
        """Return the first candidate's text, stripped."""
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": sampling.as_generation_config(),
        }
        try:
            resp = await self._http.post(
                self.url,
                params={"key": self._api_key},
                json=payload,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderError("timeout", type(e).__name__) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ProviderError("transport", type(e).__name__) from e

        if resp.status_code >= 400:
            raise ProviderError("http_status", str(resp.status_code))
        try:
            data = resp.json()
        except (ValueError, RecursionError) as e:
            raise ProviderError("empty_reply", "response body is not JSON") from e

        text = _candidate_text(data)
        if not text:
            raise ProviderError("empty_reply")
        return text

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()


def _candidate_text(data: Any) -> Optional[str]:
    try:
        parts = data["candidates"][0]["content"]["parts"]
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    return text.strip() or None


__all__ = ["Sampling", "GoogleAiClient"]
