from __future__ import annotations
import logging
from typing import Any, Optional
import httpx
from projectgen.core.config import settings
from projectgen.core.errors import ProviderUnavailable, ResponseParseError
from projectgen.providers.base import ProviderAdapter, AnalysisResult, parse_analysis
from projectgen.providers.prompts import ANALYSIS_SCHEMA, build_analysis_prompt, build_files_prompt

log = logging.getLogger(__name__)


class GoogleGeminiProvider(ProviderAdapter):
    """Gemini ``generateContent`` over REST."""
    name = "google"

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        analysis_model: Optional[str] = None,
        files_model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.api_base = (api_base or settings.gemini_api_base).rstrip("/")
        self.analysis_model = analysis_model or settings.gemini_analysis_model
        self.files_model = files_model or settings.gemini_files_model
        self.timeout = timeout or settings.provider_timeout_seconds
        self.transport = transport

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict:
        return {
            "x-goog-api-key": self.api_key or "",
            "Content-Type": "application/json",
        }

    async def _generate(self, model: str, prompt: str, generation_config: Optional[dict] = None) -> str:
        if not self.is_configured():
            raise ProviderUnavailable(self.name, "Google AI API key not configured")

        body: dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if generation_config:
            body["generationConfig"] = generation_config

        url = f"{self.api_base}/models/{model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.post(url, headers=self._headers(), json=body)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            raise ProviderUnavailable(self.name, f"HTTP {e.response.status_code} from {model}") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(self.name, f"request to {model} failed: {e}") from e
        except ValueError as e:
            raise ResponseParseError(f"Gemini returned a non-JSON envelope: {e}") from e

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: Any) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise ResponseParseError("Gemini response has no candidate content") from e
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))

    async def analyze(self, description: str) -> AnalysisResult:
        text = await self._generate(
            self.analysis_model,
            build_analysis_prompt(description),
            {"responseMimeType": "application/json", "responseSchema": ANALYSIS_SCHEMA},
        )
        return parse_analysis(text or "{}")

    async def generate_files(self, analysis: AnalysisResult) -> str:
        text = await self._generate(self.files_model, build_files_prompt(analysis))
        log.debug("Gemini returned %d characters of file output", len(text))
        return text
