from __future__ import annotations
import logging
from typing import Optional
from openai import AsyncAzureOpenAI, APIError, APIConnectionError, APITimeoutError
from projectgen.core.config import settings
from projectgen.core.errors import ProviderUnavailable
from projectgen.providers.base import ProviderAdapter, AnalysisResult, parse_analysis
from projectgen.providers.prompts import (
    ANALYSIS_SYSTEM,
    FILES_SYSTEM,
    build_analysis_prompt,
    build_files_prompt,
)

log = logging.getLogger(__name__)


class AzureOpenAIProvider(ProviderAdapter):
    name = "azure"

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        deployment: Optional[str] = None,
        api_version: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncAzureOpenAI] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.azure_openai_api_key
        self.endpoint = endpoint if endpoint is not None else settings.azure_openai_endpoint
        self.deployment = deployment or settings.azure_openai_deployment
        self.api_version = api_version or settings.azure_openai_api_version
        self.model_name = model_name or settings.azure_openai_model_name
        self.timeout = timeout or settings.provider_timeout_seconds
        self._client = client

    def is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key and self.endpoint)

    @property
    def client(self) -> AsyncAzureOpenAI:
        if self._client is None:
            if not self.is_configured():
                raise ProviderUnavailable(
                    self.name, "Azure OpenAI not configured. Set AZURE_OPENAI_API_KEY and AZURE_OPENAI_ENDPOINT"
                )
            self._client = AsyncAzureOpenAI(
                api_key=self.api_key,
                azure_endpoint=self.endpoint,
                azure_deployment=self.deployment,
                api_version=self.api_version,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def _complete(self, system: str, prompt: str, *, max_tokens: int, temperature: float, json_mode: bool) -> str:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs,
            )
        except (APIConnectionError, APITimeoutError) as e:
            raise ProviderUnavailable(self.name, f"request failed: {e}") from e
        except APIError as e:
            raise ProviderUnavailable(self.name, f"API error: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def analyze(self, description: str) -> AnalysisResult:
        text = await self._complete(
            ANALYSIS_SYSTEM,
            build_analysis_prompt(description),
            max_tokens=2000,
            temperature=0.3,
            json_mode=True,
        )
        return parse_analysis(text or "{}")

    async def generate_files(self, analysis: AnalysisResult) -> str:
        text = await self._complete(
            FILES_SYSTEM,
            build_files_prompt(analysis),
            max_tokens=16384,
            temperature=0.2,
            json_mode=False,
        )
        log.debug("Azure returned %d characters of file output", len(text))
        return text
