"""Generation providers - unified interface for text-generation engines."""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from worker.generation.models import (
    GenerationRequest,
    GenerationResponse,
    OutputMode,
    ProviderError,
    ProviderType,
    UsageStats,
)


@dataclass
class ProviderConfig:
    """Configuration for a generation provider."""

    api_key: str = ""
    base_url: str = ""
    timeout_seconds: float = 90.0


class GenerationProvider(ABC):
    """Abstract base class for generation providers."""

    provider_type: ProviderType

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.transport = transport

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.config.timeout_seconds,
            transport=self.transport,
        )

    def _failure(
        self,
        request: GenerationRequest,
        start_time: float,
        error_type: str,
        message: str,
        status_code: int | None = None,
    ) -> GenerationResponse:
        return GenerationResponse(
            request_id=request.id,
            provider=self.provider_type,
            model=request.model,
            content="",
            success=False,
            latency_ms=(time.perf_counter() - start_time) * 1000,
            error=ProviderError(
                provider=self.provider_type,
                error_type=error_type,
                message=message,
                status_code=status_code,
            ),
        )

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run a single generation request."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is available."""
        ...


class GeminiProvider(GenerationProvider):
    """Google Gemini via the Generative Language REST API - primary provider."""

    provider_type = ProviderType.GEMINI

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(config, transport=transport)
        if not config.base_url:
            config.base_url = "https://generativelanguage.googleapis.com/v1beta"

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run generation via Gemini generateContent."""
        start_time = time.perf_counter()

        payload = {
            "systemInstruction": {"parts": [{"text": request.role_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": request.task_payload}]}],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_tokens,
                "responseMimeType": (
                    "application/json" if request.structured else "text/plain"
                ),
            },
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.config.base_url}/models/{request.model}:generateContent",
                    params={"key": self.config.api_key},
                    json=payload,
                )

                if response.status_code != 200:
                    return self._failure(
                        request,
                        start_time,
                        "api_error",
                        f"HTTP {response.status_code}: {response.text}",
                        status_code=response.status_code,
                    )

                data = response.json()

            # No candidates means the prompt was blocked; report it as empty content
            candidates = data.get("candidates") or []
            parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
            content = "".join(p.get("text", "") for p in parts if isinstance(p, dict))

            usage_data = data.get("usageMetadata") or {}
            usage = UsageStats(
                prompt_tokens=usage_data.get("promptTokenCount", 0),
                completion_tokens=usage_data.get("candidatesTokenCount", 0),
                total_tokens=usage_data.get("totalTokenCount", 0),
            )

        except httpx.TimeoutException:
            return self._failure(
                request,
                start_time,
                "timeout",
                f"Request timed out after {self.config.timeout_seconds}s",
            )
        except Exception as e:
            return self._failure(request, start_time, "exception", str(e))

        return GenerationResponse(
            request_id=request.id,
            provider=self.provider_type,
            model=request.model,
            content=content,
            raw_response=data,
            usage=usage,
            latency_ms=(time.perf_counter() - start_time) * 1000,
            success=True,
        )

    async def health_check(self) -> bool:
        """Check if Gemini is reachable with the configured key."""
        try:
            async with self._client(timeout=5.0) as client:
                response = await client.get(
                    f"{self.config.base_url}/models",
                    params={"key": self.config.api_key},
                )
                is_healthy: bool = response.status_code == 200
                return is_healthy
        except Exception:
            return False


class OpenRouterProvider(GenerationProvider):
    """OpenRouter aggregator provider - alternative engine."""

    provider_type = ProviderType.OPENROUTER

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(config, transport=transport)
        if not config.base_url:
            config.base_url = "https://openrouter.ai/api/v1"

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run generation via OpenRouter chat completions."""
        start_time = time.perf_counter()

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "X-Title": "Clinic Audit",
        }

        payload: dict = {
            "model": request.model,
            "messages": [
                {"role": "system", "content": request.role_instruction},
                {"role": "user", "content": request.task_payload},
            ],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        if request.structured:
            payload["response_format"] = {"type": "json_object"}

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.config.base_url}/chat/completions",
                    headers=headers,
                    json=payload,
                )

                if response.status_code != 200:
                    return self._failure(
                        request,
                        start_time,
                        "api_error",
                        f"HTTP {response.status_code}: {response.text}",
                        status_code=response.status_code,
                    )

                data = response.json()
                content = data["choices"][0]["message"]["content"] or ""

            usage_data = data.get("usage") or {}
            usage = UsageStats(
                prompt_tokens=usage_data.get("prompt_tokens", 0),
                completion_tokens=usage_data.get("completion_tokens", 0),
                total_tokens=usage_data.get("total_tokens", 0),
            )

        except httpx.TimeoutException:
            return self._failure(
                request,
                start_time,
                "timeout",
                f"Request timed out after {self.config.timeout_seconds}s",
            )
        except Exception as e:
            return self._failure(request, start_time, "exception", str(e))

        return GenerationResponse(
            request_id=request.id,
            provider=self.provider_type,
            model=request.model,
            content=content,
            raw_response=data,
            usage=usage,
            latency_ms=(time.perf_counter() - start_time) * 1000,
            success=True,
        )

    async def health_check(self) -> bool:
        """Check if OpenRouter is available."""
        try:
            async with self._client(timeout=5.0) as client:
                response = await client.get(
                    f"{self.config.base_url}/models",
                    headers={"Authorization": f"Bearer {self.config.api_key}"},
                )
                is_healthy: bool = response.status_code == 200
                return is_healthy
        except Exception:
            return False


class MockProvider(GenerationProvider):
    """Mock provider for testing and offline runs.

    Responses, delays and failures are keyed by the request's phase name.
    """

    provider_type = ProviderType.MOCK

    def __init__(
        self,
        config: ProviderConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(config or ProviderConfig(), transport=transport)
        self.responses: dict[str, str] = {}
        self.delays: dict[str, float] = {}
        self.failing_phases: set[str] = set()
        self.calls: list[GenerationRequest] = []

    def set_response(self, phase: str, content: str) -> None:
        """Set the content returned for a phase."""
        self.responses[phase] = content

    def set_delay(self, phase: str, seconds: float) -> None:
        """Delay responses for a phase."""
        self.delays[phase] = seconds

    def set_failure(self, phase: str, should_fail: bool = True) -> None:
        """Make calls for a phase fail at the transport level."""
        if should_fail:
            self.failing_phases.add(phase)
        else:
            self.failing_phases.discard(phase)

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Return mock generation response."""
        self.calls.append(request)
        start_time = time.perf_counter()
        phase = request.phase or ""

        delay = self.delays.get(phase)
        if delay:
            await asyncio.sleep(delay)

        if phase in self.failing_phases:
            return self._failure(request, start_time, "mock_failure", "Simulated failure")

        content = self.responses.get(phase)
        if content is None:
            content = self._generate_mock_response(request)

        return GenerationResponse(
            request_id=request.id,
            provider=self.provider_type,
            model=request.model,
            content=content,
            usage=UsageStats(
                prompt_tokens=len(request.task_payload.split()),
                completion_tokens=len(content.split()),
                total_tokens=len(request.task_payload.split()) + len(content.split()),
            ),
            latency_ms=(time.perf_counter() - start_time) * 1000,
            success=True,
        )

    def _generate_mock_response(self, request: GenerationRequest) -> str:
        """Generate a plausible response for the requested output mode."""
        if request.output_mode == OutputMode.TEXT:
            return (
                "Campaign,Ad Group,Headline 1,Headline 2,Final URL\n"
                "Diagnostico Digital,Consulta,Especialista Perto de Voce,"
                "Agende Hoje,https://example.com"
            )
        if request.phase == "sales_pitch":
            return json.dumps(
                {
                    "headline": "Seu consultório digital precisa de tratamento",
                    "symptoms": ["Site lento", "Pouca autoridade", "Concorrência forte"],
                    "prognosis": "Sem intervenção, a perda de pacientes continua.",
                    "treatmentPlan": ["Cirurgia de SEO", "Implante de Conteúdo"],
                }
            )
        return json.dumps(
            {
                "text": f"Análise simulada da fase {request.phase or 'desconhecida'}.",
                "severity": "medium",
            }
        )

    async def health_check(self) -> bool:
        """Mock provider is always healthy."""
        return True


def get_provider(
    provider_type: ProviderType,
    config: ProviderConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GenerationProvider:
    """Factory function to get a generation provider."""
    if config is None:
        config = ProviderConfig()

    providers: dict[ProviderType, type[GenerationProvider]] = {
        ProviderType.GEMINI: GeminiProvider,
        ProviderType.OPENROUTER: OpenRouterProvider,
        ProviderType.MOCK: MockProvider,
    }

    provider_class = providers.get(provider_type)
    if provider_class is None:
        raise ValueError(f"Unknown provider type: {provider_type}")

    return provider_class(config, transport=transport)
