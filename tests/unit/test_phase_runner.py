"""Tests for the phase runner."""

import httpx
import pytest

from api.exceptions import EngineError, EngineErrorKind
from tests.fixtures import FakeUpstreams, json_response
from worker.generation.models import (
    GenerationRequest,
    GenerationResponse,
    OutputMode,
    ProviderType,
)
from worker.generation.providers import GeminiProvider, MockProvider
from worker.generation.runner import GenerationConfig, PhaseRunner


class TestGenerationConfig:
    """Tests for GenerationConfig."""

    def test_default_config(self) -> None:
        """Defaults target Gemini."""
        config = GenerationConfig()

        assert config.provider == ProviderType.GEMINI
        assert config.model == "gemini-2.0-flash"

    def test_get_provider_config(self) -> None:
        """Provider config carries key, URL and timeout."""
        config = GenerationConfig(api_key="k", base_url="http://local", timeout_seconds=5)

        provider_config = config.get_provider_config()

        assert provider_config.api_key == "k"
        assert provider_config.base_url == "http://local"
        assert provider_config.timeout_seconds == 5


class TestPhaseRunner:
    """Tests for PhaseRunner."""

    @pytest.mark.asyncio
    async def test_returns_raw_text(self) -> None:
        """Successful calls return the engine text untouched."""
        provider = MockProvider()
        provider.set_response("technical", '  {"text": "x"}  ')
        runner = PhaseRunner(provider=provider)

        raw = await runner.run_phase("role", "payload", structured=True, phase="technical")

        assert raw == '  {"text": "x"}  '

    @pytest.mark.asyncio
    async def test_passes_mode_and_settings(self) -> None:
        """Structured flag and model settings reach the provider."""
        provider = MockProvider()
        runner = PhaseRunner(
            GenerationConfig(model="m", temperature=0.2, max_tokens=100),
            provider=provider,
        )

        await runner.run_phase("role", "payload", structured=False, phase="campaign_export")

        request = provider.calls[0]
        assert request.output_mode == OutputMode.TEXT
        assert request.role_instruction == "role"
        assert request.task_payload == "payload"
        assert request.model == "m"
        assert request.temperature == 0.2
        assert request.max_tokens == 100

    @pytest.mark.asyncio
    async def test_provider_failure_is_transport_failure(self) -> None:
        """Failed calls raise a transport EngineError."""
        provider = MockProvider()
        provider.set_failure("market")
        runner = PhaseRunner(provider=provider)

        with pytest.raises(EngineError) as exc_info:
            await runner.run_phase("role", "payload", structured=True, phase="market")

        assert exc_info.value.kind == EngineErrorKind.TRANSPORT_FAILURE
        assert exc_info.value.provider == "mock"
        assert exc_info.value.code == "engine_transport_failure"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   \n  "])
    async def test_blank_content_is_empty_response(self, content: str) -> None:
        """Blank output raises an empty-response EngineError."""
        provider = MockProvider()
        provider.set_response("market", content)
        runner = PhaseRunner(provider=provider)

        with pytest.raises(EngineError) as exc_info:
            await runner.run_phase("role", "payload", structured=True, phase="market")

        assert exc_info.value.kind == EngineErrorKind.EMPTY_RESPONSE

    @pytest.mark.asyncio
    async def test_http_error_through_gemini(self) -> None:
        """An upstream 403 surfaces as a transport failure."""
        upstreams = FakeUpstreams()
        upstreams.route("generativelanguage.googleapis.com", httpx.Response(403, text="bad key"))
        runner = PhaseRunner(GenerationConfig(api_key="g"), transport=upstreams.transport)

        assert isinstance(runner.provider, GeminiProvider)
        with pytest.raises(EngineError) as exc_info:
            await runner.run_phase("role", "payload", structured=True, phase="technical")

        assert exc_info.value.kind == EngineErrorKind.TRANSPORT_FAILURE
        assert "403" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_no_retry(self) -> None:
        """A failed phase is attempted exactly once."""
        provider = MockProvider()
        provider.set_failure("technical")
        runner = PhaseRunner(provider=provider)

        with pytest.raises(EngineError):
            await runner.run_phase("role", "payload", structured=True, phase="technical")

        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_provider_exception_is_transport_failure(self) -> None:
        """Exceptions escaping a provider are classified, not propagated raw."""

        class ConnectFailingProvider(MockProvider):
            async def generate(self, request: GenerationRequest) -> GenerationResponse:
                raise httpx.ConnectError("connection refused")

        runner = PhaseRunner(provider=ConnectFailingProvider())

        with pytest.raises(EngineError) as exc_info:
            await runner.run_phase("role", "payload", structured=True, phase="market")

        assert exc_info.value.kind == EngineErrorKind.TRANSPORT_FAILURE
        assert exc_info.value.provider == "mock"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_gemini_null_usage(self) -> None:
        """A null usageMetadata block does not break an otherwise valid reply."""
        upstreams = FakeUpstreams()
        upstreams.route(
            "generativelanguage.googleapis.com",
            json_response(
                {
                    "candidates": [{"content": {"parts": [{"text": '{"text": "ok"}'}]}}],
                    "usageMetadata": None,
                }
            ),
        )
        runner = PhaseRunner(GenerationConfig(api_key="g"), transport=upstreams.transport)

        raw = await runner.run_phase("role", "payload", structured=True, phase="technical")

        assert raw == '{"text": "ok"}'

    @pytest.mark.asyncio
    async def test_openrouter_null_usage(self) -> None:
        """OpenRouter replies with a null usage block are still accepted."""
        upstreams = FakeUpstreams()
        upstreams.route(
            "openrouter.ai",
            json_response({"choices": [{"message": {"content": "texto"}}], "usage": None}),
        )
        runner = PhaseRunner(
            GenerationConfig(provider=ProviderType.OPENROUTER, api_key="or"),
            transport=upstreams.transport,
        )

        raw = await runner.run_phase("role", "payload", structured=False, phase="campaign_export")

        assert raw == "texto"

    @pytest.mark.asyncio
    async def test_gemini_unreadable_body_is_transport_failure(self) -> None:
        """A 200 whose body is not JSON is a transport failure."""
        upstreams = FakeUpstreams()
        upstreams.route("generativelanguage.googleapis.com", httpx.Response(200, text="<html>"))
        runner = PhaseRunner(GenerationConfig(api_key="g"), transport=upstreams.transport)

        with pytest.raises(EngineError) as exc_info:
            await runner.run_phase("role", "payload", structured=True, phase="technical")

        assert exc_info.value.kind == EngineErrorKind.TRANSPORT_FAILURE

    @pytest.mark.asyncio
    async def test_health_check(self) -> None:
        """Delegates to the provider."""
        upstreams = FakeUpstreams()
        upstreams.route("generativelanguage.googleapis.com", json_response({"models": []}))
        runner = PhaseRunner(GenerationConfig(api_key="g"), transport=upstreams.transport)

        assert await runner.health_check() is True
