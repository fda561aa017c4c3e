"""Phase runner - one generation engine call per pipeline phase."""

from dataclasses import dataclass

import httpx
import structlog

from api.exceptions import EngineError, EngineErrorKind
from worker.generation.models import GenerationRequest, OutputMode, ProviderType
from worker.generation.providers import GenerationProvider, ProviderConfig, get_provider

logger = structlog.get_logger(__name__)


@dataclass
class GenerationConfig:
    """Configuration for the generation engine."""

    provider: ProviderType = ProviderType.GEMINI
    model: str = "gemini-2.0-flash"
    api_key: str = ""
    base_url: str = ""
    timeout_seconds: float = 90.0
    temperature: float = 0.7
    max_tokens: int = 4096

    def get_provider_config(self) -> ProviderConfig:
        """Get config for the provider."""
        return ProviderConfig(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout_seconds=self.timeout_seconds,
        )


class PhaseRunner:
    """Runs single generation phases and classifies engine failures.

    Stateless between calls; the caller decides whether to retry.
    """

    def __init__(
        self,
        config: GenerationConfig | None = None,
        provider: GenerationProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or GenerationConfig()
        self.provider = provider or get_provider(
            self.config.provider,
            self.config.get_provider_config(),
            transport=transport,
        )

    async def run_phase(
        self,
        role_instruction: str,
        task_payload: str,
        structured: bool,
        *,
        phase: str | None = None,
    ) -> str:
        """
        Send one role instruction and task payload to the engine.

        Args:
            role_instruction: Fixed persona and rules block
            task_payload: Data-filled prompt for this phase
            structured: Request a JSON object instead of free-form text
            phase: Phase name, for logging

        Returns:
            Raw generated text

        Raises:
            EngineError: TRANSPORT_FAILURE if the call failed,
                EMPTY_RESPONSE if it produced no text
        """
        request = GenerationRequest(
            role_instruction=role_instruction,
            task_payload=task_payload,
            output_mode=OutputMode.STRUCTURED if structured else OutputMode.TEXT,
            phase=phase,
            model=self.config.model,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )

        provider_name = self.provider.provider_type.value
        try:
            response = await self.provider.generate(request)
        except Exception as e:
            logger.warning(
                "phase_engine_failed",
                phase=phase,
                provider=provider_name,
                error_type="exception",
                error=str(e),
            )
            raise EngineError(
                EngineErrorKind.TRANSPORT_FAILURE, str(e), provider=provider_name
            ) from e

        if not response.success:
            message = response.error.message if response.error else "Unknown provider error"
            logger.warning(
                "phase_engine_failed",
                phase=phase,
                provider=provider_name,
                error_type=response.error.error_type if response.error else None,
                error=message,
            )
            raise EngineError(EngineErrorKind.TRANSPORT_FAILURE, message, provider=provider_name)

        if not response.content or not response.content.strip():
            logger.warning("phase_engine_empty", phase=phase, provider=provider_name)
            raise EngineError(
                EngineErrorKind.EMPTY_RESPONSE,
                "Generation engine returned no text",
                provider=provider_name,
            )

        logger.debug(
            "phase_engine_completed",
            phase=phase,
            provider=provider_name,
            latency_ms=round(response.latency_ms, 2),
            total_tokens=response.usage.total_tokens,
        )
        return response.content

    async def health_check(self) -> bool:
        """Check if the configured engine is reachable."""
        return await self.provider.health_check()
