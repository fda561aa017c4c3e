"""Explicit configuration for one orchestrator instance."""

from dataclasses import dataclass, field

from api.config import Settings
from worker.generation.models import ProviderType
from worker.generation.runner import GenerationConfig
from worker.signals.sources import CollectorConfig


@dataclass
class AuditConfig:
    """Credentials, timeouts and fallbacks for the audit pipeline."""

    collector: CollectorConfig = field(default_factory=CollectorConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuditConfig":
        """Build from application settings."""
        return cls(
            collector=CollectorConfig(
                api_key=settings.google_api_key,
                timeout_seconds=settings.signal_timeout_seconds,
                pagespeed_timeout_seconds=settings.pagespeed_timeout_seconds,
                locale=settings.signal_locale,
                page_text_max_chars=settings.page_text_max_chars,
            ),
            generation=GenerationConfig(
                provider=ProviderType(settings.generation_provider),
                model=settings.generation_model,
                api_key=settings.generation_api_key,
                timeout_seconds=settings.generation_timeout_seconds,
                temperature=settings.generation_temperature,
                max_tokens=settings.generation_max_tokens,
            ),
        )
