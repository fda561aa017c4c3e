"""Data models for the generation engine layer."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4


class ProviderType(StrEnum):
    """Supported generation providers."""

    GEMINI = "gemini"
    OPENROUTER = "openrouter"
    MOCK = "mock"


class OutputMode(StrEnum):
    """Requested shape of the generated output."""

    TEXT = "text"
    STRUCTURED = "structured"  # a single JSON object


@dataclass
class UsageStats:
    """Token usage tracking."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class ProviderError:
    """Error from a provider."""

    provider: ProviderType
    error_type: str  # api_error, timeout, exception
    message: str
    status_code: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "provider": self.provider.value,
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class GenerationRequest:
    """One call to the generation engine."""

    role_instruction: str
    task_payload: str
    output_mode: OutputMode = OutputMode.TEXT

    id: UUID = field(default_factory=uuid4)
    phase: str | None = None  # used for logging and mock routing

    # Model settings
    model: str = ""
    temperature: float = 0.7
    max_tokens: int = 4096

    @property
    def structured(self) -> bool:
        return self.output_mode == OutputMode.STRUCTURED


@dataclass
class GenerationResponse:
    """Response from a single generation call."""

    request_id: UUID
    provider: ProviderType
    model: str

    content: str
    raw_response: dict = field(default_factory=dict)

    usage: UsageStats = field(default_factory=UsageStats)
    latency_ms: float = 0.0

    success: bool = True
    error: ProviderError | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "request_id": str(self.request_id),
            "provider": self.provider.value,
            "model": self.model,
            "content": self.content[:500] + "..." if len(self.content) > 500 else self.content,
            "usage": self.usage.to_dict(),
            "latency_ms": round(self.latency_ms, 2),
            "success": self.success,
            "error": self.error.to_dict() if self.error else None,
        }
