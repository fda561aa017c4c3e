"""Data models for the signal collection layer."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any


def freeze(value: Any) -> Any:
    """Read-only deep copy: dicts become mapping proxies, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Plain dict/list copy of a frozen structure, for serialization."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


class SignalCategory(StrEnum):
    """External signal categories gathered for an audit."""

    PERFORMANCE = "performance"
    SECURITY = "security"
    BRANDING_VISION = "branding_vision"
    BRANDING_TEXT = "branding_text"
    MARKET = "market"
    FIELD_DATA = "field_data"


class SecurityStatus(StrEnum):
    """Security verdict levels."""

    SAFE = "safe"
    WARN = "warn"
    DANGER = "danger"

    @property
    def label(self) -> str:
        """Report-facing label."""
        return _SECURITY_LABELS[self]


_SECURITY_LABELS = {
    SecurityStatus.SAFE: "SEGURO",
    SecurityStatus.WARN: "ALERTA",
    SecurityStatus.DANGER: "PERIGO",
}


@dataclass(frozen=True)
class PerformanceReport:
    """Lighthouse mobile performance summary."""

    score: int  # 0-100
    load_time_display: str  # LCP as displayed by Lighthouse, e.g. "2.4 s"
    screenshot: str | None = None  # data URI of the final screenshot

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "score": self.score,
            "load_time_display": self.load_time_display,
            "has_screenshot": self.screenshot is not None,
        }


@dataclass(frozen=True)
class SecurityVerdict:
    """Security posture of the audited site."""

    status: SecurityStatus
    detail: str = ""

    @property
    def display(self) -> str:
        """Label plus qualifying text, e.g. 'ALERTA (Sem HTTPS)'."""
        if self.detail:
            return f"{self.status.label} ({self.detail})"
        return self.status.label

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "label": self.status.label,
            "detail": self.detail,
            "display": self.display,
        }


@dataclass(frozen=True)
class Competitor:
    """A local competitor listing."""

    name: str
    rating: float | None = None  # 0-5
    review_count: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "rating": self.rating,
            "review_count": self.review_count,
        }


@dataclass(frozen=True)
class MarketSnapshot:
    """Top competitors for the subject's category and locality."""

    competitors: tuple[Competitor, ...] = ()

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"competitors": [c.to_dict() for c in self.competitors]}


@dataclass(frozen=True)
class VisualLabels:
    """Labels detected in the site's screenshot."""

    labels: tuple[str, ...]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"labels": list(self.labels)}


@dataclass(frozen=True)
class SentimentScore:
    """Document sentiment of the site copy."""

    score: float  # -1.0 .. 1.0
    magnitude: float  # >= 0

    @property
    def tone(self) -> str:
        """Coarse tone description."""
        return "Positivo" if self.score > 0 else "Negativo/Neutro"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"score": self.score, "magnitude": self.magnitude, "tone": self.tone}


@dataclass(frozen=True)
class FieldData:
    """Real-user experience data from the Chrome UX Report."""

    has_data: bool
    metrics: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metrics", freeze(self.metrics))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"has_data": self.has_data, "metrics": thaw(self.metrics)}


SignalValue = (
    PerformanceReport
    | SecurityVerdict
    | MarketSnapshot
    | VisualLabels
    | SentimentScore
    | FieldData
)


@dataclass(frozen=True)
class ExternalSignal:
    """One fetched datum, flagged when it is a fallback substitute."""

    category: SignalCategory
    value: SignalValue
    is_fallback: bool = False
    message: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "category": self.category.value,
            "value": self.value.to_dict(),
            "is_fallback": self.is_fallback,
            "message": self.message,
        }


class CollectionContext(Mapping[SignalCategory, ExternalSignal]):
    """Read-only mapping of signal category to its collected signal.

    Built once per audit run. Every category must be present.
    """

    __slots__ = ("_signals",)

    def __init__(self, signals: Mapping[SignalCategory, ExternalSignal]):
        missing = [c.value for c in SignalCategory if c not in signals]
        if missing:
            raise ValueError(f"Missing signal categories: {', '.join(missing)}")
        self._signals = MappingProxyType(dict(signals))

    def __getitem__(self, category: SignalCategory) -> ExternalSignal:
        return self._signals[category]

    def __iter__(self) -> Iterator[SignalCategory]:
        return iter(self._signals)

    def __len__(self) -> int:
        return len(self._signals)

    def __repr__(self) -> str:
        return f"CollectionContext({dict(self._signals)!r})"

    @property
    def performance(self) -> PerformanceReport:
        return self._signals[SignalCategory.PERFORMANCE].value  # type: ignore[return-value]

    @property
    def security(self) -> SecurityVerdict:
        return self._signals[SignalCategory.SECURITY].value  # type: ignore[return-value]

    @property
    def market(self) -> MarketSnapshot:
        return self._signals[SignalCategory.MARKET].value  # type: ignore[return-value]

    @property
    def visual_labels(self) -> VisualLabels:
        return self._signals[SignalCategory.BRANDING_VISION].value  # type: ignore[return-value]

    @property
    def sentiment(self) -> SentimentScore:
        return self._signals[SignalCategory.BRANDING_TEXT].value  # type: ignore[return-value]

    @property
    def field_data(self) -> FieldData:
        return self._signals[SignalCategory.FIELD_DATA].value  # type: ignore[return-value]

    def degraded_categories(self) -> list[SignalCategory]:
        """Categories that hold a fallback value, in declaration order."""
        return [c for c in SignalCategory if self._signals[c].is_fallback]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {c.value: self._signals[c].to_dict() for c in SignalCategory}


@dataclass(frozen=True)
class SubjectProfile:
    """Identifying fields of the professional being audited."""

    name: str
    locality: str
    category: str  # specialty, e.g. "Ortopedia"
    url: str | None = None

    def market_query(self) -> str:
        """Free-text query used for the local places search."""
        return f"{self.category} em {self.locality}"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "locality": self.locality,
            "category": self.category,
            "url": self.url,
        }
