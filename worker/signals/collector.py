"""Signal collector - fetch with fallback for every signal category."""

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from worker.signals.models import (
    CollectionContext,
    ExternalSignal,
    SignalCategory,
    SubjectProfile,
)
from worker.signals.sources import SOURCE_CLASSES, CollectorConfig, SignalSource

logger = structlog.get_logger(__name__)

# Known-good targets for connectivity probes
PROBE_URL = "https://www.google.com"
PROBE_QUERY = "Ortopedia em São Paulo"
PROBE_TEXT = "Agende sua consulta. Especialista em Quadril."
# 1x1 transparent PNG
PROBE_IMAGE = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


@dataclass
class SourceStatus:
    """Connectivity probe result for one source."""

    category: SignalCategory
    healthy: bool
    latency_ms: float
    detail: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "category": self.category.value,
            "healthy": self.healthy,
            "latency_ms": round(self.latency_ms, 2),
            "detail": self.detail,
        }


class SignalCollector:
    """Collects external signals. Never raises: failures become flagged fallbacks."""

    def __init__(
        self,
        config: CollectorConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or CollectorConfig()
        self._sources: dict[SignalCategory, SignalSource] = {
            category: source_class(self.config, transport=transport)
            for category, source_class in SOURCE_CLASSES.items()
        }

    async def collect(
        self,
        category: SignalCategory,
        params: Mapping[str, Any],
    ) -> ExternalSignal:
        """
        Fetch one signal, substituting its fallback on any failure.

        Args:
            category: Which signal to fetch
            params: Source-specific inputs (url, query, image, text)

        Returns:
            The live signal, or the fallback with is_fallback=True
        """
        source = self._sources[category]
        start_time = time.perf_counter()

        try:
            signal = await source.fetch(params)
            logger.debug(
                "signal_collected",
                category=category.value,
                latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
                message=signal.message,
            )
            return signal
        except Exception as e:
            logger.warning(
                "signal_fallback",
                category=category.value,
                error_type=type(e).__name__,
                error=str(e),
            )

        try:
            value = source.degrade(params)
        except Exception as e:
            logger.warning(
                "signal_degrade_failed",
                category=category.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            value = source.fallback()

        return ExternalSignal(category=category, value=value, is_fallback=True)

    async def collect_all(self, profile: SubjectProfile) -> CollectionContext:
        """
        Collect every signal for a subject concurrently.

        All calls are issued at once. The vision call waits on the
        performance result for its screenshot; every other call only
        needs the subject profile.
        """
        url_params = {"url": profile.url}

        performance_task = asyncio.ensure_future(
            self.collect(SignalCategory.PERFORMANCE, url_params)
        )

        async def collect_vision() -> ExternalSignal:
            performance = await performance_task
            screenshot = getattr(performance.value, "screenshot", None)
            return await self.collect(SignalCategory.BRANDING_VISION, {"image": screenshot})

        categories = [
            SignalCategory.PERFORMANCE,
            SignalCategory.SECURITY,
            SignalCategory.MARKET,
            SignalCategory.BRANDING_VISION,
            SignalCategory.BRANDING_TEXT,
            SignalCategory.FIELD_DATA,
        ]
        results = await asyncio.gather(
            performance_task,
            self.collect(SignalCategory.SECURITY, url_params),
            self.collect(SignalCategory.MARKET, {"query": profile.market_query()}),
            collect_vision(),
            self.collect(SignalCategory.BRANDING_TEXT, url_params),
            self.collect(SignalCategory.FIELD_DATA, url_params),
        )

        context = CollectionContext(dict(zip(categories, results, strict=True)))
        logger.info(
            "signals_collected",
            subject=profile.name,
            degraded=[c.value for c in context.degraded_categories()],
        )
        return context

    async def probe(self) -> list[SourceStatus]:
        """Check live connectivity of every source against known-good inputs."""
        params: dict[SignalCategory, dict[str, Any]] = {
            SignalCategory.PERFORMANCE: {"url": PROBE_URL},
            SignalCategory.SECURITY: {"url": PROBE_URL},
            SignalCategory.MARKET: {"query": PROBE_QUERY},
            SignalCategory.BRANDING_VISION: {"image": PROBE_IMAGE},
            SignalCategory.BRANDING_TEXT: {"text": PROBE_TEXT},
            SignalCategory.FIELD_DATA: {"url": PROBE_URL},
        }

        async def probe_one(category: SignalCategory) -> SourceStatus:
            start_time = time.perf_counter()
            signal = await self.collect(category, params[category])
            return SourceStatus(
                category=category,
                healthy=not signal.is_fallback,
                latency_ms=(time.perf_counter() - start_time) * 1000,
                detail=signal.message or ("fallback" if signal.is_fallback else "ok"),
            )

        return list(await asyncio.gather(*(probe_one(c) for c in SignalCategory)))
