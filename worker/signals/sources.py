"""Signal sources - one live Google Cloud API call per signal category.

Each source performs a single request with a bounded timeout and raises on
any failure. Turning failures into fallback values is the collector's job.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

import httpx

from worker.extraction.cleaner import extract_page_copy
from worker.signals.models import (
    Competitor,
    ExternalSignal,
    FieldData,
    MarketSnapshot,
    PerformanceReport,
    SecurityStatus,
    SecurityVerdict,
    SentimentScore,
    SignalCategory,
    SignalValue,
    VisualLabels,
)

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
SAFE_BROWSING_ENDPOINT = "https://safebrowsing.googleapis.com/v4/threatMatches:find"
PLACES_ENDPOINT = "https://places.googleapis.com/v1/places:searchText"
VISION_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"
LANGUAGE_ENDPOINT = "https://language.googleapis.com/v1/documents:analyzeSentiment"
CRUX_ENDPOINT = "https://chromeuxreport.googleapis.com/v1/records:queryRecord"

INSUFFICIENT_FIELD_DATA_MESSAGE = "Dados insuficientes (Site novo/pouco tráfego)"
GENERIC_IMAGE_LABEL = "Imagem Genérica"

_DATA_URI_PREFIX = re.compile(r"^data:image/(png|jpeg|jpg|webp);base64,")


DEFAULT_FALLBACKS: dict[SignalCategory, SignalValue] = {
    SignalCategory.PERFORMANCE: PerformanceReport(score=45, load_time_display="6.5s"),
    SignalCategory.SECURITY: SecurityVerdict(
        status=SecurityStatus.DANGER,
        detail="Verificação indisponível",
    ),
    SignalCategory.MARKET: MarketSnapshot(
        competitors=(
            Competitor(name="Instituto Ortopédico", rating=4.9, review_count=342),
            Competitor(name="Clínica de Fraturas", rating=4.7, review_count=156),
        )
    ),
    SignalCategory.BRANDING_VISION: VisualLabels(
        labels=("Ambiente Clínico", "Médico", "Saúde", "Ortopedia")
    ),
    SignalCategory.BRANDING_TEXT: SentimentScore(score=0.8, magnitude=0.8),
    SignalCategory.FIELD_DATA: FieldData(has_data=False),
}


class MalformedSignalError(ValueError):
    """Upstream answered, but not with a usable payload."""


@dataclass
class CollectorConfig:
    """Configuration shared by all signal sources."""

    api_key: str = ""
    timeout_seconds: float = 30.0
    pagespeed_timeout_seconds: float = 60.0
    locale: str = "pt-BR"
    page_text_max_chars: int = 5000
    fallbacks: dict[SignalCategory, SignalValue] = field(
        default_factory=lambda: dict(DEFAULT_FALLBACKS)
    )

    def fallback_for(self, category: SignalCategory) -> SignalValue:
        """Configured fallback for a category, else the built-in one."""
        return self.fallbacks.get(category, DEFAULT_FALLBACKS[category])


def _require_url(params: Mapping[str, Any]) -> str:
    url = params.get("url")
    if not url:
        raise MalformedSignalError("No target URL for this signal")
    return str(url)


def _require_dict(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise MalformedSignalError(f"{what} response is not a JSON object")
    return data


class SignalSource(ABC):
    """Abstract base class for one external signal source."""

    category: SignalCategory

    def __init__(
        self,
        config: CollectorConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.transport = transport

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.config.timeout_seconds,
            transport=self.transport,
        )

    def _key_params(self) -> dict[str, str]:
        return {"key": self.config.api_key} if self.config.api_key else {}

    def _signal(self, value: SignalValue, message: str | None = None) -> ExternalSignal:
        return ExternalSignal(category=self.category, value=value, message=message)

    @abstractmethod
    async def fetch(self, params: Mapping[str, Any]) -> ExternalSignal:
        """Make the live call. Raises on any failure."""
        ...

    def fallback(self) -> SignalValue:
        """Fixed value used when everything else fails."""
        return self.config.fallback_for(self.category)

    def degrade(self, params: Mapping[str, Any]) -> SignalValue:
        """Value used after the live call failed. May raise."""
        return self.fallback()


class PageSpeedSource(SignalSource):
    """PageSpeed Insights mobile performance."""

    category = SignalCategory.PERFORMANCE

    async def fetch(self, params: Mapping[str, Any]) -> ExternalSignal:
        url = _require_url(params)
        query = {
            "url": url,
            "strategy": "mobile",
            "category": "PERFORMANCE",
            "locale": self.config.locale,
            **self._key_params(),
        }

        async with self._client(self.config.pagespeed_timeout_seconds) as client:
            response = await client.get(PAGESPEED_ENDPOINT, params=query)
            response.raise_for_status()
            data = _require_dict(response.json(), "PageSpeed")

        lighthouse = _require_dict(data.get("lighthouseResult"), "PageSpeed lighthouseResult")
        raw_score = lighthouse.get("categories", {}).get("performance", {}).get("score")
        if isinstance(raw_score, bool) or not isinstance(raw_score, int | float):
            raise MalformedSignalError("PageSpeed response has no performance score")

        audits = lighthouse.get("audits", {})
        lcp = audits.get("largest-contentful-paint", {}).get("displayValue") or "N/A"
        screenshot = audits.get("final-screenshot", {}).get("details", {}).get("data")

        return self._signal(
            PerformanceReport(
                score=max(0, min(100, round(raw_score * 100))),
                load_time_display=str(lcp),
                screenshot=screenshot if isinstance(screenshot, str) and screenshot else None,
            )
        )


class SafeBrowsingSource(SignalSource):
    """Safe Browsing threat lookup with a protocol-scheme heuristic as second tier."""

    category = SignalCategory.SECURITY

    async def fetch(self, params: Mapping[str, Any]) -> ExternalSignal:
        url = _require_url(params)
        body = {
            "client": {"clientId": "clinic-audit", "clientVersion": "0.1.0"},
            "threatInfo": {
                "threatTypes": ["MALWARE", "SOCIAL_ENGINEERING", "UNWANTED_SOFTWARE"],
                "platformTypes": ["ANY_PLATFORM"],
                "threatEntryTypes": ["URL"],
                "threatEntries": [{"url": url}],
            },
        }

        async with self._client() as client:
            response = await client.post(
                SAFE_BROWSING_ENDPOINT, params=self._key_params(), json=body
            )
            response.raise_for_status()
            data = _require_dict(response.json(), "Safe Browsing")

        # An empty object means no threats were found
        if data.get("matches"):
            return self._signal(SecurityVerdict(SecurityStatus.DANGER, "Ameaça Detectada"))
        if urlparse(url).scheme.lower() == "https":
            return self._signal(SecurityVerdict(SecurityStatus.SAFE))
        return self._signal(SecurityVerdict(SecurityStatus.WARN, "Sem HTTPS"))

    def degrade(self, params: Mapping[str, Any]) -> SignalValue:
        scheme = urlparse(_require_url(params)).scheme.lower()
        if not scheme:
            raise MalformedSignalError("URL has no scheme to inspect")
        if scheme == "https":
            return SecurityVerdict(SecurityStatus.SAFE)
        return SecurityVerdict(SecurityStatus.DANGER, "Sem HTTPS")


class PlacesSource(SignalSource):
    """Places API text search for local competitors."""

    category = SignalCategory.MARKET

    max_results = 3

    async def fetch(self, params: Mapping[str, Any]) -> ExternalSignal:
        query = params.get("query")
        if not query:
            raise MalformedSignalError("No market query")

        headers = {
            "X-Goog-Api-Key": self.config.api_key,
            "X-Goog-FieldMask": "places.displayName,places.rating,places.userRatingCount",
        }
        body = {"textQuery": query, "maxResultCount": self.max_results}

        async with self._client() as client:
            response = await client.post(PLACES_ENDPOINT, headers=headers, json=body)
            response.raise_for_status()
            data = _require_dict(response.json(), "Places")

        places = data.get("places", [])
        if not isinstance(places, list):
            raise MalformedSignalError("Places response 'places' is not a list")

        competitors: list[Competitor] = []
        for place in places[: self.max_results]:
            if not isinstance(place, dict):
                continue
            name = (place.get("displayName") or {}).get("text")
            if not name:
                continue
            rating = place.get("rating")
            competitors.append(
                Competitor(
                    name=str(name),
                    rating=float(rating) if isinstance(rating, int | float) else None,
                    review_count=int(place.get("userRatingCount") or 0),
                )
            )

        return self._signal(MarketSnapshot(competitors=tuple(competitors)))


class VisionSource(SignalSource):
    """Cloud Vision label detection over the site screenshot."""

    category = SignalCategory.BRANDING_VISION

    max_labels = 5

    async def fetch(self, params: Mapping[str, Any]) -> ExternalSignal:
        image = params.get("image")
        if not image:
            raise MalformedSignalError("No screenshot to analyze")
        content = _DATA_URI_PREFIX.sub("", str(image))

        body = {
            "requests": [
                {
                    "image": {"content": content},
                    "features": [{"type": "LABEL_DETECTION", "maxResults": self.max_labels}],
                }
            ]
        }

        async with self._client() as client:
            response = await client.post(VISION_ENDPOINT, params=self._key_params(), json=body)
            response.raise_for_status()
            data = _require_dict(response.json(), "Vision")

        responses = data.get("responses")
        if not isinstance(responses, list) or not responses:
            raise MalformedSignalError("Vision response has no results")
        first = _require_dict(responses[0], "Vision result")
        if "error" in first:
            raise MalformedSignalError(f"Vision error: {first['error']}")

        labels = tuple(
            str(a["description"])
            for a in first.get("labelAnnotations", [])
            if isinstance(a, dict) and a.get("description")
        )
        return self._signal(VisualLabels(labels=labels or (GENERIC_IMAGE_LABEL,)))


class SentimentSource(SignalSource):
    """Natural Language sentiment of the site copy."""

    category = SignalCategory.BRANDING_TEXT

    async def _page_copy(self, client: httpx.AsyncClient, url: str) -> str:
        response = await client.get(
            url,
            follow_redirects=True,
            headers={"Accept": "text/html,application/xhtml+xml"},
        )
        response.raise_for_status()
        return extract_page_copy(response.text, max_chars=self.config.page_text_max_chars)

    async def fetch(self, params: Mapping[str, Any]) -> ExternalSignal:
        async with self._client() as client:
            text = params.get("text") or await self._page_copy(client, _require_url(params))
            if not text:
                raise MalformedSignalError("No readable copy to analyze")

            body = {
                "document": {"type": "PLAIN_TEXT", "content": text},
                "encodingType": "UTF8",
            }
            response = await client.post(
                LANGUAGE_ENDPOINT, params=self._key_params(), json=body
            )
            response.raise_for_status()
            data = _require_dict(response.json(), "Natural Language")

        sentiment = _require_dict(data.get("documentSentiment"), "Natural Language sentiment")
        score = sentiment.get("score", 0.0)
        magnitude = sentiment.get("magnitude", 0.0)
        if not isinstance(score, int | float) or not isinstance(magnitude, int | float):
            raise MalformedSignalError("Sentiment values are not numeric")

        return self._signal(
            SentimentScore(
                score=max(-1.0, min(1.0, float(score))),
                magnitude=max(0.0, float(magnitude)),
            )
        )


class CruxSource(SignalSource):
    """Chrome UX Report real-user metrics."""

    category = SignalCategory.FIELD_DATA

    async def fetch(self, params: Mapping[str, Any]) -> ExternalSignal:
        url = _require_url(params)

        async with self._client() as client:
            response = await client.post(
                CRUX_ENDPOINT,
                params=self._key_params(),
                json={"url": url, "formFactor": "PHONE"},
            )

            # 404 means the origin has too little traffic; that is an answer
            if response.status_code == 404:
                return self._signal(
                    FieldData(has_data=False),
                    message=INSUFFICIENT_FIELD_DATA_MESSAGE,
                )

            response.raise_for_status()
            data = _require_dict(response.json(), "CrUX")

        record = _require_dict(data.get("record"), "CrUX record")
        metrics: dict[str, Any] = {}
        for name, metric in record.get("metrics", {}).items():
            if isinstance(metric, dict):
                p75 = metric.get("percentiles", {}).get("p75")
                if p75 is not None:
                    metrics[name] = p75

        return self._signal(FieldData(has_data=True, metrics=metrics))


SOURCE_CLASSES: dict[SignalCategory, type[SignalSource]] = {
    SignalCategory.PERFORMANCE: PageSpeedSource,
    SignalCategory.SECURITY: SafeBrowsingSource,
    SignalCategory.MARKET: PlacesSource,
    SignalCategory.BRANDING_VISION: VisionSource,
    SignalCategory.BRANDING_TEXT: SentimentSource,
    SignalCategory.FIELD_DATA: CruxSource,
}
