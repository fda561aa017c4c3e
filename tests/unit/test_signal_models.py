"""Tests for signal collection data models."""

import pytest

from worker.signals.models import (
    CollectionContext,
    Competitor,
    ExternalSignal,
    FieldData,
    MarketSnapshot,
    PerformanceReport,
    SecurityStatus,
    SecurityVerdict,
    SentimentScore,
    SignalCategory,
    SubjectProfile,
    VisualLabels,
)


def make_context(**fallback: bool) -> CollectionContext:
    values = {
        SignalCategory.PERFORMANCE: PerformanceReport(score=92, load_time_display="1.2 s"),
        SignalCategory.SECURITY: SecurityVerdict(SecurityStatus.SAFE),
        SignalCategory.MARKET: MarketSnapshot((Competitor("Clínica Alfa", 4.9, 210),)),
        SignalCategory.BRANDING_VISION: VisualLabels(("Surgery", "Hospital")),
        SignalCategory.BRANDING_TEXT: SentimentScore(score=0.6, magnitude=0.9),
        SignalCategory.FIELD_DATA: FieldData(has_data=False),
    }
    return CollectionContext(
        {
            category: ExternalSignal(
                category=category,
                value=value,
                is_fallback=fallback.get(category.value, False),
            )
            for category, value in values.items()
        }
    )


class TestSecurityVerdict:
    """Tests for SecurityVerdict."""

    @pytest.mark.parametrize(
        ("status", "label"),
        [
            (SecurityStatus.SAFE, "SEGURO"),
            (SecurityStatus.WARN, "ALERTA"),
            (SecurityStatus.DANGER, "PERIGO"),
        ],
    )
    def test_labels(self, status: SecurityStatus, label: str) -> None:
        """Each status has a report label."""
        assert SecurityVerdict(status).display == label

    def test_display_includes_detail(self) -> None:
        """Detail text is appended in parentheses."""
        verdict = SecurityVerdict(SecurityStatus.WARN, "Sem HTTPS")

        assert verdict.display == "ALERTA (Sem HTTPS)"
        assert verdict.to_dict()["status"] == "warn"


class TestSentimentScore:
    """Tests for SentimentScore."""

    def test_tone(self) -> None:
        """Positive scores read as positive; zero and below do not."""
        assert SentimentScore(0.6, 0.9).tone == "Positivo"
        assert SentimentScore(0.0, 0.1).tone == "Negativo/Neutro"
        assert SentimentScore(-0.4, 1.2).tone == "Negativo/Neutro"


class TestPerformanceReport:
    """Tests for PerformanceReport."""

    def test_to_dict_omits_screenshot_data(self) -> None:
        """Serialized form only says whether a screenshot exists."""
        report = PerformanceReport(score=80, load_time_display="2.0 s", screenshot="data:...")

        d = report.to_dict()

        assert d == {"score": 80, "load_time_display": "2.0 s", "has_screenshot": True}


class TestCollectionContext:
    """Tests for CollectionContext."""

    def test_requires_every_category(self) -> None:
        """A context with a missing category cannot be built."""
        signal = ExternalSignal(
            category=SignalCategory.PERFORMANCE,
            value=PerformanceReport(score=92, load_time_display="1.2 s"),
        )

        with pytest.raises(ValueError, match="security"):
            CollectionContext({SignalCategory.PERFORMANCE: signal})

    def test_is_read_only(self) -> None:
        """Entries cannot be replaced after construction."""
        context = make_context()

        with pytest.raises(TypeError):
            context[SignalCategory.PERFORMANCE] = None  # type: ignore[index]

    def test_typed_accessors(self) -> None:
        """Accessors return the typed signal values."""
        context = make_context()

        assert context.performance.score == 92
        assert context.security.status == SecurityStatus.SAFE
        assert context.market.competitors[0].rating == 4.9
        assert context.visual_labels.labels == ("Surgery", "Hospital")
        assert context.sentiment.score == 0.6
        assert context.field_data.has_data is False
        assert len(context) == len(SignalCategory)

    def test_degraded_categories(self) -> None:
        """Degraded categories are reported in declaration order."""
        context = make_context(market=True, performance=True)

        assert context.degraded_categories() == [
            SignalCategory.PERFORMANCE,
            SignalCategory.MARKET,
        ]

    def test_to_dict(self) -> None:
        """Serializes every category with its flag."""
        d = make_context(security=True).to_dict()

        assert set(d) == {c.value for c in SignalCategory}
        assert d["security"]["is_fallback"] is True
        assert d["branding_vision"]["value"] == {"labels": ["Surgery", "Hospital"]}


class TestFieldData:
    """Tests for FieldData."""

    def test_metrics_are_read_only(self) -> None:
        """Metrics are copied into a read-only mapping."""
        raw = {"largest_contentful_paint": 2100}
        data = FieldData(has_data=True, metrics=raw)

        raw["largest_contentful_paint"] = 9999
        with pytest.raises(TypeError):
            data.metrics["cumulative_layout_shift"] = "0.1"  # type: ignore[index]

        assert data.metrics == {"largest_contentful_paint": 2100}
        assert data.to_dict() == {
            "has_data": True,
            "metrics": {"largest_contentful_paint": 2100},
        }

    def test_equal_without_data(self) -> None:
        assert FieldData(has_data=False) == FieldData(has_data=False, metrics={})


class TestSubjectProfile:
    """Tests for SubjectProfile."""

    def test_market_query(self) -> None:
        """Market query combines specialty and locality."""
        profile = SubjectProfile(name="Dr. X", locality="City Y", category="Ortho")

        assert profile.market_query() == "Ortho em City Y"

    def test_to_dict(self) -> None:
        """Serializes all fields."""
        profile = SubjectProfile("Dr. X", "City Y", "Ortho", "https://example.com")

        assert profile.to_dict() == {
            "name": "Dr. X",
            "locality": "City Y",
            "category": "Ortho",
            "url": "https://example.com",
        }
