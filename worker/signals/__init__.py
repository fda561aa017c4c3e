"""External signal collection.

Each signal category (performance, security, branding, market, field data)
is fetched from one Google Cloud API. Failures never propagate: the
collector substitutes the category's fallback and flags it.

Use explicit imports:
    from worker.signals.collector import SignalCollector
    from worker.signals.models import CollectionContext, ExternalSignal, SignalCategory
    from worker.signals.sources import CollectorConfig, DEFAULT_FALLBACKS
"""
