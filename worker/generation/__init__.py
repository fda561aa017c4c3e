"""Generation engine layer.

Providers wrap a text-generation API behind one request/response shape;
the phase runner turns provider failures into typed engine errors.

Use explicit imports:
    from worker.generation.providers import GenerationProvider, MockProvider, get_provider
    from worker.generation.models import GenerationRequest, OutputMode, ProviderType
    from worker.generation.runner import GenerationConfig, PhaseRunner
"""
