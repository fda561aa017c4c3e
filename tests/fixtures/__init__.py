"""Test fixtures for faking upstream APIs."""

from tests.fixtures.upstreams import (
    SCREENSHOT,
    SITE_HTML,
    SUBJECT_URL,
    FakeUpstreams,
    crux_body,
    json_response,
    pagespeed_body,
    places_body,
    scenario_upstreams,
    section_json,
    sentiment_body,
    vision_body,
)

__all__ = [
    "FakeUpstreams",
    "SCREENSHOT",
    "SITE_HTML",
    "SUBJECT_URL",
    "crux_body",
    "json_response",
    "pagespeed_body",
    "places_body",
    "scenario_upstreams",
    "section_json",
    "sentiment_body",
    "vision_body",
]
