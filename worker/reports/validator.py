"""Contract validation for generation engine output.

A response that cannot be parsed into a JSON object fails the phase.
A response that parses is never rejected: each field that is missing or
has the wrong type is replaced by its documented default.
"""

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

from api.exceptions import ContractError, ContractErrorKind
from worker.reports.contract import CampaignExport, SalesPitch, SectionFinding, Severity

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Engines sometimes wrap JSON in a markdown fence even in JSON mode
_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


class _Missing:
    pass


MISSING = _Missing()


def coerce_str(value: Any) -> str | _Missing:
    return value if isinstance(value, str) else MISSING


def coerce_str_list(value: Any) -> tuple[str, ...] | _Missing:
    if not isinstance(value, list):
        return MISSING
    items: list[str] = []
    for item in value:
        if isinstance(item, str):
            items.append(item)
        elif isinstance(item, int | float) and not isinstance(item, bool):
            items.append(str(item))
    return tuple(items)


def coerce_severity(value: Any) -> Severity | _Missing:
    if not isinstance(value, str):
        return MISSING
    try:
        return Severity(value.strip().lower())
    except ValueError:
        return MISSING


@dataclass(frozen=True)
class FieldSpec:
    """One field of a contract: where to read it, how to coerce it, what to default to."""

    key: str  # JSON key in the engine output
    attr: str  # attribute on the target dataclass
    coerce: Callable[[Any], Any]
    default: Any


@dataclass(frozen=True)
class ContractSchema(Generic[T]):
    """Expected shape of a phase's structured output."""

    name: str
    model: Callable[..., T]
    fields: tuple[FieldSpec, ...]


SECTION_FINDING_SCHEMA: ContractSchema[SectionFinding] = ContractSchema(
    name="section_finding",
    model=SectionFinding,
    fields=(
        FieldSpec("text", "narrative_text", coerce_str, ""),
        FieldSpec("severity", "severity", coerce_severity, Severity.MEDIUM),
    ),
)

SALES_PITCH_SCHEMA: ContractSchema[SalesPitch] = ContractSchema(
    name="sales_pitch",
    model=SalesPitch,
    fields=(
        FieldSpec("headline", "headline", coerce_str, ""),
        FieldSpec("symptoms", "symptoms", coerce_str_list, ()),
        FieldSpec("prognosis", "prognosis", coerce_str, ""),
        FieldSpec("treatmentPlan", "treatment_plan", coerce_str_list, ()),
    ),
)


def strip_code_fence(raw_text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    text = raw_text.strip()
    match = _CODE_FENCE.match(text)
    return match.group(1).strip() if match else text


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """
    Parse engine output as a JSON object.

    Raises:
        ContractError: MALFORMED if the text is not JSON or not an object
    """
    try:
        data = json.loads(strip_code_fence(raw_text))
    except (json.JSONDecodeError, TypeError) as e:
        raise ContractError(ContractErrorKind.MALFORMED, f"Output is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ContractError(
            ContractErrorKind.MALFORMED,
            f"Expected a JSON object, got {type(data).__name__}",
        )
    return data


def validate(raw_text: str, schema: ContractSchema[T]) -> T:
    """
    Parse raw engine output and build the schema's typed object.

    Args:
        raw_text: Text returned by the generation engine
        schema: Expected contract

    Returns:
        Populated object; defaulted fields are not distinguished

    Raises:
        ContractError: MALFORMED when the text is not a JSON object
    """
    data = parse_json_object(raw_text)

    values: dict[str, Any] = {}
    defaulted: list[str] = []
    for rule in schema.fields:
        value = rule.coerce(data.get(rule.key))
        if isinstance(value, _Missing):
            value = rule.default
            defaulted.append(rule.key)
        values[rule.attr] = value

    if defaulted:
        logger.info("contract_fields_defaulted", contract=schema.name, fields=defaulted)

    return schema.model(**values)


def validate_campaign_export(raw_text: str) -> CampaignExport:
    """
    Trim a campaign export; its contents are otherwise opaque.

    Raises:
        ContractError: EMPTY when only whitespace was returned
    """
    text = (raw_text or "").strip()
    if not text:
        raise ContractError(ContractErrorKind.EMPTY, "Campaign export is empty")
    return CampaignExport(csv=text)
