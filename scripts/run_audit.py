#!/usr/bin/env python
"""Run one clinic audit and print the report as JSON.

Usage:
    python scripts/run_audit.py "Dr. Roberto Silva" "São Paulo" "Ortopedia" \
        --url https://example.com [--output report.json] [--csv campaign.csv]

Credentials and the generation provider come from the environment or .env
(GOOGLE_API_KEY, GENERATION_PROVIDER, ...). Set GENERATION_PROVIDER=mock to
exercise the pipeline without an engine.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, ".")

from api.config import get_settings  # noqa: E402
from api.exceptions import AuditFailedError  # noqa: E402
from api.logging import get_logger, setup_logging  # noqa: E402
from worker.pipeline.config import AuditConfig  # noqa: E402
from worker.pipeline.orchestrator import AuditOrchestrator, AuditStage  # noqa: E402
from worker.signals.models import SubjectProfile  # noqa: E402

logger = get_logger("scripts.run_audit")


def print_stage(stage: AuditStage) -> None:
    print(f"[{stage.value.upper()}]", file=sys.stderr)


async def main() -> int:
    parser = argparse.ArgumentParser(description="Run a digital presence audit")
    parser.add_argument("name", help="Professional or clinic name")
    parser.add_argument("locality", help="City or region")
    parser.add_argument("category", help="Medical specialty")
    parser.add_argument("--url", type=str, default=None, help="Website to audit")
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the report JSON to this file instead of stdout",
    )
    parser.add_argument(
        "--csv",
        type=str,
        default=None,
        help="Also write the Google Ads campaign CSV to this file",
    )

    args = parser.parse_args()

    setup_logging(stream=sys.stderr)
    settings = get_settings()

    url = args.url
    # Ensure URL has protocol
    if url and not url.startswith(("http://", "https://")):
        url = f"https://{url}"

    profile = SubjectProfile(
        name=args.name,
        locality=args.locality,
        category=args.category,
        url=url,
    )
    orchestrator = AuditOrchestrator(config=AuditConfig.from_settings(settings))

    try:
        report = await orchestrator.run_audit(profile, stage_callback=print_stage)
    except AuditFailedError as e:
        logger.error("cli_audit_failed", phase=e.phase, error=e.message)
        print(f"Audit failed in phase '{e.phase}': {e.cause}", file=sys.stderr)
        return 1

    output = json.dumps(report.to_dict(), indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Report saved to: {args.output}", file=sys.stderr)
    else:
        print(output)

    if args.csv:
        Path(args.csv).write_text(report.google_ads_csv + "\n", encoding="utf-8")
        print(f"Campaign saved to: {args.csv}", file=sys.stderr)

    if report.degraded_signals:
        print(f"Degraded signals: {', '.join(report.degraded_signals)}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
