"""Audit report contract and validation.

Use explicit imports:
    from worker.reports.contract import AuditReport, SalesPitch, SectionFinding, Severity
    from worker.reports.validator import SALES_PITCH_SCHEMA, SECTION_FINDING_SCHEMA, validate
"""
