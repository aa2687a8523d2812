"""
Report Builder Module
=====================

Aggregates per-object findings into structured domain reports.

The report contains:
- One block per DN that has at least one finding
- Findings grouped by trustee, with display names resolved
- Invalid (unparseable) objects
- Flat rows for the CSV sink
- Per-verdict statistics

Design Decisions:
-----------------
1. Reports are structured data (JSON-serializable)
2. Can be rendered to multiple formats (text, JSON, HTML, CSV)
3. Display lookups are best-effort and never raise
4. Objects without findings never appear in the report
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional, Callable

from ..model.schemas import (
    AuditResult, CatalogSource, DomainReport, FlatRow, ObjectFindings,
    ObjectReport, TrusteeBlock
)
from ..analysis.principals import TrusteeResolver


class ReportBuilder:
    """Builds the report for one domain.

    Usage:
        builder = ReportBuilder("corp.local", resolver)

        for record in records:
            findings = classifier.classify(record.distinguished_name, record.sddl)
            if findings:
                builder.add_object(findings)

        report = builder.build()
        print(report.finding_count)
    """

    def __init__(
        self,
        domain: str,
        resolver: Optional[TrusteeResolver] = None,
        class_lookup: Optional[Callable[[str], list]] = None,
        flat_rows: bool = False
    ):
        """Initialize the report builder.

        Args:
            domain: Domain identity
            resolver: Trustee display-name resolver
            class_lookup: Returns objectClass values for a DN (CSV only)
            flat_rows: Whether to produce rows for the CSV sink
        """
        self.report = DomainReport(domain=domain)
        self.resolver = resolver or TrusteeResolver()
        self.class_lookup = class_lookup
        self.flat_rows = flat_rows

    def _object_classes(self, dn: str) -> list[str]:
        """objectClass values for a DN; [""] when unavailable."""
        if not self.class_lookup:
            return [""]
        try:
            classes = [c for c in (self.class_lookup(dn) or []) if c]
        except Exception:
            # Display enrichment only
            classes = []
        return classes or [""]

    def add_object(self, findings: ObjectFindings) -> Optional[ObjectReport]:
        """Add one object's findings.

        Returns:
            The ObjectReport, or None when the object had no findings
        """
        if not findings:
            return None

        dn = findings.distinguished_name
        block = ObjectReport(distinguished_name=dn)

        for trustee in findings.by_trustee:
            block.trustees.append(TrusteeBlock(
                trustee=trustee,
                display_name=self.resolver.resolve(trustee),
                entries=findings.descriptions(trustee),
            ))

        if self.flat_rows:
            block.object_classes = self._object_classes(dn)
            self.report.flat_rows.extend(self._flat_rows(findings, block))

        self.report.objects.append(block)
        return block

    def _flat_rows(self, findings: ObjectFindings, block: ObjectReport) -> list[FlatRow]:
        names = {t.trustee: t.display_name for t in block.trustees}
        rows = []
        for finding in findings:
            identity = names.get(finding.trustee, finding.trustee)
            for right in finding.rights:
                for object_class in block.object_classes:
                    rows.append(FlatRow(
                        distinguished_name=findings.distinguished_name,
                        identity=identity,
                        right=right,
                        object_type=finding.object_type,
                        object_class=object_class,
                    ))
        return rows

    def mark_invalid(self, dn: str, error: Exception) -> None:
        self.report.invalid.append((dn, str(error)))

    def count_record(self) -> None:
        self.report.records += 1

    def set_catalog(self, source: CatalogSource, size: int) -> None:
        self.report.catalog_source = source
        self.report.catalog_size = size

    def set_statistics(self, verdicts: dict, excluded: int) -> None:
        self.report.verdicts = {v.value: n for v, n in verdicts.items()}
        self.report.excluded = excluded

    def build(self) -> DomainReport:
        return self.report


def save_json_report(result: AuditResult, output_dir: str,
                     filename: str = "audit_report.json") -> str:
    """Save the report as JSON.

    Returns:
        Path to saved JSON file
    """
    json_path = Path(output_dir) / filename
    json_path.parent.mkdir(parents=True, exist_ok=True)

    with open(json_path, 'w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, indent=2, default=str)

    return str(json_path)


def generate_text_report(result: AuditResult) -> str:
    """Generate a text-based report.

    Args:
        result: AuditResult to render

    Returns:
        Formatted text report
    """
    lines = [
        "=" * 60,
        "sddlAudit - Dangerous ACEs on Broad Principals",
        "=" * 60,
        "",
        f"Generated: {result.metadata.get('timestamp', datetime.now().isoformat())}",
        "",
        "SUMMARY",
        "-" * 40,
        f"Domains: {len(result.domains)}",
        f"Objects with findings: {result.total_objects}",
        f"Findings: {result.total_findings}",
        f"Invalid SDDL: {result.total_invalid}",
        "",
    ]

    for domain in result.domains:
        lines.extend([
            f"DOMAIN {domain.domain}",
            "-" * 40,
            f"Records: {domain.records} (excluded: {domain.excluded}, invalid: {len(domain.invalid)})",
            f"Catalog: {domain.catalog_source.value} ({domain.catalog_size} GUIDs)",
        ])
        if domain.error:
            lines.append(f"[!] Aborted: {domain.error}")

        for obj in domain.objects:
            lines.extend(["", f"  {obj.distinguished_name}"])
            for trustee in obj.trustees:
                lines.append(f"    {trustee.display_name}")
                for ace_text, description in trustee.entries.items():
                    lines.append(f"      {ace_text}  ->  {description}")

        for dn, reason in domain.invalid:
            lines.append(f"  [!] Invalid SDDL: {dn} ({reason})")
        lines.append("")

    lines.extend([
        "=" * 60,
        "End of Report",
        "=" * 60,
    ])

    return "\n".join(lines)
