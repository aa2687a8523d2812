"""
HTML Export Module
==================

Exports audit results as a standalone HTML report.

Features:
- Self-contained HTML with embedded styles
- One table per object, one row per trustee
- Per-domain statistics and invalid objects
- Suitable for sharing/archiving

Design Decisions:
-----------------
1. Single-file HTML for easy sharing
2. No external dependencies (CSS inline)
3. Print-friendly styling
"""

from datetime import datetime
from pathlib import Path
import html

from ..model.schemas import AuditResult, DomainReport, ObjectReport


class HTMLExporter:
    """Exports audit results to HTML format.

    Usage:
        exporter = HTMLExporter("output")

        html_path = exporter.export(result, "Interesting.htm")
    """

    # CSS styles for the report
    CSS = """
    body { font: 14px/1.5 Segoe UI, Arial, sans-serif; color: #1f2933; background: #f5f7fa; margin: 0; padding: 24px; }
    .container { max-width: 1280px; margin: 0 auto; }
    .header h1 { font-size: 26px; margin: 0; color: #102a43; }
    .header .subtitle { color: #627d98; margin: 4px 0 24px; }
    h2 { font-size: 19px; color: #243b53; border-bottom: 1px solid #bcccdc; padding-bottom: 4px; margin: 32px 0 12px; }
    .summary-grid { display: flex; flex-wrap: wrap; gap: 12px; }
    .stat-card { flex: 1 1 160px; background: #fff; border: 1px solid #d9e2ec; padding: 12px 16px; }
    .stat-card .number { font-size: 28px; font-weight: 600; color: #334e68; }
    .stat-card.critical .number { color: #ba2525; }
    .stat-card .label { font-size: 12px; color: #829ab1; letter-spacing: .04em; text-transform: uppercase; }
    .object-card { background: #fff; border: 1px solid #d9e2ec; border-left: 3px solid #ba2525; margin: 0 0 12px; padding: 12px 16px; }
    .object-title { font: 13px Consolas, monospace; color: #ba2525; word-break: break-all; margin-bottom: 8px; }
    table { width: 100%; border-collapse: collapse; }
    th, td { text-align: left; vertical-align: top; padding: 4px 8px; border-top: 1px solid #e4e7eb; }
    th { font-size: 12px; color: #486581; }
    td.trustee { width: 25%; color: #0b69a3; }
    td.ace { font-family: Consolas, monospace; word-break: break-all; color: #2f8132; }
    td.explain { color: #7c5e10; }
    .footer { margin-top: 32px; font-size: 12px; color: #829ab1; text-align: center; }
    @media print { body { background: #fff; } .object-card { page-break-inside: avoid; } }
    """

    def __init__(self, output_dir: str = "output"):
        """Initialize the HTML exporter.

        Args:
            output_dir: Directory for output files
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export(
        self,
        result: AuditResult,
        filename: str = "Interesting.htm"
    ) -> str:
        """Export audit result to HTML.

        Returns:
            Path to generated HTML file
        """
        output_path = self.output_dir / filename

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(self._generate_html(result))

        return str(output_path)

    def _generate_html(self, result: AuditResult) -> str:
        timestamp = result.metadata.get('timestamp', datetime.now().isoformat())

        sections = [
            self._generate_header(timestamp),
            self._generate_summary(result),
        ]
        sections.extend(self._generate_domain(domain) for domain in result.domains)
        sections.append(self._generate_footer())

        body_content = "\n".join(sections)

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>sddlAudit Report</title>
    <style>
    {self.CSS}
    </style>
</head>
<body>
    <div class="container">
        {body_content}
    </div>
</body>
</html>"""

    def _generate_header(self, timestamp: str) -> str:
        return f"""
        <div class="header">
            <h1>sddl<span style="color: #a16207;">Audit</span></h1>
            <p class="subtitle">Dangerous ACEs granted to broad principals</p>
            <p class="subtitle">Generated: {html.escape(str(timestamp))}</p>
        </div>
        """

    def _generate_summary(self, result: AuditResult) -> str:
        return f"""
        <h2>Summary</h2>
        <div class="summary-grid">
            <div class="stat-card">
                <div class="number">{len(result.domains)}</div>
                <div class="label">Domains</div>
            </div>
            <div class="stat-card critical">
                <div class="number">{result.total_objects}</div>
                <div class="label">Objects</div>
            </div>
            <div class="stat-card critical">
                <div class="number">{result.total_findings}</div>
                <div class="label">Findings</div>
            </div>
            <div class="stat-card">
                <div class="number">{result.total_invalid}</div>
                <div class="label">Invalid SDDL</div>
            </div>
        </div>
        """

    def _generate_domain(self, domain: DomainReport) -> str:
        cards = "".join(self._generate_object_card(obj) for obj in domain.objects)
        if not cards:
            cards = "<p>No findings.</p>"

        invalid = ""
        if domain.invalid:
            items = "".join(
                f"<tr><td class='ace'>{html.escape(dn)}</td><td>{html.escape(reason)}</td></tr>"
                for dn, reason in domain.invalid
            )
            invalid = f"""
            <h2>Invalid SDDL ({len(domain.invalid)})</h2>
            <table><tr><th>Object</th><th>Reason</th></tr>{items}</table>
            """

        error = ""
        if domain.error:
            error = f"<p class='subtitle'>Aborted: {html.escape(domain.error)}</p>"

        return f"""
        <h2>{html.escape(domain.domain)} ({domain.finding_count} findings)</h2>
        <p class="subtitle">Records: {domain.records} | Excluded: {domain.excluded} |
        Catalog: {html.escape(domain.catalog_source.value)} ({domain.catalog_size} GUIDs)</p>
        {error}
        {cards}
        {invalid}
        """

    def _generate_object_card(self, obj: ObjectReport) -> str:
        rows = []
        for trustee in obj.trustees:
            entries = "".join(
                f"<tr><td class='ace'>{html.escape(ace)}</td>"
                f"<td class='explain'>{html.escape(description)}</td></tr>"
                for ace, description in trustee.entries.items()
            )
            rows.append(
                f"<tr><td class='trustee'>{html.escape(trustee.display_name)}</td>"
                f"<td><table><tr><th>ACE</th><th>Explain</th></tr>{entries}</table></td></tr>"
            )

        return f"""
        <div class="object-card">
            <div class="object-title">{html.escape(obj.distinguished_name)}</div>
            <table>
                <tr><th>User</th><th>ACE</th></tr>
                {"".join(rows)}
            </table>
        </div>
        """

    def _generate_footer(self) -> str:
        return """
        <div class="footer">
            <p>Generated by sddlAudit - Active Directory security descriptor audit</p>
            <p>This report is for authorized security assessment purposes only.</p>
        </div>
        """
