"""
sddlAudit Reporting Module
==========================

Report generation for audit results.

Components:
- report_builder.py: Aggregates findings into structured domain reports
- csv_export.py: Flat CSV output (pandas)
- export_html.py: HTML report generation

Design Philosophy:
- Reports are structured data that can be rendered multiple ways
- Display-name lookups degrade to raw values instead of failing
"""

from .report_builder import ReportBuilder, generate_text_report, save_json_report
from .csv_export import CsvSink, CSV_COLUMNS
from .export_html import HTMLExporter
