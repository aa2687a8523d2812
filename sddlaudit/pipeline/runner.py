"""
Audit Pipeline
==============

High-level entry points that run the audit over a folder of exports.

Pipeline per domain file:
1. Pre-check the export (skip empty / non-array files)
2. Build or reload the domain's GUID catalog
3. Stream records through the classifier
4. Aggregate findings into the domain report

Then, once for the run:
5. Write CSV / JSON / HTML outputs

Design Decisions:
-----------------
1. Single entry point (run_audit) returning an AuditResult
2. Every domain gets its own catalog, classifier and report builder, so
   domains can run in parallel without sharing mutable state
3. Nothing inside a domain aborts the run; a broken file only aborts
   that domain
4. Progress updates via callback
"""

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Optional, Callable, Union

from ..config import AuditConfig
from ..ingestion.record_loader import (
    InvalidExportError, discover_input_files, domain_from_path,
    precheck_export, iter_records
)
from ..ingestion.schema_collector import LDAPCollector
from ..ingestion.sddl_parser import MalformedSddlError
from ..analysis.catalog import CatalogStore, ensure_catalog
from ..analysis.classifier import RiskClassifier
from ..analysis.exclusions import ExclusionSet
from ..analysis.principals import TrusteeResolver
from ..model.schemas import AuditResult, DomainReport
from ..reporting.report_builder import ReportBuilder, save_json_report
from ..reporting.csv_export import CsvSink
from ..reporting.export_html import HTMLExporter


class DomainAudit:
    """Audits one "<domain>.json" export.

    Usage:
        audit = DomainAudit("exports/corp.local.json", config, exclusions)
        report = audit.run()   # None if the file was skipped
    """

    def __init__(
        self,
        path: Union[str, Path],
        config: AuditConfig,
        exclusions: ExclusionSet,
        collector_factory: Optional[Callable[[str], object]] = None,
        progress_callback: Optional[Callable[[str], None]] = None
    ):
        """Initialize the domain audit.

        Args:
            path: Export file path; its stem is the domain identity
            config: Run configuration
            exclusions: DN exclusions, shared read-only across domains
            collector_factory: Returns a directory client for a domain
                (LDAPCollector-like); None for offline runs
            progress_callback: Optional callback for progress updates
        """
        self.path = Path(path)
        self.domain = domain_from_path(self.path)
        self.config = config
        self.exclusions = exclusions
        self.collector_factory = collector_factory
        self.progress_callback = progress_callback

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(message)
        if self.progress_callback:
            self.progress_callback(message)

    def run(self) -> Optional[DomainReport]:
        reason = precheck_export(self.path)
        if reason:
            self._log(f"[!] Skip {reason}: {self.path}")
            return None

        self._log(f"[*] Auditing {self.domain} ({self.path.name})")
        collector = self.collector_factory(self.domain) if self.collector_factory else None

        try:
            return self._audit(collector)
        finally:
            if collector is not None and hasattr(collector, "disconnect"):
                collector.disconnect()

    def _audit(self, collector) -> DomainReport:
        catalog, source = ensure_catalog(
            self.domain,
            CatalogStore(self.config.catalog.cache_dir),
            collector_factory=(lambda _domain: collector) if collector else None,
            rebuild=self.config.catalog.rebuild,
            log=self._log
        )

        classifier = RiskClassifier(catalog, self.exclusions)
        builder = ReportBuilder(
            self.domain,
            resolver=TrusteeResolver(getattr(collector, "lookup_account", None)),
            class_lookup=getattr(collector, "lookup_object_classes", None),
            flat_rows=self.config.output.generate_csv
        )
        builder.set_catalog(source, len(catalog))
        builder.report.source_file = str(self.path)

        try:
            for record in iter_records(self.path):
                builder.count_record()
                try:
                    findings = classifier.classify(record.distinguished_name, record.sddl)
                except MalformedSddlError as e:
                    self._log(f"[!] Invalid SDDL for {record.distinguished_name}: {e.reason}")
                    builder.mark_invalid(record.distinguished_name, e)
                    continue
                if findings:
                    builder.add_object(findings)
        except (InvalidExportError, json.JSONDecodeError, UnicodeDecodeError) as e:
            self._log(f"[!] Aborting {self.domain}: {e}")
            builder.report.error = str(e)

        builder.set_statistics(classifier.verdicts, classifier.excluded_objects)
        report = builder.build()
        self._log(
            f"[+] {self.domain}: {report.records} records, {len(report.objects)} objects "
            f"with {report.finding_count} findings, {len(report.invalid)} invalid"
        )
        return report


def _build_config(config: Union[AuditConfig, dict, None]) -> AuditConfig:
    if isinstance(config, AuditConfig):
        return config
    return AuditConfig.from_dict(config or {})


def run_audit(
    config: Union[AuditConfig, dict, None] = None,
    progress_callback: Optional[Callable[[str], None]] = None,
    collector_factory: Optional[Callable[[str], object]] = None
) -> AuditResult:
    """Main entry point for auditing a folder of domain exports.

    Args:
        config: AuditConfig or configuration dictionary
        progress_callback: Optional callback for progress updates
        collector_factory: Directory client factory; defaults to
            LDAPCollector unless the config is offline

    Returns:
        AuditResult with one DomainReport per audited file

    Example:
        result = run_audit({
            "input": {"input_dir": "exports", "exclude_file": "exclude.txt"},
            "output": {"generate_csv": True},
        })
        print(result.total_findings)
    """
    audit_config = _build_config(config)

    def log(message: str):
        """Log message to callback if provided."""
        if progress_callback:
            progress_callback(message)
        if audit_config.verbose:
            print(message)

    input_dir = audit_config.input.input_dir
    if not input_dir or not Path(input_dir).is_dir():
        raise FileNotFoundError(f"Input folder not found: {input_dir}")

    exclusions = ExclusionSet.load(audit_config.input.exclude_file)
    if audit_config.input.exclude_file:
        log(f"[*] Loaded {len(exclusions)} DN-exclude patterns.")

    if collector_factory is None and not audit_config.offline:
        def collector_factory(domain: str) -> LDAPCollector:
            return LDAPCollector(
                domain,
                config=audit_config.ldap,
                verbose=audit_config.verbose,
                progress_callback=progress_callback
            )
    elif audit_config.offline:
        collector_factory = None

    files = discover_input_files(input_dir)
    log(f"[*] Found {len(files)} export file(s) in {input_dir}")

    audits = [
        DomainAudit(path, audit_config, exclusions, collector_factory, progress_callback)
        for path in files
    ]

    if audit_config.workers > 1 and len(audits) > 1:
        with ThreadPoolExecutor(max_workers=audit_config.workers) as pool:
            reports = list(pool.map(lambda audit: audit.run(), audits))
    else:
        reports = [audit.run() for audit in audits]

    result = AuditResult(
        domains=[r for r in reports if r is not None],
        metadata={
            'timestamp': datetime.now().isoformat(),
            'input_dir': input_dir,
            'input_files': [str(p) for p in files],
            'exclusions': len(exclusions),
        }
    )

    output = audit_config.output
    if output.generate_csv:
        sink = CsvSink(str(Path(output.output_dir) / output.csv_name))
        for domain in result.domains:
            sink.write(domain.flat_rows)
        result.csv_report_path = str(sink.path)
        log(f"[+] CSV rows written: {sink.rows_written}")

    if output.generate_json:
        result.report_path = save_json_report(result, output.output_dir, output.json_name)

    if output.generate_html:
        result.html_report_path = HTMLExporter(output.output_dir).export(result, output.html_name)

    return result
