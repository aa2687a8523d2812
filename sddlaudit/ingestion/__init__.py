"""
sddlAudit Ingestion Module
==========================

Parsers and loaders for the data the audit consumes.

Supported Sources:
- Per-domain JSON exports of (DN, SDDL) records
- SDDL text (structural parsing)
- LDAP schema queries for GUID catalogs (using ldap3)

Design Philosophy:
- Loaders stream records; nothing is kept after classification
- Parsing is strict: a descriptor either matches the grammar or is rejected
- Directory access is read-only and optional
"""

from .sddl_parser import MalformedSddlError, parse_sddl, parse_ace
from .record_loader import (
    InvalidExportError,
    discover_input_files,
    domain_from_path,
    precheck_export,
    iter_records
)
from .schema_collector import LDAPCollector
