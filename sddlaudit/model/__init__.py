"""
sddlAudit Model Module
======================

Contains the core data models shared by parsing, analysis and reporting.

Key Components:
- schemas.py: Typed dataclasses for records, ACEs, findings and reports

Design Philosophy:
- Input records and parsed ACEs are immutable
- Findings are grouped per object and per trustee
- Every report object can be serialized to plain dicts
"""

from .schemas import (
    WHOLE_OBJECT,
    AceVerdict,
    CatalogSource,
    Record,
    Ace,
    SecurityDescriptor,
    Finding,
    ObjectFindings,
    TrusteeBlock,
    ObjectReport,
    FlatRow,
    DomainReport,
    AuditResult
)
