"""
sddlAudit - Active Directory Security Descriptor Audit
======================================================

Finds access-control entries that grant dangerous rights to broad,
low-privilege principals, working from SDDL exports of directory objects.

Architecture Overview:
----------------------
- ingestion/: SDDL parser, export loader, LDAP schema collector
- model/: Typed data models for records, ACEs, findings and reports
- analysis/: Rights decoding, GUID catalog, exclusions and risk classifier
- reporting/: Text, JSON, HTML and CSV outputs
- pipeline/: Per-domain orchestration

Design Decisions:
-----------------
1. All data models use Python dataclasses for type safety and clarity
2. Catalogs are per-domain values passed through the pipeline, never globals
3. ldap3 is always installed, but contacting a domain controller is not
   required: cached or empty catalogs work offline
4. No condition inside one domain stops the run

Author: sddlAudit Project
License: Research/Educational Use Only
"""

__version__ = "1.0.0"
__author__ = "sddlAudit Team"

from .config import AuditConfig
