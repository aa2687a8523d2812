"""
sddlAudit Pipeline Module
=========================

Orchestrates the audit: one independent pipeline per domain export.
"""

from .runner import DomainAudit, run_audit
