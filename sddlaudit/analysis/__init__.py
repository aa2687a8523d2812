"""
sddlAudit Analysis Module
=========================

Deterministic ACE risk assessment.

Components:
- rights.py: Rights-code decoding and the privileged-rights set
- principals.py: Well-known trustees, broad principals, display names
- exclusions.py: DN exclusions and built-in benign ACE rules
- catalog.py: Per-domain GUID catalog and its cache
- classifier.py: The ordered checks that turn an ACE into a finding

Design Philosophy:
- Every check is a pure function of the ACE, the DN and the catalog
- Domain-scoped state (catalog, exclusions) is passed in explicitly
"""

from .rights import (
    RIGHTS_CODES,
    PRIVILEGED_CODES,
    AmbiguousRightsError,
    split_rights,
    decode_rights,
    decode_rights_list,
    is_privileged
)
from .principals import WELL_KNOWN_SIDS, is_broad_principal, TrusteeResolver
from .exclusions import ExclusionSet, BenignRule, BENIGN_RULES
from .catalog import GuidCatalog, CatalogStore, build_catalog, ensure_catalog
from .classifier import RiskClassifier
