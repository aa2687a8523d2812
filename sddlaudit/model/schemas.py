"""
sddlAudit Data Schemas
======================

Typed dataclasses for directory records, parsed security descriptors
and audit findings.

Design Decisions:
-----------------
1. Records and ACEs are immutable once produced
2. GUIDs and trustees are stored upper-case so they can be used directly
   as catalog keys and table lookups
3. ObjectFindings keeps insertion order; re-adding the same ACE text for
   the same trustee replaces the previous entry (last write wins)
4. Report objects are JSON-serializable via to_dict()

Schema Hierarchy:
- Record: one exported directory object (DN + SDDL text)
- SecurityDescriptor
  - Ace
- Finding: one dangerous ACE on one object
- ObjectFindings: findings for one DN grouped by trustee
- ObjectReport / TrusteeBlock: display-ready findings
- DomainReport: everything found in one domain file
- AuditResult: complete run output
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


WHOLE_OBJECT = "whole object"


class AceVerdict(Enum):
    """Outcome of running one ACE through the risk classifier."""
    FINDING = "Finding"
    DENY_TYPE = "DenyType"
    BENIGN = "Benign"
    NOT_BROAD_PRINCIPAL = "NotBroadPrincipal"
    NOT_PRIVILEGED = "NotPrivileged"
    AMBIGUOUS_RIGHTS = "AmbiguousRights"


class CatalogSource(Enum):
    """Where a domain's GUID catalog came from."""
    BUILT = "built"
    CACHE = "cache"
    EMPTY = "empty"


@dataclass(frozen=True)
class Record:
    """One exported directory object.

    Attributes:
        distinguished_name: Full LDAP DN
        name: CN / name attribute
        sam_account_name: sAMAccountName (empty for non-principals)
        sid: Textual objectSid (empty for non-principals)
        guid: objectGUID
        sddl: nTSecurityDescriptor in SDDL form (empty if absent)
    """
    distinguished_name: str
    name: str = ""
    sam_account_name: str = ""
    sid: str = ""
    guid: str = ""
    sddl: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Record":
        """Create a record from one element of an export file."""
        def text(key: str) -> str:
            value = data.get(key)
            return "" if value is None else str(value)

        return cls(
            distinguished_name=text("distinguishedName"),
            name=text("name"),
            sam_account_name=text("sAMAccountName"),
            sid=text("sid"),
            guid=text("guid"),
            sddl=text("sddl"),
        )

    def to_dict(self) -> dict:
        return {
            "distinguishedName": self.distinguished_name,
            "name": self.name,
            "sAMAccountName": self.sam_account_name,
            "sid": self.sid,
            "guid": self.guid,
            "sddl": self.sddl,
        }


@dataclass(frozen=True)
class Ace:
    """A single access control entry as written in SDDL.

    Attributes:
        ace_type: 1-2 letter type code (A, D, OA, OD, AU, ...)
        flags: Inheritance/audit flags (CI, IO, ID, ...)
        rights: Raw rights string made of 2-character codes
        object_guid: ObjectType GUID or empty
        inherited_object_guid: InheritedObjectType GUID or empty
        trustee: 2-letter SDDL alias or textual SID
    """
    ace_type: str
    flags: str
    rights: str
    object_guid: str = ""
    inherited_object_guid: str = ""
    trustee: str = ""

    def to_sddl(self) -> str:
        """Re-serialize to the parenthesized SDDL form (upper-case)."""
        fields = (
            self.ace_type,
            self.flags,
            self.rights,
            self.object_guid,
            self.inherited_object_guid,
            self.trustee,
        )
        return "(" + ";".join(fields).upper() + ")"

    @property
    def text(self) -> str:
        """Normalized ACE text used for rule matching and finding keys."""
        return self.to_sddl()

    @property
    def is_deny(self) -> bool:
        return self.ace_type.upper() in ("D", "OD")


@dataclass
class SecurityDescriptor:
    """A parsed SDDL string.

    The SACL is parsed for completeness but not consumed by the audit.
    """
    owner: str = ""
    group: str = ""
    dacl_flags: str = ""
    dacl: list = field(default_factory=list)  # List of Ace
    sacl_flags: str = ""
    sacl: list = field(default_factory=list)  # List of Ace
    has_dacl: bool = False
    has_sacl: bool = False

    def to_sddl(self) -> str:
        parts = []
        if self.owner:
            parts.append(f"O:{self.owner}")
        if self.group:
            parts.append(f"G:{self.group}")
        if self.has_dacl:
            parts.append("D:" + self.dacl_flags + "".join(a.to_sddl() for a in self.dacl))
        if self.has_sacl:
            parts.append("S:" + self.sacl_flags + "".join(a.to_sddl() for a in self.sacl))
        return "".join(parts)


@dataclass
class Finding:
    """A dangerous ACE: broad trustee holding privileged rights.

    Attributes:
        trustee: Trustee token as it appears in the ACE
        ace: The parsed ACE
        rights: Decoded right names, in the order they appear
        object_type: Resolved label for the ACE's object type GUID
    """
    trustee: str
    ace: Ace
    rights: list
    object_type: str = WHOLE_OBJECT

    @property
    def description(self) -> str:
        return f"{', '.join(self.rights)} on {self.object_type}"

    def to_dict(self) -> dict:
        return {
            "trustee": self.trustee,
            "ace": self.ace.text,
            "rights": list(self.rights),
            "object_type": self.object_type,
            "description": self.description,
        }


@dataclass
class ObjectFindings:
    """Findings for one object, grouped by trustee.

    by_trustee maps trustee -> {ace text -> Finding}. Adding the same ACE
    text twice for one trustee keeps only the latest Finding.
    """
    distinguished_name: str
    by_trustee: dict = field(default_factory=dict)

    def add(self, finding: Finding) -> None:
        entries = self.by_trustee.setdefault(finding.trustee, {})
        entries[finding.ace.text] = finding

    def descriptions(self, trustee: str) -> dict:
        """Return {ace text -> description} for one trustee."""
        return {
            ace_text: finding.description
            for ace_text, finding in self.by_trustee.get(trustee, {}).items()
        }

    def __iter__(self):
        for entries in self.by_trustee.values():
            yield from entries.values()

    def __len__(self) -> int:
        return sum(len(entries) for entries in self.by_trustee.values())

    def __bool__(self) -> bool:
        return len(self) > 0


@dataclass
class TrusteeBlock:
    """Display-ready findings for one trustee on one object."""
    trustee: str
    display_name: str
    entries: dict = field(default_factory=dict)  # ace text -> description

    def to_dict(self) -> dict:
        return {
            "trustee": self.trustee,
            "display_name": self.display_name,
            "entries": dict(self.entries),
        }


@dataclass
class ObjectReport:
    """Report block for one DN that has at least one finding."""
    distinguished_name: str
    trustees: list = field(default_factory=list)  # List of TrusteeBlock
    object_classes: list = field(default_factory=list)

    @property
    def finding_count(self) -> int:
        return sum(len(t.entries) for t in self.trustees)

    def to_dict(self) -> dict:
        return {
            "distinguished_name": self.distinguished_name,
            "object_classes": list(self.object_classes),
            "trustees": [t.to_dict() for t in self.trustees],
        }


@dataclass
class FlatRow:
    """One row of the flat (CSV) output."""
    distinguished_name: str
    identity: str
    right: str
    object_type: str
    object_class: str = ""

    def to_row(self) -> dict:
        return {
            "DistinguishedName": self.distinguished_name,
            "Identity": self.identity,
            "AccessControlType": self.right,
            "ActiveDirectoryRight": self.object_type,
            "ObjectType": self.object_class,
        }


@dataclass
class DomainReport:
    """Everything produced while auditing one domain file.

    Attributes:
        domain: Domain identity (export file stem)
        source_file: Path of the export file
        catalog_source: Where the GUID catalog came from
        catalog_size: Number of GUIDs known to the catalog
        objects: ObjectReport for each DN with findings
        invalid: (DN, reason) pairs for records whose SDDL failed to parse,
            one per record even when DNs repeat
        records: Number of records read
        excluded: Number of records skipped by the exclusion set
        verdicts: AceVerdict value -> count
        flat_rows: FlatRow list for the CSV sink
        error: Set when the whole file was aborted
    """
    domain: str
    source_file: str = ""
    catalog_source: CatalogSource = CatalogSource.EMPTY
    catalog_size: int = 0
    objects: list = field(default_factory=list)
    invalid: list = field(default_factory=list)
    records: int = 0
    excluded: int = 0
    verdicts: dict = field(default_factory=dict)
    flat_rows: list = field(default_factory=list)
    error: Optional[str] = None

    @property
    def finding_count(self) -> int:
        return sum(o.finding_count for o in self.objects)

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "source_file": self.source_file,
            "catalog_source": self.catalog_source.value,
            "catalog_size": self.catalog_size,
            "records": self.records,
            "excluded": self.excluded,
            "invalid": [
                {"distinguished_name": dn, "reason": reason}
                for dn, reason in self.invalid
            ],
            "verdicts": dict(self.verdicts),
            "finding_count": self.finding_count,
            "objects": [o.to_dict() for o in self.objects],
            "error": self.error,
        }


@dataclass
class AuditResult:
    """Complete audit output across all domain files."""
    domains: list = field(default_factory=list)  # List of DomainReport
    report_path: Optional[str] = None
    html_report_path: Optional[str] = None
    csv_report_path: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    @property
    def total_findings(self) -> int:
        return sum(d.finding_count for d in self.domains)

    @property
    def total_objects(self) -> int:
        return sum(len(d.objects) for d in self.domains)

    @property
    def total_invalid(self) -> int:
        return sum(len(d.invalid) for d in self.domains)

    def to_dict(self) -> dict:
        return {
            "domains": [d.to_dict() for d in self.domains],
            "total_findings": self.total_findings,
            "total_objects": self.total_objects,
            "total_invalid": self.total_invalid,
            "report_path": self.report_path,
            "html_report_path": self.html_report_path,
            "csv_report_path": self.csv_report_path,
            "metadata": self.metadata,
        }
