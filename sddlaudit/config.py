"""
sddlAudit Configuration Module
==============================

Centralized configuration management for the sddlAudit framework.
Supports environment variables for directory credentials.

Design Decision:
- Configuration is a dataclass tree that is passed through the pipeline
- Each domain pipeline reads what it needs; nothing is stored globally
- Output paths are configurable for flexibility in different environments
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path


@dataclass
class InputConfig:
    """Configuration for the export files to audit.

    Attributes:
        input_dir: Folder holding one "<domain>.json" export per domain
        exclude_file: File of DN substrings to skip, one per line
    """
    input_dir: str = ""
    exclude_file: Optional[str] = None


@dataclass
class CatalogConfig:
    """Configuration for the per-domain GUID catalog.

    Attributes:
        cache_dir: Folder for "<domain>_rights.json" / "<domain>_attributes.json"
        rebuild: Query the directory even when a cache exists
    """
    cache_dir: str = "cache"
    rebuild: bool = False


@dataclass
class LDAPConfig:
    """Configuration for schema queries and display lookups.

    Attributes:
        server: Host to query; defaults to the domain name being audited
        use_ssl: Whether to use LDAPS (port 636) vs LDAP (port 389)
        page_size: Page size for LDAP queries
        timeout: Connection timeout in seconds
    """
    server: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    ntlm_hash: Optional[str] = None
    use_ssl: bool = False
    port: Optional[int] = None  # Auto-detect based on use_ssl
    page_size: int = 1000
    timeout: int = 30

    def __post_init__(self):
        if self.port is None:
            self.port = 636 if self.use_ssl else 389
        if self.username is None:
            self.username = os.environ.get("SDDLAUDIT_USERNAME")
        if self.password is None:
            self.password = os.environ.get("SDDLAUDIT_PASSWORD")


@dataclass
class OutputConfig:
    """Configuration for output and reporting.

    Attributes:
        output_dir: Directory for output files
        generate_csv: Write the flat CSV report
        generate_html: Write the standalone HTML report
        generate_json: Write the structured JSON report
    """
    output_dir: str = "output"
    generate_csv: bool = False
    csv_name: str = "Interesting.csv"
    generate_html: bool = True
    html_name: str = "Interesting.htm"
    generate_json: bool = True
    json_name: str = "audit_report.json"

    def __post_init__(self):
        """Ensure output directory exists."""
        Path(self.output_dir).mkdir(parents=True, exist_ok=True)


@dataclass
class AuditConfig:
    """Main configuration container for sddlAudit.

    Usage:
        config = AuditConfig(input=InputConfig(input_dir="exports"))
        config = AuditConfig.from_dict({"input": {"input_dir": "exports"}, "offline": True})

    Attributes:
        offline: Never contact a directory; catalogs come from cache only
        workers: Number of domain files processed in parallel
    """
    input: InputConfig = field(default_factory=InputConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    ldap: LDAPConfig = field(default_factory=LDAPConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    offline: bool = False
    workers: int = 1

    # Verbosity level for logging
    verbose: bool = True

    @classmethod
    def from_dict(cls, config_dict: dict) -> "AuditConfig":
        """Create configuration from a dictionary.

        Useful for loading from JSON files or CLI arguments.
        """
        return cls(
            input=InputConfig(**config_dict.get("input", {})),
            catalog=CatalogConfig(**config_dict.get("catalog", {})),
            ldap=LDAPConfig(**config_dict.get("ldap", {})),
            output=OutputConfig(**config_dict.get("output", {})),
            offline=config_dict.get("offline", False),
            workers=max(1, int(config_dict.get("workers", 1))),
            verbose=config_dict.get("verbose", True)
        )

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization."""
        from dataclasses import asdict
        data = asdict(self)
        # Never serialize secrets into reports
        data["ldap"]["password"] = None
        data["ldap"]["ntlm_hash"] = None
        return data
