"""
LDAP Schema Collector
=====================

Live queries against a domain controller that feed the audit.

Features:
- Extended/valid rights from CN=Extended-Rights in the configuration NC
- attributeSecurityGUID-linked schema entries (property sets)
- attributeSchema / classSchema definitions with schemaIDGUID
- Best-effort account-name lookup for SIDs (display only)
- Best-effort objectClass lookup for DNs (CSV output only)

Design Decisions:
-----------------
1. Uses ldap3 library for cross-platform LDAP support
2. Returns raw rows; the catalog module owns the merge rules
3. Supports both anonymous and authenticated binds
4. Display lookups never connect twice after a failed bind

Security Consideration:
This module performs read-only operations. No modifications are made to the AD.
"""

import struct
from typing import Optional, Callable

from ldap3 import Server, Connection, ALL, SUBTREE, BASE, NTLM, SIMPLE
from ldap3.core.exceptions import LDAPException

from ..config import LDAPConfig


EXTENDED_RIGHTS_FILTER = "(objectClass=controlAccessRight)"
PROPERTY_SET_FILTER = "(attributeSecurityGUID=*)"
SCHEMA_FILTER = "(|(objectClass=attributeSchema)(objectClass=classSchema))"


def format_guid(guid_bytes: bytes) -> str:
    """Format little-endian GUID bytes as an upper-case string.

    Args:
        guid_bytes: 16 bytes of GUID data

    Returns:
        GUID string (e.g., "BF967950-0DE6-11D0-A285-00AA003049E2")
    """
    if len(guid_bytes) != 16:
        return ""

    # GUID is stored with mixed endianness:
    # First 3 components are little-endian, last 2 are big-endian
    data1 = struct.unpack('<I', guid_bytes[0:4])[0]
    data2 = struct.unpack('<H', guid_bytes[4:6])[0]
    data3 = struct.unpack('<H', guid_bytes[6:8])[0]
    data4 = guid_bytes[8:10].hex()
    data5 = guid_bytes[10:16].hex()

    return f"{data1:08x}-{data2:04x}-{data3:04x}-{data4}-{data5}".upper()


def _first_text(entry: dict, attr: str) -> str:
    """First value of a string attribute from a paged_search entry."""
    value = entry.get("attributes", {}).get(attr)
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _first_guid(entry: dict, attr: str) -> str:
    """First value of a GUID attribute, preferring the raw bytes."""
    raw = entry.get("raw_attributes", {}).get(attr) or []
    if raw and isinstance(raw[0], bytes) and len(raw[0]) == 16:
        return format_guid(raw[0])
    # rightsGuid is stored as a string, not binary
    return _first_text(entry, attr).strip("{}").upper()


class LDAPCollector:
    """Read-only directory client for one domain.

    Usage:
        collector = LDAPCollector(domain="corp.local", config=LDAPConfig())
        rights, security, schema = collector.collect_catalog_rows()
        name = collector.lookup_account("S-1-5-21-...-1105")
        classes = collector.lookup_object_classes("CN=Foo,DC=corp,DC=local")
        collector.disconnect()
    """

    def __init__(
        self,
        domain: str,
        config: Optional[LDAPConfig] = None,
        verbose: bool = True,
        progress_callback: Optional[Callable[[str], None]] = None
    ):
        """Initialize the collector.

        Args:
            domain: Domain name (e.g., "corp.local"); also the default server
            config: LDAPConfig object for connection settings
            verbose: Whether to print progress messages
            progress_callback: Optional callback for progress updates
        """
        self.domain = domain
        self.config = config or LDAPConfig()
        self.server_name = self.config.server or domain
        self.verbose = verbose
        self.progress_callback = progress_callback

        # Connection state
        self.connection: Optional[Connection] = None
        self._connect_failed = False

        # Derive base DN from domain
        self.base_dn = ",".join([f"DC={part}" for part in domain.split(".") if part])
        self.netbios = domain.split(".")[0].upper()

    def _log(self, message: str) -> None:
        """Log a message to console and/or callback."""
        if self.verbose:
            print(message)
        if self.progress_callback:
            self.progress_callback(message)

    def connect(self) -> bool:
        """Establish connection to the LDAP server.

        Returns:
            True if connection successful, False otherwise
        """
        if self.connection:
            return True
        if self._connect_failed:
            return False

        try:
            server = Server(
                self.server_name,
                port=self.config.port,
                use_ssl=self.config.use_ssl,
                get_info=ALL,
                connect_timeout=self.config.timeout
            )

            username = self.config.username
            credential = self.config.ntlm_hash or self.config.password

            if username and credential:
                if '\\' not in username and '@' not in username:
                    ntlm_user = f"{self.netbios}\\{username}"
                else:
                    ntlm_user = username

                self._log(f"[*] Connecting to {self.server_name}:{self.config.port} as {ntlm_user}")

                try:
                    self.connection = Connection(
                        server,
                        user=ntlm_user,
                        password=credential,
                        authentication=NTLM,
                        auto_bind=True,
                        receive_timeout=self.config.timeout
                    )
                except LDAPException:
                    if self.config.ntlm_hash:
                        raise
                    self._log("[*] NTLM auth failed, trying simple bind...")
                    self.connection = Connection(
                        server,
                        user=username if '@' in username else f"{username}@{self.domain}",
                        password=self.config.password,
                        authentication=SIMPLE,
                        auto_bind=True,
                        receive_timeout=self.config.timeout
                    )
            else:
                self._log(f"[*] Connecting anonymously to {self.server_name}:{self.config.port}")
                self.connection = Connection(
                    server,
                    auto_bind=True,
                    receive_timeout=self.config.timeout
                )

            self._log(f"[+] Connected successfully to {self.server_name}")
            return True

        except (LDAPException, OSError) as e:
            self._log(f"[!] Connection failed: {e}")
            self._connect_failed = True
            self.connection = None
            return False

    def _naming_context(self, name: str) -> str:
        info = self.connection.server.info
        values = info.other.get(name) if info else None
        if not values:
            raise LDAPException(f"RootDSE does not expose {name}")
        return values[0]

    def _paged(self, base: str, search_filter: str, attributes: list):
        """Yield searchResEntry dicts from a paged subtree search."""
        entries = self.connection.extend.standard.paged_search(
            search_base=base,
            search_filter=search_filter,
            search_scope=SUBTREE,
            attributes=attributes,
            paged_size=self.config.page_size,
            generator=True
        )
        for entry in entries:
            if entry.get("type") == "searchResEntry":
                yield entry

    def collect_catalog_rows(self) -> tuple[list, list, list]:
        """Query rights and schema rows for the GUID catalog.

        Returns:
            (extended_rights_rows, property_set_rows, schema_rows); each row is
            a dict with "name" or "cn" and "rightsGuid" or "schemaIDGUID"

        Raises:
            ConnectionError: If the domain controller cannot be reached
            LDAPException: If a query fails after binding
        """
        if not self.connect():
            raise ConnectionError(f"Failed to connect to LDAP server {self.server_name}")

        config_nc = self._naming_context("configurationNamingContext")
        schema_nc = self._naming_context("schemaNamingContext")

        self._log(f"[*] Reading extended rights from {config_nc}")
        rights_rows = [
            {"name": _first_text(e, "name"), "rightsGuid": _first_guid(e, "rightsGuid")}
            for e in self._paged(f"CN=Extended-Rights,{config_nc}", EXTENDED_RIGHTS_FILTER,
                                 ["name", "rightsGuid"])
        ]

        self._log(f"[*] Reading property sets and schema from {schema_nc}")
        security_rows = [
            {"name": _first_text(e, "name"), "schemaIDGUID": _first_guid(e, "schemaIDGUID")}
            for e in self._paged(schema_nc, PROPERTY_SET_FILTER,
                                 ["name", "attributeSecurityGUID", "schemaIDGUID"])
        ]
        schema_rows = [
            {"cn": _first_text(e, "cn"), "schemaIDGUID": _first_guid(e, "schemaIDGUID")}
            for e in self._paged(schema_nc, SCHEMA_FILTER, ["cn", "schemaIDGUID"])
        ]

        self._log(
            f"[+] Read {len(rights_rows)} rights, {len(security_rows)} property sets, "
            f"{len(schema_rows)} schema entries"
        )
        return rights_rows, security_rows, schema_rows

    def lookup_account(self, sid: str) -> Optional[str]:
        """Translate a textual SID to DOMAIN\\sAMAccountName.

        Returns:
            The account name, or None when the SID is unknown or the domain
            cannot be reached
        """
        if not sid.upper().startswith("S-") or not self.connect():
            return None

        self.connection.search(
            search_base=self.base_dn,
            search_filter=f"(objectSid={sid})",
            search_scope=SUBTREE,
            attributes=["sAMAccountName"]
        )
        for entry in self.connection.response or []:
            if entry.get("type") != "searchResEntry":
                continue
            sam = _first_text(entry, "sAMAccountName")
            if sam:
                return f"{self.netbios}\\{sam}"
        return None

    def lookup_object_classes(self, dn: str) -> list[str]:
        """Return the objectClass values of a DN, or [] if unavailable."""
        if not self.connect():
            return []

        self.connection.search(
            search_base=dn,
            search_filter="(objectClass=*)",
            search_scope=BASE,
            attributes=["objectClass"]
        )
        for entry in self.connection.response or []:
            if entry.get("type") != "searchResEntry":
                continue
            value = entry.get("attributes", {}).get("objectClass") or []
            if isinstance(value, str):
                value = [value]
            return [str(v) for v in value]
        return []

    def disconnect(self) -> None:
        """Close the LDAP connection."""
        if self.connection:
            try:
                self.connection.unbind()
            except LDAPException:
                pass
            self.connection = None
