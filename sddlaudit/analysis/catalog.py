"""
GUID Resolution Catalog
=======================

Maps object-type GUIDs found in ACEs to readable names.

Sources (per domain):
- Extended/valid rights: CN=Extended-Rights,<configuration NC>
- Property sets: schema entries that carry attributeSecurityGUID
- Schema attributes and classes: schemaIDGUID of attributeSchema/classSchema

Design Decisions:
-----------------
1. One GuidCatalog per domain, owned by that domain's pipeline; a new
   domain always starts from an empty catalog
2. Keys are upper-case GUID strings
3. A GUID seen twice keeps both names joined by " | "; nothing is
   overwritten, since one GUID can serve several purposes
4. Built catalogs are cached as two JSON maps and written atomically

Cache Files:
    <cache_dir>/<domain>_rights.json      {GUID: name}
    <cache_dir>/<domain>_attributes.json  {GUID: name}
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Callable

from ldap3.core.exceptions import LDAPException

from ..model.schemas import CatalogSource, WHOLE_OBJECT


NAME_SEPARATOR = " | "


def canonical_guid(guid: str) -> str:
    return (guid or "").strip().strip("{}").upper()


class GuidCatalog:
    """GUID -> name lookup for one domain.

    Two maps share one lookup namespace; rights are consulted first.

    Usage:
        catalog = GuidCatalog("corp.local")
        catalog.add_right("00299570-246D-11D0-A768-00AA006E0529", "User-Force-Change-Password")
        catalog.resolve("00299570-246d-11d0-a768-00aa006e0529")
    """

    def __init__(self, domain: str = "", rights: Optional[dict] = None,
                 attributes: Optional[dict] = None):
        self.domain = domain
        self.rights: dict[str, str] = {}
        self.attributes: dict[str, str] = {}
        for guid, name in (rights or {}).items():
            self.add_right(guid, name)
        for guid, name in (attributes or {}).items():
            self.add_attribute(guid, name)

    @staticmethod
    def _insert(table: dict, guid: str, name: str) -> None:
        key = canonical_guid(guid)
        if not key:
            return
        if key in table:
            table[key] = table[key] + NAME_SEPARATOR + name
        else:
            table[key] = name

    def add_right(self, guid: str, name: str) -> None:
        self._insert(self.rights, guid, name)

    def add_attribute(self, guid: str, name: str) -> None:
        self._insert(self.attributes, guid, name)

    def lookup(self, guid: str) -> Optional[str]:
        key = canonical_guid(guid)
        if key in self.rights:
            return self.rights[key]
        return self.attributes.get(key)

    def resolve(self, guid: str) -> str:
        """Label for an ACE object type.

        Returns "whole object" for an empty GUID, the catalog name when
        known, otherwise the GUID itself.
        """
        key = canonical_guid(guid)
        if not key:
            return WHOLE_OBJECT
        return self.lookup(key) or key

    def clear(self) -> None:
        self.rights.clear()
        self.attributes.clear()

    def __len__(self) -> int:
        return len(self.rights) + len(self.attributes)

    def __contains__(self, guid: str) -> bool:
        return self.lookup(guid) is not None


def build_catalog(domain: str, rights_rows: list, security_rows: list,
                  schema_rows: list) -> GuidCatalog:
    """Build a catalog from raw directory rows.

    Args:
        domain: Domain identity
        rights_rows: controlAccessRight rows {"name", "rightsGuid"}
        security_rows: attributeSecurityGUID rows {"name", "schemaIDGUID"}
        schema_rows: attributeSchema/classSchema rows {"cn", "schemaIDGUID"}
    """
    catalog = GuidCatalog(domain)

    for row in rights_rows:
        catalog.add_right(row.get("rightsGuid", ""), row.get("name", ""))

    for row in security_rows:
        catalog.add_right(row.get("schemaIDGUID", ""), row.get("name", ""))

    for row in schema_rows:
        catalog.add_attribute(row.get("schemaIDGUID", ""), row.get("cn") or row.get("name", ""))

    return catalog


class CatalogStore:
    """Per-domain catalog cache on disk.

    Usage:
        store = CatalogStore("cache")
        store.save(catalog)
        catalog = store.load("corp.local")
    """

    def __init__(self, cache_dir: str = "cache"):
        self.cache_dir = Path(cache_dir)

    def rights_path(self, domain: str) -> Path:
        return self.cache_dir / f"{domain}_rights.json"

    def attributes_path(self, domain: str) -> Path:
        return self.cache_dir / f"{domain}_attributes.json"

    def exists(self, domain: str) -> bool:
        return self.rights_path(domain).exists() and self.attributes_path(domain).exists()

    @staticmethod
    def _read_map(path: Path) -> dict:
        """Read {GUID: name}; values may also be objects with a "name" key."""
        if not path.exists():
            return {}
        with open(path, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object")

        result = {}
        for guid, value in data.items():
            if isinstance(value, dict):
                value = value.get("name", "")
            result[guid] = "" if value is None else str(value)
        return result

    @staticmethod
    def _write_map(path: Path, data: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def load(self, domain: str) -> GuidCatalog:
        catalog = GuidCatalog(domain)
        # Cached maps are already merged; load them as-is
        catalog.rights = {canonical_guid(k): v for k, v in self._read_map(self.rights_path(domain)).items()}
        catalog.attributes = {canonical_guid(k): v for k, v in self._read_map(self.attributes_path(domain)).items()}
        return catalog

    def save(self, catalog: GuidCatalog) -> None:
        self._write_map(self.rights_path(catalog.domain), catalog.rights)
        self._write_map(self.attributes_path(catalog.domain), catalog.attributes)


def ensure_catalog(
    domain: str,
    store: CatalogStore,
    collector_factory: Optional[Callable[[str], object]] = None,
    rebuild: bool = False,
    log: Callable[[str], None] = print
) -> tuple[GuidCatalog, CatalogSource]:
    """Build or reload the catalog for one domain.

    A rebuild happens when requested or when no readable cache exists. If the
    domain cannot be reached, the cache is used when present, otherwise
    an empty catalog is returned and GUIDs are shown as-is. A failed cache
    write is logged; the built catalog is still used.

    Args:
        domain: Domain identity
        store: Cache location
        collector_factory: Returns an object with collect_catalog_rows() for
            the domain; None means offline
        rebuild: Query the directory even if a cache exists
        log: Logging function

    Returns:
        (catalog, source)
    """
    cached = None
    if store.exists(domain):
        try:
            cached = store.load(domain)
        except (ValueError, OSError) as e:
            # Truncated or corrupt cache counts as no cache
            log(f"[!] Ignoring unreadable rights/attrs cache for {domain}: {e}")

    if not rebuild and cached is not None:
        log(f"[+] Loaded cached rights/attrs for {domain}: {len(cached.rights)}/{len(cached.attributes)}")
        return cached, CatalogSource.CACHE

    try:
        if collector_factory is None:
            raise ConnectionError("offline mode")
        collector = collector_factory(domain)
        rows = collector.collect_catalog_rows()
    except (ConnectionError, LDAPException, OSError) as e:
        if cached is not None:
            log(f"[!] Use cached rights/attrs for unreachable DC {domain}: {e}")
            return cached, CatalogSource.CACHE
        log(f"[!] No rights/attrs for unreachable DC {domain}: {e}")
        return GuidCatalog(domain), CatalogSource.EMPTY

    catalog = build_catalog(domain, *rows)
    try:
        store.save(catalog)
    except OSError as e:
        log(f"[!] Could not write rights/attrs cache for {domain}: {e}")
    else:
        log(f"[+] Saved {len(catalog.rights)} extended rights and {len(catalog.attributes)} schema attributes for {domain}")
    return catalog, CatalogSource.BUILT
