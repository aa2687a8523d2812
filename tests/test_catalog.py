import json

import pytest

from sddlaudit.analysis.catalog import (
    CatalogStore, GuidCatalog, build_catalog, ensure_catalog
)
from sddlaudit.model.schemas import CatalogSource

from helpers import FakeCollector, USER_ACCOUNT_RESTRICTIONS


GUID = "00299570-246D-11D0-A768-00AA006E0529"


def quiet(_message):
    pass


def test_collision_appends_in_insertion_order():
    first = GuidCatalog()
    first.add_right(GUID, "NameA")
    first.add_right(GUID, "NameB")

    second = GuidCatalog()
    second.add_right(GUID, "NameB")
    second.add_right(GUID, "NameA")

    assert first.lookup(GUID) == "NameA | NameB"
    assert second.lookup(GUID) == "NameB | NameA"


def test_keys_are_canonical_upper_case():
    catalog = GuidCatalog()
    catalog.add_attribute(GUID.lower(), "User-Force-Change-Password")

    assert GUID in catalog.attributes
    assert catalog.lookup(GUID.lower()) == "User-Force-Change-Password"
    assert catalog.lookup("{" + GUID + "}") == "User-Force-Change-Password"


def test_resolve_labels():
    catalog = GuidCatalog()
    catalog.add_attribute(USER_ACCOUNT_RESTRICTIONS, "User-Account-Restrictions")

    assert catalog.resolve("") == "whole object"
    assert catalog.resolve(USER_ACCOUNT_RESTRICTIONS.lower()) == "User-Account-Restrictions"
    assert catalog.resolve(GUID.lower()) == GUID


def test_rights_take_precedence_over_attributes():
    catalog = GuidCatalog()
    catalog.add_attribute(GUID, "attribute-name")
    catalog.add_right(GUID, "right-name")
    assert catalog.lookup(GUID) == "right-name"
    assert len(catalog) == 2


def test_build_catalog_from_rows():
    catalog = build_catalog(
        "corp.local",
        rights_rows=[{"name": "User-Force-Change-Password", "rightsGuid": GUID.lower()}],
        security_rows=[
            {"name": "User-Account-Restrictions", "schemaIDGUID": USER_ACCOUNT_RESTRICTIONS},
            {"name": "no-guid", "schemaIDGUID": ""},
        ],
        schema_rows=[
            {"cn": "User-Account-Restrictions-Attr", "schemaIDGUID": USER_ACCOUNT_RESTRICTIONS},
            {"cn": "Member", "schemaIDGUID": "BF9679C0-0DE6-11D0-A285-00AA003049E2"},
        ],
    )

    assert catalog.domain == "corp.local"
    assert catalog.rights[GUID] == "User-Force-Change-Password"
    assert catalog.rights[USER_ACCOUNT_RESTRICTIONS] == "User-Account-Restrictions"
    assert catalog.attributes[USER_ACCOUNT_RESTRICTIONS] == "User-Account-Restrictions-Attr"
    assert catalog.resolve("BF9679C0-0DE6-11D0-A285-00AA003049E2") == "Member"
    assert "" not in catalog.rights


def test_store_round_trip(tmp_path):
    store = CatalogStore(str(tmp_path / "cache"))
    catalog = GuidCatalog("corp.local", rights={GUID: "A | B"}, attributes={USER_ACCOUNT_RESTRICTIONS: "C"})

    assert not store.exists("corp.local")
    store.save(catalog)
    assert store.exists("corp.local")
    assert not list((tmp_path / "cache").glob("*.tmp"))

    loaded = store.load("corp.local")
    assert loaded.rights == {GUID: "A | B"}
    assert loaded.attributes == {USER_ACCOUNT_RESTRICTIONS: "C"}


def test_store_reads_object_shaped_values(tmp_path):
    store = CatalogStore(str(tmp_path))
    store.rights_path("corp.local").write_text(json.dumps({
        GUID.lower(): {"name": "User-Force-Change-Password", "rightsGuid": GUID, "objectGUID": ""}
    }))

    loaded = store.load("corp.local")
    assert loaded.rights == {GUID: "User-Force-Change-Password"}
    assert loaded.attributes == {}


def test_ensure_uses_cache_without_querying(tmp_path):
    store = CatalogStore(str(tmp_path))
    store.save(GuidCatalog("corp.local", rights={GUID: "cached"}))
    collector = FakeCollector("corp.local")

    catalog, source = ensure_catalog("corp.local", store, lambda d: collector, rebuild=False, log=quiet)

    assert source == CatalogSource.CACHE
    assert catalog.lookup(GUID) == "cached"
    assert collector.catalog_queries == 0


def test_ensure_builds_and_saves_when_no_cache(tmp_path):
    store = CatalogStore(str(tmp_path))
    collector = FakeCollector("corp.local", rights_rows=[{"name": "built", "rightsGuid": GUID}])

    catalog, source = ensure_catalog("corp.local", store, lambda d: collector, log=quiet)

    assert source == CatalogSource.BUILT
    assert catalog.lookup(GUID) == "built"
    assert store.load("corp.local").lookup(GUID) == "built"


def test_ensure_rebuild_unreachable_falls_back_to_cache(tmp_path):
    store = CatalogStore(str(tmp_path))
    store.save(GuidCatalog("corp.local", rights={GUID: "cached"}))
    collector = FakeCollector("corp.local", reachable=False)

    catalog, source = ensure_catalog("corp.local", store, lambda d: collector, rebuild=True, log=quiet)

    assert collector.catalog_queries == 1
    assert source == CatalogSource.CACHE
    assert catalog.lookup(GUID) == "cached"


@pytest.mark.parametrize("factory", [None, lambda d: FakeCollector(d, reachable=False)])
def test_ensure_unreachable_without_cache_is_empty(tmp_path, factory):
    store = CatalogStore(str(tmp_path))

    catalog, source = ensure_catalog("corp.local", store, factory, rebuild=True, log=quiet)

    assert source == CatalogSource.EMPTY
    assert len(catalog) == 0
    assert catalog.resolve(GUID.lower()) == GUID


def test_catalogs_do_not_leak_between_domains(tmp_path):
    store = CatalogStore(str(tmp_path))
    store.save(GuidCatalog("a.local", rights={GUID: "from-a"}))

    a, _ = ensure_catalog("a.local", store, None, log=quiet)
    b, source = ensure_catalog("b.local", store, None, log=quiet)

    assert a is not b
    assert source == CatalogSource.EMPTY
    assert b.lookup(GUID) is None


def write_corrupt_cache(store, domain, rights_text="{truncated"):
    store.save(GuidCatalog(domain, attributes={USER_ACCOUNT_RESTRICTIONS: "attr"}))
    store.rights_path(domain).write_text(rights_text, encoding="utf-8")


def test_corrupt_cache_offline_gives_empty_catalog(tmp_path):
    store = CatalogStore(str(tmp_path))
    write_corrupt_cache(store, "corp.local")
    messages = []

    catalog, source = ensure_catalog("corp.local", store, None, log=messages.append)

    assert source == CatalogSource.EMPTY
    assert len(catalog) == 0
    assert any("unreadable" in m for m in messages)


@pytest.mark.parametrize("rights_text", ["{truncated", "[1, 2]", "\xff"])
def test_corrupt_cache_is_rebuilt(tmp_path, rights_text):
    store = CatalogStore(str(tmp_path))
    write_corrupt_cache(store, "corp.local", rights_text)
    collector = FakeCollector("corp.local", rights_rows=[{"name": "built", "rightsGuid": GUID}])

    catalog, source = ensure_catalog("corp.local", store, lambda d: collector, log=quiet)

    assert source == CatalogSource.BUILT
    assert catalog.lookup(GUID) == "built"
    assert store.load("corp.local").lookup(GUID) == "built"


def test_failed_cache_write_keeps_built_catalog(tmp_path):
    class ReadOnlyStore(CatalogStore):
        def save(self, catalog):
            raise PermissionError("read-only cache")

    store = ReadOnlyStore(str(tmp_path))
    collector = FakeCollector("corp.local", rights_rows=[{"name": "built", "rightsGuid": GUID}])

    catalog, source = ensure_catalog("corp.local", store, lambda d: collector, log=quiet)

    assert source == CatalogSource.BUILT
    assert catalog.lookup(GUID) == "built"
    assert not store.exists("corp.local")
