import pytest

from sddlaudit.analysis.principals import TrusteeResolver, is_broad_principal


@pytest.mark.parametrize("trustee", [
    "DG", "DU", "DC", "BG", "LG", "AU", "WD", "AN", "wd",
    "S-1-1-0", "S-1-5-7", "S-1-5-11", "S-1-5-32-545", "S-1-5-32-546",
    "S-1-5-32-560", "S-1-5-32-562", "S-1-5-32-571", "S-1-5-32-581",
    "S-1-5-21-1-2-3-501", "S-1-5-21-1-2-3-513", "S-1-5-21-1-2-3-514",
    "S-1-5-21-1-2-3-515",
])
def test_broad_principals(trustee):
    assert is_broad_principal(trustee)


@pytest.mark.parametrize("trustee", [
    "BA", "DA", "SY", "PS", "CO", "S-1-5-18", "S-1-5-32-544",
    "S-1-5-21-1-2-3-512", "S-1-5-21-1-2-3-1513", "",
])
def test_not_broad_principals(trustee):
    assert not is_broad_principal(trustee)


def test_static_table_first():
    calls = []
    resolver = TrusteeResolver(account_lookup=lambda sid: calls.append(sid) or "X")

    assert resolver.resolve("WD") == "Everyone"
    assert resolver.resolve("S-1-5-11") == "Authenticated Users"
    assert calls == []


def test_lookup_then_raw_token():
    resolver = TrusteeResolver(account_lookup={"S-1-5-21-1-2-3-1105": "CORP\\svc"}.get)

    assert resolver.resolve("S-1-5-21-1-2-3-1105") == "CORP\\svc"
    assert resolver.resolve("S-1-5-21-1-2-3-1106") == "S-1-5-21-1-2-3-1106"


def test_lookup_failure_falls_back():
    def broken(_sid):
        raise OSError("domain unreachable")

    resolver = TrusteeResolver(account_lookup=broken)
    assert resolver.resolve("S-1-5-21-1-2-3-513") == "S-1-5-21-1-2-3-513"


def test_results_are_cached():
    calls = []

    def lookup(sid):
        calls.append(sid)
        return "CORP\\Domain Users"

    resolver = TrusteeResolver(account_lookup=lookup)
    resolver.resolve("S-1-5-21-1-2-3-513")
    resolver.resolve("S-1-5-21-1-2-3-513")
    assert calls == ["S-1-5-21-1-2-3-513"]


def test_no_lookup_returns_raw():
    assert TrusteeResolver().resolve("S-1-5-21-9-9-9-1000") == "S-1-5-21-9-9-9-1000"
