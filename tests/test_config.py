from sddlaudit.config import AuditConfig, LDAPConfig


def test_defaults(tmp_path):
    config = AuditConfig.from_dict({"output": {"output_dir": str(tmp_path / "out")}})

    assert config.catalog.cache_dir == "cache"
    assert config.output.csv_name == "Interesting.csv"
    assert config.output.html_name == "Interesting.htm"
    assert config.workers == 1
    assert (tmp_path / "out").is_dir()
    assert "debug" not in config.to_dict()


def test_port_follows_ssl():
    assert LDAPConfig().port == 389
    assert LDAPConfig(use_ssl=True).port == 636
    assert LDAPConfig(use_ssl=True, port=3269).port == 3269


def test_credentials_from_environment(monkeypatch):
    monkeypatch.setenv("SDDLAUDIT_USERNAME", "auditor")
    monkeypatch.setenv("SDDLAUDIT_PASSWORD", "secret")

    ldap = LDAPConfig()
    assert (ldap.username, ldap.password) == ("auditor", "secret")
    assert LDAPConfig(username="other").username == "other"


def test_workers_floor_and_secrets_not_serialized(tmp_path):
    config = AuditConfig.from_dict({
        "ldap": {"password": "secret", "ntlm_hash": "aad3b435"},
        "output": {"output_dir": str(tmp_path)},
        "workers": 0,
    })

    assert config.workers == 1
    data = config.to_dict()
    assert data["ldap"]["password"] is None
    assert data["ldap"]["ntlm_hash"] is None
    assert config.ldap.password == "secret"
