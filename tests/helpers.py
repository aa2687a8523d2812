USER_ACCOUNT_RESTRICTIONS = "BF967950-0DE6-11D0-A285-00AA003049E2"


def record(dn, sddl, **extra):
    data = {
        "distinguishedName": dn,
        "name": dn.split(",")[0].split("=")[-1],
        "sAMAccountName": "",
        "sid": "",
        "guid": "",
        "sddl": sddl,
    }
    data.update(extra)
    return data


class FakeCollector:
    """Stands in for LDAPCollector in pipeline tests."""

    def __init__(self, domain, rights_rows=None, schema_rows=None, reachable=True,
                 accounts=None, classes=None):
        self.domain = domain
        self.rights_rows = rights_rows or []
        self.schema_rows = schema_rows or []
        self.reachable = reachable
        self.accounts = accounts or {}
        self.classes = classes or {}
        self.disconnected = False
        self.catalog_queries = 0

    def collect_catalog_rows(self):
        self.catalog_queries += 1
        if not self.reachable:
            raise ConnectionError(f"Failed to connect to LDAP server {self.domain}")
        return self.rights_rows, [], self.schema_rows

    def lookup_account(self, sid):
        return self.accounts.get(sid)

    def lookup_object_classes(self, dn):
        return self.classes.get(dn, [])

    def disconnect(self):
        self.disconnected = True
