"""
Principals
==========

Well-known trustees, the broad-principal test and trustee display names.

Broad principals are well-known, low-privilege groups or widely held
identities (Everyone, Authenticated Users, Domain Users, guests, ...).
A privileged right granted to any of them is reachable by almost every
account in the forest.
"""

from typing import Optional, Callable


# SDDL two-letter aliases
SDDL_ALIASES = {
    'AA': 'Access Control Assistance Operators',
    'AC': 'All App Packages',
    'AN': 'Anonymous Logon',
    'AO': 'Account Operators',
    'AP': 'Protected Users',
    'AU': 'Authenticated Users',
    'BA': 'Builtin Administrators',
    'BG': 'Builtin Guests',
    'BO': 'Backup Operators',
    'BU': 'Builtin Users',
    'CA': 'Cert Publishers',
    'CD': 'Certificate Service DCOM Access',
    'CG': 'Creator Group',
    'CN': 'Cloneable Domain Controllers',
    'CO': 'Creator Owner',
    'CY': 'Cryptographic Operators',
    'DA': 'Domain Admins',
    'DC': 'Domain Computers',
    'DD': 'Domain Controllers',
    'DG': 'Domain Guests',
    'DU': 'Domain Users',
    'EA': 'Enterprise Admins',
    'ED': 'Enterprise Domain Controllers',
    'EK': 'Enterprise Key Admins',
    'ER': 'Event Log Readers',
    'ES': 'RDS Endpoint Servers',
    'HA': 'Hyper-V Administrators',
    'HI': 'High Integrity Level',
    'IS': 'IIS_IUSRS',
    'IU': 'Interactive',
    'KA': 'Key Admins',
    'LA': 'Local Administrator',
    'LG': 'Local Guest',
    'LS': 'Local Service',
    'LU': 'Performance Log Users',
    'LW': 'Low Integrity Level',
    'ME': 'Medium Integrity Level',
    'MP': 'Medium Plus Integrity Level',
    'MS': 'RDS Management Servers',
    'MU': 'Performance Monitor Users',
    'NO': 'Network Configuration Operators',
    'NS': 'Network Service',
    'NU': 'Network',
    'OW': 'Owner Rights',
    'PA': 'Group Policy Creator Owners',
    'PO': 'Print Operators',
    'PS': 'Principal Self',
    'PU': 'Power Users',
    'RA': 'RDS Remote Access Servers',
    'RC': 'Restricted Code',
    'RD': 'Remote Desktop Users',
    'RE': 'Replicator',
    'RM': 'Remote Management Users',
    'RO': 'Enterprise Read-only Domain Controllers',
    'RS': 'RAS and IAS Servers',
    'RU': 'Pre-Windows 2000 Compatible Access',
    'SA': 'Schema Admins',
    'SI': 'System Integrity Level',
    'SO': 'Server Operators',
    'SS': 'Service Asserted Identity',
    'SU': 'Service',
    'SY': 'Local System',
    'UD': 'User-mode Drivers',
    'WD': 'Everyone',
    'WR': 'Write Restricted Code',
}

# Well-known SIDs
WELL_KNOWN_SID_NAMES = {
    'S-1-0-0': 'Null Authority',
    'S-1-1-0': 'Everyone',
    'S-1-2-0': 'Local',
    'S-1-2-1': 'Console Logon',
    'S-1-3-0': 'Creator Owner',
    'S-1-3-1': 'Creator Group',
    'S-1-3-4': 'Owner Rights',
    'S-1-5-1': 'Dialup',
    'S-1-5-2': 'Network',
    'S-1-5-3': 'Batch',
    'S-1-5-4': 'Interactive',
    'S-1-5-6': 'Service',
    'S-1-5-7': 'Anonymous Logon',
    'S-1-5-9': 'Enterprise Domain Controllers',
    'S-1-5-10': 'Principal Self',
    'S-1-5-11': 'Authenticated Users',
    'S-1-5-12': 'Restricted Code',
    'S-1-5-18': 'Local System',
    'S-1-5-19': 'NT Authority Local Service',
    'S-1-5-20': 'NT Authority Network Service',
    'S-1-5-32-544': 'Administrators',
    'S-1-5-32-545': 'Users',
    'S-1-5-32-546': 'Guests',
    'S-1-5-32-548': 'Account Operators',
    'S-1-5-32-549': 'Server Operators',
    'S-1-5-32-550': 'Print Operators',
    'S-1-5-32-551': 'Backup Operators',
    'S-1-5-32-552': 'Replicators',
    'S-1-5-32-554': 'Builtin\\Pre-Windows 2000 Compatible Access',
    'S-1-5-32-555': 'Builtin\\Remote Desktop Users',
    'S-1-5-32-556': 'Builtin\\Network Configuration Operators',
    'S-1-5-32-557': 'Builtin\\Incoming Forest Trust Builders',
    'S-1-5-32-558': 'Builtin\\Performance Monitor Users',
    'S-1-5-32-559': 'Builtin\\Performance Log Users',
    'S-1-5-32-560': 'Builtin\\Windows Authorization Access Group',
    'S-1-5-32-561': 'Builtin\\Terminal Server License Servers',
    'S-1-5-32-562': 'Builtin\\Distributed COM Users',
    'S-1-5-32-568': 'Builtin\\IIS_IUSRS',
    'S-1-5-32-569': 'Builtin\\Cryptographic Operators',
    'S-1-5-32-571': 'Builtin\\Cacheable Principals',
    'S-1-5-32-573': 'Builtin\\Event Log Readers',
    'S-1-5-32-574': 'Builtin\\Certificate Service DCOM Access',
    'S-1-5-32-575': 'Builtin\\RDS Remote Access Servers',
    'S-1-5-32-576': 'Builtin\\RDS Endpoint Servers',
    'S-1-5-32-577': 'Builtin\\RDS Management Servers',
    'S-1-5-32-578': 'Builtin\\Hyper-V Administrators',
    'S-1-5-32-579': 'Builtin\\Access Control Assistance Operators',
    'S-1-5-32-580': 'Builtin\\Remote Management Users',
    'S-1-5-32-581': 'Builtin\\Default Account',
}

WELL_KNOWN_SIDS = {**SDDL_ALIASES, **WELL_KNOWN_SID_NAMES}

BROAD_ALIASES = frozenset({
    "DG",  # Domain Guests
    "DU",  # Domain Users
    "DC",  # Domain Computers
    "BG",  # Builtin Guests
    "LG",  # Local Guest
    "AU",  # Authenticated Users
    "WD",  # Everyone
    "AN",  # Anonymous Logon
})

BROAD_SIDS = frozenset({
    "S-1-1-0",
    "S-1-5-7",
    "S-1-5-11",
    "S-1-5-32-545",
    "S-1-5-32-546",
    "S-1-5-32-560",
    "S-1-5-32-562",
    "S-1-5-32-571",
    "S-1-5-32-581",
})

# Domain-relative RIDs: Guest, Domain Users, Domain Guests, Domain Computers
BROAD_RIDS = ("-501", "-513", "-514", "-515")


def is_broad_principal(trustee: str) -> bool:
    """True if the trustee is a well-known broad, low-privilege principal."""
    trustee = (trustee or "").upper()
    return (
        trustee in BROAD_ALIASES
        or trustee in BROAD_SIDS
        or trustee.endswith(BROAD_RIDS)
    )


class TrusteeResolver:
    """Resolves trustee tokens to display names.

    Lookup order:
    1. Static well-known table (SDDL aliases and well-known SIDs)
    2. Injected account lookup (e.g. LDAPCollector.lookup_account)
    3. The raw trustee token

    Usage:
        resolver = TrusteeResolver(account_lookup=collector.lookup_account)
        resolver.resolve("WD")  # 'Everyone'
    """

    def __init__(self, account_lookup: Optional[Callable[[str], Optional[str]]] = None):
        self.account_lookup = account_lookup
        self._cache: dict[str, str] = {}

    def resolve(self, trustee: str) -> str:
        key = (trustee or "").upper()
        if key in WELL_KNOWN_SIDS:
            return WELL_KNOWN_SIDS[key]
        if key in self._cache:
            return self._cache[key]

        name = None
        if self.account_lookup:
            try:
                name = self.account_lookup(key)
            except Exception:
                # Display enrichment only; fall back to the raw token
                name = None

        resolved = name or trustee
        self._cache[key] = resolved
        return resolved
