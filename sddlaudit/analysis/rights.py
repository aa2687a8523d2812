"""
ACE Rights Decoder
==================

Maps SDDL rights strings such as "RPWPCR" to readable permission names
and flags the rights that allow takeover of an object.

Rights Codes:
- Generic rights (GA, GR, GW, GX)
- Standard rights (RC, SD, WD, WO)
- Directory service rights (CC, DC, LC, SW, RP, WP, DT, LO, CR)
- File, registry and mandatory-label rights (FA, FR, FW, FX, KA, KR, KW, KX,
  NR, NW, NX)

A rights string is a run of 2-character codes. An odd-length string has
a dangling character and cannot be decoded; it raises AmbiguousRightsError
so the caller decides how to treat it.
"""


RIGHTS_CODES = {
    # Generic access rights
    "GA": "Generic All",
    "GR": "Generic Read",
    "GW": "Generic Write",
    "GX": "Generic Execute",

    # Standard access rights
    "RC": "Read Control",
    "SD": "Delete",
    "WD": "Write DAC",
    "WO": "Write Owner",

    # Directory service object access rights
    "RP": "Read Property",
    "WP": "Write Property",
    "CC": "Create Child",
    "DC": "Delete Child",
    "LC": "List Children",
    "SW": "Self Write",
    "LO": "List Object",
    "DT": "Delete Tree",
    "CR": "Control Access",

    # File access rights
    "FA": "File All",
    "FR": "File Read",
    "FW": "File Write",
    "FX": "File Execute",

    # Registry key access rights
    "KA": "Key All",
    "KR": "Key Read",
    "KW": "Key Write",
    "KX": "Key Execute",

    # Mandatory label rights
    "NR": "No Read Up",
    "NW": "No Write Up",
    "NX": "No Execute Up",
}

# Each of these alone lets the holder rewrite the object, its DACL or owner,
# trigger an extended right, or create children under it.
PRIVILEGED_CODES = frozenset({"GW", "GA", "WO", "WD", "CR", "WP", "CC"})


class AmbiguousRightsError(ValueError):
    """Raised for a rights string with an odd number of characters.

    Attributes:
        rights: The raw rights string
        dangling: The final unmatched character
    """

    def __init__(self, rights: str):
        self.rights = rights
        self.dangling = rights[-1:] if rights else ""
        super().__init__(
            f"Rights string {rights!r} has odd length; trailing {self.dangling!r} cannot be decoded"
        )


def split_rights(raw: str) -> list[str]:
    """Split a rights string into upper-case 2-character codes.

    Raises:
        AmbiguousRightsError: If the length is odd
    """
    raw = (raw or "").upper()
    if len(raw) % 2:
        raise AmbiguousRightsError(raw)
    return [raw[i:i + 2] for i in range(0, len(raw), 2)]


def decode_rights_list(raw: str) -> list[str]:
    """Decode each code to its name; unknown codes pass through unchanged."""
    return [RIGHTS_CODES.get(code, code) for code in split_rights(raw)]


def decode_rights(raw: str) -> str:
    """Decode a rights string to a comma-joined list of names.

    Example:
        >>> decode_rights("RPWP")
        'Read Property, Write Property'
    """
    return ", ".join(decode_rights_list(raw))


def is_privileged(raw: str) -> bool:
    """True if any code in the rights string is a privileged right."""
    return any(code in PRIVILEGED_CODES for code in split_rights(raw))
