"""
SDDL Structural Parser
======================

Parses Security Descriptor Definition Language strings into a
SecurityDescriptor with owner, group, DACL and SACL sections.

Grammar:
--------
    [ "O:" Sid ] [ "G:" Sid ] [ "D:" Flags AceList ] [ "S:" Flags AceList ]

    Sid     = "S-" digits ("-" digits)+ | two letters (SDDL alias)
    Flags   = 0-5 characters from P, A, R, I
    AceList = one or more "(" Ace ")" with no separator
    Ace     = Type ";" Flags ";" Rights ";" Guid? ";" Guid? ";" Sid

Every section is optional and appears at most once, in that order. The
whole string must match; anything else raises MalformedSddlError.
Matching is case-insensitive and the parsed tokens are upper-cased.

Design Decisions:
-----------------
1. A small hand-written scanner instead of a regex, so the anchoring and
   field rules are explicit
2. Each ACE must have exactly six fields; there is no partial matching
3. The parser never touches rights semantics; decoding is analysis work
"""

from ..model.schemas import Ace, SecurityDescriptor


SECTION_ORDER = "OGDS"
ACL_FLAG_CHARS = frozenset("PARI")
MAX_ACL_FLAGS = 5
MAX_ACE_TYPE = 2
MAX_ACE_FLAGS = 18
ACE_FIELD_COUNT = 6
GUID_LENGTH = 36
GUID_DASHES = (8, 13, 18, 23)
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class MalformedSddlError(ValueError):
    """Raised when an SDDL string does not match the grammar.

    Attributes:
        sddl: The offending text
        position: Offset where matching failed
        reason: Short explanation
    """

    def __init__(self, reason: str, sddl: str = "", position: int = 0):
        self.sddl = sddl
        self.position = position
        self.reason = reason
        super().__init__(f"Malformed SDDL at offset {position}: {reason}")


def _is_letters(token: str) -> bool:
    return all(c.isascii() and c.isalpha() for c in token)


def _is_digits(token: str) -> bool:
    return bool(token) and token.isascii() and token.isdigit()


def is_sid_string(token: str) -> bool:
    """Check for a textual SID: S-<n>-<n>[-<n>...]."""
    if token[:2].upper() != "S-":
        return False
    parts = token[2:].split("-")
    return len(parts) >= 2 and all(_is_digits(p) for p in parts)


def is_sid_token(token: str) -> bool:
    """Check for a textual SID or a two-letter SDDL alias."""
    if len(token) == 2 and _is_letters(token):
        return True
    return is_sid_string(token)


def is_guid(token: str) -> bool:
    """Check for a 36-character hyphenated GUID."""
    if len(token) != GUID_LENGTH:
        return False
    for i, c in enumerate(token):
        if i in GUID_DASHES:
            if c != "-":
                return False
        elif c not in HEX_DIGITS:
            return False
    return True


def _parse_ace_body(body: str, sddl: str, offset: int) -> Ace:
    """Parse the text between an ACE's parentheses."""
    fields = body.split(";")
    if len(fields) != ACE_FIELD_COUNT:
        raise MalformedSddlError(
            f"ACE has {len(fields)} fields, expected {ACE_FIELD_COUNT}", sddl, offset
        )

    ace_type, flags, rights, object_guid, inherited_guid, trustee = fields

    if not (1 <= len(ace_type) <= MAX_ACE_TYPE and _is_letters(ace_type)):
        raise MalformedSddlError(f"invalid ACE type {ace_type!r}", sddl, offset)
    if len(flags) > MAX_ACE_FLAGS or not _is_letters(flags):
        raise MalformedSddlError(f"invalid ACE flags {flags!r}", sddl, offset)
    for guid in (object_guid, inherited_guid):
        if guid and not is_guid(guid):
            raise MalformedSddlError(f"invalid GUID {guid!r}", sddl, offset)
    if not is_sid_token(trustee):
        raise MalformedSddlError(f"invalid trustee {trustee!r}", sddl, offset)

    return Ace(
        ace_type=ace_type.upper(),
        flags=flags.upper(),
        rights=rights.upper(),
        object_guid=object_guid.upper(),
        inherited_object_guid=inherited_guid.upper(),
        trustee=trustee.upper(),
    )


class _Scanner:
    """Cursor over an SDDL string."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    @property
    def done(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self, size: int = 1) -> str:
        return self.text[self.pos:self.pos + size]

    def fail(self, reason: str) -> MalformedSddlError:
        return MalformedSddlError(reason, self.text, self.pos)

    def read_sid(self) -> str:
        """Read a textual SID or a two-letter alias."""
        text = self.text
        start = self.pos

        if self.peek(2).upper() == "S-":
            end = start + 2
            groups = 0
            while True:
                digits_start = end
                while end < len(text) and _is_digits(text[end]):
                    end += 1
                if end == digits_start:
                    break
                groups += 1
                # Only consume a dash that is followed by another number
                if end + 1 < len(text) and text[end] == "-" and _is_digits(text[end + 1]):
                    end += 1
                else:
                    break
            if groups < 2:
                raise self.fail("invalid SID")
            self.pos = end
            return text[start:end].upper()

        token = self.peek(2)
        if len(token) == 2 and _is_letters(token):
            self.pos += 2
            return token.upper()
        raise self.fail("expected SID or alias")

    def read_acl_flags(self) -> str:
        start = self.pos
        while (
            not self.done
            and self.text[self.pos].upper() in ACL_FLAG_CHARS
            and self.pos - start < MAX_ACL_FLAGS
        ):
            self.pos += 1
        return self.text[start:self.pos].upper()

    def read_ace_list(self) -> list:
        aces = []
        while self.peek() == "(":
            close = self.text.find(")", self.pos + 1)
            if close == -1:
                raise self.fail("unbalanced parenthesis")
            body = self.text[self.pos + 1:close]
            if not body:
                raise self.fail("empty ACE")
            aces.append(_parse_ace_body(body, self.text, self.pos))
            self.pos = close + 1
        if not aces:
            raise self.fail("ACL section without ACEs")
        return aces


def parse_sddl(sddl: str) -> SecurityDescriptor:
    """Parse a complete SDDL string.

    Args:
        sddl: SDDL text, e.g. "O:DAG:DAD:PAI(A;;RP;;;WD)"

    Returns:
        SecurityDescriptor with upper-cased tokens

    Raises:
        MalformedSddlError: If any part of the string does not match
    """
    if sddl is None:
        sddl = ""
    scanner = _Scanner(sddl)
    descriptor = SecurityDescriptor()
    next_section = 0

    while not scanner.done:
        tag = scanner.peek().upper()
        if scanner.peek(2)[1:] != ":" or tag not in SECTION_ORDER:
            raise scanner.fail("unexpected text")

        index = SECTION_ORDER.index(tag)
        if index < next_section:
            raise scanner.fail(f"section {tag}: repeated or out of order")
        next_section = index + 1
        scanner.pos += 2

        if tag == "O":
            descriptor.owner = scanner.read_sid()
        elif tag == "G":
            descriptor.group = scanner.read_sid()
        elif tag == "D":
            descriptor.dacl_flags = scanner.read_acl_flags()
            descriptor.dacl = scanner.read_ace_list()
            descriptor.has_dacl = True
        else:
            descriptor.sacl_flags = scanner.read_acl_flags()
            descriptor.sacl = scanner.read_ace_list()
            descriptor.has_sacl = True

    return descriptor


def parse_ace(text: str) -> Ace:
    """Parse a single parenthesized ACE such as "(A;;WP;;;WD)"."""
    if len(text) < 2 or text[0] != "(" or text[-1] != ")":
        raise MalformedSddlError("ACE must be enclosed in parentheses", text, 0)
    body = text[1:-1]
    if ")" in body:
        raise MalformedSddlError("unbalanced parenthesis", text, body.index(")") + 1)
    return _parse_ace_body(body, text, 0)
