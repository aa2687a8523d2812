"""
Exclusions
==========

Two suppression layers applied before an ACE can become a finding:

- ExclusionSet: user-supplied DN substrings; a matching object is skipped
  entirely
- BENIGN_RULES: built-in ACE patterns that are broad by design in a
  default forest (Everyone/AU change-password, DNS zone creation, GPO
  apply-group-policy)

All comparisons are case-insensitive.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class ExclusionSet:
    """Case-insensitive DN substrings to skip.

    Usage:
        exclusions = ExclusionSet.load("exclude.txt")
        if exclusions.matches(dn):
            ...
    """

    def __init__(self, patterns=None):
        self.patterns: list[str] = []
        self._folded: set[str] = set()
        for pattern in patterns or []:
            self.add(pattern)

    @classmethod
    def load(cls, path: Optional[str]) -> "ExclusionSet":
        """Load one pattern per line; a missing file gives an empty set."""
        exclusions = cls()
        if not path or not Path(path).is_file():
            return exclusions

        with open(path, "r", encoding="utf-8-sig") as f:
            for line in f:
                exclusions.add(line)
        return exclusions

    def add(self, pattern: str) -> None:
        rule = (pattern or "").strip()
        if not rule or rule.casefold() in self._folded:
            return
        self._folded.add(rule.casefold())
        self.patterns.append(rule)

    def matches(self, dn: str) -> bool:
        folded = (dn or "").casefold()
        return any(pattern in folded for pattern in self._folded)

    def __len__(self) -> int:
        return len(self.patterns)


@dataclass(frozen=True)
class BenignRule:
    """An ACE pattern that is never reported.

    Attributes:
        name: Short label for statistics
        patterns: Matches if any of these occurs in the ACE text
        dn_substring: If set, the object's DN must also contain this
    """
    name: str
    patterns: tuple
    dn_substring: Optional[str] = None

    def matches(self, ace_text: str, dn: str) -> bool:
        text = (ace_text or "").upper()
        if not any(p.upper() in text for p in self.patterns):
            return False
        if self.dn_substring is None:
            return True
        return self.dn_substring.upper() in (dn or "").upper()


BENIGN_RULES = (
    BenignRule(
        name="everyone-change-password",
        patterns=("OA;;CR;AB721A53-1E2F-11D0-9819-00AA0040529B;;WD",),
    ),
    BenignRule(
        name="authenticated-users-send-to",
        patterns=("OA;;CR;AB721A55-1E2F-11D0-9819-00AA0040529B;;AU",),
    ),
    BenignRule(
        name="dns-zone-authenticated-users",
        patterns=("A;;SWWPRC;;;AU", "A;;CC;;;AU", "A;;CCSWWPRC;;;AU"),
        dn_substring="CN=MicrosoftDNS,CN=System",
    ),
    BenignRule(
        name="gpo-apply-group-policy",
        patterns=(";CR;EDACFD8F-FFB3-11D1-B41D-00A0C968F939;",),
        dn_substring="CN=Policies,CN=System",
    ),
)


def match_benign_rule(ace_text: str, dn: str, rules=BENIGN_RULES) -> Optional[BenignRule]:
    """Return the first benign rule matching the ACE, or None."""
    for rule in rules:
        if rule.matches(ace_text, dn):
            return rule
    return None
