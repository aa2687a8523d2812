"""
Risk Classifier
===============

Decides which ACEs in an object's DACL grant dangerous rights to broad,
low-privilege principals.

Checks (in order, first failure stops):
0. DN exclusion - the whole object is skipped, no ACE is examined
1. Deny-type ACEs (D, OD) are ignored
2. Built-in benign patterns are ignored
3. The trustee must be a broad principal
4. The rights must include a privileged right

An ACE that passes every check becomes a Finding labelled with its
resolved object type ("whole object" when the ACE has no ObjectType).

Design Decisions:
-----------------
1. The classifier holds no per-record state; only verdict counters
2. The catalog and exclusions are passed in, never global
3. An odd-length rights string is treated as non-privileged and counted
   separately so it shows up in the run statistics
"""

from collections import Counter
from typing import Optional

from ..model.schemas import Ace, AceVerdict, Finding, ObjectFindings
from ..ingestion.sddl_parser import parse_sddl
from .catalog import GuidCatalog
from .exclusions import ExclusionSet, BENIGN_RULES, match_benign_rule
from .principals import is_broad_principal
from .rights import AmbiguousRightsError, decode_rights_list, is_privileged


class RiskClassifier:
    """Classifies ACEs of one domain's objects.

    Usage:
        classifier = RiskClassifier(catalog, exclusions)

        findings = classifier.classify(record.distinguished_name, record.sddl)
        if findings:
            for finding in findings:
                print(finding.trustee, finding.description)
    """

    def __init__(
        self,
        catalog: Optional[GuidCatalog] = None,
        exclusions: Optional[ExclusionSet] = None,
        rules=BENIGN_RULES
    ):
        """Initialize the classifier.

        Args:
            catalog: GUID catalog for object-type labels
            exclusions: DN substrings to skip
            rules: Benign ACE rules
        """
        self.catalog = catalog if catalog is not None else GuidCatalog()
        self.exclusions = exclusions if exclusions is not None else ExclusionSet()
        self.rules = rules
        self.verdicts: Counter = Counter()
        self.excluded_objects = 0

    def is_excluded(self, dn: str) -> bool:
        return self.exclusions.matches(dn)

    def evaluate_ace(self, ace: Ace, dn: str) -> AceVerdict:
        """Run the per-ACE checks and return the verdict."""
        if ace.is_deny:
            return AceVerdict.DENY_TYPE

        if match_benign_rule(ace.text, dn, self.rules):
            return AceVerdict.BENIGN

        if not is_broad_principal(ace.trustee):
            return AceVerdict.NOT_BROAD_PRINCIPAL

        try:
            privileged = is_privileged(ace.rights)
        except AmbiguousRightsError:
            return AceVerdict.AMBIGUOUS_RIGHTS

        if not privileged:
            return AceVerdict.NOT_PRIVILEGED

        return AceVerdict.FINDING

    def make_finding(self, ace: Ace) -> Finding:
        return Finding(
            trustee=ace.trustee,
            ace=ace,
            rights=decode_rights_list(ace.rights),
            object_type=self.catalog.resolve(ace.object_guid),
        )

    def classify(self, dn: str, sddl: str) -> Optional[ObjectFindings]:
        """Classify every DACL ACE of one object.

        Args:
            dn: Distinguished name of the object
            sddl: The object's security descriptor in SDDL form

        Returns:
            ObjectFindings (possibly empty), or None if the DN is excluded

        Raises:
            MalformedSddlError: If the SDDL does not parse
        """
        if self.is_excluded(dn):
            self.excluded_objects += 1
            return None

        descriptor = parse_sddl(sddl)
        findings = ObjectFindings(distinguished_name=dn)

        for ace in descriptor.dacl:
            verdict = self.evaluate_ace(ace, dn)
            self.verdicts[verdict] += 1
            if verdict == AceVerdict.FINDING:
                findings.add(self.make_finding(ace))

        return findings
