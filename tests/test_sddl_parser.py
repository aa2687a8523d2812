import pytest

from sddlaudit.ingestion.sddl_parser import (
    MalformedSddlError, is_guid, is_sid_token, parse_ace, parse_sddl
)


FULL = (
    "O:DAG:DAD:PAI(A;;RP;;;WD)"
    "(OA;CI;WP;bf967950-0de6-11d0-a285-00aa003049e2;;S-1-5-21-1-2-3-513)"
    "S:AI(AU;SA;WP;;;WD)"
)


def test_parses_all_sections():
    sd = parse_sddl(FULL)

    assert sd.owner == "DA"
    assert sd.group == "DA"
    assert sd.dacl_flags == "PAI"
    assert sd.sacl_flags == "AI"
    assert len(sd.dacl) == 2
    assert len(sd.sacl) == 1

    second = sd.dacl[1]
    assert second.ace_type == "OA"
    assert second.flags == "CI"
    assert second.rights == "WP"
    assert second.object_guid == "BF967950-0DE6-11D0-A285-00AA003049E2"
    assert second.inherited_object_guid == ""
    assert second.trustee == "S-1-5-21-1-2-3-513"


def test_empty_string_has_no_sections():
    sd = parse_sddl("")
    assert sd.owner == "" and sd.group == ""
    assert sd.dacl == [] and sd.sacl == []


def test_owner_sid_followed_by_group():
    sd = parse_sddl("O:S-1-5-21-1-2-3-500G:SYD:(A;;GA;;;SY)")
    assert sd.owner == "S-1-5-21-1-2-3-500"
    assert sd.group == "SY"
    assert sd.dacl[0].rights == "GA"


def test_alias_owner_directly_followed_by_dacl():
    sd = parse_sddl("O:BAD:(A;;RP;;;WD)")
    assert sd.owner == "BA"
    assert sd.dacl[0].trustee == "WD"


def test_matching_is_case_insensitive():
    sd = parse_sddl("d:pai(a;ci;wp;;;wd)")
    ace = sd.dacl[0]
    assert sd.dacl_flags == "PAI"
    assert (ace.ace_type, ace.flags, ace.rights, ace.trustee) == ("A", "CI", "WP", "WD")


def test_descriptor_reserializes():
    assert parse_sddl(FULL).to_sddl() == FULL.upper()


@pytest.mark.parametrize("text", [
    "(A;;WP;;;WD)",
    "(OA;CIIO;RPWP;bf967950-0de6-11d0-a285-00aa003049e2;4828cc14-1437-45bc-9b07-ad6f015e5f28;AU)",
    "(OD;;CR;00299570-246d-11d0-a768-00aa006e0529;;S-1-1-0)",
    "(A;;0x1f01ff;;;S-1-5-21-1004336348-1177238915-682003330-512)",
])
def test_ace_field_round_trip(text):
    assert parse_ace(text).to_sddl() == text.upper()


@pytest.mark.parametrize("sddl", [
    "D:(A;;RP;;;WD",                 # unbalanced
    "D:(A;;RP;;;WD))",               # trailing paren
    "D:A;;RP;;;WD)",                 # missing opening paren
    "D:(A;;RP;;WD)",                 # five fields
    "D:(A;;RP;;;;WD)",               # seven fields
    "D:()",                          # empty ACE
    "D:",                            # no ACEs
    "D:PAIPAI(A;;RP;;;WD)",          # too many ACL flags
    "D:X(A;;RP;;;WD)",               # bad ACL flag
    "G:DAO:DA",                      # out of order
    "D:(A;;RP;;;WD)D:(A;;RP;;;WD)",  # repeated section
    " O:DA",                         # leading text
    "O:DA ",                         # trailing text
    "O:S-1G:DA",                     # SID needs two numbers
    "O:D",                           # truncated alias
    "D:(ABC;;RP;;;WD)",              # type too long
    "D:(A;C1;RP;;;WD)",              # non-letter flags
    "D:(A;;RP;not-a-guid;;WD)",      # bad object GUID
    "D:(A;;RP;;;W)",                 # bad trustee
    "D:(A;;RP;;;S-1-5-)",            # bad trustee SID
])
def test_malformed_sddl_raises(sddl):
    with pytest.raises(MalformedSddlError):
        parse_sddl(sddl)


def test_malformed_error_is_value_error_with_position():
    with pytest.raises(ValueError) as excinfo:
        parse_sddl("O:DAXX")
    assert excinfo.value.position == 4
    assert excinfo.value.sddl == "O:DAXX"


def test_parse_ace_requires_parentheses():
    with pytest.raises(MalformedSddlError):
        parse_ace("A;;WP;;;WD")


def test_token_helpers():
    assert is_sid_token("WD")
    assert is_sid_token("S-1-5-32-545")
    assert not is_sid_token("S-1")
    assert not is_sid_token("WDX")
    assert is_guid("BF967950-0DE6-11D0-A285-00AA003049E2")
    assert not is_guid("BF967950-0DE6-11D0-A285-00AA003049E")
    assert not is_guid("BF9679500-DE6-11D0-A285-00AA003049E2")
