import io
import json

import pytest

from sddlaudit.ingestion.record_loader import (
    InvalidExportError, _ArrayReader, detect_encoding, discover_input_files,
    domain_from_path, iter_records,
    precheck_export
)

from helpers import record


def test_discover_sorted_json_only(write_export):
    write_export("b.local", [])
    write_export("a.local", [])
    (write_export.folder / "notes.txt").write_text("x", encoding="utf-8")

    files = discover_input_files(str(write_export.folder))

    assert [p.name for p in files] == ["a.local.json", "b.local.json"]
    assert domain_from_path(files[0]) == "a.local"


@pytest.mark.parametrize("content, reason", [
    ("", "empty file"),
    ("[]", "empty file"),
    ("     ", "empty file"),
    ('{"a": 1}', "not a JSON array"),
    ('  \n [{"a": 1}]', ""),
])
def test_precheck(tmp_path, content, reason):
    path = tmp_path / "x.json"
    path.write_text(content, encoding="utf-8")
    assert precheck_export(path) == reason


def test_iter_records_maps_fields(write_export):
    path = write_export("corp.local", [
        record("CN=Foo,DC=corp,DC=local", "D:(A;;GA;;;WD)", sid="S-1-5-21-1-2-3-1105"),
        {"distinguishedName": "CN=Bare,DC=corp,DC=local", "sddl": None},
    ])

    records = list(iter_records(path))

    assert records[0].distinguished_name == "CN=Foo,DC=corp,DC=local"
    assert records[0].name == "Foo"
    assert records[0].sid == "S-1-5-21-1-2-3-1105"
    assert records[1].sddl == ""


def test_iter_records_rejects_non_objects(tmp_path):
    path = tmp_path / "x.json"
    path.write_text('["CN=Foo"]', encoding="utf-8")
    with pytest.raises(InvalidExportError):
        list(iter_records(path))


def test_utf16_export_is_read(tmp_path):
    path = tmp_path / "corp.local.json"
    path.write_text(json.dumps([record("CN=Foo,DC=corp,DC=local", "D:(A;;GA;;;WD)")]),
                    encoding="utf-16")

    assert detect_encoding(path) == "utf-16"
    assert precheck_export(path) == ""
    assert [r.distinguished_name for r in iter_records(path)] == ["CN=Foo,DC=corp,DC=local"]


def test_precheck_undecodable_file(tmp_path):
    path = tmp_path / "x.json"
    path.write_bytes(b'[{"distinguishedName": "CN=\xff\xfe"}]')

    assert precheck_export(path).startswith("not utf-8-sig text")


def test_records_are_yielded_before_the_end_of_file(tmp_path):
    path = tmp_path / "x.json"
    path.write_text('[{"distinguishedName": "CN=A"},\n {"distinguishedName": ', encoding="utf-8")

    records = iter_records(path)

    assert next(records).distinguished_name == "CN=A"
    with pytest.raises(json.JSONDecodeError):
        next(records)


def test_elements_split_across_reads():
    items = [
        {"distinguishedName": "CN=a,b", "sddl": "D:(A;;GA;;;WD)"},
        {"distinguishedName": "CN=]\\\"quoted\\\"", "nested": {"list": [1, 2, {"x": "]"}]}},
        {"distinguishedName": "CN=été"},
    ]
    text = "  [ " + " ,\n".join(json.dumps(i) for i in items) + " ]\n "

    assert list(_ArrayReader(io.StringIO(text), "mem", chunk_size=5)) == items


@pytest.mark.parametrize("text", [
    '[{"a": 1}] [',
    '[{"a": 1} {"b": 2}]',
    '[{"a": 1},',
    '[   ',
])
def test_broken_arrays(text):
    with pytest.raises(json.JSONDecodeError):
        list(_ArrayReader(io.StringIO(text), "mem", chunk_size=3))


def test_empty_array():
    assert list(_ArrayReader(io.StringIO(" [ ] "), "mem")) == []
