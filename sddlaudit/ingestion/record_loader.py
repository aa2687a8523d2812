"""
Record Loader
=============

Reads per-domain export files produced by the directory dump step.

File Format:
- One JSON array per domain, file name "<domain>.json"
- Each element: {distinguishedName, name, sAMAccountName, sid, guid, sddl}
- A missing security descriptor is an empty "sddl" string

Design Decisions:
-----------------
1. Quick pre-checks skip empty files and files that are not arrays
   without reading the whole file
2. The top-level array is decoded incrementally; records are yielded
   one at a time and not retained
3. UTF-16 exports (BOM) are read as well as UTF-8
4. A top-level value that is not an array is an error for that file only
"""

import codecs
import json
from pathlib import Path
from typing import Iterator

from ..model.schemas import Record


# "[]" is two bytes; anything shorter than this cannot hold a record
MIN_EXPORT_SIZE = 3

READ_CHUNK = 64 * 1024


class InvalidExportError(ValueError):
    """Raised when a domain export file is not a JSON array of objects."""


def discover_input_files(input_dir: str) -> list[Path]:
    """List the top-level *.json export files in a folder, sorted by name."""
    folder = Path(input_dir)
    return sorted(p for p in folder.glob("*.json") if p.is_file())


def domain_from_path(path) -> str:
    """Domain identity for an export file is its stem."""
    return Path(path).stem


def detect_encoding(path) -> str:
    """Pick the text encoding of an export from its byte-order mark.

    Windows PowerShell writes UTF-16 with a BOM by default; everything
    else is read as UTF-8 (with or without a BOM).
    """
    with open(path, "rb") as f:
        head = f.read(4)
    if head.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return "utf-16"
    return "utf-8-sig"


def precheck_export(path) -> str:
    """Cheap validation before streaming a file.

    Returns:
        Empty string if the file looks usable, otherwise a skip reason
    """
    path = Path(path)
    if path.stat().st_size < MIN_EXPORT_SIZE:
        return "empty file"

    encoding = detect_encoding(path)
    try:
        with open(path, "r", encoding=encoding) as f:
            while True:
                chunk = f.read(4096)
                if not chunk:
                    return "empty file"
                stripped = chunk.lstrip()
                if stripped:
                    return "" if stripped[0] == "[" else "not a JSON array"
    except UnicodeDecodeError as e:
        return f"not {encoding} text ({e.reason} at byte {e.start})"


class _ArrayReader:
    """Incremental reader for one top-level JSON array.

    Elements are decoded with json.JSONDecoder.raw_decode as soon as they
    are complete in the buffer, so a file is never held in memory whole.
    """

    def __init__(self, stream, path, chunk_size: int = READ_CHUNK):
        self.stream = stream
        self.path = path
        self.chunk_size = chunk_size
        self.decoder = json.JSONDecoder()
        self.buffer = ""
        self.eof = False

    def _fill(self) -> bool:
        if self.eof:
            return False
        chunk = self.stream.read(self.chunk_size)
        if not chunk:
            self.eof = True
            return False
        self.buffer += chunk
        return True

    def _peek(self) -> str:
        """Drop leading whitespace; next character, or "" at end of file."""
        while True:
            self.buffer = self.buffer.lstrip()
            if self.buffer or not self._fill():
                return self.buffer[:1]

    def _error(self, message: str) -> json.JSONDecodeError:
        return json.JSONDecodeError(f"{self.path}: {message}", self.buffer, 0)

    def _decode_value(self):
        while True:
            try:
                value, end = self.decoder.raw_decode(self.buffer)
            except json.JSONDecodeError:
                # Element may be split across reads
                if not self._fill():
                    raise
                continue
            self.buffer = self.buffer[end:]
            return value

    def __iter__(self):
        if self._peek() != "[":
            raise InvalidExportError(f"{self.path}: expected a JSON array")
        self.buffer = self.buffer[1:]

        if self._peek() == "]":
            self.buffer = self.buffer[1:]
        else:
            while True:
                yield self._decode_value()
                delimiter = self._peek()
                self.buffer = self.buffer[1:]
                if delimiter == "]":
                    break
                if delimiter != ",":
                    raise self._error("expecting ',' or ']' after array element")

        if self._peek():
            raise self._error("extra data after the array")


def iter_records(path) -> Iterator[Record]:
    """Yield Record objects from a domain export file, one at a time.

    Args:
        path: Path to "<domain>.json"

    Raises:
        InvalidExportError: If the top-level value is not an array of objects
        json.JSONDecodeError: If the file is not valid JSON; records before
            the bad spot have already been yielded
        UnicodeDecodeError: If the file is not valid text in its encoding
    """
    with open(path, "r", encoding=detect_encoding(path)) as f:
        for item in _ArrayReader(f, path):
            if not isinstance(item, dict):
                raise InvalidExportError(f"{path}: array element is not an object")
            yield Record.from_dict(item)
