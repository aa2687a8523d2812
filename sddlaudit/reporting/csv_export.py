"""
CSV Export
==========

Flat output: one row per (DN, identity, right, object type, object class).

Columns:
    DistinguishedName, Identity, AccessControlType, ActiveDirectoryRight, ObjectType

The file is appended to across domains; the header is written once.
"""

from pathlib import Path

import pandas as pd

from ..model.schemas import FlatRow


CSV_COLUMNS = [
    "DistinguishedName",
    "Identity",
    "AccessControlType",
    "ActiveDirectoryRight",
    "ObjectType",
]


class CsvSink:
    """Appends FlatRow objects to a CSV file.

    Usage:
        sink = CsvSink("output/Interesting.csv")
        sink.write(report.flat_rows)
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.rows_written = 0

    def write(self, rows: list[FlatRow]) -> int:
        """Append rows; creates the file with a header on first use."""
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            pd.DataFrame(columns=CSV_COLUMNS).to_csv(self.path, index=False)

        if not rows:
            return 0

        frame = pd.DataFrame([row.to_row() for row in rows], columns=CSV_COLUMNS)
        frame.to_csv(self.path, mode="a", header=False, index=False)
        self.rows_written += len(rows)
        return len(rows)
