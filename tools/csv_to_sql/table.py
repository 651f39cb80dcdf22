"""In-memory table model and the CSV reader that builds it."""

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from shared.logger import get_logger

from .errors import CSVParseError, EmptyCSVError

logger = get_logger(__name__)

Row = Dict[str, str]


@dataclass
class Table:
    """
    Parsed CSV data.

    Attributes:
        headers: Column names in file order
        rows: One mapping per data row; missing fields are absent keys
        field_counts: Fields actually present in each row, surplus ones
            included (counted from the mappings when None)
    """

    headers: List[str]
    rows: List[Row] = field(default_factory=list)
    field_counts: Optional[List[int]] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def column(self, header: str, limit: Optional[int] = None) -> List[Optional[str]]:
        """
        Get the raw values of one column.

        Args:
            header: Column name
            limit: Only read the first ``limit`` rows

        Returns:
            Values in row order (None where the field is missing)
        """
        rows = self.rows if limit is None else self.rows[:limit]
        return [row.get(header) for row in rows]

    def field_count(self, index: int) -> int:
        """Number of fields present in the row at ``index``."""
        if self.field_counts is not None:
            return self.field_counts[index]
        return sum(1 for h in self.headers if h in self.rows[index])


def _unique_headers(raw_headers: List[str]) -> List[str]:
    """Suffix repeated header names with _1, _2, ..."""
    used = set()
    headers = []
    for name in raw_headers:
        candidate = name
        suffix = 0
        while candidate in used:
            suffix += 1
            candidate = f"{name}_{suffix}"
        used.add(candidate)
        headers.append(candidate)
    return headers


def _iter_records(reader: Iterator[List[str]]) -> Iterator[List[str]]:
    for record in reader:
        # csv yields an empty list for a blank line
        if not record:
            continue
        yield record


def parse_csv(text: str, delimiter: str = ",") -> Table:
    """
    Parse CSV text with a header row into a Table.

    Args:
        text: CSV content
        delimiter: Field delimiter

    Returns:
        Parsed Table

    Raises:
        CSVParseError: If the CSV structure is malformed
        EmptyCSVError: If there are no columns or no data rows
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
    records = _iter_records(reader)

    try:
        raw_headers = next(records, None)
        if not raw_headers or all(h.strip() == "" for h in raw_headers):
            raise EmptyCSVError("No columns found in CSV")

        headers = _unique_headers(raw_headers)
        width = len(headers)

        rows: List[Row] = []
        field_counts: List[int] = []
        for record in records:
            rows.append(dict(zip(headers, record)))
            field_counts.append(len(record))

    except csv.Error as e:
        raise CSVParseError(f"Error parsing CSV: line {reader.line_num}: {e}")

    if not rows:
        raise EmptyCSVError("No data rows found in CSV")

    logger.info(f"Parsed {len(rows)} rows with {width} columns")
    return Table(headers=headers, rows=rows, field_counts=field_counts)


def read_csv(filepath: Path, encoding: str = "utf-8", delimiter: str = ",") -> Table:
    """
    Read a CSV file into a Table.

    Raises:
        FileNotFoundError: If the file does not exist
        CSVParseError: If the file is not valid text or CSV
        EmptyCSVError: If there are no columns or no data rows
    """
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    logger.info(f"Reading CSV from {filepath}")

    try:
        with open(filepath, "r", encoding=encoding, newline="") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise CSVParseError(f"Error parsing CSV: file is not valid {encoding} text ({e})")

    return parse_csv(text, delimiter=delimiter)
