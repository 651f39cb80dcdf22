"""Infer a generic SQL type from a column's values."""

import math
import re
from itertools import islice
from typing import Iterable, List, Optional

from dateutil import parser as date_parser

from shared.logger import get_logger

from .models import GenericType

logger = get_logger(__name__)

DEFAULT_SAMPLE_SIZE = 1000

MIN_VARCHAR_LENGTH = 50
MAX_VARCHAR_LENGTH = 255
VARCHAR_GROWTH = 1.5

INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
DECIMAL_PATTERN = re.compile(r"^[+-]?\d*\.?\d+$")

DATE_SHAPE_PATTERNS = (
    re.compile(r"\d{4}[-/]\d{1,2}[-/]\d{1,2}"),
    re.compile(r"\d{1,2}[-/]\d{1,2}[-/]\d{2,4}"),
    re.compile(r"\b(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)", re.IGNORECASE),
)


def is_empty(value: Optional[str]) -> bool:
    """Return True for values that are rendered as NULL."""
    return value is None or value == ""


def is_integer(value: str) -> bool:
    """Check if value is a signed integer."""
    return bool(INTEGER_PATTERN.match(value))


def is_decimal(value: str) -> bool:
    """Check if value is a signed integer or fractional number."""
    return bool(DECIMAL_PATTERN.match(value))


def looks_like_date(value: str) -> bool:
    """
    Check if a value has a date shape.

    That is a numeric date with separators (``2024-01-15``, ``5/1/24``) or a
    month name next to a day or year (``Jan 5``, ``15 march``). Times,
    weekday names and a bare month name do not qualify.
    """
    if not any(c.isdigit() for c in value):
        return False
    return any(p.search(value) for p in DATE_SHAPE_PATTERNS)


def is_date(value: str) -> bool:
    """
    Check if value is a calendar date.

    dateutil fills missing parts from today's date, so ``10:30`` or ``Mon``
    would parse; the value must look like a date first.
    """
    if not looks_like_date(value):
        return False
    try:
        date_parser.parse(value)
        return True
    except (ValueError, OverflowError):
        return False


def sample_values(values: Iterable[Optional[str]], sample_size: int = DEFAULT_SAMPLE_SIZE) -> List[str]:
    """Return the first ``sample_size`` non-empty values, trimmed."""
    non_empty = (str(v).strip() for v in values if not is_empty(v))
    return list(islice(non_empty, sample_size))


def detect(values: Iterable[Optional[str]], sample_size: int = DEFAULT_SAMPLE_SIZE) -> GenericType:
    """
    Infer column type from sample values.

    Only the first ``sample_size`` non-empty values are inspected, so a
    stray value further down the column can leave it mistyped.

    Args:
        values: Raw column values (None or "" are treated as NULL)
        sample_size: Number of non-empty values to inspect

    Returns:
        INTEGER, DECIMAL(10,2), DATE, or VARCHAR(n)
    """
    sample = sample_values(values, sample_size)

    if not sample:
        return GenericType.varchar()

    # Every integer also matches the decimal pattern, so order matters
    if all(is_integer(v) for v in sample):
        return GenericType.integer()

    if all(is_decimal(v) for v in sample):
        return GenericType.decimal()

    if all(is_date(v) for v in sample):
        return GenericType.date()

    max_length = max(len(v) for v in sample)
    width = min(max(max_length * VARCHAR_GROWTH, MIN_VARCHAR_LENGTH), MAX_VARCHAR_LENGTH)
    logger.debug(f"Falling back to VARCHAR (max length {max_length})")
    return GenericType.varchar(math.ceil(width))
