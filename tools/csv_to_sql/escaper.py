"""Render single CSV cells as SQL literals."""

from typing import Optional

from .detector import is_decimal, is_empty

NUMERIC_TYPE_PREFIXES = (
    "INT",
    "BIGINT",
    "SMALLINT",
    "DECIMAL",
    "NUMERIC",
    "NUMBER",
    "REAL",
    "FLOAT",
    "DOUBLE",
)


def is_numeric_type(sql_type: str) -> bool:
    """Check if a dialect type is emitted without quotes."""
    return sql_type.strip().upper().startswith(NUMERIC_TYPE_PREFIXES)


def quote(value: str) -> str:
    """Quote a string literal, doubling embedded single quotes."""
    return "'" + value.replace("'", "''") + "'"


def escape(value: Optional[str], sql_type: str, strict: bool = False) -> str:
    """
    Escape a value for use in an INSERT statement.

    Numeric columns emit the trimmed text unquoted and unchecked, so a
    stray word in an INTEGER column produces invalid SQL. With ``strict``
    such values are quoted instead.

    Args:
        value: Raw cell value
        sql_type: Resolved dialect type of the column
        strict: Quote non-numeric values found in numeric columns

    Returns:
        SQL literal
    """
    if is_empty(value):
        return "NULL"

    text = str(value).strip()

    if is_numeric_type(sql_type):
        if not strict or is_decimal(text):
            return text

    return quote(text)
