"""Compose CREATE TABLE and batched INSERT statements."""

from dataclasses import dataclass
from typing import List, Mapping, Optional, Union

from shared.logger import get_logger

from .dialects import table_options
from .escaper import escape
from .models import SQLDialect
from .sanitizer import sanitize
from .table import Table

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 500


@dataclass
class RenderedSQL:
    """SQL text produced for one table."""

    create_table: str
    insert: str
    rows_rendered: int
    truncated: bool = False


def generate_create_table(
    table_name: str,
    headers: List[str],
    column_types: Mapping[str, str],
    dialect: Union[SQLDialect, str] = SQLDialect.POSTGRESQL,
) -> str:
    """
    Generate CREATE TABLE statement.

    Args:
        table_name: Table name (sanitized here)
        headers: Original column names, in order
        column_types: Dialect type per original column name
        dialect: SQL dialect, for table options

    Returns:
        SQL CREATE TABLE statement
    """
    col_defs = [f"  {sanitize(h)} {column_types[h]}" for h in headers]

    sql = f"CREATE TABLE {sanitize(table_name)} (\n"
    sql += ",\n".join(col_defs)
    sql += "\n)"

    options = table_options(dialect)
    if options:
        sql += f" {options}"

    return sql + ";"


def generate_insert_statements(
    table_name: str,
    table: Table,
    column_types: Mapping[str, str],
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_rows: Optional[int] = None,
    strict: bool = False,
) -> List[str]:
    """
    Generate one multi-row INSERT statement per batch of rows.

    Args:
        table_name: Table name (sanitized here)
        table: Parsed CSV table
        column_types: Dialect type per original column name
        batch_size: Number of rows per INSERT
        max_rows: Stop after this many rows
        strict: Quote non-numeric values in numeric columns

    Returns:
        List of INSERT statements
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    sanitized_table = sanitize(table_name)
    column_names = ", ".join(sanitize(h) for h in table.headers)
    rows = table.rows if max_rows is None else table.rows[:max_rows]

    statements = []
    for start in range(0, len(rows), batch_size):
        batch = rows[start : start + batch_size]
        value_rows = []
        for row in batch:
            values = [escape(row.get(h), column_types[h], strict=strict) for h in table.headers]
            value_rows.append(f"  ({', '.join(values)})")

        stmt = f"INSERT INTO {sanitized_table} ({column_names}) VALUES\n"
        stmt += ",\n".join(value_rows) + ";"
        statements.append(stmt)

    return statements


def render(
    table: Table,
    column_types: Mapping[str, str],
    table_name: str,
    dialect: Union[SQLDialect, str] = SQLDialect.POSTGRESQL,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_rows: Optional[int] = None,
    strict: bool = False,
) -> RenderedSQL:
    """
    Render the full SQL for a table.

    Args:
        table: Parsed CSV table
        column_types: Dialect type per original column name
        table_name: Target table name
        dialect: SQL dialect
        batch_size: Rows per INSERT statement
        max_rows: Row cap for INSERTs (None for no cap)
        strict: Quote non-numeric values in numeric columns

    Returns:
        RenderedSQL with CREATE TABLE and INSERT text
    """
    create_table = generate_create_table(table_name, table.headers, column_types, dialect)
    statements = generate_insert_statements(
        table_name, table, column_types, batch_size=batch_size, max_rows=max_rows, strict=strict
    )

    total = table.row_count
    truncated = max_rows is not None and total > max_rows
    rows_rendered = min(total, max_rows) if max_rows is not None else total

    insert = "".join(f"{stmt}\n\n" for stmt in statements)
    if truncated:
        insert += f"-- Note: only the first {max_rows} of {total} rows were included (row limit).\n"

    logger.info(f"Generated {len(statements)} INSERT statement(s) for {rows_rendered} rows")
    return RenderedSQL(
        create_table=create_table,
        insert=insert,
        rows_rendered=rows_rendered,
        truncated=truncated,
    )
