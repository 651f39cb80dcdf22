"""Core CSV to SQL conversion logic."""

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from shared.logger import get_logger

from .config import ConverterSettings
from .detector import detect, is_empty
from .dialects import to_dialect
from .errors import InvalidTypeOverrideError
from .models import ColumnProfile, ConversionResult, GenericType, PreviewResult, SQLDialect
from .renderer import render
from .sanitizer import sanitize
from .table import Table, parse_csv, read_csv
from .validator import Validator

logger = get_logger(__name__)

DEFAULT_TABLE_NAME = "my_table"
SAMPLE_VALUE_COUNT = 3


class CSVToSQL:
    """
    Convert CSV files to SQL statements.

    Infers a generic type per column, validates data quality and renders
    CREATE TABLE plus batched INSERTs for the chosen dialect.
    """

    def __init__(self, settings: Optional[ConverterSettings] = None):
        """
        Initialize CSV to SQL converter.

        Args:
            settings: Sample sizes, batch size and row cap
        """
        self.settings = settings or ConverterSettings()
        self.validator = Validator(sample_size=self.settings.validation_sample_size)
        logger.debug(f"Initialized CSVToSQL with settings: {self.settings}")

    def read_table(self, filepath: Path) -> Table:
        """Read and parse a CSV file."""
        return read_csv(filepath)

    def parse_table(self, text: str) -> Table:
        """Parse CSV text."""
        return parse_csv(text)

    def detect_type(self, table: Table, header: str) -> GenericType:
        """Detect the generic type of one column."""
        return detect(table.column(header), sample_size=self.settings.type_sample_size)

    def profile_columns(self, table: Table) -> List[ColumnProfile]:
        """
        Profile every column of a table.

        Args:
            table: Parsed CSV table

        Returns:
            One ColumnProfile per header, in header order
        """
        profiles = []
        for header in table.headers:
            values = table.column(header)
            samples = [str(v) for v in values if not is_empty(v)][:SAMPLE_VALUE_COUNT]
            detected = detect(values, sample_size=self.settings.type_sample_size)
            logger.debug(f"Column {header!r} detected as {detected}")

            profiles.append(
                ColumnProfile(
                    original_name=header,
                    sanitized_name=sanitize(header),
                    detected_type=detected,
                    sample_values=tuple(samples),
                )
            )

        logger.info(f"Profiled {len(profiles)} columns")
        return profiles

    def preview(self, table: Table) -> PreviewResult:
        """
        Analyze a table without generating SQL.

        Args:
            table: Parsed CSV table

        Returns:
            PreviewResult with column profiles and validation findings
        """
        return PreviewResult(
            columns=self.profile_columns(table),
            validation=self.validator.validate(table),
            row_count=table.row_count,
        )

    def resolve_column_types(
        self,
        table: Table,
        dialect: Union[SQLDialect, str] = SQLDialect.POSTGRESQL,
        overrides: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        """
        Decide the dialect type of every column.

        Args:
            table: Parsed CSV table
            dialect: SQL dialect
            overrides: Generic type per sanitized column name, replacing detection

        Returns:
            Dialect type per original column name

        Raises:
            InvalidTypeOverrideError: If an override is not a valid generic type
        """
        overrides = dict(overrides or {})
        known = {sanitize(h) for h in table.headers}
        unknown = sorted(set(overrides) - known)
        if unknown:
            logger.warning(f"Ignoring type overrides for unknown columns: {', '.join(unknown)}")

        column_types = {}
        for header in table.headers:
            override = overrides.get(sanitize(header))
            if override is not None and not isinstance(override, str):
                raise InvalidTypeOverrideError(f"Type override for '{header}' must be a string")

            if override:
                column_types[header] = to_dialect(None, dialect, override=override)
            else:
                column_types[header] = to_dialect(self.detect_type(table, header), dialect)

        return column_types

    def convert(
        self,
        table: Table,
        table_name: str = DEFAULT_TABLE_NAME,
        dialect: Union[SQLDialect, str] = SQLDialect.POSTGRESQL,
        overrides: Optional[Mapping[str, str]] = None,
    ) -> ConversionResult:
        """
        Convert a table to SQL.

        Args:
            table: Parsed CSV table
            table_name: Target table name
            dialect: SQL dialect
            overrides: Generic type per sanitized column name

        Returns:
            ConversionResult with CREATE TABLE and INSERT text
        """
        sql_dialect = SQLDialect.parse(dialect)
        table_name = table_name or DEFAULT_TABLE_NAME

        column_types = self.resolve_column_types(table, sql_dialect, overrides)
        rendered = render(
            table,
            column_types,
            table_name,
            sql_dialect,
            batch_size=self.settings.batch_size,
            max_rows=self.settings.max_insert_rows,
            strict=self.settings.strict_numeric,
        )

        if rendered.truncated:
            logger.warning(
                f"Row limit reached: rendered {rendered.rows_rendered} of {table.row_count} rows"
            )

        return ConversionResult(
            create_table=rendered.create_table,
            insert=rendered.insert,
            row_count=table.row_count,
            column_count=table.column_count,
            dialect=sql_dialect,
            truncated=rendered.truncated,
            rows_rendered=rendered.rows_rendered,
        )

    def convert_file(
        self,
        csv_path: Path,
        table_name: str,
        output_path: Optional[Path] = None,
        dialect: Union[SQLDialect, str] = SQLDialect.POSTGRESQL,
        overrides: Optional[Mapping[str, str]] = None,
        schema_only: bool = False,
    ) -> str:
        """
        Convert a CSV file to SQL.

        Args:
            csv_path: Path to CSV file
            table_name: Table name
            output_path: Output SQL file path (optional)
            dialect: SQL dialect
            overrides: Generic type per sanitized column name
            schema_only: Generate only CREATE TABLE

        Returns:
            Generated SQL
        """
        table = self.read_table(csv_path)
        result = self.convert(table, table_name, dialect, overrides)
        full_sql = result.to_sql(schema_only=schema_only)

        if output_path:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(full_sql)
            logger.info(f"Wrote SQL to {output_path}")

        return full_sql
