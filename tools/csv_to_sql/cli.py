"""CLI interface for CSV to SQL Converter."""

import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, Optional, Tuple

import click
from rich.markup import escape

from shared.cli import create_table, error, handle_errors, info, print_table, success, warning
from shared.logger import setup_logger

from .config import ConverterSettings
from .converter import CSVToSQL
from .models import PreviewResult, Severity, SQLDialect


def parse_type_overrides(values: Tuple[str, ...]) -> Dict[str, str]:
    """
    Parse ``column=TYPE`` pairs from the command line.

    Raises:
        click.BadParameter: If a pair has no '='
    """
    overrides = {}
    for item in values:
        column, sep, type_str = item.partition("=")
        if not sep or not column.strip() or not type_str.strip():
            raise click.BadParameter(f"Expected COLUMN=TYPE, got '{item}'", param_hint="--type")
        overrides[column.strip()] = type_str.strip()
    return overrides


def display_preview(result: PreviewResult) -> None:
    """
    Display column profiles and validation findings.

    Args:
        result: PreviewResult from the converter
    """
    table = create_table(title=f"{result.row_count} rows, {result.column_count} columns")
    table.add_column("Column", style="bold")
    table.add_column("SQL name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Samples", style="dim")

    for column in result.columns:
        table.add_row(
            escape(column.original_name),
            column.sanitized_name,
            str(column.detected_type),
            escape(", ".join(column.sample_values)),
        )

    print_table(table)

    report = result.validation
    for finding in report.passed:
        success(escape(finding.message))
    for finding in report.warnings + report.errors:
        text = escape(finding.message)
        if finding.details:
            text += f" [dim]({escape(finding.details)})[/dim]"
        if finding.severity == Severity.ERROR:
            error(text)
        elif finding.severity == Severity.WARNING:
            warning(text)
        else:
            info(text)


@click.command()
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--table", "-t", help="Table name (defaults to the file name)")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output SQL file (print to stdout if not specified)",
)
@click.option(
    "--dialect",
    "-d",
    type=click.Choice([d.value for d in SQLDialect], case_sensitive=False),
    default=SQLDialect.POSTGRESQL.value,
    show_default=True,
    help="SQL dialect",
)
@click.option("--batch-size", "-b", type=click.IntRange(min=1), help="Rows per INSERT statement")
@click.option("--max-rows", type=click.IntRange(min=0), help="Only generate INSERTs for the first N rows")
@click.option("--sample-size", type=click.IntRange(min=1), help="Rows sampled for type detection and validation")
@click.option(
    "--type",
    "-T",
    "type_overrides",
    multiple=True,
    metavar="COLUMN=TYPE",
    help="Override a detected type, e.g. zip=VARCHAR(10) (repeatable)",
)
@click.option("--schema-only", "-s", is_flag=True, help="Generate only CREATE TABLE (no INSERTs)")
@click.option("--preview", is_flag=True, help="Show detected types and data-quality findings instead of SQL")
@click.option("--strict", is_flag=True, help="Quote non-numeric values found in numeric columns")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@handle_errors
def main(
    csv_file: Path,
    table: Optional[str],
    output: Optional[Path],
    dialect: str,
    batch_size: Optional[int],
    max_rows: Optional[int],
    sample_size: Optional[int],
    type_overrides: Tuple[str, ...],
    schema_only: bool,
    preview: bool,
    strict: bool,
    verbose: bool,
):
    """
    CSV to SQL Converter - Generate SQL from CSV files.

    Infers column types, checks data quality and generates CREATE TABLE +
    INSERT statements for PostgreSQL, MySQL, SQL Server, SQLite or Oracle.

    Examples:

        \b
        # Generate SQL for PostgreSQL
        csv2sql users.csv --table users

        \b
        # Check detected types and data quality first
        csv2sql users.csv --preview

        \b
        # Oracle, with a type override
        csv2sql customers.csv -t customers -d oracle -T zip=VARCHAR(10)

        \b
        # Cap the number of rows rendered
        csv2sql large.csv --table big_table --max-rows 10000 -o big.sql
    """
    # Setup logging
    log_level = "DEBUG" if verbose else "INFO"
    setup_logger(__name__, level=log_level)

    overrides = parse_type_overrides(type_overrides)

    settings = ConverterSettings.from_env()
    changes = {"strict_numeric": strict or settings.strict_numeric}
    if batch_size is not None:
        changes["batch_size"] = batch_size
    if max_rows is not None:
        changes["max_insert_rows"] = max_rows
    if sample_size is not None:
        changes["type_sample_size"] = sample_size
        changes["validation_sample_size"] = sample_size
    settings = replace(settings, **changes)

    converter = CSVToSQL(settings=settings)

    try:
        if preview:
            info(f"Analyzing {csv_file}")
            display_preview(converter.preview(converter.read_table(csv_file)))
            sys.exit(0)

        info(f"Converting {csv_file} to {dialect.upper()} SQL")

        sql = converter.convert_file(
            csv_path=csv_file,
            table_name=table or csv_file.stem,
            output_path=output,
            dialect=dialect,
            overrides=overrides,
            schema_only=schema_only,
        )

        # Print to stdout if no output file
        if not output:
            click.echo(sql)

        success("Conversion completed!")

        if output:
            info(f"SQL written to: {output}")

        sys.exit(0)

    except (FileNotFoundError, ValueError) as e:
        error(f"Conversion failed: {escape(str(e))}")
        if verbose:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
