"""Data-quality checks run over a sample of CSV rows."""

from typing import Dict, List, Optional, Sequence

from shared.logger import get_logger

from .detector import is_date, is_decimal, is_empty, looks_like_date
from .models import Severity, ValidationFinding, ValidationReport
from .sanitizer import find_collisions
from .table import Table

logger = get_logger(__name__)

DEFAULT_SAMPLE_SIZE = 1000

NULL_WARNING_RATIO = 0.5
DATE_COLUMN_RATIO = 0.5
MIXED_TYPE_RATIO = 0.1
MAX_VALUE_LENGTH = 1000
MAX_EXAMPLES = 3

PLACEHOLDER_VALUES = frozenset(["N/A", "n/a", "null", "NULL", "None", "none", "#N/A", "TBD", "tbd"])


class Validator:
    """
    Run independent data-quality checks over a table sample.

    No check stops another; every finding is reported. Only the first
    ``sample_size`` rows are examined.
    """

    def __init__(self, sample_size: int = DEFAULT_SAMPLE_SIZE):
        """
        Initialize validator.

        Args:
            sample_size: Number of rows to examine
        """
        self.sample_size = sample_size

    def validate(self, table: Table) -> ValidationReport:
        """
        Validate a table.

        Args:
            table: Parsed CSV table

        Returns:
            ValidationReport with passed, warnings and errors
        """
        report = ValidationReport()
        rows = table.rows[: self.sample_size]

        self._check_consistency(table, len(rows), report)
        self._check_name_collisions(table.headers, report)

        for header in table.headers:
            values = [row.get(header) for row in rows]
            non_empty = [str(v) for v in values if not is_empty(v)]

            self._check_duplicates(header, values, non_empty, report)
            self._check_nulls(header, values, report)

            if not non_empty:
                continue

            self._check_dates(header, non_empty, report)
            self._check_mixed_types(header, non_empty, report)
            self._check_length(header, non_empty, report)
            self._check_placeholders(header, non_empty, report)

        if not report.has_issues:
            report.passed.append(
                ValidationFinding(category="overall", message="No data quality issues detected")
            )

        logger.info(
            f"Validation: {len(report.passed)} passed, "
            f"{len(report.warnings)} warnings, {len(report.errors)} errors"
        )
        return report

    def _check_consistency(self, table: Table, row_limit: int, report: ValidationReport) -> None:
        expected = table.column_count
        inconsistent = sum(1 for i in range(row_limit) if table.field_count(i) != expected)

        if inconsistent == 0:
            report.passed.append(
                ValidationFinding(category="consistency", message="All rows have consistent column count")
            )
        else:
            report.warnings.append(
                ValidationFinding(
                    category="consistency",
                    message=f"{inconsistent} rows have inconsistent column counts (expected {expected})",
                    severity=Severity.WARNING,
                )
            )

    def _check_name_collisions(self, headers: List[str], report: ValidationReport) -> None:
        for identifier, originals in find_collisions(headers).items():
            names = ", ".join(f'"{name}"' for name in originals)
            report.warnings.append(
                ValidationFinding(
                    category="name_collision",
                    message=f"Columns {names} all map to the SQL name \"{identifier}\"",
                    severity=Severity.WARNING,
                    column=originals[0],
                    details="Rename the columns so the generated table has distinct column names",
                )
            )

    def _check_duplicates(
        self,
        header: str,
        values: Sequence[Optional[str]],
        non_empty: List[str],
        report: ValidationReport,
    ) -> None:
        duplicate_count = len(non_empty) - len(set(non_empty))
        if duplicate_count <= 0:
            return

        positions: Dict[str, List[int]] = {}
        for idx, value in enumerate(values, start=1):
            if not is_empty(value):
                positions.setdefault(str(value), []).append(idx)

        examples = []
        for value, row_numbers in positions.items():
            if len(row_numbers) < 2:
                continue
            shown = ", ".join(str(n) for n in row_numbers[:MAX_EXAMPLES])
            more = "..." if len(row_numbers) > MAX_EXAMPLES else ""
            examples.append(f'"{value}" in rows {shown}{more}')
            if len(examples) >= MAX_EXAMPLES:
                break

        report.warnings.append(
            ValidationFinding(
                category="duplicates",
                message=f'Column "{header}" has {duplicate_count} duplicate values',
                severity=Severity.WARNING,
                column=header,
                details="; ".join(examples),
            )
        )

    def _check_nulls(self, header: str, values: Sequence[Optional[str]], report: ValidationReport) -> None:
        null_count = sum(1 for v in values if is_empty(v))
        if null_count == 0:
            return

        ratio = null_count / len(values)
        severity = Severity.WARNING if ratio > NULL_WARNING_RATIO else Severity.INFO
        report.warnings.append(
            ValidationFinding(
                category="nulls",
                message=f'Column "{header}" has {null_count} NULL/empty values ({ratio * 100:.1f}%)',
                severity=severity,
                column=header,
            )
        )

    def _check_dates(self, header: str, non_empty: List[str], report: ValidationReport) -> None:
        shaped = [v for v in non_empty if looks_like_date(v)]

        # Incidental matches in non-date columns are ignored
        if len(shaped) <= len(non_empty) * DATE_COLUMN_RATIO:
            return

        invalid = [v for v in shaped if not is_date(v.strip())]
        if not invalid:
            return

        examples = ", ".join(f'"{v}"' for v in invalid[:MAX_EXAMPLES])
        report.errors.append(
            ValidationFinding(
                category="date_format",
                message=f'Column "{header}" has {len(invalid)} invalid date values',
                severity=Severity.ERROR,
                column=header,
                details=f"Examples: {examples}",
            )
        )

    def _check_mixed_types(self, header: str, non_empty: List[str], report: ValidationReport) -> None:
        number_count = sum(1 for v in non_empty if is_decimal(v.strip()))
        text_count = len(non_empty) - number_count
        threshold = len(non_empty) * MIXED_TYPE_RATIO

        if number_count > threshold and text_count > threshold:
            report.warnings.append(
                ValidationFinding(
                    category="mixed_types",
                    message=(
                        f'Column "{header}" has mixed data types '
                        f"({number_count} numbers, {text_count} text values)"
                    ),
                    severity=Severity.WARNING,
                    column=header,
                )
            )

    def _check_length(self, header: str, non_empty: List[str], report: ValidationReport) -> None:
        max_length = max(len(v) for v in non_empty)
        if max_length > MAX_VALUE_LENGTH:
            report.warnings.append(
                ValidationFinding(
                    category="length",
                    message=f'Column "{header}" has very long values (max: {max_length} characters)',
                    severity=Severity.INFO,
                    column=header,
                    details="Consider using TEXT type instead of VARCHAR",
                )
            )

    def _check_placeholders(self, header: str, non_empty: List[str], report: ValidationReport) -> None:
        count = sum(1 for v in non_empty if v.strip() in PLACEHOLDER_VALUES)
        if count > 0:
            report.warnings.append(
                ValidationFinding(
                    category="placeholders",
                    message=f'Column "{header}" has {count} placeholder values (N/A, null, etc.)',
                    severity=Severity.INFO,
                    column=header,
                    details="These will be treated as text, not NULL values",
                )
            )


def validate(table: Table, sample_size: int = DEFAULT_SAMPLE_SIZE) -> ValidationReport:
    """Validate a table with a default Validator."""
    return Validator(sample_size=sample_size).validate(table)
