"""Data types shared by the CSV to SQL components."""

import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import InvalidTypeOverrideError, UnsupportedDialectError


class ColumnType(str, Enum):
    """Dialect-neutral column types."""

    INTEGER = "INTEGER"
    DECIMAL = "DECIMAL"
    DATE = "DATE"
    VARCHAR = "VARCHAR"


class SQLDialect(str, Enum):
    """SQL database dialects."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLSERVER = "sqlserver"
    SQLITE = "sqlite"
    ORACLE = "oracle"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SQLDialect":
        """
        Parse a dialect token, defaulting to PostgreSQL when empty.

        Raises:
            UnsupportedDialectError: If the token is not a known dialect
        """
        if not value:
            return cls.POSTGRESQL
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(d.value for d in cls)
            raise UnsupportedDialectError(f"Unsupported dialect '{value}' (choose from: {choices})")


DEFAULT_VARCHAR_LENGTH = 255
DEFAULT_DECIMAL_PRECISION = 10
DEFAULT_DECIMAL_SCALE = 2

_TYPE_GRAMMAR = re.compile(
    r"""^\s*(?:
        (?P<integer>INTEGER)
      | (?P<decimal>DECIMAL)(?:\s*\(\s*(?P<precision>\d+)\s*,\s*(?P<scale>\d+)\s*\))?
      | (?P<date>DATE)
      | (?P<varchar>VARCHAR)(?:\s*\(\s*(?P<length>\d+)\s*\))?
    )\s*$""",
    re.IGNORECASE | re.VERBOSE,
)


@dataclass(frozen=True)
class GenericType:
    """
    A column type before dialect translation.

    Renders as ``INTEGER``, ``DECIMAL(p,s)``, ``DATE`` or ``VARCHAR(n)``.
    """

    kind: ColumnType
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None

    @classmethod
    def integer(cls) -> "GenericType":
        return cls(ColumnType.INTEGER)

    @classmethod
    def decimal(
        cls,
        precision: int = DEFAULT_DECIMAL_PRECISION,
        scale: int = DEFAULT_DECIMAL_SCALE,
    ) -> "GenericType":
        return cls(ColumnType.DECIMAL, precision=precision, scale=scale)

    @classmethod
    def date(cls) -> "GenericType":
        return cls(ColumnType.DATE)

    @classmethod
    def varchar(cls, length: int = DEFAULT_VARCHAR_LENGTH) -> "GenericType":
        return cls(ColumnType.VARCHAR, length=length)

    @classmethod
    def parse(cls, text: str) -> "GenericType":
        """
        Parse a generic type string such as ``VARCHAR(10)``.

        Args:
            text: Type string

        Returns:
            Parsed GenericType

        Raises:
            InvalidTypeOverrideError: If text is outside the generic grammar
        """
        match = _TYPE_GRAMMAR.match(text or "")
        if not match:
            raise InvalidTypeOverrideError(
                f"Invalid column type '{text}' (expected INTEGER, DECIMAL(p,s), DATE or VARCHAR(n))"
            )

        if match.group("integer"):
            return cls.integer()
        if match.group("date"):
            return cls.date()
        if match.group("decimal"):
            if match.group("precision") is None:
                return cls.decimal()
            precision = int(match.group("precision"))
            scale = int(match.group("scale"))
            if precision < 1 or scale > precision:
                raise InvalidTypeOverrideError(f"Invalid DECIMAL precision/scale in '{text}'")
            return cls.decimal(precision, scale)

        length = match.group("length")
        if length is None:
            return cls.varchar()
        if int(length) < 1:
            raise InvalidTypeOverrideError(f"Invalid VARCHAR length in '{text}'")
        return cls.varchar(int(length))

    def __str__(self) -> str:
        if self.kind == ColumnType.DECIMAL:
            return f"DECIMAL({self.precision},{self.scale})"
        if self.kind == ColumnType.VARCHAR:
            return f"VARCHAR({self.length})"
        return self.kind.value


@dataclass(frozen=True)
class ColumnProfile:
    """Detected type and sample values for one CSV column."""

    original_name: str
    sanitized_name: str
    detected_type: GenericType
    sample_values: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_name": self.original_name,
            "sanitized_name": self.sanitized_name,
            "detected_type": str(self.detected_type),
            "sample_values": list(self.sample_values),
        }


class Severity(str, Enum):
    """Severity of a validation finding."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ValidationFinding:
    """One data-quality check result."""

    category: str
    message: str
    severity: Severity = Severity.INFO
    column: Optional[str] = None
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class ValidationReport:
    """Findings grouped into passed, warnings and errors."""

    passed: List[ValidationFinding] = field(default_factory=list)
    warnings: List[ValidationFinding] = field(default_factory=list)
    errors: List[ValidationFinding] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.warnings or self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": [f.to_dict() for f in self.passed],
            "warnings": [f.to_dict() for f in self.warnings],
            "errors": [f.to_dict() for f in self.errors],
        }


@dataclass
class PreviewResult:
    """Column analysis of a CSV before conversion."""

    columns: List[ColumnProfile]
    validation: ValidationReport
    row_count: int
    temp_file_id: Optional[str] = None

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "columns": [c.to_dict() for c in self.columns],
            "row_count": self.row_count,
            "column_count": self.column_count,
            "validation": self.validation.to_dict(),
        }
        if self.temp_file_id:
            data["temp_file_id"] = self.temp_file_id
        return data


@dataclass
class ConversionResult:
    """Rendered SQL plus conversion metadata."""

    create_table: str
    insert: str
    row_count: int
    column_count: int
    dialect: SQLDialect
    truncated: bool = False
    rows_rendered: int = 0

    def to_sql(self, schema_only: bool = False) -> str:
        """Join the CREATE TABLE and INSERT text into one script."""
        if schema_only or not self.insert:
            return self.create_table + "\n"
        return f"{self.create_table}\n\n{self.insert}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "create_table": self.create_table,
            "insert": self.insert,
            "row_count": self.row_count,
            "column_count": self.column_count,
            "dialect": self.dialect.value,
            "truncated": self.truncated,
        }
