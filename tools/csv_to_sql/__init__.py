"""CSV to SQL Converter - Generate SQL from CSV files."""

from .config import ConverterSettings
from .converter import CSVToSQL
from .detector import detect
from .dialects import to_dialect
from .escaper import escape
from .models import ColumnType, GenericType, SQLDialect
from .renderer import render
from .sanitizer import sanitize
from .table import Table
from .validator import validate

__all__ = [
    "CSVToSQL",
    "ColumnType",
    "ConverterSettings",
    "GenericType",
    "SQLDialect",
    "Table",
    "detect",
    "escape",
    "render",
    "sanitize",
    "to_dialect",
    "validate",
]
