"""Translate generic column types into dialect-specific SQL types."""

from types import MappingProxyType
from typing import Callable, Mapping, Optional, Union

from .errors import InvalidTypeOverrideError
from .models import ColumnType, GenericType, SQLDialect

TypeRenderer = Callable[[GenericType], str]


def _fixed(name: str) -> TypeRenderer:
    return lambda generic: name


def _decimal(name: str) -> TypeRenderer:
    return lambda generic: f"{name}({generic.precision},{generic.scale})"


def _varchar(name: str) -> TypeRenderer:
    return lambda generic: f"{name}({generic.length})"


TYPE_MAPS: Mapping[SQLDialect, Mapping[ColumnType, TypeRenderer]] = MappingProxyType(
    {
        SQLDialect.POSTGRESQL: MappingProxyType(
            {
                ColumnType.INTEGER: _fixed("INTEGER"),
                ColumnType.DECIMAL: _decimal("NUMERIC"),
                ColumnType.DATE: _fixed("DATE"),
                ColumnType.VARCHAR: _varchar("VARCHAR"),
            }
        ),
        SQLDialect.MYSQL: MappingProxyType(
            {
                ColumnType.INTEGER: _fixed("INT"),
                ColumnType.DECIMAL: _decimal("DECIMAL"),
                ColumnType.DATE: _fixed("DATE"),
                ColumnType.VARCHAR: _varchar("VARCHAR"),
            }
        ),
        SQLDialect.SQLSERVER: MappingProxyType(
            {
                ColumnType.INTEGER: _fixed("INT"),
                ColumnType.DECIMAL: _decimal("DECIMAL"),
                ColumnType.DATE: _fixed("DATE"),
                ColumnType.VARCHAR: _varchar("VARCHAR"),
            }
        ),
        # SQLite has no fixed-width text or date type
        SQLDialect.SQLITE: MappingProxyType(
            {
                ColumnType.INTEGER: _fixed("INTEGER"),
                ColumnType.DECIMAL: _fixed("REAL"),
                ColumnType.DATE: _fixed("TEXT"),
                ColumnType.VARCHAR: _fixed("TEXT"),
            }
        ),
        SQLDialect.ORACLE: MappingProxyType(
            {
                ColumnType.INTEGER: _fixed("NUMBER"),
                ColumnType.DECIMAL: _decimal("NUMBER"),
                ColumnType.DATE: _fixed("DATE"),
                ColumnType.VARCHAR: _varchar("VARCHAR2"),
            }
        ),
    }
)

TABLE_OPTIONS: Mapping[SQLDialect, str] = MappingProxyType(
    {SQLDialect.MYSQL: "ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"}
)


def _resolve_dialect(dialect: Union[SQLDialect, str, None]) -> SQLDialect:
    if isinstance(dialect, SQLDialect):
        return dialect
    try:
        return SQLDialect((dialect or "").strip().lower())
    except ValueError:
        return SQLDialect.POSTGRESQL


def to_dialect(
    generic_type: Union[GenericType, str, None],
    dialect: Union[SQLDialect, str, None] = SQLDialect.POSTGRESQL,
    override: Optional[str] = None,
) -> str:
    """
    Convert a generic type to a database-specific type.

    Args:
        generic_type: Detected type, or its string form
        dialect: Target dialect (unknown names fall back to PostgreSQL)
        override: User-supplied generic type that replaces generic_type

    Returns:
        Dialect type string, e.g. ``VARCHAR2(50)`` for Oracle

    Raises:
        InvalidTypeOverrideError: If override is outside the generic grammar
    """
    if override:
        generic_type = GenericType.parse(override)

    if generic_type is None:
        generic_type = GenericType.varchar()
    elif isinstance(generic_type, str):
        try:
            generic_type = GenericType.parse(generic_type)
        except InvalidTypeOverrideError:
            return generic_type

    type_map = TYPE_MAPS[_resolve_dialect(dialect)]
    return type_map[generic_type.kind](generic_type)


def table_options(dialect: Union[SQLDialect, str, None]) -> str:
    """Return the table options appended to CREATE TABLE for a dialect."""
    return TABLE_OPTIONS.get(_resolve_dialect(dialect), "")
