"""Exceptions raised by the CSV to SQL converter."""


class CSVToSQLError(ValueError):
    """Base class for request-level conversion failures."""


class CSVParseError(CSVToSQLError):
    """The CSV text could not be parsed."""


class EmptyCSVError(CSVToSQLError):
    """The CSV has no columns or no data rows."""


class InvalidTypeOverrideError(CSVToSQLError):
    """A type override is not INTEGER, DECIMAL(p,s), DATE or VARCHAR(n)."""


class UnsupportedDialectError(CSVToSQLError):
    """The requested SQL dialect is not one of the supported targets."""
