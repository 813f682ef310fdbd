"""
Adapter-specific exception classes.

Every failure raised by the adapter is a SQLiteAdapterError carrying an
ErrorCode, so callers can catch the whole domain and branch on the code.
"""
from enum import Enum


class ErrorCode(Enum):
    """Distinguishable failure codes of the adapter error domain.
    """
    MISSING_COLUMN_MAPPING = 'missing_column_mapping'
    DUPLICATE_COLUMN = 'duplicate_column'
    UNKNOWN_PROPERTY = 'unknown_property'
    UNMAPPED_PRIMARY_KEY = 'unmapped_primary_key'
    NIL_MODEL = 'nil_model'
    NIL_TABLE = 'nil_table'
    NO_PRIMARY_KEY = 'no_primary_key'
    NO_COLUMNS = 'no_columns'
    NO_DEFINITIONS = 'no_definitions'
    NO_CLASS_FOUND = 'no_class_found'
    TRANSFORM_FAILURE = 'transform_failure'
    VALIDATION_FAILED = 'validation_failed'


class SQLiteAdapterError(Exception):
    """Base class for all adapter errors.
    """

    def __init__(self, code: ErrorCode, reason: str) -> None:
        super().__init__(reason)
        self.code = code
        self.reason = reason

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.code.name}, {self.reason!r})'


class SchemaError(SQLiteAdapterError):
    """Model type declares an unusable schema.
    """


class EncodeError(SQLiteAdapterError):
    """Error converting a model into statement parameters.
    """


class DecodeError(SQLiteAdapterError):
    """Error converting a row into a model.
    """


class BuildError(SQLiteAdapterError):
    """Error rendering statement text.
    """


class ModelValidationError(Exception):
    """Raised by a model's validate() hook.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class TransformError(ValueError):
    """Raised by a transformer that rejects its input.
    """


# Exceptions a transformer may raise to reject a value
TransformFailure = (
    ValueError,
    TypeError,
    ArithmeticError,
    LookupError,
    AttributeError,
    )
