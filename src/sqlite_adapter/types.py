"""
Value normalization and row structure handling.

This module provides:
- TypeConverter: Normalize NumPy/Pandas values to plain Python values
- RowAdapter: Convert driver rows to dictionaries
"""
import datetime
import logging
import math
from typing import Any

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

NUMPY_FLOAT_TYPES = (np.floating,)
NUMPY_INT_TYPES = (np.integer, np.unsignedinteger)


def _convert_numpy_value(val: Any) -> float | int | bool | datetime.datetime | None:
    """Convert NumPy value to Python type.

    >>> _convert_numpy_value(np.int32(42))
    42
    >>> _convert_numpy_value(np.float64('nan')) is None
    True
    """
    if val is None:
        return None

    if isinstance(val, np.floating) and np.isnan(val):
        return None

    if isinstance(val, np.datetime64) and np.isnat(val):
        return None

    if isinstance(val, (*NUMPY_FLOAT_TYPES, *NUMPY_INT_TYPES, np.bool_)):
        return val.item()

    if isinstance(val, np.datetime64):
        micros = val.astype('datetime64[us]').astype(np.int64).item()
        logger.debug(f'Converting np.datetime64 to Python datetime: {val}')
        return datetime.datetime(1970, 1, 1) + datetime.timedelta(microseconds=micros)

    return val


class TypeConverter:
    """Normalize values exchanged with the store.

    Handles NumPy scalars and Pandas missing-value markers so that a value
    read from a DataFrame or computed with NumPy binds like its Python
    counterpart.
    """

    @staticmethod
    def convert_value(value: Any) -> Any:
        """Convert a single value to a driver-compatible format."""
        if value is None:
            return None

        if isinstance(value, float) and math.isnan(value):
            return None

        if isinstance(value, (*NUMPY_FLOAT_TYPES, *NUMPY_INT_TYPES, np.bool_, np.datetime64)):
            return _convert_numpy_value(value)

        if value is pd.NaT or value is pd.NA:
            return None

        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()

        return value

    @staticmethod
    def convert_params(params: Any) -> Any:
        """Convert a collection of parameters for statement binding."""
        if params is None:
            return None

        if isinstance(params, dict):
            return {k: TypeConverter.convert_value(v) for k, v in params.items()}

        if isinstance(params, list | tuple):
            return type(params)(TypeConverter.convert_value(v) for v in params)

        return TypeConverter.convert_value(params)


class RowAdapter:
    """Simple row adapter for converting driver rows to dictionaries."""

    def __init__(self, row: Any):
        self.row = row

    def to_dict(self) -> dict[str, Any]:
        """Convert row to dictionary."""
        # Already a dict
        if isinstance(self.row, dict):
            return self.row
        # sqlite3.Row, pandas.Series, other mappings
        if hasattr(self.row, 'keys') and callable(self.row.keys):
            return {key: self.row[key] for key in self.row.keys()}  # noqa: SIM118
        # Namedtuple
        if hasattr(self.row, '_asdict'):
            return self.row._asdict()
        raise TypeError(f'Cannot read columns from row of type {type(self.row).__name__}')


def iter_row_mappings(data: Any):
    """Yield row dictionaries from a DataFrame or an iterable of rows.

    Pandas stores integer columns holding NaN as float64; the decoder reads
    integral floats back as int for int-annotated properties.
    """
    if data is None:
        return
    if isinstance(data, pd.DataFrame):
        for record in data.to_dict(orient='records'):
            yield record
        return
    for row in data:
        yield RowAdapter(row).to_dict()


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
