"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module converts the delimited row strings returned by the server into
typed Row objects, using the result schema of the query.
"""

import datetime
import re
from typing import Any, Union

from impala_python.exceptions import DecodeError, InvalidBooleanLiteralError
from impala_python.row import Row
from impala_python.type import FLOAT_TYPES, INTEGER_TYPES, Schema, TypeTag

NULL_LITERAL = "NULL"

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

# Signed range of each integer column type
_INTEGER_BOUNDS = {
    TypeTag.TINYINT: (-(2 ** 7), 2 ** 7 - 1),
    TypeTag.INT: (-(2 ** 31), 2 ** 31 - 1),
    TypeTag.BIGINT: (-(2 ** 63), 2 ** 63 - 1),
}

_TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
)

# Impala prints nanoseconds; datetime stops at microseconds
_LONG_FRACTION = re.compile(r"(\.[0-9]{6})[0-9]+$")


def _decode_integer(value: str, type_tag: TypeTag) -> int:
    if not _INTEGER_PATTERN.fullmatch(value.strip()):
        raise DecodeError(f"Invalid value for {type_tag.value}: {value}")
    number = int(value)
    low, high = _INTEGER_BOUNDS[type_tag]
    if not low <= number <= high:
        raise DecodeError(f"Numeric value out of range for {type_tag.value}: {value}")
    return number


def _decode_float(value: str, type_tag: TypeTag) -> float:
    # float() would also accept digit separators such as "1_000"
    if "_" in value:
        raise DecodeError(f"Invalid value for {type_tag.value}: {value}")
    try:
        return float(value)
    except ValueError:
        raise DecodeError(f"Invalid value for {type_tag.value}: {value}") from None


def _decode_timestamp(value: str) -> datetime.datetime:
    """
    Parse a timestamp literal as UTC.

    The server sends timestamps without an offset; they are never read in
    the local time zone.
    """
    text = _LONG_FRACTION.sub(r"\1", value.strip())
    for fmt in _TIMESTAMP_FORMATS:
        try:
            parsed = datetime.datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.replace(tzinfo=datetime.timezone.utc)
    raise DecodeError(f"Invalid value for timestamp: {value}")


def decode_value(value: str, column_type: Union[str, TypeTag]) -> Any:
    """
    Convert one raw field to the Python value for its column type.

    Args:
        value: The raw field text.
        column_type: A TypeTag or the server's type name.

    Returns:
        str, bool, int, float, UTC datetime, or None for null columns.

    Raises:
        InvalidBooleanLiteralError: boolean text other than 'true'/'false'.
        UnknownColumnTypeError: the type is not supported.
        DecodeError: numeric or timestamp text that does not parse.
    """
    type_tag = TypeTag.parse(column_type)

    if type_tag is TypeTag.NULL:
        if value == NULL_LITERAL:
            return None
        raise DecodeError(f"Invalid value for null: {value}")
    if type_tag is TypeTag.STRING:
        return value
    if type_tag is TypeTag.BOOLEAN:
        if value == "true":
            return True
        if value == "false":
            return False
        raise InvalidBooleanLiteralError(value)
    if type_tag in INTEGER_TYPES:
        return _decode_integer(value, type_tag)
    if type_tag in FLOAT_TYPES:
        return _decode_float(value, type_tag)
    if type_tag is TypeTag.TIMESTAMP:
        return _decode_timestamp(value)
    # New TypeTag members must get a branch above
    raise DecodeError(f"No decoder for type: {type_tag.value}")


def decode_row(raw: str, schema: Schema) -> Row:
    """
    Split a raw row on the schema delimiter and decode each field.

    Fields and columns are paired by position. Fields beyond the schema are
    dropped and columns without a field are left out of the row. When two
    columns share a name the first one wins.
    """
    row = Row()
    fields = raw.split(schema.delimiter)
    for value, field in zip(fields, schema.fields):
        if field.name in row:
            continue
        row[field.name] = decode_value(value, field.type)
    return row
