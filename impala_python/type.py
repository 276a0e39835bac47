"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the column type tags, result schema classes and type
constructors for the impala_python package.
"""

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Union

from impala_python.exceptions import UnknownColumnTypeError


class TypeTag(Enum):
    """Column types the client knows how to decode."""

    STRING = "string"
    BOOLEAN = "boolean"
    TINYINT = "tinyint"
    INT = "int"
    BIGINT = "bigint"
    DOUBLE = "double"
    FLOAT = "float"
    TIMESTAMP = "timestamp"
    NULL = "null"

    @classmethod
    def parse(cls, type_name: Union[str, "TypeTag"]) -> "TypeTag":
        """
        Map a server type name to its tag.

        Raises:
            UnknownColumnTypeError: If the name is not a supported type.
        """
        if isinstance(type_name, cls):
            return type_name
        try:
            return cls(str(type_name).strip().lower())
        except ValueError:
            raise UnknownColumnTypeError(type_name) from None


INTEGER_TYPES = (TypeTag.TINYINT, TypeTag.INT, TypeTag.BIGINT)
FLOAT_TYPES = (TypeTag.DOUBLE, TypeTag.FLOAT)


@dataclass(frozen=True)
class FieldSchema:
    """
    One result column.

    type holds the raw type name reported by the server; it is resolved to a
    TypeTag only when a value of the column is decoded.
    """

    name: str
    type: Union[str, TypeTag]

    @property
    def type_name(self) -> str:
        if isinstance(self.type, TypeTag):
            return self.type.value
        return str(self.type)


@dataclass(frozen=True)
class Schema:
    """Ordered result columns plus the delimiter that joins raw row fields."""

    fields: Tuple[FieldSchema, ...]
    delimiter: str = "\t"

    @classmethod
    def from_metadata(cls, metadata: Any) -> "Schema":
        """
        Build a Schema from a Beeswax ResultsMetadata struct.

        The struct carries the columns under schema.fieldSchemas and the
        field separator under delim.
        """
        field_schemas = getattr(metadata.schema, "fieldSchemas", None) or []
        fields = tuple(FieldSchema(fs.name, fs.type) for fs in field_schemas)
        delimiter = metadata.delim if metadata.delim else "\t"
        return cls(fields, delimiter)

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(field.name for field in self.fields)

    @property
    def description(self) -> Tuple[Tuple[Any, ...], ...]:
        """
        DB-API description: (name, type_code, display_size, internal_size,
        precision, scale, null_ok) per column. Sizes are not reported by the
        server, so only name and type_code are filled in.
        """
        return tuple(
            (field.name, field.type_name, None, None, None, None, True)
            for field in self.fields
        )

    def __len__(self) -> int:
        return len(self.fields)


# Type Constructors
def Timestamp(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    microsecond: int = 0,
) -> datetime.datetime:
    """
    Construct a UTC timestamp, matching how timestamp columns are decoded.
    """
    return datetime.datetime(
        year, month, day, hour, minute, second, microsecond, tzinfo=datetime.timezone.utc
    )


def TimestampFromTicks(ticks: float, tz: Optional[datetime.tzinfo] = None) -> datetime.datetime:
    """
    Construct a timestamp from seconds since the epoch, in UTC by default.
    """
    return datetime.datetime.fromtimestamp(ticks, tz or datetime.timezone.utc)
