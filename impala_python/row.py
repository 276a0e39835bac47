"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the Row class, which represents a single decoded row
of a result set.
"""


class Row(dict):
    """
    A row of data from a cursor fetch operation.

    Maps column name to decoded value in schema order. Columns can also be
    read as attributes:

        row = cursor.fetch_row()
        row["name"] == row.name
    """

    __slots__ = ()

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"Row has no column '{name}'") from None

    def __setattr__(self, name, value):
        raise AttributeError("Row columns are read-only attributes; use item assignment")

    def __repr__(self):
        items = ", ".join(f"{key}={value!r}" for key, value in self.items())
        return f"Row({items})"
