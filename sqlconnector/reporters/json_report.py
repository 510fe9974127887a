"""
JSON reporter - writes query results as JSON.

Output is one array of objects keyed by column name, suitable for piping
into other tools.
"""

import json
import sys
from typing import Any, Iterable, TextIO

from sqlconnector.mapping import Row


class JSONReporter:
    """Serialize rows to a JSON array."""

    def __init__(self, output: TextIO | None = None, indent: int | None = 2):
        """
        Initialize JSON reporter.

        Args:
            output: Output stream (default: stdout)
            indent: Indentation passed to json.dump
        """
        self.output = output or sys.stdout
        self.indent = indent

    def write_rows(self, rows: Iterable[Row]) -> int:
        """
        Write rows as a JSON array.

        Returns:
            Number of rows written
        """
        records = [row.as_dict() for row in rows]
        json.dump(records, self.output, indent=self.indent, default=self._serialize)
        self.output.write('\n')
        return len(records)

    def write_value(self, value: Any) -> None:
        json.dump(value, self.output, default=self._serialize)
        self.output.write('\n')

    @staticmethod
    def _serialize(value: Any) -> Any:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).hex()
        return str(value)
