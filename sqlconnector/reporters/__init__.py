"""
Reporters package - output formatting for query results.

Provides multiple output formats:
- Console: Rich terminal tables
- JSON: Machine-readable for scripting
"""

from sqlconnector.reporters.console import ConsoleReporter
from sqlconnector.reporters.json_report import JSONReporter


__all__ = [
    'ConsoleReporter',
    'JSONReporter',
]
