"""
Query parameter descriptors.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping


@dataclass
class QueryParameter:
    """
    One bind variable.

    Attributes:
        name: Parameter name as referenced in the SQL text, with or without
            its prefix (``@Id`` and ``Id`` are equivalent)
        value: Bound value; None binds NULL. For output parameters this is
            replaced with the value reported by the database after execute()
        is_output: Read the value back after execution
        sql_type: Explicit database type (e.g. ``nvarchar(50)``); inferred
            from the value when omitted
    """
    name: str
    value: Any = None
    is_output: bool = False
    sql_type: str | None = None

    @property
    def key(self) -> str:
        """Name without its prefix character."""
        return self.name.lstrip('@:$')

    @property
    def variable(self) -> str:
        """Name as a T-SQL variable."""
        return f'@{self.key}'


def as_parameters(params: Iterable[QueryParameter] | Mapping[str, Any] | None) -> list[QueryParameter]:
    """
    Normalize a params argument to a list of descriptors.

    A mapping is shorthand for input parameters: ``{'Id': 5}``.
    """
    if params is None:
        return []
    if isinstance(params, Mapping):
        return [QueryParameter(name, value) for name, value in params.items()]

    result = list(params)
    for param in result:
        if not isinstance(param, QueryParameter):
            raise TypeError(f"Expected QueryParameter, got {type(param).__name__}")
    return result
