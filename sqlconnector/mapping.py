"""
Row mapping - turning fetched rows into caller types.

Provides:
- Row: read-only view over one fetched row, addressable by position or name
- RowMapper: capability interface converting a Row into an instance
- EntityMapper: attribute binding by column name
- coerce_value / default_value: first-column conversion rules
"""

import dataclasses
import decimal
import inspect
import types
import typing
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterator, TypeVar

T = TypeVar('T')


class Row:
    """
    One fetched row.

    Values are addressed by position (``row[0]``) or by column name
    (``row['Name']``). Column names are matched case-sensitively; when a
    result set repeats a name, the first occurrence wins.
    """

    __slots__ = ('_columns', '_values', '_index')

    def __init__(self, columns: list[str], values, index: dict[str, int] | None = None):
        self._columns = columns
        self._values = tuple(values)
        self._index = index if index is not None else column_index(columns)

    @classmethod
    def factory(cls, cursor) -> Callable[[Any], 'Row']:
        """Build a row constructor for the cursor's current result set."""
        columns = [desc[0] for desc in cursor.description]
        index = column_index(columns)
        return lambda values: cls(columns, values, index)

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def __getitem__(self, key: int | str) -> Any:
        if isinstance(key, str):
            try:
                return self._values[self._index[key]]
            except KeyError:
                raise KeyError(f"No column named {key!r}; available: {self._columns}") from None
        return self._values[key]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __repr__(self) -> str:
        return f"Row({self.as_dict()!r})"

    def get(self, name: str, default: Any = None) -> Any:
        """Value of the named column, or default when absent or NULL."""
        if name not in self._index:
            return default
        value = self._values[self._index[name]]
        return default if value is None else value

    def is_null(self, key: int | str) -> bool:
        return self[key] is None

    def as_dict(self) -> dict[str, Any]:
        return {name: self._values[pos] for name, pos in self._index.items()}


def column_index(columns: list[str]) -> dict[str, int]:
    index: dict[str, int] = {}
    for position, name in enumerate(columns):
        index.setdefault(name, position)
    return index


class RowMapper(ABC, Generic[T]):
    """Converts one fetched row into an instance of a caller type."""

    @abstractmethod
    def map(self, row: Row) -> T:
        """
        Map a row.

        Args:
            row: The current row

        Returns:
            Instance built from the row
        """
        pass


class FunctionRowMapper(RowMapper[T]):
    """Adapts a plain callable to the RowMapper interface."""

    def __init__(self, func: Callable[[Row], T]):
        self.func = func

    def map(self, row: Row) -> T:
        return self.func(row)


def as_row_mapper(mapper) -> RowMapper | None:
    """
    Normalize a mapper argument.

    Accepts a RowMapper, any object with a callable ``map`` method, a plain
    callable, or None.
    """
    if mapper is None or isinstance(mapper, RowMapper):
        return mapper
    if callable(getattr(mapper, 'map', None)):
        return mapper
    if callable(mapper):
        return FunctionRowMapper(mapper)
    raise TypeError(f"Row mapper must be callable or define map(row), got {type(mapper).__name__}")


class EntityMapper(RowMapper[T]):
    """
    Populate a new entity per row by matching column names to attributes.

    The entity type must be constructible without arguments. A column is
    bound when its name (after optional renaming through ``field_map``)
    is a public attribute of the type: a dataclass field, a class
    annotation, a settable property, a slot, or an attribute set by the
    constructor. Other columns are skipped. NULL is assigned as None.

    Example:
        @dataclass
        class Product:
            Id: int = 0
            Name: str = ''

        mapper = EntityMapper(Product, field_map={'product_name': 'Name'})
    """

    def __init__(self, entity_type: type[T], field_map: dict[str, str] | None = None):
        self.entity_type = entity_type
        self.field_map = dict(field_map or {})
        self._class_attributes = bindable_attributes(entity_type)

    def map(self, row: Row) -> T:
        entity = self.entity_type()
        instance_attributes = getattr(entity, '__dict__', {})

        for name in row.columns:
            attribute = self.field_map.get(name, name)
            if attribute.startswith('_'):
                continue
            if attribute in self._class_attributes or attribute in instance_attributes:
                setattr(entity, attribute, row[name])

        return entity


def bindable_attributes(entity_type: type) -> frozenset[str]:
    """Public attribute names declared on a class and its bases."""
    names: set[str] = set()

    if dataclasses.is_dataclass(entity_type):
        names.update(f.name for f in dataclasses.fields(entity_type))

    for klass in reversed(entity_type.__mro__):
        if klass is object:
            continue
        names.update(inspect.get_annotations(klass))

        slots = vars(klass).get('__slots__', ())
        names.update([slots] if isinstance(slots, str) else slots)

        for name, member in vars(klass).items():
            if isinstance(member, property) and member.fset is not None:
                names.add(name)

    return frozenset(name for name in names if not name.startswith('_'))


def is_nullable(target: Any) -> bool:
    """True when None is an acceptable value of the target type."""
    if target is None or target is Any or target is type(None):
        return True
    origin = typing.get_origin(target)
    if origin is typing.Union or origin is types.UnionType:
        return type(None) in typing.get_args(target)
    return False


def underlying_type(target: Any) -> Any:
    """Strip Optional from a type; ``Optional[int]`` -> ``int``."""
    origin = typing.get_origin(target)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(target) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
        return None
    return target


# Lossless conversions accepted when the fetched value is not already the target type
WIDENING = {
    float: (int,),
    complex: (int, float),
    decimal.Decimal: (int, float),
}

# Types whose zero value stands in for "no row"; everything else gets None
SCALAR_DEFAULTS = (bool, int, float, complex, decimal.Decimal)


def coerce_value(value: Any, target: Any) -> Any:
    """
    Convert a fetched column value to the target type.

    Only lossless widening is performed (int to float, int/float to
    Decimal, 0/1 to bool). Anything else is a cast error.

    Raises:
        TypeError: NULL fetched for a non-nullable target, or a value that
            cannot be cast to the target without loss
    """
    if value is None:
        if is_nullable(target):
            return None
        raise TypeError(f"Cannot cast NULL to non-nullable {getattr(target, '__name__', target)}")

    kind = underlying_type(target)
    if kind is None or kind is Any or not isinstance(kind, type) or isinstance(value, kind):
        return value

    if kind is bool and type(value) is int and value in (0, 1):
        return bool(value)

    sources = WIDENING.get(kind, ())
    if isinstance(value, sources) and not isinstance(value, bool):
        return kind(value)

    raise TypeError(f"Cannot cast {type(value).__name__} value {value!r} to {kind.__name__}")


def default_value(target: Any) -> Any:
    """Value returned when a scalar query produces no row."""
    kind = None if is_nullable(target) else target
    if kind in SCALAR_DEFAULTS:
        return kind()
    return None
