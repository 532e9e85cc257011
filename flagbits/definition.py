"""
Flag definitions: the class-level configuration behind every bitfield type.

A definition is an ordered mapping of flag name to integer value plus a
default bit. Values are expected to be powers of two, but nothing breaks
if two names share a value or a value spans several bits:

    PERMISSIONS = FlagDefinition(
        {"Read": 1, "Write": 2, "Execute": 4, "Admin": 8},
        default_bit=0,
    )

    PERMISSIONS.mask()      # 15
    PERMISSIONS.max_bit()   # 8
    PERMISSIONS.ordered()   # (("Read", 1), ("Write", 2), ...)
"""

from __future__ import annotations

from types import MappingProxyType
from collections.abc import Mapping
from typing import Any, Final, Tuple

from .exceptions import DefinitionError


# Sentinel for "argument not supplied", distinct from None (which resolves to 0)
class _Default:
    """Sentinel class standing in for the configured default bit."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DEFAULT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Default, ())


DEFAULT: Final = _Default()


def _check_bit(name: str, label: str, value: Any) -> int:
    # bool is an int subclass but never a meaningful flag value
    if isinstance(value, bool) or not isinstance(value, int):
        raise DefinitionError(
            name, f"{label} must be an int, got {type(value).__name__}"
        )
    if value < 0:
        raise DefinitionError(name, f"{label} must be non-negative, got {value}")
    return value


class FlagDefinition:
    """
    Read-only record of a flag set: name -> value mapping and default bit.

    The mapping is copied on construction, so later changes to the dict the
    caller passed in are never observed.
    """

    __slots__ = ("_name", "_flags", "_default_bit")

    def __init__(
        self,
        flags: Mapping[str, int],
        default_bit: int = 0,
        name: str = "FlagDefinition",
    ):
        if not isinstance(flags, Mapping):
            raise DefinitionError(
                name, f"flags must be a mapping, got {type(flags).__name__}"
            )

        checked = {}
        for key, value in flags.items():
            if not isinstance(key, str):
                raise DefinitionError(name, f"flag name {key!r} is not a str")
            checked[key] = _check_bit(name, f"flag '{key}'", value)

        self._name = name
        self._flags = MappingProxyType(checked)
        self._default_bit = _check_bit(name, "default bit", default_bit)

    @property
    def name(self) -> str:
        return self._name

    @property
    def flags(self) -> Mapping[str, int]:
        """The name -> value mapping (read-only view)."""
        return self._flags

    @property
    def default_bit(self) -> int:
        return self._default_bit

    def mask(self) -> int:
        """OR of every declared value; 0 for an empty definition."""
        mask = 0
        for value in self._flags.values():
            mask |= value
        return mask

    def max_bit(self) -> int:
        """Largest declared value; 0 for an empty definition."""
        return max(self._flags.values(), default=0)

    def ordered(self) -> Tuple[Tuple[str, int], ...]:
        """
        (name, value) pairs sorted ascending by value.

        The sort is stable, so names sharing a value keep declaration order.
        """
        return tuple(sorted(self._flags.items(), key=lambda item: item[1]))

    def get(self, name: str) -> int:
        """Value of a declared name, or 0 if the name is unknown."""
        return self._flags.get(name, 0)

    def __contains__(self, name: object) -> bool:
        return name in self._flags

    def __len__(self) -> int:
        return len(self._flags)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlagDefinition):
            return NotImplemented
        return (
            dict(self._flags) == dict(other._flags)
            and self._default_bit == other._default_bit
        )

    def __hash__(self) -> int:
        return hash((frozenset(self._flags.items()), self._default_bit))

    def __repr__(self) -> str:
        return (
            f"FlagDefinition({dict(self._flags)!r}, "
            f"default_bit={self._default_bit}, name={self._name!r})"
        )
