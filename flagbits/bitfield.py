"""
The bitfield value type.

A FlaggedBitfield subclass names a set of flags; each instance tracks which
of them are set as a single masked integer:

    class Permissions(flagbits.FlaggedBitfield):
        Flags = {"Read": 1, "Write": 2, "Execute": 4, "Admin": 8}

    perms = Permissions(["Write", "Read"])
    perms.to_array()                 # ['Read', 'Write']
    perms.has("Execute")             # False

    perms.add("Execute")             # mutates, returns perms
    admin = perms.with_("Admin")     # new instance, perms untouched

    frozen = perms.freeze()
    frozen.add("Admin")              # no-op, returns frozen unchanged

Any argument named `bits` accepts a flag name, an int, a bool, another
bitfield, None, or a list/tuple/set of those (see FlaggedBitfield.resolve).
"""

from __future__ import annotations

import logging
import math
import numbers
import sys
import types
from collections.abc import Mapping
from typing import (
    Any,
    Callable,
    ClassVar,
    Iterator,
    List,
    Optional,
    Protocol,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from .definition import DEFAULT, FlagDefinition
from .exceptions import FrozenBitfieldError

logger = logging.getLogger(__name__)

R = TypeVar('R')
B = TypeVar('B', bound='FlaggedBitfield')

Bits = Any  # str | int | bool | float | FlaggedBitfield | None | collection of these

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_FORMAT_CODES = {2: "b", 8: "o", 16: "x"}
# str(int) may refuse values longer than sys.int_info.str_digits_check_threshold digits
_STR_SAFE_BITS = 2000


def _to_radix(value: int, radix: int) -> str:
    """Render a non-negative int in base 2..36 with lowercase digits."""
    if isinstance(radix, bool) or not isinstance(radix, int) or not 2 <= radix <= 36:
        raise ValueError(f"radix must be an int between 2 and 36, got {radix!r}")

    if radix in _FORMAT_CODES:
        return format(value, _FORMAT_CODES[radix])
    if radix == 10 and value.bit_length() <= _STR_SAFE_BITS:
        return str(value)
    if value == 0:
        return "0"

    digits = []
    while value:
        value, rem = divmod(value, radix)
        digits.append(_DIGITS[rem])
    return "".join(reversed(digits))


class FrozenFlaggedBitfield(Protocol):
    """
    Read-only view of a bitfield, as returned by FlaggedBitfield.freeze().

    Only the non-mutating operations are part of this interface.
    """

    @property
    def value(self) -> int: ...

    def has(self, bits: Bits) -> bool: ...
    def any(self, bits: Bits) -> bool: ...
    def equals(self, bits: Bits) -> bool: ...
    def with_(self, bits: Bits) -> FlaggedBitfield: ...
    def without(self, bits: Bits) -> FlaggedBitfield: ...
    def missing(self) -> FlaggedBitfield: ...
    def union(self, bits: Bits) -> FlaggedBitfield: ...
    def intersection(self, bits: Bits) -> FlaggedBitfield: ...
    def difference(self, bits: Bits) -> FlaggedBitfield: ...
    def symmetric_difference(self, bits: Bits) -> FlaggedBitfield: ...
    def complement(self) -> FlaggedBitfield: ...
    def copy(self) -> FlaggedBitfield: ...
    def get_flags(self) -> Mapping[str, int]: ...
    def is_frozen(self) -> bool: ...
    def to_array(self) -> List[str]: ...
    def to_object(self) -> dict: ...
    def to_string(self, radix: int = 10) -> str: ...
    def to_json(self) -> str: ...
    def to_number(self) -> float: ...
    def find(self, predicate: Callable[[str], bool]) -> Optional[str]: ...
    def find_index(self, predicate: Callable[[str], bool]) -> int: ...
    def for_each(self, callback: Callable[[str], Any]) -> None: ...
    def map(self, callback: Callable[[str], R]) -> List[R]: ...
    def entries(self) -> List[Tuple[str, int]]: ...
    def keys(self) -> List[str]: ...
    def values(self) -> List[int]: ...
    def __iter__(self) -> Iterator[str]: ...


def _rebuild(cls: Type[B], value: int, frozen: bool) -> B:
    bitfield = cls(value)
    if frozen:
        bitfield.freeze()
    return bitfield


class FlaggedBitfield:
    """
    A mask-aware set of named flags backed by a Python int.

    Subclasses declare their flags either as class attributes:

        class Permissions(FlaggedBitfield):
            Flags = {"Read": 1, "Write": 2}
            DefaultBit = 0

    or as class keywords:

        class Permissions(FlaggedBitfield, flags={"Read": 1, "Write": 2}):
            pass

    Mutating methods (add, remove, invert) change the instance in place and
    return it for chaining. Every other operation returns a new instance.
    After freeze() the mutating methods become no-ops.
    """

    _definition_: ClassVar[FlagDefinition] = FlagDefinition({}, name="FlaggedBitfield")
    Flags: ClassVar[Mapping[str, int]] = _definition_.flags
    DefaultBit: ClassVar[int] = 0

    __slots__ = ("_value", "_ordered", "_frozen")

    def __init_subclass__(
        cls,
        flags: Union[Mapping[str, int], FlagDefinition, None] = None,
        default_bit: Optional[int] = None,
        **kwargs,
    ):
        super().__init_subclass__(**kwargs)

        if flags is None:
            flags = cls.Flags
        if isinstance(flags, FlagDefinition):
            if default_bit is None:
                default_bit = flags.default_bit
            flags = flags.flags
        elif default_bit is None:
            default_bit = cls.DefaultBit

        definition = FlagDefinition(flags, default_bit, name=cls.__name__)
        cls._definition_ = definition
        cls.Flags = definition.flags
        cls.DefaultBit = definition.default_bit

        logger.debug(
            "Declared flag set %s: %d flags, mask=%#x",
            cls.__name__, len(definition), definition.mask(),
        )

    def __init__(self, bits: Bits = DEFAULT):
        """
        Create a bitfield.

        Args:
            bits: Initial bits in any accepted form. When omitted, the
                class's DefaultBit is used. None means "no bits".
        """
        cls = type(self)
        if bits is DEFAULT:
            bits = cls.DefaultBit
        self._frozen = False
        self._value = cls.resolve(bits) & cls.get_mask()
        self._ordered = cls._definition_.ordered()

    # Class-level helpers

    @classmethod
    def resolve(cls, bits: Bits) -> int:
        """
        Normalize any accepted input into an int.

        - list, tuple, set and frozenset are OR-reduced element by element
        - None resolves to 0
        - bool resolves to 1 or 0, then is masked
        - another FlaggedBitfield resolves to its value, as-is
        - ints (and integral floats) are masked against get_mask()
        - strings are looked up as flag names; unknown names give 0
        - anything else gives 0

        Never raises.
        """
        if isinstance(bits, (list, tuple, set, frozenset)):
            result = 0
            for bit in bits:
                result |= cls.resolve(bit)
            return result

        if bits is None:
            return 0

        if isinstance(bits, FlaggedBitfield):
            return bits.value

        if isinstance(bits, numbers.Integral):
            return int(bits) & cls.get_mask()

        if isinstance(bits, float):
            if bits.is_integer():
                return int(bits) & cls.get_mask()
            return 0

        if isinstance(bits, str):
            return cls._definition_.get(bits)

        return 0

    @classmethod
    def get_mask(cls) -> int:
        """Return the OR of every declared flag value."""
        return cls._definition_.mask()

    @classmethod
    def get_max_bit(cls) -> int:
        """Return the highest declared flag value."""
        return cls._definition_.max_bit()

    @classmethod
    def get_definition(cls) -> FlagDefinition:
        return cls._definition_

    # Frozen state

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise FrozenBitfieldError(type(self).__name__, name)
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if getattr(self, "_frozen", False):
            raise FrozenBitfieldError(type(self).__name__, name)
        object.__delattr__(self, name)

    def _locked(self, operation: str) -> bool:
        if self._frozen:
            logger.debug(
                "Ignoring %s() on frozen %s", operation, type(self).__name__
            )
            return True
        return False

    def freeze(self) -> FrozenFlaggedBitfield:
        """
        Freeze this instance in place and return it.

        Afterwards add, remove and invert return the instance unchanged, and
        assigning any attribute raises FrozenBitfieldError. Freezing twice is
        the same as freezing once.
        """
        if not self._frozen:
            self._frozen = True
            logger.debug("Froze %r", self)
        return self

    def is_frozen(self) -> bool:
        """Whether freeze() has been called on this instance."""
        return self._frozen

    @property
    def value(self) -> int:
        """The current masked integer."""
        return self._value

    # Mutating operations

    def add(self: B, bits: Bits) -> B:
        """
        Set the provided bits on this instance.

        Returns:
            This instance, so calls can be chained:
            perms.add(["Read", "Write"]).remove("Execute")
        """
        if self._locked("add"):
            return self
        cls = type(self)
        self._value = (self._value | cls.resolve(bits)) & cls.get_mask()
        return self

    def remove(self: B, bits: Bits) -> B:
        """Clear the provided bits on this instance. Returns this instance."""
        if self._locked("remove"):
            return self
        cls = type(self)
        self._value = self._value & ~cls.resolve(bits) & cls.get_mask()
        return self

    def invert(self: B) -> B:
        """Flip every bit within the mask. Returns this instance."""
        if self._locked("invert"):
            return self
        self._value = self.missing().value
        return self

    # Derivations (always return a new instance)

    def _derive(self: B, value: int) -> B:
        return type(self)(value)

    def copy(self: B) -> B:
        """Return an unfrozen copy holding the same value."""
        return self._derive(self._value)

    def with_(self: B, bits: Bits) -> B:
        """Return a new instance with the provided bits set."""
        return self.copy().add(bits)

    def without(self: B, bits: Bits) -> B:
        """Return a new instance with the provided bits cleared."""
        return self.copy().remove(bits)

    def missing(self: B) -> B:
        """Return a new instance holding the bits of the mask not set here."""
        return self._derive(~self._value & type(self).get_mask())

    def union(self: B, bits: Bits) -> B:
        """Alias of with_()."""
        return self.with_(bits)

    def intersection(self: B, bits: Bits) -> B:
        return self._derive(self._value & type(self).resolve(bits))

    def difference(self: B, bits: Bits) -> B:
        return self._derive(self._value & ~type(self).resolve(bits))

    def symmetric_difference(self: B, bits: Bits) -> B:
        return self._derive(self._value ^ type(self).resolve(bits))

    def complement(self: B) -> B:
        """Alias of missing()."""
        return self.missing()

    # Queries

    def has(self, bits: Bits) -> bool:
        """
        Check whether ANY of the provided bits are set.

        has(["Read", "Write"]) is true when either flag is present; use
        intersection(...).equals(...) to require all of them.
        """
        return (self._value & type(self).resolve(bits)) != 0

    def any(self, bits: Bits) -> bool:
        """Check whether the intersection with the provided bits is non-empty."""
        return self.intersection(bits).value != 0

    def equals(self, bits: Bits) -> bool:
        """Check whether this value is exactly the resolved bits."""
        return self._value == type(self).resolve(bits)

    def get_flags(self) -> Mapping[str, int]:
        """Return the flag definition backing this instance (read-only)."""
        return type(self)._definition_.flags

    # Enumeration

    def __iter__(self) -> Iterator[str]:
        """Yield present flag names in ascending order of declared value."""
        for name, bit in self._ordered:
            if self._value & bit:
                yield name

    def to_array(self) -> List[str]:
        return list(self)

    def entries(self) -> List[Tuple[str, int]]:
        """All declared (name, value) pairs ascending by value, present or not."""
        return list(self._ordered)

    def keys(self) -> List[str]:
        return [name for name, _ in self._ordered]

    def values(self) -> List[int]:
        return [bit for _, bit in self._ordered]

    def find(self, predicate: Callable[[str], bool]) -> Optional[str]:
        """Return the first present flag matching predicate, or None."""
        for name in self:
            if predicate(name):
                return name
        return None

    def find_index(self, predicate: Callable[[str], bool]) -> int:
        """
        Return the index of the first declared flag matching predicate, or -1.

        Unlike find(), this walks every declared flag (the entries() order),
        whether or not it is set, and the index refers to that ordering.
        """
        for index, (name, _) in enumerate(self._ordered):
            if predicate(name):
                return index
        return -1

    def for_each(self, callback: Callable[[str], Any]) -> None:
        for name in self:
            callback(name)

    def map(self, callback: Callable[[str], R]) -> List[R]:
        return [callback(name) for name in self]

    # Conversions

    def to_object(self) -> dict:
        """Map every declared flag name to whether it is present."""
        return {name: self.has(name) for name in self.get_flags()}

    def to_string(self, radix: int = 10) -> str:
        """
        Render the value in the given radix (2..36, lowercase digits).

        Raises:
            ValueError: If radix is outside 2..36.
        """
        return _to_radix(self._value, radix)

    def to_json(self) -> str:
        """Base-10 text of the value, for embedding in JSON documents."""
        return _to_radix(self._value, 10)

    def to_number(self) -> float:
        """
        Convert the value to a float.

        Precision is lost past 2**53 and values too large for a float give
        math.inf. Use int(bitfield) for the exact value.
        """
        try:
            return float(self._value)
        except OverflowError:
            return math.inf

    # Python protocols

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __contains__(self, bits: Bits) -> bool:
        return self.has(bits)

    def __or__(self: B, other: Bits) -> B:
        return self.union(other)

    __ror__ = __or__

    def __and__(self: B, other: Bits) -> B:
        return self.intersection(other)

    __rand__ = __and__

    def __xor__(self: B, other: Bits) -> B:
        return self.symmetric_difference(other)

    __rxor__ = __xor__

    def __sub__(self: B, other: Bits) -> B:
        return self.difference(other)

    def __invert__(self: B) -> B:
        return self.complement()

    def __ior__(self: B, other: Bits) -> B:
        return self.add(other)

    def __isub__(self: B, other: Bits) -> B:
        return self.remove(other)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FlaggedBitfield):
            return (
                dict(self.get_flags()) == dict(other.get_flags())
                and self._value == other._value
            )
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == other
        return NotImplemented

    def __hash__(self) -> int:
        # Mutable instances are unhashable, like set vs frozenset
        if not self._frozen:
            raise TypeError(
                f"unhashable type: '{type(self).__name__}' (freeze() it first)"
            )
        return hash(self._value)

    def __reduce__(self):
        return (_rebuild, (type(self), self._value, self._frozen))

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        frozen = " frozen" if self._frozen else ""
        return f"<{type(self).__name__} value={self._value} flags={self.to_array()!r}{frozen}>"


def define(
    name: str,
    flags: Union[Mapping[str, int], FlagDefinition],
    default_bit: Optional[int] = None,
    *,
    base: Type[FlaggedBitfield] = FlaggedBitfield,
    module: Optional[str] = None,
) -> Type[FlaggedBitfield]:
    """
    Create a FlaggedBitfield subclass from a mapping or FlagDefinition.

    Args:
        name: Class name of the new flag set
        flags: name -> value mapping, or a ready FlagDefinition
        default_bit: Initial value for instances built without arguments
        base: Class to derive from
        module: Value for __module__; defaults to the caller's module so
            the class pickles when bound to a module-level name of the same
            name

    Returns:
        The new class

    Example:
        Permissions = define("Permissions", {"Read": 1, "Write": 2})
    """
    if module is None:
        try:
            module = sys._getframe(1).f_globals.get("__name__", "__main__")
        except (AttributeError, ValueError):
            module = __name__

    def exec_body(namespace: dict) -> None:
        namespace["__module__"] = module
        namespace["__qualname__"] = name

    return types.new_class(
        name,
        (base,),
        {"flags": flags, "default_bit": default_bit},
        exec_body,
    )
