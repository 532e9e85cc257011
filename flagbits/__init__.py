"""
flagbits - typed, mask-aware bitfields for Python.

This package provides:
- A bitfield value type that tracks named flags as one masked integer
- Set algebra (union, intersection, difference, complement) over flag sets
- Mutable in-place updates, or new values, plus a one-way freeze
- Conversions to lists, dicts, radix strings and JSON

Basic Usage:
    import flagbits

    class Permissions(flagbits.FlaggedBitfield):
        Flags = {"Read": 1, "Write": 2, "Execute": 4, "Admin": 8}

    perms = Permissions(["Write", "Read"])
    print(perms.to_array())          # ['Read', 'Write']
    print(perms.has("Admin"))        # False

    # Mutate in place
    perms.add("Execute").remove("Write")
    print(perms.value)               # 5

    # Derive new values
    print(perms.missing().to_array())    # ['Write', 'Admin']
    print((perms | "Admin").to_json())   # '13'

    # Freeze: mutating calls become no-ops
    frozen = perms.freeze()
    frozen.add("Admin")
    print(frozen.value)              # 5

Key Concepts:
    - FlaggedBitfield: Base class; subclasses declare Flags and DefaultBit
    - FlagDefinition: Read-only name -> value record behind each subclass
    - define(): Build a subclass from a mapping at runtime
    - resolve(): How flag names, ints, lists and bitfields become bits

Unknown flag names and out-of-mask bits are silently ignored; bitfield
operations never raise for malformed input.
"""

from .bitfield import Bits, FlaggedBitfield, FrozenFlaggedBitfield, define
from .definition import DEFAULT, FlagDefinition
from .encoding import BitfieldJSONEncoder, dumps
from .exceptions import BitfieldError, DefinitionError, FrozenBitfieldError

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "FlaggedBitfield",
    "FrozenFlaggedBitfield",
    "FlagDefinition",
    "Bits",
    "DEFAULT",
    # Factories
    "define",
    # JSON
    "BitfieldJSONEncoder",
    "dumps",
    # Exceptions
    "BitfieldError",
    "DefinitionError",
    "FrozenBitfieldError",
]
