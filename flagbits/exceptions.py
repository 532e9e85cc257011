"""
Custom exceptions for the flagbits package.

Bitfield operations themselves never raise for malformed input; unknown
names and out-of-mask bits are absorbed silently. The errors below cover
the two places where failing loudly is the right call: declaring a flag
set, and writing to an instance after it has been frozen.
"""


class BitfieldError(Exception):
    """Base exception for all flagbits errors."""
    pass


class DefinitionError(BitfieldError):
    """Raised when a flag set declaration is invalid."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"Invalid flag definition '{name}': {message}")


class FrozenBitfieldError(BitfieldError, AttributeError):
    """
    Raised when an attribute of a frozen bitfield is assigned or deleted.

    The mutating methods (add, remove, invert) are silent no-ops on a frozen
    instance; this only fires for direct writes that bypass them.
    """

    def __init__(self, class_name: str, attr: str):
        self.class_name = class_name
        self.attr = attr
        super().__init__(f"Cannot modify '{attr}' of frozen {class_name}")
