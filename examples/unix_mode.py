#!/usr/bin/env python3
"""
Unix Mode Example - flagbits Demo

Models the nine permission bits of a Unix file mode as a bitfield and
converts between the bitfield, the octal form (0o750) and the symbolic
form ("rwxr-x---").

Run with: python examples/unix_mode.py
"""

import sys
import os

# Add parent directory to path for development
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import flagbits


class Mode(flagbits.FlaggedBitfield):
    """Permission bits of a Unix file mode."""

    Flags = {
        "OtherExecute": 0o001,
        "OtherWrite": 0o002,
        "OtherRead": 0o004,
        "GroupExecute": 0o010,
        "GroupWrite": 0o020,
        "GroupRead": 0o040,
        "OwnerExecute": 0o100,
        "OwnerWrite": 0o200,
        "OwnerRead": 0o400,
    }
    DefaultBit = 0o644


# Symbolic position -> flag name, in "rwxrwxrwx" order
SYMBOLIC_ORDER = [
    ("r", "OwnerRead"),
    ("w", "OwnerWrite"),
    ("x", "OwnerExecute"),
    ("r", "GroupRead"),
    ("w", "GroupWrite"),
    ("x", "GroupExecute"),
    ("r", "OtherRead"),
    ("w", "OtherWrite"),
    ("x", "OtherExecute"),
]


def parse_symbolic(text: str) -> Mode:
    """Parse a string such as 'rwxr-x---' into a Mode."""
    if len(text) != len(SYMBOLIC_ORDER):
        raise ValueError(f"Expected {len(SYMBOLIC_ORDER)} characters, got {text!r}")

    names = []
    for char, (letter, name) in zip(text, SYMBOLIC_ORDER):
        if char == letter:
            names.append(name)
        elif char != "-":
            raise ValueError(f"Unexpected {char!r} where {letter!r} or '-' belongs")
    return Mode(names)


def format_symbolic(mode: Mode) -> str:
    """Render a Mode as 'rwxr-x---'."""
    return "".join(
        letter if mode.has(name) else "-"
        for letter, name in SYMBOLIC_ORDER
    )


def format_octal(mode: Mode) -> str:
    """Render a Mode as a zero-padded octal string, e.g. '0750'."""
    return mode.to_string(8).rjust(4, "0")


def main():
    mode = Mode()
    print(f"Default:      {format_symbolic(mode)} ({format_octal(mode)})")

    mode.add(["OwnerExecute", "GroupExecute"]).remove("OtherRead")
    print(f"Executable:   {format_symbolic(mode)} ({format_octal(mode)})")

    locked = parse_symbolic("rwxr-x---").freeze()
    print(f"Locked:       {format_symbolic(locked)} ({format_octal(locked)})")
    print(f"Not granted:  {locked.missing().to_array()}")
    print(f"As JSON:      {flagbits.dumps({'mode': locked})}")


if __name__ == "__main__":
    main()
