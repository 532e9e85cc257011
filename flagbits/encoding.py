"""
JSON integration for bitfields.

Bitfields serialize as their base-10 value in a string, so flag sets wider
than 53 bits survive a round trip through JSON parsers that read numbers
as doubles:

    flagbits.dumps({"perms": Permissions(["Read", "Write"])})
    # '{"perms": "3"}'
"""

from __future__ import annotations

import json
from typing import Any

from .bitfield import FlaggedBitfield


class BitfieldJSONEncoder(json.JSONEncoder):
    """JSONEncoder that renders FlaggedBitfield instances via to_json()."""

    def default(self, o: Any) -> Any:
        if isinstance(o, FlaggedBitfield):
            return o.to_json()
        return super().default(o)


def dumps(obj: Any, **kwargs) -> str:
    """json.dumps() with BitfieldJSONEncoder as the default encoder class."""
    kwargs.setdefault("cls", BitfieldJSONEncoder)
    return json.dumps(obj, **kwargs)
