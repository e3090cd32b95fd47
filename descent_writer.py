# descent_writer.py
# JSON serializer, the inverse of descent_parser.parse.
#
# Output is compatible with the parser: for any tree t returned by parse(),
# parse(stringify(t)) == t. Compact output carries no insignificant
# whitespace; indented output puts every container member on its own line.

import logging
import math
import re
from typing import Any, List, Optional, Set

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# STRING ESCAPING
# ---------------------------------------------------------------------------
_ESCAPE_RE = re.compile(r'["\\\x00-\x1F]')
_ESCAPES = {chr(code): f"\\u{code:04x}" for code in range(0x20)}
_ESCAPES.update({
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
})


def quote(text: str) -> str:
    """Return ``text`` as a JSON string literal. Non-ASCII is kept as-is."""
    return '"' + _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group()], text) + '"'


# ---------------------------------------------------------------------------
# TREE WALK
# ---------------------------------------------------------------------------
def _write(
    value: Any,
    out: List[str],
    indent: Optional[int],
    sort_keys: bool,
    level: int,
    active: Set[int],
) -> None:
    # bool is an int subclass, so it must be checked first.
    if value is None:
        out.append("null")
    elif value is True:
        out.append("true")
    elif value is False:
        out.append("false")
    elif isinstance(value, str):
        out.append(quote(value))
    elif isinstance(value, int):
        out.append(int.__repr__(value))
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"out of range float value {value!r} is not JSON compliant")
        out.append(float.__repr__(value))
    elif isinstance(value, (list, tuple)):
        _write_container(value, out, indent, sort_keys, level, active)
    elif isinstance(value, dict):
        _write_container(value, out, indent, sort_keys, level, active)
    else:
        raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def _write_container(value, out, indent, sort_keys, level, active) -> None:
    is_mapping = isinstance(value, dict)
    opener, closer = ("{", "}") if is_mapping else ("[", "]")
    if not value:
        out.append(opener + closer)
        return

    marker = id(value)
    if marker in active:
        raise ValueError("circular reference detected")
    active.add(marker)

    if indent is None:
        separator, key_separator, newline, inner, outer = ",", ":", "", "", ""
    else:
        separator, key_separator, newline = ",", ": ", "\n"
        inner = " " * (indent * (level + 1))
        outer = " " * (indent * level)

    if is_mapping:
        members = value.items()
        if sort_keys:
            members = sorted(members, key=lambda kv: kv[0])
    else:
        members = value

    out.append(opener)
    first = True
    for member in members:
        out.append(newline + inner if first else separator + newline + inner)
        first = False
        if is_mapping:
            key, item = member
            if not isinstance(key, str):
                raise TypeError(f"keys must be str, not {type(key).__name__}")
            out.append(quote(key))
            out.append(key_separator)
        else:
            item = member
        _write(item, out, indent, sort_keys, level + 1, active)
    out.append(newline + outer + closer)

    active.discard(marker)


# ---------------------------------------------------------------------------
# PUBLIC API
# ---------------------------------------------------------------------------
def stringify(value: Any, *, indent: Optional[int] = None, sort_keys: bool = False) -> str:
    """
    Serialize a value tree to JSON text.

    Accepts ``str``, ``int``, ``float``, ``bool``, ``None``, lists, tuples
    and dicts with ``str`` keys. Raises TypeError for anything else and
    ValueError for NaN, infinities and self-referencing containers.
    """
    out: List[str] = []
    _write(value, out, indent, sort_keys, 0, set())
    text = "".join(out)
    logger.debug("serialized %s into %d characters", type(value).__name__, len(text))
    return text
