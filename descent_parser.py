# descent_parser.py
# Hand-rolled JSON recursive-descent parser with an explicit cursor.
#
# =============================================================================
#  PARSER IMPLEMENTATION: SCANNERLESS RECURSIVE DESCENT
# =============================================================================
#
# There is no separate token stream. Every production reads straight from a
# Cursor over the input text, and every dispatch decision is made from one
# lookahead character:
#
#     "        -> string
#     {        -> mapping
#     [        -> sequence
#     t / f    -> boolean literal
#     n        -> null literal
#     - / 0-9  -> number
#
# The cursor only ever moves forward. When a production returns, the cursor
# sits exactly after the lexeme it consumed. Any mismatch raises a
# JSONSyntaxError carrying the offset of the offending character; nothing is
# recovered and no partial result is returned.
#
# Duplicate mapping keys follow "last write wins" unless allow_dup=False.
# Nesting is bounded by max_depth so hostile inputs cannot blow the Python
# stack (each container level costs two frames).
# =============================================================================

import argparse
import logging
import math
import re
import sys
from typing import Any, Callable, Dict, List, Optional, Union

from descent_writer import stringify

logger = logging.getLogger(__name__)

JSONValue = Union[str, int, float, bool, None, List["JSONValue"], Dict[str, "JSONValue"]]
Reviver = Callable[[Union[str, int], Any], Any]

# ---------------------------------------------------------------------------
# CONSTANTS AND TUNABLES
# ---------------------------------------------------------------------------
DEPTH_LIMIT_DEFAULT = 256   # ~512 interpreter frames, well under the default recursion limit

# ---------------------------------------------------------------------------
# REGEX BLUEPRINT
# ---------------------------------------------------------------------------
# Only the four JSON whitespace characters are skippable; \s would also accept
# form feeds and Unicode spaces.
_WHITESPACE_RE = re.compile(r"[ \t\n\r]*")
_NUMBER_RE     = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
# A run of plain characters followed by the character that ended it.
_STRING_CHUNK  = re.compile(r'([^"\\\x00-\x1F]*)(["\\\x00-\x1F]?)')
_HEX_DIGITS    = frozenset("0123456789abcdefABCDEF")

_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_LITERALS = {
    "t": ("true", True),
    "f": ("false", False),
    "n": ("null", None),
}

# ---------------------------------------------------------------------------
# ERRORS
# ---------------------------------------------------------------------------
class JSONSyntaxError(SyntaxError):
    """
    Raised when the input is not well-formed JSON.

    Subclasses the built-in SyntaxError so existing ``except SyntaxError``
    handlers keep working. ``pos`` is the character offset of the failure;
    ``lineno`` and ``colno`` are 1-based and derived from it.
    """

    def __init__(self, reason: str, text: str, pos: int):
        super().__init__(f"{reason} at offset {pos}")
        self.reason = reason
        self.doc = text
        self.pos = pos
        self.lineno = text.count("\n", 0, pos) + 1
        self.colno = pos - text.rfind("\n", 0, pos)

    def __str__(self):
        # SyntaxError appends "(line N)" once lineno is set; the offset is
        # already part of the message.
        return self.msg

    def __reduce__(self):
        return self.__class__, (self.reason, self.doc, self.pos)


class TrailingContentError(JSONSyntaxError):
    """A complete value was parsed but non-whitespace input remains."""


# ---------------------------------------------------------------------------
# CURSOR
# ---------------------------------------------------------------------------
class Cursor:
    """
    Read position into the input text, owned by a single parse() call.
    """

    __slots__ = ("text", "pos", "end")

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.end = len(text)

    def peek(self) -> str:
        """Current character, or '' at end of input."""
        if self.pos < self.end:
            return self.text[self.pos]
        return ""

    def advance(self, count: int = 1) -> None:
        self.pos += count

    def skip_whitespace(self) -> None:
        self.pos = _WHITESPACE_RE.match(self.text, self.pos).end()

    def at_end(self) -> bool:
        return self.pos >= self.end

    def error(self, reason: str, pos: Optional[int] = None, cls=JSONSyntaxError) -> JSONSyntaxError:
        return cls(reason, self.text, self.pos if pos is None else pos)

    def unexpected(self) -> JSONSyntaxError:
        if self.at_end():
            return self.error("unexpected end of input")
        return self.error(f"unexpected character {self.peek()!r}")


# ---------------------------------------------------------------------------
# CORE VALUE PARSER
# ---------------------------------------------------------------------------
def _parse_value(cur: Cursor, depth: int, max_depth: int, allow_dup: bool) -> JSONValue:
    """
    Skip leading whitespace and dispatch on the lookahead character.
    """
    cur.skip_whitespace()
    ch = cur.peek()

    if ch == '"':
        return _parse_string(cur)
    if ch == "{":
        return _parse_mapping(cur, depth + 1, max_depth, allow_dup)
    if ch == "[":
        return _parse_sequence(cur, depth + 1, max_depth, allow_dup)
    if ch in _LITERALS:
        return _parse_literal(cur)
    if ch == "-" or "0" <= ch <= "9":
        return _parse_number(cur)

    raise cur.unexpected()


# ---------------------------------------------------------------------------
# STRING PARSER
# ---------------------------------------------------------------------------
def _read_hex4(cur: Cursor, escape_start: int) -> int:
    """
    Read the four hex digits after ``\\u``. The cursor sits on the first digit.
    """
    digits = cur.text[cur.pos:cur.pos + 4]
    run = 0
    while run < len(digits) and digits[run] in _HEX_DIGITS:
        run += 1
    if run < 4:
        if run == len(digits) or digits[run] == '"':
            raise cur.error("short unicode escape", escape_start)
        raise cur.error(f"invalid hex escape \\u{digits}", escape_start)
    cur.advance(4)
    return int(digits, 16)


def _parse_unicode_escape(cur: Cursor) -> str:
    """
    Decode ``\\uXXXX`` (cursor on the 'u'), pairing UTF-16 surrogates.
    """
    escape_start = cur.pos - 1
    cur.advance()
    unit = _read_hex4(cur, escape_start)

    if 0xDC00 <= unit <= 0xDFFF:
        raise cur.error(f"unpaired surrogate \\u{unit:04X}", escape_start)
    if 0xD800 <= unit <= 0xDBFF:
        low_start = cur.pos
        if cur.text.startswith("\\u", low_start):
            cur.advance(2)
            low = _read_hex4(cur, low_start)
            if 0xDC00 <= low <= 0xDFFF:
                return chr(0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00))
        raise cur.error(f"unpaired surrogate \\u{unit:04X}", escape_start)
    return chr(unit)


def _parse_string(cur: Cursor) -> str:
    """
    Parse a string literal. The cursor sits on the opening quote.

    Plain runs are copied in one slice; only escapes and the terminator are
    examined character by character.
    """
    start = cur.pos
    cur.advance()
    chunks: List[str] = []

    while True:
        m = _STRING_CHUNK.match(cur.text, cur.pos)
        content, terminator = m.groups()
        if content:
            chunks.append(content)
        cur.pos = m.end()

        if terminator == '"':
            return "".join(chunks)
        if not terminator:
            raise cur.error("unterminated string starting", start)
        if terminator != "\\":
            raise cur.error(f"invalid control character U+{ord(terminator):04X} in string", cur.pos - 1)

        esc = cur.peek()
        if not esc:
            raise cur.error("unterminated string starting", start)
        if esc == "u":
            chunks.append(_parse_unicode_escape(cur))
        elif esc in _SIMPLE_ESCAPES:
            chunks.append(_SIMPLE_ESCAPES[esc])
            cur.advance()
        else:
            raise cur.error(f"invalid escape \\{esc}", cur.pos - 1)


# ---------------------------------------------------------------------------
# NUMBER PARSER
# ---------------------------------------------------------------------------
def _parse_number(cur: Cursor) -> Union[int, float]:
    """
    Match the longest number lexeme at the cursor.

    Integers stay ``int`` so large values keep full precision; anything with
    a fraction or exponent becomes ``float``.
    """
    start = cur.pos
    m = _NUMBER_RE.match(cur.text, start)
    if m is None:
        raise cur.error("invalid number", start)

    lexeme = m.group()
    cur.pos = m.end()
    nxt = cur.peek()
    if nxt and "0" <= nxt <= "9":
        raise cur.error("leading zeros are not allowed", start)
    if nxt in (".", "e", "E"):
        raise cur.error("invalid number", start)

    if "." in lexeme or "e" in lexeme or "E" in lexeme:
        value = float(lexeme)
        if math.isinf(value):
            raise cur.error("number out of range", start)
        return value
    try:
        return int(lexeme)
    except ValueError:
        # int() refuses very long digit strings (sys.set_int_max_str_digits)
        raise cur.error("number too large", start) from None


# ---------------------------------------------------------------------------
# LITERAL PARSER
# ---------------------------------------------------------------------------
def _parse_literal(cur: Cursor) -> Optional[bool]:
    """
    Match ``true``, ``false`` or ``null`` exactly, case-sensitive.
    """
    keyword, value = _LITERALS[cur.peek()]
    if not cur.text.startswith(keyword, cur.pos):
        raise cur.error("invalid literal")
    cur.advance(len(keyword))
    return value


# ---------------------------------------------------------------------------
# SEQUENCE PARSER
# ---------------------------------------------------------------------------
def _parse_sequence(cur: Cursor, depth: int, max_depth: int, allow_dup: bool) -> List[JSONValue]:
    """
    Parse ``[ value, ... ]``. The cursor sits on the opening bracket.
    """
    if depth > max_depth:
        raise cur.error("depth limit exceeded")
    cur.advance()
    items: List[JSONValue] = []

    cur.skip_whitespace()
    if cur.peek() == "]":
        cur.advance()
        return items

    while True:
        items.append(_parse_value(cur, depth, max_depth, allow_dup))
        cur.skip_whitespace()
        ch = cur.peek()
        if ch == "]":
            cur.advance()
            return items
        if ch != ",":
            if cur.at_end():
                raise cur.error("unexpected end of input")
            raise cur.error("expected ',' or ']'")
        comma = cur.pos
        cur.advance()
        cur.skip_whitespace()
        if cur.peek() == "]":
            raise cur.error("trailing comma before ']'", comma)


# ---------------------------------------------------------------------------
# MAPPING PARSER
# ---------------------------------------------------------------------------
def _parse_mapping(cur: Cursor, depth: int, max_depth: int, allow_dup: bool) -> Dict[str, JSONValue]:
    """
    Parse ``{ "key": value, ... }``. The cursor sits on the opening brace.

    With ``allow_dup`` a repeated key overwrites the earlier value but keeps
    its original position; otherwise the repeat is a syntax error.
    """
    if depth > max_depth:
        raise cur.error("depth limit exceeded")
    cur.advance()
    obj: Dict[str, JSONValue] = {}

    cur.skip_whitespace()
    if cur.peek() == "}":
        cur.advance()
        return obj

    while True:
        key_pos = cur.pos
        if cur.peek() != '"':
            if cur.at_end():
                raise cur.error("unexpected end of input")
            raise cur.error("expected string key")
        key = _parse_string(cur)

        cur.skip_whitespace()
        if cur.peek() != ":":
            if cur.at_end():
                raise cur.error("unexpected end of input")
            raise cur.error("expected ':'")
        cur.advance()

        if not allow_dup and key in obj:
            raise cur.error(f"duplicate key {key!r}", key_pos)
        obj[key] = _parse_value(cur, depth, max_depth, allow_dup)

        cur.skip_whitespace()
        ch = cur.peek()
        if ch == "}":
            cur.advance()
            return obj
        if ch != ",":
            if cur.at_end():
                raise cur.error("unexpected end of input")
            raise cur.error("expected ',' or '}'")
        comma = cur.pos
        cur.advance()
        cur.skip_whitespace()
        if cur.peek() == "}":
            raise cur.error("trailing comma before '}'", comma)


# ---------------------------------------------------------------------------
# REVIVER
# ---------------------------------------------------------------------------
def _revive(key: Union[str, int], value: Any, reviver: Reviver) -> Any:
    """
    Walk the tree bottom-up, replacing every member with reviver(key, value).
    """
    if isinstance(value, list):
        for index, item in enumerate(value):
            value[index] = _revive(index, item, reviver)
    elif isinstance(value, dict):
        for member, item in list(value.items()):
            value[member] = _revive(member, item, reviver)
    return reviver(key, value)


# ---------------------------------------------------------------------------
# PUBLIC API
# ---------------------------------------------------------------------------
def parse(
    text: str,
    *,
    max_depth: int = DEPTH_LIMIT_DEFAULT,
    allow_dup: bool = True,
    reviver: Optional[Reviver] = None,
) -> Any:
    """
    Parse JSON text into Python values.

    Any JSON value is accepted at the root. Whitespace after the root value
    is allowed; anything else raises TrailingContentError.

    ``reviver`` is called as ``reviver(key, value)`` for every member once
    its children have been revived: list members get their index, mapping
    members their key and the root value gets ``""``. Its return value
    replaces the member.
    """
    cur = Cursor(text)
    result = _parse_value(cur, 0, max_depth, allow_dup)

    cur.skip_whitespace()
    if not cur.at_end():
        raise cur.error("extra data after root value", cls=TrailingContentError)

    logger.debug("parsed %d characters into %s", cur.end, type(result).__name__)
    if reviver is not None:
        return _revive("", result, reviver)
    return result


# ---------------------------------------------------------------------------
# CLI ENTRYPOINT
# ---------------------------------------------------------------------------
def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line validator.

    Exit status is 0 when the document parses and 1 on a syntax error or an
    unreadable file; argparse exits with 2 on bad usage.
    """
    ap = argparse.ArgumentParser(prog="descent-json", description="Validate (and optionally reformat) a JSON document")
    ap.add_argument("file", help="JSON file to verify, or - for stdin")
    ap.add_argument("--max-depth", type=int, default=DEPTH_LIMIT_DEFAULT)
    ap.add_argument("--reject-dup-keys", action="store_true", help="treat a repeated mapping key as an error")
    ap.add_argument("--print", dest="print_value", action="store_true", help="write the parsed value to stdout")
    ap.add_argument("--indent", type=int, default=None, help="indent width used with --print")
    ap.add_argument("--sort-keys", action="store_true", help="sort mapping keys when used with --print")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging on stderr")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")

    try:
        data = _read_source(args.file)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"error: cannot read {args.file}: {exc}", file=sys.stderr)
        return 1
    logger.debug("read %d characters from %s", len(data), args.file)

    try:
        value = parse(data, max_depth=args.max_depth, allow_dup=not args.reject_dup_keys)
    except JSONSyntaxError as exc:
        print(f"SyntaxError: {exc} (line {exc.lineno}, column {exc.colno})", file=sys.stderr)
        return 1

    if args.print_value:
        print(stringify(value, indent=args.indent, sort_keys=args.sort_keys))
    else:
        print("OK")
    return 0


# ---------------------------------------------------------------------------
# MAIN GUARD
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
