"""
Constant extraction for rule arguments.

String constants come from the type checker's folded values, falling back
to unquoting a string literal token when no value was recorded. Integer
constants are deliberately limited to plain decimal literal tokens; folded
integer expressions such as ``2 * n`` are not considered.
"""

import re

from ..syntax.nodes import BasicLit, Expr, unparen
from ..syntax.typeinfo import Constant, ConstantKind, TypeInfo

_DECIMAL = re.compile(r"[+-]?[0-9]+")

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


def string_constant(expr: Expr, info: TypeInfo) -> str | None:
    """Return the constant string value of ``expr``, if statically known."""
    value = info.value_of(expr)
    if value is not None:
        if value.kind == ConstantKind.STRING and isinstance(value.value, str):
            return value.value
        return None
    lit = unparen(expr)
    if isinstance(lit, BasicLit) and lit.token == "STRING":
        return unquote(lit.value)
    return None


def int_literal(expr: Expr) -> int | None:
    """Return the value of a decimal integer literal token.

    Only direct literals count; anything else (identifiers, constant
    expressions, hex or underscore-separated tokens) yields None.
    """
    if not isinstance(expr, BasicLit) or expr.token != "INT":
        return None
    if not _DECIMAL.fullmatch(expr.value):
        return None
    return int(expr.value, 10)


def extract_constant(expr: Expr, info: TypeInfo) -> Constant | None:
    """Extract a string or integer constant from ``expr``.

    Returns None when the expression has no usable constant value; callers
    treat that as "rule does not apply".
    """
    s = string_constant(expr, info)
    if s is not None:
        return Constant(ConstantKind.STRING, s)
    n = int_literal(expr)
    if n is not None:
        return Constant(ConstantKind.INT, n)
    return None


def unquote(token: str) -> str | None:
    """Interpret a Go string literal token; None if it is malformed."""
    if len(token) < 2:
        return None
    quote = token[0]
    if quote != token[-1]:
        return None
    body = token[1:-1]
    if quote == "`":
        if "`" in body:
            return None
        return body.replace("\r", "")
    if quote != '"' or "\n" in body:
        return None

    out: list[str] = []
    i = 0
    while i < len(body):
        c = body[i]
        if c == '"':
            return None
        if c != "\\":
            out.append(c)
            i += 1
            continue
        if i + 1 >= len(body):
            return None
        e = body[i + 1]
        if e in _SIMPLE_ESCAPES and e != "'":
            out.append(_SIMPLE_ESCAPES[e])
            i += 2
        elif e in "xuU":
            width = {"x": 2, "u": 4, "U": 8}[e]
            digits = body[i + 2 : i + 2 + width]
            if len(digits) != width or not re.fullmatch(r"[0-9a-fA-F]+", digits):
                return None
            code = int(digits, 16)
            if e == "x":
                # \x denotes a single byte; decode latin-1 for a best effort.
                out.append(chr(code))
            else:
                if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                    return None
                out.append(chr(code))
            i += 2 + width
        elif e in "01234567":
            digits = body[i + 1 : i + 4]
            if len(digits) != 3 or not re.fullmatch(r"[0-7]{3}", digits):
                return None
            code = int(digits, 8)
            if code > 255:
                return None
            out.append(chr(code))
            i += 4
        else:
            return None
    return "".join(out)
