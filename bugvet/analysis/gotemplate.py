"""
Parser for Go ``text/template`` and ``html/template`` source.

Templates are lexed into items and parsed with the grammar of Go's
``text/template/parse`` package, producing the same error text. Only
syntax is validated: nothing is executed and no escaping analysis is done,
so both dialects accept exactly the same inputs.
"""

import json
import math
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto

from .constants import unquote

LEFT_DELIM = "{{"
RIGHT_DELIM = "}}"
LEFT_COMMENT = "/*"
RIGHT_COMMENT = "*/"
SPACE_CHARS = " \t\r\n"

BUILTIN_FUNCTIONS = frozenset(
    {
        "and",
        "call",
        "html",
        "index",
        "slice",
        "js",
        "len",
        "not",
        "or",
        "print",
        "printf",
        "println",
        "urlquery",
        "eq",
        "ge",
        "gt",
        "le",
        "lt",
        "ne",
    }
)


class T(Enum):
    """Lexical item types."""

    ERROR = auto()
    BOOL = auto()
    CHAR = auto()
    CHAR_CONSTANT = auto()
    COMPLEX = auto()
    ASSIGN = auto()
    DECLARE = auto()
    EOF = auto()
    FIELD = auto()
    IDENTIFIER = auto()
    LEFT_DELIM = auto()
    LEFT_PAREN = auto()
    NUMBER = auto()
    PIPE = auto()
    RAW_STRING = auto()
    RIGHT_DELIM = auto()
    RIGHT_PAREN = auto()
    SPACE = auto()
    STRING = auto()
    TEXT = auto()
    VARIABLE = auto()
    # Keywords
    BLOCK = auto()
    BREAK = auto()
    CONTINUE = auto()
    DOT = auto()
    DEFINE = auto()
    ELSE = auto()
    END = auto()
    IF = auto()
    NIL = auto()
    RANGE = auto()
    TEMPLATE = auto()
    WITH = auto()


KEYWORD_TYPES = frozenset(
    {
        T.BLOCK,
        T.BREAK,
        T.CONTINUE,
        T.DOT,
        T.DEFINE,
        T.ELSE,
        T.END,
        T.IF,
        T.NIL,
        T.RANGE,
        T.TEMPLATE,
        T.WITH,
    }
)

KEYWORDS = {
    "block": T.BLOCK,
    "break": T.BREAK,
    "continue": T.CONTINUE,
    "define": T.DEFINE,
    "else": T.ELSE,
    "end": T.END,
    "if": T.IF,
    "nil": T.NIL,
    "range": T.RANGE,
    "template": T.TEMPLATE,
    "with": T.WITH,
}

_OPERAND_START = frozenset(
    {
        T.BOOL,
        T.CHAR_CONSTANT,
        T.COMPLEX,
        T.DOT,
        T.FIELD,
        T.IDENTIFIER,
        T.NUMBER,
        T.NIL,
        T.RAW_STRING,
        T.STRING,
        T.VARIABLE,
        T.LEFT_PAREN,
    }
)

# Operands that cannot start a later pipeline stage.
_NON_EXECUTABLE = frozenset({"bool", "dot", "nil", "number", "string"})


def go_quote(s: str) -> str:
    """Approximate Go's ``%q`` verb."""
    return json.dumps(s, ensure_ascii=False)


class TemplateSyntaxError(ValueError):
    """A template failed to parse."""

    def __init__(self, message: str, dialect: str = "text", line: int = 0):
        super().__init__(message)
        self.message = message
        self.dialect = dialect
        self.line = line


@dataclass(frozen=True)
class Item:
    typ: T
    val: str
    line: int

    def __str__(self) -> str:
        if self.typ is T.EOF:
            return "EOF"
        if self.typ is T.ERROR:
            return self.val
        if self.typ in KEYWORD_TYPES:
            return f"<{self.val}>"
        if len(self.val) > 10:
            return go_quote(self.val[:10]) + "..."
        return go_quote(self.val)


def _is_space(r: str) -> bool:
    return r != "" and r in SPACE_CHARS


def _is_alnum(r: str) -> bool:
    return r == "_" or r.isalpha() or r.isdecimal()


def _rune_repr(r: str) -> str:
    code = f"U+{ord(r):04X}"
    return f"{code} '{r}'" if r.isprintable() else code


def _has_left_trim_marker(s: str, i: int) -> bool:
    return i + 1 < len(s) and s[i] == "-" and _is_space(s[i + 1])


def _has_right_trim_marker(s: str, i: int) -> bool:
    return i + 1 < len(s) and _is_space(s[i]) and s[i + 1] == "-"


class _Lexer:
    """Turns template text into a list of items.

    Lexing stops at the first error; the error item is followed by EOF.
    """

    def __init__(self, text: str):
        self.input = text
        self.pos = 0
        self.start = 0
        self.at_eof = False
        self.paren_depth = 0
        self.inside_action = False
        self.done = False
        self.items: list[Item] = []

    def run(self) -> list[Item]:
        while not self.done:
            state = self._inside_action if self.inside_action else self._text
            while state is not None:
                state = state()
        return self.items

    # Scanning primitives

    def _next(self) -> str:
        if self.pos >= len(self.input):
            self.at_eof = True
            return ""
        r = self.input[self.pos]
        self.pos += 1
        return r

    def _backup(self) -> None:
        if not self.at_eof and self.pos > 0:
            self.pos -= 1

    def _peek(self) -> str:
        r = self._next()
        self._backup()
        return r

    def _accept(self, valid: str) -> bool:
        r = self._next()
        if r != "" and r in valid:
            return True
        self._backup()
        return False

    def _accept_run(self, valid: str) -> None:
        while self._accept(valid):
            pass

    def _line(self) -> int:
        return 1 + self.input.count("\n", 0, self.start)

    def _item(self, typ: T) -> Item:
        item = Item(typ, self.input[self.start : self.pos], self._line())
        self.start = self.pos
        return item

    def _emit_item(self, item: Item):
        self.items.append(item)
        if item.typ in (T.EOF, T.ERROR):
            self.done = True
        return None

    def _emit(self, typ: T):
        return self._emit_item(self._item(typ))

    def _ignore(self) -> None:
        self.start = self.pos

    def _errorf(self, message: str):
        line = self._line()
        self.items.append(Item(T.ERROR, message, line))
        self.items.append(Item(T.EOF, "", line))
        self.done = True
        return None

    def _at_right_delim(self) -> tuple[bool, bool]:
        if _has_right_trim_marker(self.input, self.pos) and self.input.startswith(
            RIGHT_DELIM, self.pos + 2
        ):
            return True, True
        if self.input.startswith(RIGHT_DELIM, self.pos):
            return True, False
        return False, False

    def _at_terminator(self) -> bool:
        r = self._peek()
        if r == "" or _is_space(r) or r in ".,|:)(":
            return True
        # Only the first rune of the delimiter is checked.
        return r == RIGHT_DELIM[0]

    # States

    def _text(self):
        x = self.input.find(LEFT_DELIM, self.pos)
        if x < 0:
            self.pos = len(self.input)
            if self.pos > self.start:
                return self._emit(T.TEXT)
            return self._emit(T.EOF)
        if x > self.pos:
            self.pos = x
            trim = 0
            if _has_left_trim_marker(self.input, x + len(LEFT_DELIM)):
                text = self.input[self.start : self.pos]
                trim = len(text) - len(text.rstrip(SPACE_CHARS))
            self.pos -= trim
            item = self._item(T.TEXT)
            self.pos += trim
            self._ignore()
            if item.val:
                return self._emit_item(item)
        return self._left_delim

    def _left_delim(self):
        self.pos += len(LEFT_DELIM)
        after_marker = 2 if _has_left_trim_marker(self.input, self.pos) else 0
        if self.input.startswith(LEFT_COMMENT, self.pos + after_marker):
            self.pos += after_marker
            self._ignore()
            return self._comment
        item = self._item(T.LEFT_DELIM)
        self.inside_action = True
        self.pos += after_marker
        self._ignore()
        self.paren_depth = 0
        return self._emit_item(item)

    def _comment(self):
        self.pos += len(LEFT_COMMENT)
        x = self.input.find(RIGHT_COMMENT, self.pos)
        if x < 0:
            return self._errorf("unclosed comment")
        self.pos = x + len(RIGHT_COMMENT)
        delim, trim = self._at_right_delim()
        if not delim:
            return self._errorf("comment ends before closing delimiter")
        if trim:
            self.pos += 2
        self.pos += len(RIGHT_DELIM)
        if trim:
            self.pos = self._skip_leading_space(self.pos)
        self._ignore()
        return self._text

    def _skip_leading_space(self, pos: int) -> int:
        while pos < len(self.input) and self.input[pos] in SPACE_CHARS:
            pos += 1
        return pos

    def _right_delim(self):
        _, trim = self._at_right_delim()
        if trim:
            self.pos += 2
            self._ignore()
        self.pos += len(RIGHT_DELIM)
        item = self._item(T.RIGHT_DELIM)
        if trim:
            self.pos = self._skip_leading_space(self.pos)
            self._ignore()
        self.inside_action = False
        return self._emit_item(item)

    def _inside_action(self):
        delim, _ = self._at_right_delim()
        if delim:
            if self.paren_depth == 0:
                return self._right_delim
            return self._errorf("unclosed left paren")
        r = self._next()
        if r == "":
            return self._errorf("unclosed action")
        if _is_space(r):
            # Put the space back in case it starts " -}}".
            self._backup()
            return self._space
        if r == "=":
            return self._emit(T.ASSIGN)
        if r == ":":
            if self._next() != "=":
                return self._errorf("expected :=")
            return self._emit(T.DECLARE)
        if r == "|":
            return self._emit(T.PIPE)
        if r == '"':
            return self._quote
        if r == "`":
            return self._raw_quote
        if r == "$":
            return self._variable
        if r == "'":
            return self._char
        if r == "." and self.pos < len(self.input) and not self.input[self.pos].isdigit():
            return self._field
        if r == "." or r in "+-" or "0" <= r <= "9":
            self._backup()
            return self._number
        if _is_alnum(r):
            self._backup()
            return self._identifier
        if r == "(":
            self.paren_depth += 1
            return self._emit(T.LEFT_PAREN)
        if r == ")":
            self.paren_depth -= 1
            if self.paren_depth < 0:
                return self._errorf("unexpected right paren")
            return self._emit(T.RIGHT_PAREN)
        if r.isascii() and r.isprintable():
            return self._emit(T.CHAR)
        return self._errorf(f"unrecognized character in action: {_rune_repr(r)}")

    def _space(self):
        count = 0
        while _is_space(self._peek()):
            self._next()
            count += 1
        # A trim-marked right delimiter starts with a space.
        if _has_right_trim_marker(self.input, self.pos - 1) and self.input.startswith(
            RIGHT_DELIM, self.pos + 1
        ):
            self._backup()
            if count == 1:
                return self._right_delim
        return self._emit(T.SPACE)

    def _identifier(self):
        while True:
            r = self._next()
            if _is_alnum(r):
                continue
            self._backup()
            word = self.input[self.start : self.pos]
            if not self._at_terminator():
                return self._errorf(f"bad character {_rune_repr(r)}")
            if word in KEYWORDS:
                return self._emit(KEYWORDS[word])
            if word in ("true", "false"):
                return self._emit(T.BOOL)
            return self._emit(T.IDENTIFIER)

    def _field(self):
        return self._field_or_variable(T.FIELD)

    def _variable(self):
        if self._at_terminator():
            return self._emit(T.VARIABLE)
        return self._field_or_variable(T.VARIABLE)

    def _field_or_variable(self, typ: T):
        if self._at_terminator():
            return self._emit(T.VARIABLE if typ is T.VARIABLE else T.DOT)
        while True:
            r = self._next()
            if not _is_alnum(r):
                self._backup()
                break
        if not self._at_terminator():
            return self._errorf(f"bad character {_rune_repr(r)}")
        return self._emit(typ)

    def _char(self):
        while True:
            r = self._next()
            if r == "\\":
                r = self._next()
                if r not in ("", "\n"):
                    continue
                return self._errorf("unterminated character constant")
            if r in ("", "\n"):
                return self._errorf("unterminated character constant")
            if r == "'":
                return self._emit(T.CHAR_CONSTANT)

    def _quote(self):
        while True:
            r = self._next()
            if r == "\\":
                r = self._next()
                if r not in ("", "\n"):
                    continue
                return self._errorf("unterminated quoted string")
            if r in ("", "\n"):
                return self._errorf("unterminated quoted string")
            if r == '"':
                return self._emit(T.STRING)

    def _raw_quote(self):
        while True:
            r = self._next()
            if r == "":
                return self._errorf("unterminated raw quoted string")
            if r == "`":
                return self._emit(T.RAW_STRING)

    def _number(self):
        if not self._scan_number():
            return self._errorf(
                f"bad number syntax: {go_quote(self.input[self.start : self.pos])}"
            )
        if self._peek() in ("+", "-"):
            # Complex: 1+2i. No spaces, must end in 'i'.
            if not self._scan_number() or self.input[self.pos - 1] != "i":
                return self._errorf(
                    f"bad number syntax: {go_quote(self.input[self.start : self.pos])}"
                )
            return self._emit(T.COMPLEX)
        return self._emit(T.NUMBER)

    def _scan_number(self) -> bool:
        self._accept("+-")
        digits = "0123456789_"
        if self._accept("0"):
            if self._accept("xX"):
                digits = "0123456789abcdefABCDEF_"
            elif self._accept("oO"):
                digits = "01234567_"
            elif self._accept("bB"):
                digits = "01_"
        self._accept_run(digits)
        if self._accept("."):
            self._accept_run(digits)
        if len(digits) == 11 and self._accept("eE"):
            self._accept("+-")
            self._accept_run("0123456789_")
        if len(digits) == 23 and self._accept("pP"):
            self._accept("+-")
            self._accept_run("0123456789_")
        self._accept("i")
        if _is_alnum(self._peek()):
            self._next()
            return False
        return True


def lex(text: str) -> list[Item]:
    """Lex template text into items, ending with EOF."""
    return _Lexer(text).run()


# Parse tree


@dataclass
class Operand:
    kind: str  # bool, dot, nil, number, string, field, variable, identifier, chain, pipe
    text: str
    pipe: "Pipe | None" = None


@dataclass
class Command:
    args: list[Operand]


@dataclass
class Pipe:
    decl: list[str]
    cmds: list[Command]
    is_assign: bool = False


@dataclass
class Text:
    text: str


@dataclass
class Action:
    pipe: Pipe


@dataclass
class Control:
    """``if``, ``range`` or ``with``."""

    keyword: str
    pipe: Pipe
    items: list
    else_items: list | None = None


@dataclass
class TemplateCall:
    name: str
    pipe: Pipe | None = None


@dataclass
class LoopJump:
    keyword: str  # break or continue


@dataclass
class _Delimiter:
    """``{{end}}`` or ``{{else}}``, returned to whoever is parsing a list."""

    keyword: str

    def __str__(self) -> str:
        return "{{" + self.keyword + "}}"


@dataclass
class Tree:
    name: str
    root: list = field(default_factory=list)

    def is_empty(self) -> bool:
        return all(isinstance(n, Text) and not n.text.strip() for n in self.root)


_INT_PATTERN = re.compile(
    r"[+-]?(?:0[xX](?:_?[0-9a-fA-F])+|0[oO](?:_?[0-7])+|0[bB](?:_?[01])+"
    r"|0(?:_?[0-7])*|[1-9](?:_?[0-9])*)"
)
_FLOAT_PATTERN = re.compile(
    r"[+-]?(?:(?:[0-9](?:_?[0-9])*)?\.?(?:[0-9](?:_?[0-9])*)?(?:[eE][+-]?[0-9]+)?"
    r"|0[xX](?:_?[0-9a-fA-F])*\.?(?:[0-9a-fA-F](?:_?[0-9a-fA-F])*)?[pP][+-]?[0-9]+)"
)


def _number_error(text: str, typ: T) -> str | None:
    """Return Go's error for an unusable number literal, or None."""
    if typ is T.CHAR_CONSTANT:
        body = text[1:-1]
        if body in ('"', "\\'"):
            return None
        value = unquote('"' + body + '"') if body else None
        if value is None:
            return "invalid syntax"
        if len(value) != 1:
            return f"malformed character constant: {text}"
        return None
    if typ is T.COMPLEX:
        return None
    if text.endswith("i") and _parse_float(text[:-1]) is not None:
        return None
    if _INT_PATTERN.fullmatch(text):
        digits = text.replace("_", "")
        sign = -1 if digits.startswith("-") else 1
        digits = digits.lstrip("+-")
        if len(digits) > 1 and digits[0] == "0" and digits[1].isdigit():
            digits = "0o" + digits[1:]
        value = sign * int(digits, 0)
        if -(2**63) <= value < 2**64:
            return None
    if _parse_float(text) is not None:
        if not any(c in text for c in ".eEpP"):
            return f"integer overflow: {go_quote(text)}"
        return None
    return f"illegal number syntax: {go_quote(text)}"


def _parse_float(text: str) -> float | None:
    if not text or not _FLOAT_PATTERN.fullmatch(text) or not any(c.isdigit() for c in text):
        return None
    body = text.lstrip("+-")
    try:
        if body[:2] in ("0x", "0X"):
            value = float.fromhex(text.replace("_", ""))
        elif "_" in text:
            return None
        else:
            value = float(text)
    except ValueError:
        return None
    if math.isinf(value):
        return None
    return value


class _Parser:
    def __init__(self, items: list[Item], dialect: str):
        self.items = items
        self.dialect = dialect
        self.index = 0
        self.high = 0
        self.vars = ["$"]
        self.range_depth = 0
        self.action_line = 0
        self.trees: dict[str, Tree] = {}

    # Token access

    def _fetch(self, index: int) -> Item:
        index = min(index, len(self.items) - 1)
        self.high = max(self.high, index)
        return self.items[index]

    def next(self) -> Item:
        item = self._fetch(self.index)
        self.index += 1
        return item

    def backup(self) -> None:
        self.index -= 1

    def peek(self) -> Item:
        return self._fetch(self.index)

    def next_non_space(self) -> Item:
        while True:
            item = self.next()
            if item.typ is not T.SPACE:
                return item

    def peek_non_space(self) -> Item:
        item = self.next_non_space()
        self.backup()
        return item

    # Errors

    def current_line(self) -> int:
        return self.items[min(self.high, len(self.items) - 1)].line

    def errorf(self, message: str, line: int | None = None):
        if line is None:
            line = self.current_line()
        raise TemplateSyntaxError(
            f"template: :{line}: {message}", dialect=self.dialect, line=line
        )

    def unexpected(self, token: Item, context: str):
        if token.typ is T.ERROR:
            extra = ""
            if self.action_line and self.action_line != token.line:
                extra = f" in action started at :{self.action_line}"
                if token.val.endswith(" action"):
                    extra = extra[len(" in action") :]
            self.errorf(f"{token}{extra}")
        self.errorf(f"unexpected {token} in {context}")

    def expect(self, expected: T, context: str) -> Item:
        token = self.next_non_space()
        if token.typ is not expected:
            self.unexpected(token, context)
        return token

    @contextmanager
    def nested_tree(self):
        """Parse a ``define`` or ``block`` body with fresh tree state."""
        saved = (self.vars, self.range_depth, self.action_line)
        self.vars, self.range_depth, self.action_line = ["$"], 0, 0
        try:
            yield
        finally:
            self.vars, self.range_depth, self.action_line = saved

    def add(self, tree: Tree) -> None:
        existing = self.trees.get(tree.name)
        if existing is None or existing.is_empty():
            self.trees[tree.name] = tree
            return
        if not tree.is_empty():
            self.errorf(
                f"template: multiple definition of template {go_quote(tree.name)}"
            )

    def unquote(self, token: Item) -> str:
        value = unquote(token.val)
        if value is None:
            self.errorf("invalid syntax")
        return value

    # Grammar

    def parse(self) -> dict[str, Tree]:
        root = []
        while self.peek().typ is not T.EOF:
            if self.peek().typ is T.LEFT_DELIM:
                mark = self.index
                self.next()
                if self.next_non_space().typ is T.DEFINE:
                    with self.nested_tree():
                        self.parse_definition()
                    continue
                self.index = mark
            node = self.text_or_action()
            if isinstance(node, _Delimiter):
                self.errorf(f"unexpected {node}")
            root.append(node)
        self.add(Tree("", root))
        return self.trees

    def parse_definition(self) -> None:
        context = "define clause"
        token = self.next_non_space()
        if token.typ not in (T.STRING, T.RAW_STRING):
            self.unexpected(token, context)
        name = self.unquote(token)
        self.expect(T.RIGHT_DELIM, context)
        root, end = self.item_list()
        if end.keyword != "end":
            self.errorf(f"unexpected {end} in {context}")
        self.add(Tree(name, root))

    def item_list(self) -> tuple[list, _Delimiter]:
        nodes = []
        while self.peek_non_space().typ is not T.EOF:
            node = self.text_or_action()
            if isinstance(node, _Delimiter):
                return nodes, node
            nodes.append(node)
        self.errorf("unexpected EOF")

    def text_or_action(self):
        token = self.next_non_space()
        if token.typ is T.TEXT:
            return Text(token.val)
        if token.typ is T.LEFT_DELIM:
            self.action_line = token.line
            try:
                return self.action()
            finally:
                self.action_line = 0
        self.unexpected(token, "input")

    def action(self):
        token = self.next_non_space()
        if token.typ is T.BLOCK:
            return self.block_control()
        if token.typ in (T.BREAK, T.CONTINUE):
            return self.loop_jump(token.val)
        if token.typ is T.ELSE:
            return self.else_control()
        if token.typ is T.END:
            self.expect(T.RIGHT_DELIM, "end")
            return _Delimiter("end")
        if token.typ is T.IF:
            return self.if_control()
        if token.typ is T.RANGE:
            return Control("range", *self.parse_control("range"))
        if token.typ is T.TEMPLATE:
            return self.template_control()
        if token.typ is T.WITH:
            return self.with_control()
        self.backup()
        # Variables declared here persist until the enclosing {{end}}.
        return Action(self.pipeline("command", T.RIGHT_DELIM))

    def loop_jump(self, keyword: str) -> LoopJump:
        token = self.next_non_space()
        if token.typ is not T.RIGHT_DELIM:
            self.unexpected(token, "{{" + keyword + "}}")
        if self.range_depth == 0:
            self.errorf("{{" + keyword + "}} outside {{range}}")
        return LoopJump(keyword)

    def else_control(self) -> _Delimiter:
        # "else if" and "else with" leave the keyword pending for parse_control.
        if self.peek_non_space().typ in (T.IF, T.WITH):
            return _Delimiter("else")
        self.expect(T.RIGHT_DELIM, "else")
        return _Delimiter("else")

    def if_control(self) -> Control:
        return Control("if", *self.parse_control("if"))

    def with_control(self) -> Control:
        return Control("with", *self.parse_control("with"))

    def parse_control(self, context: str):
        depth = len(self.vars)
        try:
            pipe = self.pipeline(context, T.RIGHT_DELIM)
            if context == "range":
                self.range_depth += 1
            items, end = self.item_list()
            if context == "range":
                self.range_depth -= 1
            else_items = None
            if end.keyword == "else":
                if context == "if" and self.peek().typ is T.IF:
                    self.next()
                    else_items = [self.if_control()]
                elif context == "with" and self.peek().typ is T.WITH:
                    self.next()
                    else_items = [self.with_control()]
                else:
                    else_items, end = self.item_list()
                    if end.keyword != "end":
                        self.errorf(f"expected end; found {end}")
            return pipe, items, else_items
        finally:
            del self.vars[depth:]

    def template_name(self, token: Item, context: str) -> str:
        if token.typ not in (T.STRING, T.RAW_STRING):
            self.unexpected(token, context)
        return self.unquote(token)

    def template_control(self) -> TemplateCall:
        context = "template clause"
        name = self.template_name(self.next_non_space(), context)
        pipe = None
        if self.next_non_space().typ is not T.RIGHT_DELIM:
            self.backup()
            pipe = self.pipeline(context, T.RIGHT_DELIM)
        return TemplateCall(name, pipe)

    def block_control(self) -> TemplateCall:
        context = "block clause"
        name = self.template_name(self.next_non_space(), context)
        pipe = None
        if self.next_non_space().typ is not T.RIGHT_DELIM:
            self.backup()
            pipe = self.pipeline(context, T.RIGHT_DELIM)
        line = self.current_line()
        with self.nested_tree():
            root, end = self.item_list()
            if end.keyword != "end":
                self.errorf(f"unexpected {end} in {context}", line=line)
            self.add(Tree(name, root))
        return TemplateCall(name, pipe)

    def pipeline(self, context: str, end: T) -> Pipe:
        decl: list[str] = []
        is_assign = False
        while self.peek_non_space().typ is T.VARIABLE:
            mark = self.index
            variable = self.next()
            following = self.peek_non_space()
            if following.typ in (T.ASSIGN, T.DECLARE):
                is_assign = following.typ is T.ASSIGN
                self.next_non_space()
                decl.append(variable.val)
                self.vars.append(variable.val)
                break
            if following.typ is T.CHAR and following.val == ",":
                self.next_non_space()
                decl.append(variable.val)
                self.vars.append(variable.val)
                if context == "range" and len(decl) < 2:
                    if self.peek_non_space().typ in (
                        T.VARIABLE,
                        T.RIGHT_DELIM,
                        T.RIGHT_PAREN,
                    ):
                        continue
                    self.errorf("range can only initialize variables")
                self.errorf(f"too many declarations in {context}")
            # The variable is an operand, not a declaration.
            self.index = mark
            break

        cmds: list[Command] = []
        while True:
            token = self.next_non_space()
            if token.typ is end:
                self.check_pipeline(cmds, context)
                return Pipe(decl, cmds, is_assign)
            if token.typ in _OPERAND_START:
                self.backup()
                cmds.append(self.command())
            else:
                self.unexpected(token, context)

    def check_pipeline(self, cmds: list[Command], context: str) -> None:
        if not cmds:
            self.errorf(f"missing value for {context}")
        for i, cmd in enumerate(cmds[1:], start=2):
            if cmd.args[0].kind in _NON_EXECUTABLE:
                self.errorf(f"non executable command in pipeline stage {i}")

    def command(self) -> Command:
        args: list[Operand] = []
        while True:
            self.peek_non_space()
            operand = self.operand()
            if operand is not None:
                args.append(operand)
            token = self.next()
            if token.typ is T.SPACE:
                continue
            if token.typ in (T.RIGHT_DELIM, T.RIGHT_PAREN):
                self.backup()
            elif token.typ is not T.PIPE:
                self.unexpected(token, "operand")
            break
        if not args:
            self.errorf("empty command")
        return Command(args)

    def operand(self) -> Operand | None:
        node = self.term()
        if node is None:
            return None
        if self.peek().typ is T.FIELD:
            fields = []
            while self.peek().typ is T.FIELD:
                fields.append(self.next().val)
            chained = node.text + "".join(fields)
            if node.kind in ("field", "variable"):
                return Operand(node.kind, chained)
            if node.kind in _NON_EXECUTABLE:
                self.errorf(f"unexpected . after term {go_quote(node.text)}")
            return Operand("chain", chained, pipe=node.pipe)
        return node

    def term(self) -> Operand | None:
        token = self.next_non_space()
        typ = token.typ
        if typ is T.IDENTIFIER:
            if token.val not in BUILTIN_FUNCTIONS:
                self.errorf(f"function {go_quote(token.val)} not defined")
            return Operand("identifier", token.val)
        if typ is T.DOT:
            return Operand("dot", ".")
        if typ is T.NIL:
            return Operand("nil", "nil")
        if typ is T.VARIABLE:
            name = token.val.split(".")[0]
            if name not in self.vars:
                self.errorf(f"undefined variable {go_quote(name)}")
            return Operand("variable", token.val)
        if typ is T.FIELD:
            return Operand("field", token.val)
        if typ is T.BOOL:
            return Operand("bool", token.val)
        if typ in (T.CHAR_CONSTANT, T.COMPLEX, T.NUMBER):
            error = _number_error(token.val, typ)
            if error is not None:
                self.errorf(error)
            return Operand("number", token.val)
        if typ is T.LEFT_PAREN:
            pipe = self.pipeline("parenthesized pipeline", T.RIGHT_PAREN)
            return Operand("pipe", "", pipe=pipe)
        if typ in (T.STRING, T.RAW_STRING):
            self.unquote(token)
            return Operand("string", token.val)
        self.backup()
        return None


def parse(text: str, dialect: str = "text") -> dict[str, Tree]:
    """Parse a template and return its trees by name.

    The unnamed top-level template is stored under ``""``.

    Raises:
        TemplateSyntaxError: With Go's ``template: :LINE: ...`` message.
    """
    if dialect not in ("text", "html"):
        raise ValueError(f"unknown template dialect: {dialect}")
    return _Parser(lex(text), dialect).parse()
