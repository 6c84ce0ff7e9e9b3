"""
Syntax tree model for analysed Go source.

The tree is produced by an external Go front end and handed to the rules
as read-only data. Nodes are frozen and compare by identity, so they can
key the TypeInfo index the same way the Go type checker keys its maps by
``ast.Expr`` pointers.

Only the node kinds the rules inspect (plus the containers needed to reach
them) are modelled; anything else the front end emits is kept as an
:class:`Opaque` node so that its children are still walked.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field, fields


@dataclass(frozen=True)
class Position:
    """Source position of a node (1-indexed line, 1-indexed column)."""

    line: int
    column: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True, eq=False)
class Node:
    """Base class for every syntax tree node."""

    pos: Position | None = field(default=None, kw_only=True)

    @property
    def kind(self) -> str:
        """Node kind name as used in dumps (e.g. 'CallExpr')."""
        return type(self).__name__


class Expr(Node):
    """Marker base for expression nodes."""


class Stmt(Node):
    """Marker base for statement nodes."""


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Ident(Expr):
    name: str


@dataclass(frozen=True, eq=False)
class BasicLit(Expr):
    """Literal token: ``token`` is one of INT, FLOAT, IMAG, CHAR, STRING.

    ``value`` is the raw token text, quotes included for strings.
    """

    token: str
    value: str


@dataclass(frozen=True, eq=False)
class SelectorExpr(Expr):
    x: Expr
    sel: Ident


@dataclass(frozen=True, eq=False)
class CallExpr(Expr):
    fun: Expr
    args: tuple[Expr, ...] = ()
    ellipsis: bool = False


@dataclass(frozen=True, eq=False)
class StarExpr(Expr):
    x: Expr


@dataclass(frozen=True, eq=False)
class UnaryExpr(Expr):
    op: str
    x: Expr


@dataclass(frozen=True, eq=False)
class BinaryExpr(Expr):
    x: Expr
    op: str
    y: Expr


@dataclass(frozen=True, eq=False)
class ParenExpr(Expr):
    x: Expr


@dataclass(frozen=True, eq=False)
class IndexExpr(Expr):
    x: Expr
    index: Expr


@dataclass(frozen=True, eq=False)
class KeyValueExpr(Expr):
    key: Expr
    value: Expr


@dataclass(frozen=True, eq=False)
class CompositeLit(Expr):
    type: Expr | None = None
    elts: tuple[Expr, ...] = ()


@dataclass(frozen=True, eq=False)
class ArrayType(Expr):
    """``[len]elt``, or ``[]elt`` when ``len`` is None."""

    elt: Expr
    len: Expr | None = None


@dataclass(frozen=True, eq=False)
class MapType(Expr):
    key: Expr
    value: Expr


@dataclass(frozen=True, eq=False)
class Field(Node):
    """A parameter, result or struct field group: ``a, b T``."""

    type: Expr
    names: tuple[Ident, ...] = ()


@dataclass(frozen=True, eq=False)
class FuncType(Expr):
    params: tuple[Field, ...] = ()
    results: tuple[Field, ...] = ()


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class BlockStmt(Stmt):
    stmts: tuple[Stmt, ...] = ()


@dataclass(frozen=True, eq=False)
class FuncLit(Expr):
    type: FuncType
    body: BlockStmt


@dataclass(frozen=True, eq=False)
class ExprStmt(Stmt):
    x: Expr


@dataclass(frozen=True, eq=False)
class GoStmt(Stmt):
    call: CallExpr


@dataclass(frozen=True, eq=False)
class DeferStmt(Stmt):
    call: CallExpr


@dataclass(frozen=True, eq=False)
class AssignStmt(Stmt):
    lhs: tuple[Expr, ...]
    tok: str
    rhs: tuple[Expr, ...]


@dataclass(frozen=True, eq=False)
class IncDecStmt(Stmt):
    x: Expr
    tok: str


@dataclass(frozen=True, eq=False)
class ReturnStmt(Stmt):
    results: tuple[Expr, ...] = ()


@dataclass(frozen=True, eq=False)
class IfStmt(Stmt):
    cond: Expr
    body: BlockStmt
    init: Stmt | None = None
    else_: Stmt | None = None


@dataclass(frozen=True, eq=False)
class ForStmt(Stmt):
    init: Stmt | None = None
    cond: Expr | None = None
    post: Stmt | None = None
    body: BlockStmt = field(default_factory=BlockStmt)


@dataclass(frozen=True, eq=False)
class RangeStmt(Stmt):
    x: Expr
    body: BlockStmt
    key: Expr | None = None
    value: Expr | None = None
    tok: str = ":="


@dataclass(frozen=True, eq=False)
class SelectStmt(Stmt):
    body: BlockStmt = field(default_factory=BlockStmt)


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class FuncDecl(Node):
    name: Ident
    type: FuncType
    body: BlockStmt | None = None
    recv: tuple[Field, ...] = ()


@dataclass(frozen=True, eq=False)
class File(Node):
    """A Go source file; ``name`` is the package clause name."""

    name: str
    decls: tuple[Node, ...] = ()


@dataclass(frozen=True, eq=False)
class Opaque(Node):
    """A node kind no rule inspects, e.g. SwitchStmt or LabeledStmt."""

    original_kind: str
    children: tuple[Node, ...] = ()

    @property
    def kind(self) -> str:
        return self.original_kind


NODE_TYPES: dict[str, type[Node]] = {
    cls.__name__: cls
    for cls in (
        Ident,
        BasicLit,
        SelectorExpr,
        CallExpr,
        StarExpr,
        UnaryExpr,
        BinaryExpr,
        ParenExpr,
        IndexExpr,
        KeyValueExpr,
        CompositeLit,
        ArrayType,
        MapType,
        Field,
        FuncType,
        FuncLit,
        BlockStmt,
        ExprStmt,
        GoStmt,
        DeferStmt,
        AssignStmt,
        IncDecStmt,
        ReturnStmt,
        IfStmt,
        ForStmt,
        RangeStmt,
        SelectStmt,
        FuncDecl,
        File,
        Opaque,
    )
}


def iter_children(node: Node) -> Iterator[Node]:
    """Yield the direct children of ``node`` in field order."""
    for f in fields(node):
        if f.name == "pos":
            continue
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(root: Node) -> Iterator[Node]:
    """Yield every node of the tree rooted at ``root`` in pre-order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        children = list(iter_children(node))
        stack.extend(reversed(children))


def unparen(expr: Expr) -> Expr:
    """Strip any number of enclosing parentheses."""
    while isinstance(expr, ParenExpr):
        expr = expr.x
    return expr
