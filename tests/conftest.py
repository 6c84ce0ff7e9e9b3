"""
Shared fixtures for the bugvet test suite.

Provides:
- A TypeInfo index and a small builder for Go syntax trees
- SourceFile construction around a list of statements
- Paths to the JSON dump fixtures
"""

import json
import logging
from pathlib import Path

import pytest

from bugvet.syntax.nodes import (
    BasicLit,
    BlockStmt,
    CallExpr,
    ExprStmt,
    File,
    FuncDecl,
    FuncType,
    Ident,
    Node,
    Position,
    SelectorExpr,
    Stmt,
)
from bugvet.syntax.source import SourceFile
from bugvet.syntax.typeinfo import Constant, ConstantKind, Func, TypeInfo
from bugvet.syntax.types import Named, Pointer, Struct, Type

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class GoBuilder:
    """Builds syntax nodes and records their type information."""

    def __init__(self, info: TypeInfo):
        self.info = info
        self._line = 0

    def _pos(self) -> Position:
        self._line += 1
        return Position(self._line, 2)

    def ident(self, name: str, typ: Type | None = None) -> Ident:
        node = Ident(name, pos=self._pos())
        if typ is not None:
            self.info.record_type(node, typ)
        return node

    def string(self, value: str) -> BasicLit:
        """String literal, raw-quoted unless it contains a backquote."""
        token = json.dumps(value) if "`" in value or "\r" in value else f"`{value}`"
        return BasicLit("STRING", token, pos=self._pos())

    def int(self, value: int | str) -> BasicLit:
        return BasicLit("INT", str(value), pos=self._pos())

    def const(self, expr: Node, value: str) -> Node:
        """Record a folded string constant on ``expr``."""
        self.info.record_type(expr, None, Constant(ConstantKind.STRING, value))
        return expr

    def typed(self, expr: Node, typ: Type) -> Node:
        self.info.record_type(expr, typ)
        return expr

    def selector(self, x: Node, name: str, full_name: str | None = None) -> SelectorExpr:
        sel = Ident(name, pos=self._pos())
        if full_name is not None:
            self.info.record_object(sel, Func(name=name, full_name=full_name))
        return SelectorExpr(x, sel, pos=sel.pos)

    def call(
        self, pkg: str, name: str, *args: Node, resolved: str | None = None
    ) -> CallExpr:
        """``pkg.name(args...)``, optionally with a resolved callee."""
        fun = self.selector(self.ident(pkg), name, full_name=resolved)
        return CallExpr(fun, tuple(args), pos=fun.pos)

    def method_call(
        self, recv: Node, name: str, *args: Node, full_name: str | None = None
    ) -> CallExpr:
        fun = self.selector(recv, name, full_name=full_name)
        return CallExpr(fun, tuple(args), pos=fun.pos)

    def stmt(self, expr: Node) -> ExprStmt:
        return ExprStmt(expr, pos=expr.pos)

    def file(self, *stmts: Stmt, path: str = "main.go") -> SourceFile:
        """Wrap statements in ``func main() { ... }`` inside package main."""
        body = BlockStmt(tuple(stmts))
        decl = FuncDecl(Ident("main"), FuncType(), body, pos=self._pos())
        return SourceFile(path=path, root=File("main", (decl,)), info=self.info)


@pytest.fixture
def info() -> TypeInfo:
    """Empty TypeInfo index."""
    return TypeInfo()


@pytest.fixture
def go(info: TypeInfo) -> GoBuilder:
    """Syntax builder bound to the ``info`` fixture."""
    return GoBuilder(info)


@pytest.fixture
def waitgroup() -> Named:
    """The ``sync.WaitGroup`` named type."""
    wg = Named(pkg="sync", name="WaitGroup")
    wg.bind(Struct(()))
    return wg


@pytest.fixture
def waitgroup_ptr(waitgroup: Named) -> Pointer:
    return Pointer(waitgroup)


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding JSON dump fixtures."""
    return FIXTURES_DIR


@pytest.fixture
def run_rule():
    """Run one rule over every node of its types in a file."""
    from bugvet.rules.base import RuleContext
    from bugvet.syntax.nodes import walk

    def _run(rule, file: SourceFile, config=None):
        context = RuleContext(file=file, config=config)
        findings = []
        for node in walk(file.root):
            if isinstance(node, rule.node_types):
                findings.extend(rule.check(node, context))
        return findings

    return _run


@pytest.fixture(autouse=True)
def reset_bugvet_logger():
    """Undo setup_logging so caplog sees records in later tests."""
    yield
    logger = logging.getLogger("bugvet")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
