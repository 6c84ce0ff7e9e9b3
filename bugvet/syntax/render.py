"""Render syntax nodes back to compact Go source for diagnostic messages."""

from .nodes import (
    ArrayType,
    AssignStmt,
    BasicLit,
    BinaryExpr,
    BlockStmt,
    CallExpr,
    CompositeLit,
    DeferStmt,
    ExprStmt,
    Field,
    File,
    ForStmt,
    FuncDecl,
    FuncLit,
    FuncType,
    GoStmt,
    Ident,
    IfStmt,
    IncDecStmt,
    IndexExpr,
    KeyValueExpr,
    MapType,
    Node,
    ParenExpr,
    RangeStmt,
    ReturnStmt,
    SelectorExpr,
    SelectStmt,
    StarExpr,
    UnaryExpr,
)


def render(node: Node | None) -> str:
    """Pretty-print ``node`` as single-line Go source."""
    if node is None:
        return ""
    if isinstance(node, Ident):
        return node.name
    if isinstance(node, BasicLit):
        return node.value
    if isinstance(node, SelectorExpr):
        return f"{render(node.x)}.{node.sel.name}"
    if isinstance(node, CallExpr):
        args = ", ".join(render(a) for a in node.args)
        if node.ellipsis:
            args += "..."
        return f"{render(node.fun)}({args})"
    if isinstance(node, StarExpr):
        return "*" + render(node.x)
    if isinstance(node, UnaryExpr):
        return node.op + render(node.x)
    if isinstance(node, BinaryExpr):
        return f"{render(node.x)} {node.op} {render(node.y)}"
    if isinstance(node, ParenExpr):
        return f"({render(node.x)})"
    if isinstance(node, IndexExpr):
        return f"{render(node.x)}[{render(node.index)}]"
    if isinstance(node, KeyValueExpr):
        return f"{render(node.key)}: {render(node.value)}"
    if isinstance(node, CompositeLit):
        elts = ", ".join(render(e) for e in node.elts)
        return f"{render(node.type)}{{{elts}}}"
    if isinstance(node, ArrayType):
        return f"[{render(node.len)}]{render(node.elt)}"
    if isinstance(node, MapType):
        return f"map[{render(node.key)}]{render(node.value)}"
    if isinstance(node, Field):
        names = ", ".join(n.name for n in node.names)
        return f"{names} {render(node.type)}" if names else render(node.type)
    if isinstance(node, FuncType):
        return "func" + _signature(node)
    if isinstance(node, FuncLit):
        return f"func{_signature(node.type)} {render(node.body)}"
    if isinstance(node, BlockStmt):
        if not node.stmts:
            return "{}"
        return "{ " + "; ".join(render(s) for s in node.stmts) + " }"
    if isinstance(node, ExprStmt):
        return render(node.x)
    if isinstance(node, GoStmt):
        return "go " + render(node.call)
    if isinstance(node, DeferStmt):
        return "defer " + render(node.call)
    if isinstance(node, AssignStmt):
        lhs = ", ".join(render(e) for e in node.lhs)
        rhs = ", ".join(render(e) for e in node.rhs)
        return f"{lhs} {node.tok} {rhs}"
    if isinstance(node, IncDecStmt):
        return render(node.x) + node.tok
    if isinstance(node, ReturnStmt):
        if not node.results:
            return "return"
        return "return " + ", ".join(render(e) for e in node.results)
    if isinstance(node, IfStmt):
        head = f"{render(node.init)}; " if node.init else ""
        text = f"if {head}{render(node.cond)} {render(node.body)}"
        if node.else_ is not None:
            text += " else " + render(node.else_)
        return text
    if isinstance(node, ForStmt):
        return _render_for(node)
    if isinstance(node, RangeStmt):
        if node.key is None:
            return f"for range {render(node.x)} {render(node.body)}"
        names = render(node.key)
        if node.value is not None:
            names += ", " + render(node.value)
        return f"for {names} {node.tok} range {render(node.x)} {render(node.body)}"
    if isinstance(node, SelectStmt):
        return "select " + render(node.body)
    if isinstance(node, FuncDecl):
        recv = ""
        if node.recv:
            recv = "(" + ", ".join(render(f) for f in node.recv) + ") "
        text = f"func {recv}{node.name.name}{_signature(node.type)}"
        if node.body is not None:
            text += " " + render(node.body)
        return text
    if isinstance(node, File):
        return f"package {node.name}"
    return f"<{node.kind}>"


def _signature(ftype: FuncType) -> str:
    params = ", ".join(render(f) for f in ftype.params)
    if not ftype.results:
        return f"({params})"
    if len(ftype.results) == 1 and not ftype.results[0].names:
        return f"({params}) {render(ftype.results[0])}"
    results = ", ".join(render(f) for f in ftype.results)
    return f"({params}) ({results})"


def _render_for(loop: ForStmt) -> str:
    body = render(loop.body)
    if loop.init is None and loop.post is None:
        if loop.cond is None:
            return f"for {body}"
        return f"for {render(loop.cond)} {body}"
    return f"for {render(loop.init)}; {render(loop.cond)}; {render(loop.post)} {body}"
