"""
WaitGroup.Add race detection rule.

Detects goroutines whose first statement is a call to (*sync.WaitGroup).Add.
The matching Wait may run before the goroutine is scheduled and return
early, so Add has to happen before the go statement.
"""

from typing import TYPE_CHECKING

from ...syntax.nodes import (
    CallExpr,
    ExprStmt,
    FuncLit,
    GoStmt,
    Node,
    SelectorExpr,
    unparen,
)
from ..base import BaseRule, RuleContext, Severity

if TYPE_CHECKING:
    from ..base import Finding


class WaitGroupAddRaceRule(BaseRule):
    """Detect ``go func() { wg.Add(1); ... }()``.

    Only the first statement of a function literal is inspected.
    """

    ADD_METHOD = "(*sync.WaitGroup).Add"

    @property
    def rule_id(self) -> str:
        return "CONCURRENCY.WAITGROUP_ADD_RACE"

    @property
    def name(self) -> str:
        return "WaitGroup.Add Inside Goroutine"

    @property
    def category(self) -> str:
        return "concurrency"

    @property
    def default_severity(self) -> Severity:
        return Severity.HIGH

    @property
    def node_types(self) -> tuple[type[Node], ...]:
        return (GoStmt,)

    def check(self, node: Node, context: RuleContext) -> list["Finding"]:
        fn = unparen(node.call.fun)
        if not isinstance(fn, FuncLit) or not fn.body.stmts:
            return []

        stmt = fn.body.stmts[0]
        if not isinstance(stmt, ExprStmt):
            return []
        call = unparen(stmt.x)
        if not isinstance(call, CallExpr):
            return []
        sel = unparen(call.fun)
        if not isinstance(sel, SelectorExpr):
            return []

        callee = context.info.callee_of(call)
        if callee is None or callee.full_name != self.ADD_METHOD:
            return []

        rendered = context.render(stmt)
        return [
            self._create_finding(
                message=f"should call {rendered} before starting the goroutine to avoid a race",
                node=sel,
                context=context,
                remediation_hints=[f"Move {rendered} above the go statement"],
                data={"statement": rendered},
            )
        ]
