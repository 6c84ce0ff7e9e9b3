"""
Empty infinite loop detection rule.
"""

from typing import TYPE_CHECKING

from ...syntax.nodes import ForStmt, Node
from ..base import BaseRule, RuleContext, Severity

if TYPE_CHECKING:
    from ..base import Finding


class EmptyInfiniteLoopRule(BaseRule):
    """Detect ``for {}``, which burns a CPU instead of blocking."""

    @property
    def rule_id(self) -> str:
        return "CONCURRENCY.EMPTY_INFINITE_LOOP"

    @property
    def name(self) -> str:
        return "Empty Infinite Loop"

    @property
    def category(self) -> str:
        return "concurrency"

    @property
    def default_severity(self) -> Severity:
        return Severity.MEDIUM

    @property
    def node_types(self) -> tuple[type[Node], ...]:
        return (ForStmt,)

    def check(self, node: Node, context: RuleContext) -> list["Finding"]:
        if node.init is not None or node.cond is not None or node.body.stmts:
            return []
        return [
            self._create_finding(
                message=(
                    "should not use an infinite empty loop. "
                    "It will spin. Consider select{} instead."
                ),
                node=node,
                context=context,
                remediation_hints=["Block with select{} or wait on a channel"],
            )
        ]
