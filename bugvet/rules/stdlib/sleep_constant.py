"""
Suspicious time.Sleep constant detection rule.

Detects time.Sleep called with a small bare integer, which sleeps for that
many nanoseconds rather than the seconds or milliseconds intended.
"""

from typing import TYPE_CHECKING

from ...analysis import extract_constant, is_pkg_call
from ...syntax.nodes import CallExpr, Node
from ...syntax.typeinfo import ConstantKind
from ..base import BaseRule, RuleContext, Severity

if TYPE_CHECKING:
    from ..base import Finding


class SleepConstantRule(BaseRule):
    """Detect time.Sleep(n) with 0 < n <= maxSuspicious.

    Zero is a legitimate yield, and larger values are assumed to be
    deliberate nanosecond counts.
    """

    @property
    def rule_id(self) -> str:
        return "STDLIB.SLEEP_CONSTANT"

    @property
    def name(self) -> str:
        return "Suspicious Sleep Duration"

    @property
    def category(self) -> str:
        return "stdlib"

    @property
    def default_severity(self) -> Severity:
        return Severity.MEDIUM

    @property
    def node_types(self) -> tuple[type[Node], ...]:
        return (CallExpr,)

    @property
    def parameters(self) -> dict:
        return {"maxSuspicious": 120}

    def check(self, node: Node, context: RuleContext) -> list["Finding"]:
        if len(node.args) != 1:
            return []
        if not is_pkg_call(node, context.info, "time", "Sleep"):
            return []

        arg = node.args[0]
        constant = extract_constant(arg, context.info)
        if constant is None or constant.kind is not ConstantKind.INT:
            return []
        n = constant.value
        if n <= 0 or n > self.parameter(context, "maxSuspicious"):
            return []

        suggestion = "time.Nanosecond" if n == 1 else f"{n} * time.Nanosecond"
        explicit = f"time.Sleep({suggestion})"
        return [
            self._create_finding(
                message=(
                    f"sleeping for {n} nanoseconds is probably a bug. "
                    f"Be explicit if it isn't: {explicit}"
                ),
                node=arg,
                context=context,
                remediation_hints=[
                    f"Use time.Sleep({n} * time.Second) or "
                    f"time.Sleep({n} * time.Millisecond) if that was meant"
                ],
                data={"nanoseconds": n, "explicit": explicit},
            )
        ]
