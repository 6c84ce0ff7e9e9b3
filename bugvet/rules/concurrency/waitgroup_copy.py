"""
WaitGroup copy detection rule.
"""

from typing import TYPE_CHECKING

from ...syntax.nodes import FuncType, Node
from ...syntax.types import type_string
from ..base import BaseRule, RuleContext, Severity

if TYPE_CHECKING:
    from ..base import Finding


class WaitGroupCopyRule(BaseRule):
    """Detect parameters of type sync.WaitGroup.

    A copied WaitGroup counts independently of the original, so Done on
    the copy never releases the caller's Wait.
    """

    WAITGROUP = "sync.WaitGroup"

    @property
    def rule_id(self) -> str:
        return "CONCURRENCY.WAITGROUP_COPY"

    @property
    def name(self) -> str:
        return "WaitGroup Passed By Value"

    @property
    def category(self) -> str:
        return "concurrency"

    @property
    def default_severity(self) -> Severity:
        return Severity.HIGH

    @property
    def node_types(self) -> tuple[type[Node], ...]:
        return (FuncType,)

    def check(self, node: Node, context: RuleContext) -> list["Finding"]:
        findings = []
        for param in node.params:
            typ = context.info.type_of(param.type)
            if typ is None or type_string(typ) != self.WAITGROUP:
                continue
            # Unnamed parameters still count once.
            for target in param.names or (param.type,):
                findings.append(
                    self._create_finding(
                        message="should pass sync.WaitGroup by pointer",
                        node=target,
                        context=context,
                        remediation_hints=["Declare the parameter as *sync.WaitGroup"],
                    )
                )
        return findings
