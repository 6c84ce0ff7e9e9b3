"""
Invalid time layout detection rule.
"""

from typing import TYPE_CHECKING

from ...analysis import TimeParseError, extract_constant, is_pkg_call, validate_layout
from ...syntax.nodes import CallExpr, Node
from ...syntax.typeinfo import ConstantKind
from ..base import BaseRule, RuleContext, Severity

if TYPE_CHECKING:
    from ..base import Finding


class InvalidTimeLayoutRule(BaseRule):
    """Detect time.Parse layouts that do not describe a valid time.

    A correct layout, once ``_`` and ``Z`` are normalized, parses its own
    text; anything else has a misspelled reference-time element.
    """

    @property
    def rule_id(self) -> str:
        return "LITERALS.INVALID_TIME_LAYOUT"

    @property
    def name(self) -> str:
        return "Invalid Time Layout"

    @property
    def category(self) -> str:
        return "literals"

    @property
    def default_severity(self) -> Severity:
        return Severity.HIGH

    @property
    def node_types(self) -> tuple[type[Node], ...]:
        return (CallExpr,)

    def check(self, node: Node, context: RuleContext) -> list["Finding"]:
        if len(node.args) != 2:
            return []
        if not is_pkg_call(node, context.info, "time", "Parse"):
            return []

        arg = node.args[0]
        constant = extract_constant(arg, context.info)
        if constant is None or constant.kind is not ConstantKind.STRING:
            return []
        layout = constant.value

        try:
            validate_layout(layout)
        except TimeParseError as e:
            return [
                self._create_finding(
                    message=str(e),
                    node=arg,
                    context=context,
                    remediation_hints=[
                        "Layouts are written with the reference time "
                        "Mon Jan 2 15:04:05 MST 2006"
                    ],
                    data={"layout": layout},
                )
            ]
        return []
