"""
Invalid regular expression detection rule.

Detects constant patterns handed to regexp.Compile or regexp.MustCompile
that the regexp package would reject.
"""

from typing import TYPE_CHECKING

from ...analysis import calls_any, check_regex, extract_constant
from ...syntax.nodes import CallExpr, Node
from ...syntax.typeinfo import ConstantKind
from ..base import BaseRule, RuleContext, Severity

if TYPE_CHECKING:
    from ..base import Finding


class InvalidRegexRule(BaseRule):
    """Detect regexp.Compile calls on patterns that cannot compile.

    MustCompile panics at start-up on such a pattern and Compile always
    returns an error, so a constant bad pattern is never intended.
    """

    ENTRY_POINTS = ("regexp.Compile", "regexp.MustCompile")

    @property
    def rule_id(self) -> str:
        return "LITERALS.INVALID_REGEX"

    @property
    def name(self) -> str:
        return "Invalid Regular Expression"

    @property
    def category(self) -> str:
        return "literals"

    @property
    def default_severity(self) -> Severity:
        return Severity.HIGH

    @property
    def node_types(self) -> tuple[type[Node], ...]:
        return (CallExpr,)

    @property
    def description(self) -> str:
        return (
            "Detects constant regular expressions passed to regexp.Compile "
            "or regexp.MustCompile that fail to compile."
        )

    def check(self, node: Node, context: RuleContext) -> list["Finding"]:
        if len(node.args) != 1:
            return []
        if not calls_any(node, context.info, self.ENTRY_POINTS):
            return []

        arg = node.args[0]
        constant = extract_constant(arg, context.info)
        if constant is None or constant.kind is not ConstantKind.STRING:
            return []
        pattern = constant.value

        error = check_regex(pattern)
        if error is None:
            return []

        return [
            self._create_finding(
                message=f"error parsing regexp: {error}",
                node=arg,
                context=context,
                remediation_hints=[
                    "Fix the pattern syntax; Go's regexp package uses RE2 syntax",
                    "RE2 has no lookarounds or backreferences",
                ],
                data={"pattern": pattern},
            )
        ]
