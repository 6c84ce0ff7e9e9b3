"""
Invalid template detection rule.

Detects constant template sources passed to Parse on a text/template or
html/template Template that the template parser would reject.
"""

from typing import TYPE_CHECKING

from ...analysis import TemplateSyntaxError, extract_constant
from ...analysis.gotemplate import parse as parse_template
from ...syntax.nodes import CallExpr, Node, SelectorExpr, unparen
from ...syntax.typeinfo import ConstantKind
from ...syntax.types import type_string
from ..base import BaseRule, RuleContext, Severity

if TYPE_CHECKING:
    from ..base import Finding


class InvalidTemplateRule(BaseRule):
    """Detect template sources that fail to parse.

    The dialect follows the receiver's static type. Only errors whose
    text contains ``reportSubstring`` are reported; parse errors such as
    undefined functions depend on a Funcs call the rule cannot see.
    """

    DIALECTS = {
        "*text/template.Template": "text",
        "*html/template.Template": "html",
    }

    @property
    def rule_id(self) -> str:
        return "LITERALS.INVALID_TEMPLATE"

    @property
    def name(self) -> str:
        return "Invalid Template"

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
    def parameters(self) -> dict:
        return {"reportSubstring": "unexpected"}

    @property
    def description(self) -> str:
        return (
            "Detects constant template text passed to (*template.Template).Parse "
            "that text/template or html/template cannot parse."
        )

    def check(self, node: Node, context: RuleContext) -> list["Finding"]:
        if len(node.args) != 1:
            return []
        fun = unparen(node.fun)
        if not isinstance(fun, SelectorExpr) or fun.sel.name != "Parse":
            return []

        receiver = context.info.type_of(fun.x)
        if receiver is None:
            return []
        dialect = self.DIALECTS.get(type_string(receiver))
        if dialect is None:
            return []

        arg = node.args[0]
        constant = extract_constant(arg, context.info)
        if constant is None or constant.kind is not ConstantKind.STRING:
            return []
        source = constant.value

        try:
            parse_template(source, dialect)
        except TemplateSyntaxError as e:
            if self.parameter(context, "reportSubstring") not in e.message:
                return []
            return [
                self._create_finding(
                    message=e.message,
                    node=arg,
                    context=context,
                    remediation_hints=["Check the {{ }} actions for balance and syntax"],
                    data={"dialect": dialect, "template_line": e.line},
                )
            ]
        return []
