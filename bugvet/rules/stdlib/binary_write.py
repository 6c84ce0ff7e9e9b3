"""
binary.Write layout detection rule.

Detects values passed to encoding/binary.Write whose type has no
fixed-width encoding; Write returns an error for them at run time.
"""

from typing import TYPE_CHECKING

from ...analysis import has_fixed_layout, is_binary_safe, is_pkg_call
from ...syntax.nodes import CallExpr, Node
from ...syntax.types import ELEMENT_TYPES, Pointer, type_string
from ..base import BaseRule, RuleContext, Severity

if TYPE_CHECKING:
    from ..base import Finding


class BinaryWriteLayoutRule(BaseRule):
    """Detect binary.Write calls on values without a fixed-size layout.

    The value's type is unwrapped the way the encoder walks it: through
    one pointer, then into the element of a slice or array, before the
    layout is checked.
    """

    @property
    def rule_id(self) -> str:
        return "STDLIB.BINARY_WRITE_LAYOUT"

    @property
    def name(self) -> str:
        return "binary.Write Without Fixed Layout"

    @property
    def category(self) -> str:
        return "stdlib"

    @property
    def default_severity(self) -> Severity:
        return Severity.HIGH

    @property
    def node_types(self) -> tuple[type[Node], ...]:
        return (CallExpr,)

    @property
    def description(self) -> str:
        return (
            "Detects binary.Write calls whose data argument contains strings, "
            "slices, maps, pointers or other types without a fixed size."
        )

    def check(self, node: Node, context: RuleContext) -> list["Finding"]:
        if len(node.args) != 3:
            return []
        if not is_pkg_call(node, context.info, "encoding/binary", "Write"):
            return []

        arg = node.args[2]
        original = context.info.type_of(arg)
        if original is None:
            return []

        typ = original.underlying()
        if isinstance(typ, Pointer):
            typ = typ.elem.underlying()
        if isinstance(typ, ELEMENT_TYPES) and not isinstance(typ, Pointer):
            # The element is encoded in place; no further pointer is followed.
            safe = has_fixed_layout(typ.elem)
        else:
            safe = is_binary_safe(original)
        if safe:
            return []

        type_name = type_string(original)
        return [
            self._create_finding(
                message=f"type {type_name} cannot be used with binary.Write",
                node=arg,
                context=context,
                remediation_hints=[
                    "Use only fixed-size numbers, and structs or arrays of them",
                    "Encode variable-length fields such as strings separately",
                ],
                data={"type": type_name},
            )
        ]
