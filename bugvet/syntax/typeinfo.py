"""
Type resolution index supplied alongside the syntax tree.

TypeInfo maps expression nodes (by identity) to their resolved static type
and, when the type checker folded one, their constant value. Identifiers
that refer to functions or methods map to a :class:`Func` object carrying
the fully qualified name in ``go/types`` ``FullName()`` form, e.g.
``regexp.Compile`` or ``(*sync.WaitGroup).Add``.

The index is populated once by the loader (or a test fixture) and only
read by the rules.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .nodes import CallExpr, Expr, Ident, Node, SelectorExpr, unparen
from .types import Type


class ConstantKind(Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    OTHER = "other"


@dataclass(frozen=True)
class Constant:
    """A compile-time constant value."""

    kind: ConstantKind
    value: Any


@dataclass(frozen=True)
class TypeAndValue:
    type: Type | None = None
    value: Constant | None = None


@dataclass(frozen=True)
class Object:
    """A resolved named entity."""

    name: str


@dataclass(frozen=True)
class Func(Object):
    """A resolved function or method.

    ``full_name`` follows ``(*types.Func).FullName()``: package-qualified
    for functions, receiver-qualified for methods.
    """

    full_name: str = ""

    @property
    def is_method(self) -> bool:
        return self.full_name.startswith("(")


class TypeInfo:
    """Read-mostly index of resolved types, constant values and objects."""

    def __init__(self) -> None:
        self._types: dict[Node, TypeAndValue] = {}
        self._objects: dict[Ident, Object] = {}

    def record_type(
        self, expr: Node, typ: Type | None, value: Constant | None = None
    ) -> None:
        self._types[expr] = TypeAndValue(type=typ, value=value)

    def record_object(self, ident: Ident, obj: Object) -> None:
        self._objects[ident] = obj

    def type_of(self, expr: Node) -> Type | None:
        """Resolved static type of ``expr``, or None if unknown."""
        tv = self._types.get(expr)
        if tv is not None and tv.type is not None:
            return tv.type
        if isinstance(expr, Expr) and unparen(expr) is not expr:
            return self.type_of(unparen(expr))
        return None

    def value_of(self, expr: Node) -> Constant | None:
        """Folded constant value of ``expr``, or None if not constant."""
        tv = self._types.get(expr)
        if tv is not None and tv.value is not None:
            return tv.value
        if isinstance(expr, Expr) and unparen(expr) is not expr:
            return self.value_of(unparen(expr))
        return None

    def object_of(self, ident: Ident) -> Object | None:
        return self._objects.get(ident)

    def callee_of(self, call: CallExpr) -> Func | None:
        """Resolve the function or method a call expression invokes."""
        fun = unparen(call.fun)
        if isinstance(fun, SelectorExpr):
            ident = fun.sel
        elif isinstance(fun, Ident):
            ident = fun
        else:
            return None
        obj = self.object_of(ident)
        return obj if isinstance(obj, Func) else None

    def __len__(self) -> int:
        return len(self._types) + len(self._objects)
