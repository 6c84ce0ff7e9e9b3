"""
Structural model of resolved Go types.

A closed set of variants mirroring ``go/types``: Basic, Struct, Array,
Slice, Pointer, Map, Chan, Signature, Interface and Named. Named types
carry a (possibly late-bound) underlying type so that recursive
declarations such as ``type List struct{ next *List }`` can be built.
"""

from dataclasses import dataclass, field
from enum import Enum


class BasicKind(Enum):
    """Basic type kinds, valued by their Go spelling."""

    INVALID = "invalid type"
    BOOL = "bool"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UINTPTR = "uintptr"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    COMPLEX64 = "complex64"
    COMPLEX128 = "complex128"
    STRING = "string"
    UNSAFE_POINTER = "unsafe.Pointer"
    UNTYPED_BOOL = "untyped bool"
    UNTYPED_INT = "untyped int"
    UNTYPED_RUNE = "untyped rune"
    UNTYPED_FLOAT = "untyped float"
    UNTYPED_STRING = "untyped string"
    UNTYPED_NIL = "untyped nil"


# Go aliases resolved to their canonical kind.
_BASIC_ALIASES = {
    "byte": BasicKind.UINT8,
    "rune": BasicKind.INT32,
    "invalid": BasicKind.INVALID,
}


class Type:
    """Base class for all type variants."""

    def underlying(self) -> "Type":
        return self

    def __str__(self) -> str:
        return type_string(self)


@dataclass(frozen=True)
class Basic(Type):
    kind: BasicKind

    @classmethod
    def from_name(cls, name: str) -> "Basic":
        """Build a Basic type from its Go spelling; raises ValueError if unknown."""
        if name in _BASIC_ALIASES:
            return cls(_BASIC_ALIASES[name])
        return cls(BasicKind(name))


@dataclass(frozen=True)
class Var:
    """A struct field or signature parameter."""

    name: str
    type: Type
    embedded: bool = False


@dataclass(frozen=True)
class Struct(Type):
    fields: tuple[Var, ...] = ()


@dataclass(frozen=True)
class Array(Type):
    elem: Type
    length: int


@dataclass(frozen=True)
class Slice(Type):
    elem: Type


@dataclass(frozen=True)
class Pointer(Type):
    elem: Type


@dataclass(frozen=True)
class Map(Type):
    key: Type
    elem: Type


@dataclass(frozen=True)
class Chan(Type):
    elem: Type
    dir: str = "both"  # both | send | recv


@dataclass(frozen=True)
class Signature(Type):
    params: tuple[Var, ...] = ()
    results: tuple[Var, ...] = ()
    variadic: bool = False


@dataclass(frozen=True)
class Interface(Type):
    methods: tuple[str, ...] = ()


@dataclass(eq=False)
class Named(Type):
    """A defined type such as ``sync.WaitGroup``.

    ``pkg`` is the import path of the declaring package (empty for
    predeclared or local types). The underlying type may be bound after
    construction with :meth:`bind`.
    """

    pkg: str
    name: str
    origin: Type | None = field(default=None, repr=False)

    def bind(self, underlying: Type) -> None:
        self.origin = underlying

    def underlying(self) -> Type:
        seen: set[int] = set()
        current: Type | None = self
        while isinstance(current, Named):
            if id(current) in seen:
                return Basic(BasicKind.INVALID)
            seen.add(id(current))
            current = current.origin
        if current is None:
            return Basic(BasicKind.INVALID)
        return current

    @property
    def qualified_name(self) -> str:
        return f"{self.pkg}.{self.name}" if self.pkg else self.name

    def __hash__(self) -> int:
        return id(self)


# Types exposing Go's single-element accessor, ``Elem() types.Type``.
ELEMENT_TYPES = (Pointer, Array, Slice, Map, Chan)


def type_string(typ: Type) -> str:
    """Render a type the way ``types.Type.String()`` does."""
    if isinstance(typ, Named):
        return typ.qualified_name
    if isinstance(typ, Basic):
        return typ.kind.value
    if isinstance(typ, Pointer):
        return "*" + type_string(typ.elem)
    if isinstance(typ, Slice):
        return "[]" + type_string(typ.elem)
    if isinstance(typ, Array):
        return f"[{typ.length}]{type_string(typ.elem)}"
    if isinstance(typ, Map):
        return f"map[{type_string(typ.key)}]{type_string(typ.elem)}"
    if isinstance(typ, Chan):
        prefix = {"send": "chan<- ", "recv": "<-chan "}.get(typ.dir, "chan ")
        return prefix + type_string(typ.elem)
    if isinstance(typ, Struct):
        parts = []
        for f in typ.fields:
            if f.embedded:
                parts.append(type_string(f.type))
            else:
                parts.append(f"{f.name} {type_string(f.type)}")
        return "struct{" + "; ".join(parts) + "}"
    if isinstance(typ, Interface):
        return "interface{" + "; ".join(typ.methods) + "}"
    if isinstance(typ, Signature):
        params = ", ".join(_param_string(p) for p in typ.params)
        if typ.variadic and typ.params:
            last = typ.params[-1]
            elem = last.type.elem if isinstance(last.type, Slice) else last.type
            head = [_param_string(p) for p in typ.params[:-1]]
            tail = f"{last.name} ...{type_string(elem)}".strip()
            params = ", ".join(head + [tail])
        result = ""
        if len(typ.results) == 1 and not typ.results[0].name:
            result = " " + type_string(typ.results[0].type)
        elif typ.results:
            result = " (" + ", ".join(_param_string(r) for r in typ.results) + ")"
        return f"func({params}){result}"
    return type(typ).__name__


def _param_string(var: Var) -> str:
    if var.name:
        return f"{var.name} {type_string(var.type)}"
    return type_string(var.type)
