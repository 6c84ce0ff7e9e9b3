"""
Fixed-width layout check for ``encoding/binary``.

``binary.Write`` can only encode values whose in-memory layout is a
statically known sequence of fixed-size numbers: sized numeric
basics, and structs and arrays built from them.
"""

from ..syntax.types import (
    Array,
    Basic,
    BasicKind,
    Interface,
    Named,
    Pointer,
    Struct,
    Type,
)

FIXED_WIDTH_KINDS = frozenset(
    {
        BasicKind.UINT8,
        BasicKind.UINT16,
        BasicKind.UINT32,
        BasicKind.UINT64,
        BasicKind.INT8,
        BasicKind.INT16,
        BasicKind.INT32,
        BasicKind.INT64,
        BasicKind.FLOAT32,
        BasicKind.FLOAT64,
        BasicKind.COMPLEX64,
        BasicKind.COMPLEX128,
        # Invalid types only come from already-erroneous input.
        BasicKind.INVALID,
    }
)


def is_binary_safe(typ: Type) -> bool:
    """Whether a value of ``typ`` has a fixed-width binary encoding.

    One level of pointer indirection is looked through, the way the
    encoder dereferences its argument. Pointers anywhere below that level
    make the type unsafe. Interfaces are accepted because their dynamic
    type is unknown statically.

    Total on any finite type graph: a named type reached again through its
    own fields cannot have a fixed size and is reported unsafe.
    """
    typ = typ.underlying()
    if isinstance(typ, Pointer):
        typ = typ.elem
    return has_fixed_layout(typ)


def has_fixed_layout(typ: Type) -> bool:
    """Like :func:`is_binary_safe` but without looking through a pointer."""
    return _fixed_width(typ, frozenset())


def _fixed_width(typ: Type, enclosing: frozenset[int]) -> bool:
    if isinstance(typ, Named):
        if id(typ) in enclosing:
            return False
        enclosing = enclosing | {id(typ)}
    typ = typ.underlying()

    if isinstance(typ, Basic):
        return typ.kind in FIXED_WIDTH_KINDS
    if isinstance(typ, Struct):
        return all(_fixed_width(f.type, enclosing) for f in typ.fields)
    if isinstance(typ, Array):
        return _fixed_width(typ.elem, enclosing)
    if isinstance(typ, Interface):
        # The dynamic type can't be determined here.
        return True
    return False
