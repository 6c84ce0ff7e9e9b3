"""Unit tests for bugvet.analysis.layout module."""

import pytest

from bugvet.analysis.layout import has_fixed_layout, is_binary_safe
from bugvet.syntax.types import (
    Array,
    Basic,
    BasicKind,
    Chan,
    Interface,
    Map,
    Named,
    Pointer,
    Slice,
    Struct,
    Var,
)

INT32 = Basic(BasicKind.INT32)
UINT8 = Basic(BasicKind.UINT8)
FLOAT64 = Basic(BasicKind.FLOAT64)


def struct(*types) -> Struct:
    return Struct(tuple(Var(f"F{i}", t) for i, t in enumerate(types)))


class TestIsBinarySafe:
    """Tests for fixed-width layout detection."""

    @pytest.mark.parametrize(
        "typ",
        [
            INT32,
            FLOAT64,
            Basic(BasicKind.COMPLEX128),
            Array(UINT8, 16),
            struct(INT32, Array(FLOAT64, 3)),
            Pointer(struct(INT32)),
            Interface(),
            Basic(BasicKind.INVALID),
        ],
    )
    def test_safe(self, typ):
        """Test fixed-width types."""
        assert is_binary_safe(typ)

    @pytest.mark.parametrize(
        "typ",
        [
            Basic(BasicKind.INT),
            Basic(BasicKind.UINT),
            Basic(BasicKind.UINTPTR),
            Basic(BasicKind.BOOL),
            Basic(BasicKind.STRING),
            Slice(UINT8),
            Map(INT32, INT32),
            Chan(INT32),
            struct(INT32, Basic(BasicKind.STRING)),
            struct(Pointer(INT32)),
            Pointer(Pointer(INT32)),
            Array(Basic(BasicKind.INT), 4),
        ],
    )
    def test_unsafe(self, typ):
        """Test types without a fixed width."""
        assert not is_binary_safe(typ)

    def test_named_struct(self):
        """Test that named types are judged by their underlying type."""
        header = Named("main", "Header")
        header.bind(struct(Basic(BasicKind.UINT32), Array(UINT8, 4)))
        assert is_binary_safe(header)
        assert is_binary_safe(Pointer(header))

    def test_named_pointer(self):
        """Test that a named pointer type is looked through once."""
        ptr = Named("main", "HeaderPtr")
        ptr.bind(Pointer(INT32))
        assert is_binary_safe(ptr)

    def test_recursive_type(self):
        """Test that a type containing itself is unsafe and terminates."""
        node = Named("main", "Node")
        node.bind(Struct((Var("children", Array(node, 2)),)))
        assert not is_binary_safe(node)


class TestHasFixedLayout:
    """Tests for has_fixed_layout."""

    def test_pointer_not_unwrapped(self):
        """Test that a top-level pointer is not looked through."""
        assert not has_fixed_layout(Pointer(INT32))
        assert has_fixed_layout(INT32)
