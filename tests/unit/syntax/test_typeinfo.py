"""Unit tests for bugvet.syntax.typeinfo module."""

from bugvet.syntax.nodes import BlockStmt, CallExpr, FuncLit, FuncType, Ident, ParenExpr
from bugvet.syntax.typeinfo import Constant, ConstantKind, Func, Object, TypeInfo
from bugvet.syntax.types import Basic, BasicKind


class TestTypeInfo:
    """Tests for the type resolution index."""

    def test_type_of_through_parens(self):
        """Test that parenthesized expressions share the inner type."""
        info = TypeInfo()
        x = Ident("x")
        info.record_type(x, Basic(BasicKind.INT))
        assert info.type_of(ParenExpr(ParenExpr(x))) == Basic(BasicKind.INT)
        assert info.type_of(Ident("x")) is None

    def test_value_of(self):
        """Test constant lookup."""
        info = TypeInfo()
        lit = Ident("layout")
        info.record_type(lit, None, Constant(ConstantKind.STRING, "2006"))
        assert info.value_of(ParenExpr(lit)).value == "2006"
        assert info.type_of(lit) is None

    def test_callee_of(self):
        """Test resolving plain and selector callees."""
        info = TypeInfo()
        f = Ident("f")
        info.record_object(f, Func(name="f", full_name="main.f"))
        assert info.callee_of(CallExpr(ParenExpr(f))).full_name == "main.f"
        assert not info.callee_of(CallExpr(f)).is_method

    def test_callee_of_non_function(self):
        """Test that variables and literals have no callee."""
        info = TypeInfo()
        v = Ident("handler")
        info.record_object(v, Object(name="handler"))
        assert info.callee_of(CallExpr(v)) is None
        assert info.callee_of(CallExpr(FuncLit(FuncType(), BlockStmt()))) is None

    def test_len(self):
        """Test that both tables are counted."""
        info = TypeInfo()
        info.record_type(Ident("a"), Basic(BasicKind.BOOL))
        info.record_object(Ident("b"), Object(name="b"))
        assert len(info) == 2
