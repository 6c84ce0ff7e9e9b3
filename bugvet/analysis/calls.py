"""Call-target matching shared by the rules."""

from collections.abc import Iterable

from ..syntax.nodes import CallExpr, Ident, SelectorExpr, unparen
from ..syntax.typeinfo import TypeInfo


def split_entry_point(entry_point: str) -> tuple[str, str]:
    """Split ``"encoding/binary.Write"`` into ``("encoding/binary", "Write")``."""
    path, _, name = entry_point.rpartition(".")
    return path, name


def is_pkg_call(call: CallExpr, info: TypeInfo, pkg_path: str, name: str) -> bool:
    """Whether ``call`` invokes the package-level function ``pkg_path.name``.

    The resolved callee is authoritative when TypeInfo has one. Otherwise
    the call is matched syntactically as ``<pkg>.<name>(...)`` where
    ``<pkg>`` is the last element of the import path.
    """
    callee = info.callee_of(call)
    if callee is not None:
        return callee.full_name == f"{pkg_path}.{name}"
    fun = unparen(call.fun)
    if not isinstance(fun, SelectorExpr) or not isinstance(fun.x, Ident):
        return False
    return fun.x.name == pkg_path.rsplit("/", 1)[-1] and fun.sel.name == name


def calls_any(call: CallExpr, info: TypeInfo, entry_points: Iterable[str]) -> bool:
    """Whether ``call`` invokes any of the given ``path.Func`` entry points."""
    for entry_point in entry_points:
        pkg_path, name = split_entry_point(entry_point)
        if is_pkg_call(call, info, pkg_path, name):
            return True
    return False
