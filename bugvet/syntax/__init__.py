"""
Program representation consumed by the rules.

The syntax tree and type information are computed by an external Go front
end; this package models them and loads them from JSON dumps.
"""

from .loader import DUMP_VERSION, load_dump, load_dump_data
from .nodes import Node, Position, iter_children, walk
from .render import render
from .source import SourceFile
from .typeinfo import Constant, ConstantKind, Func, TypeInfo
from .types import Type, type_string

__all__ = [
    "DUMP_VERSION",
    "Constant",
    "ConstantKind",
    "Func",
    "Node",
    "Position",
    "SourceFile",
    "Type",
    "TypeInfo",
    "iter_children",
    "load_dump",
    "load_dump_data",
    "render",
    "type_string",
    "walk",
]
