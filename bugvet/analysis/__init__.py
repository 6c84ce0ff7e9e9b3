"""Validators and helpers shared by the rules."""

from .calls import calls_any, is_pkg_call, split_entry_point
from .constants import extract_constant, int_literal, string_constant, unquote
from .gotemplate import TemplateSyntaxError
from .layout import has_fixed_layout, is_binary_safe
from .regex import check_regex
from .timelayout import TimeParseError, validate_layout

__all__ = [
    "TemplateSyntaxError",
    "TimeParseError",
    "calls_any",
    "check_regex",
    "extract_constant",
    "has_fixed_layout",
    "int_literal",
    "is_binary_safe",
    "is_pkg_call",
    "split_entry_point",
    "string_constant",
    "unquote",
    "validate_layout",
]
