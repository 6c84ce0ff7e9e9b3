"""
Loader for syntax/type dumps produced by the external Go front end.

A dump is a JSON document describing one Go file::

    {
      "version": 1,
      "path": "cmd/server/main.go",
      "package": "main",
      "types": {
        "wg": {"kind": "named", "pkg": "sync", "name": "WaitGroup",
               "underlying": {"kind": "struct", "fields": []}}
      },
      "root": {"kind": "File", "name": "main", "decls": [...]}
    }

Nodes are objects tagged with ``kind`` whose keys mirror the dataclass
fields in :mod:`bugvet.syntax.nodes` (``else`` for ``IfStmt.else_``).
Three extra keys carry type-checker output and end up in TypeInfo:

- ``typeOf``: a type reference (inline type object, basic type name, or a
  key into the ``types`` table),
- ``constant``: ``{"kind": "string" | "int" | ..., "value": ...}``,
- ``object``: on identifiers, ``{"kind": "func", "name": ...,
  "fullName": ...}``.

``pos`` is ``[line, column]``.
"""

import json
import logging
from dataclasses import MISSING, fields
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import DumpLoadError
from .nodes import NODE_TYPES, Node, Opaque, Position
from .source import SourceFile
from .typeinfo import Constant, ConstantKind, Func, Object, TypeInfo
from .types import (
    Array,
    Basic,
    Chan,
    Interface,
    Map,
    Named,
    Pointer,
    Signature,
    Slice,
    Struct,
    Type,
    Var,
)

logger = logging.getLogger(__name__)

DUMP_VERSION = 1

_ANNOTATION_KEYS = frozenset({"kind", "pos", "typeOf", "constant", "object"})


class DumpDocument(BaseModel):
    """Envelope of a dump file, validated before the tree is decoded."""

    model_config = ConfigDict(extra="ignore")

    version: int = DUMP_VERSION
    path: str
    package: str = ""
    types: dict[str, dict[str, Any]] = Field(default_factory=dict)
    root: dict[str, Any]

    @field_validator("version")
    @classmethod
    def _supported_version(cls, value: int) -> int:
        if value != DUMP_VERSION:
            raise ValueError(
                f"unsupported dump version {value} (expected {DUMP_VERSION})"
            )
        return value

    @field_validator("root")
    @classmethod
    def _root_has_kind(cls, value: dict[str, Any]) -> dict[str, Any]:
        if "kind" not in value:
            raise ValueError("root node has no 'kind'")
        return value


class _TypeDecoder:
    """Decodes type references, resolving the shared type table lazily."""

    def __init__(self, table: dict[str, dict[str, Any]]):
        self._table = table
        self._cache: dict[str, Type] = {}
        self._resolving: set[str] = set()

    def decode(self, ref: Any) -> Type:
        if isinstance(ref, str):
            return self._decode_ref(ref)
        if isinstance(ref, dict):
            return self._decode_spec(ref)
        raise ValueError(f"invalid type reference: {ref!r}")

    def _decode_ref(self, ref: str) -> Type:
        if ref in self._cache:
            return self._cache[ref]
        if ref in self._table:
            if ref in self._resolving:
                raise ValueError(f"type {ref!r} refers to itself without a named type")
            spec = self._table[ref]
            if spec.get("kind") == "named":
                # Register before binding so recursive references resolve.
                named = Named(pkg=spec.get("pkg", ""), name=spec.get("name", ref))
                self._cache[ref] = named
                if "underlying" in spec:
                    named.bind(self.decode(spec["underlying"]))
                return named
            self._resolving.add(ref)
            try:
                typ = self._decode_spec(spec)
            finally:
                self._resolving.discard(ref)
            self._cache[ref] = typ
            return typ
        try:
            return Basic.from_name(ref)
        except ValueError:
            raise ValueError(f"unknown type {ref!r}") from None

    def _decode_spec(self, spec: dict[str, Any]) -> Type:
        kind = spec.get("kind")
        if kind == "basic":
            return Basic.from_name(spec["name"])
        if kind == "pointer":
            return Pointer(self.decode(spec["elem"]))
        if kind == "slice":
            return Slice(self.decode(spec["elem"]))
        if kind == "array":
            return Array(self.decode(spec["elem"]), int(spec.get("len", 0)))
        if kind == "map":
            return Map(self.decode(spec["key"]), self.decode(spec["elem"]))
        if kind == "chan":
            return Chan(self.decode(spec["elem"]), spec.get("dir", "both"))
        if kind == "struct":
            return Struct(tuple(self._var(f) for f in spec.get("fields", [])))
        if kind == "interface":
            return Interface(tuple(spec.get("methods", [])))
        if kind == "signature":
            return Signature(
                params=tuple(self._var(p) for p in spec.get("params", [])),
                results=tuple(self._var(r) for r in spec.get("results", [])),
                variadic=bool(spec.get("variadic", False)),
            )
        if kind == "named":
            named = Named(pkg=spec.get("pkg", ""), name=spec["name"])
            if "underlying" in spec:
                named.bind(self.decode(spec["underlying"]))
            return named
        raise ValueError(f"unknown type kind {kind!r}")

    def _var(self, spec: dict[str, Any]) -> Var:
        return Var(
            name=spec.get("name", ""),
            type=self.decode(spec["type"]),
            embedded=bool(spec.get("embedded", False)),
        )


class _TreeDecoder:
    """Decodes the node tree and fills a TypeInfo from its annotations."""

    def __init__(self, types: _TypeDecoder):
        self._types = types
        self.info = TypeInfo()
        self.opaque_kinds: set[str] = set()

    def decode(self, data: dict[str, Any]) -> Node:
        kind = data.get("kind")
        cls = NODE_TYPES.get(kind) if isinstance(kind, str) else None
        if cls is None or cls is Opaque:
            node: Node = self._decode_opaque(data)
        else:
            node = self._decode_known(cls, data)
        self._annotate(node, data)
        return node

    def _decode_known(self, cls: type[Node], data: dict[str, Any]) -> Node:
        kwargs: dict[str, Any] = {"pos": _position(data.get("pos"))}
        for f in fields(cls):
            if f.name == "pos":
                continue
            key = f.name.rstrip("_")
            if key not in data:
                if f.default is MISSING and f.default_factory is MISSING:
                    raise ValueError(f"{cls.__name__} node is missing {key!r}")
                continue
            kwargs[f.name] = self._value(data[key])
        return cls(**kwargs)

    def _decode_opaque(self, data: dict[str, Any]) -> Node:
        kind = str(data.get("kind", "?"))
        self.opaque_kinds.add(kind)
        children: list[Node] = []
        for key, value in data.items():
            if key in _ANNOTATION_KEYS:
                continue
            children.extend(self._nested_nodes(value))
        return Opaque(
            original_kind=kind,
            children=tuple(children),
            pos=_position(data.get("pos")),
        )

    def _nested_nodes(self, value: Any) -> list[Node]:
        if isinstance(value, dict) and "kind" in value:
            return [self.decode(value)]
        if isinstance(value, list):
            nodes: list[Node] = []
            for item in value:
                nodes.extend(self._nested_nodes(item))
            return nodes
        return []

    def _value(self, raw: Any) -> Any:
        if isinstance(raw, dict) and "kind" in raw:
            return self.decode(raw)
        if isinstance(raw, list):
            return tuple(self._value(item) for item in raw)
        return raw

    def _annotate(self, node: Node, data: dict[str, Any]) -> None:
        typ = self._types.decode(data["typeOf"]) if "typeOf" in data else None
        value = _constant(data.get("constant"))
        if typ is not None or value is not None:
            self.info.record_type(node, typ, value)
        obj = data.get("object")
        if obj is not None:
            self.info.record_object(node, _object(obj))


def _position(raw: Any) -> Position | None:
    if raw is None:
        return None
    if isinstance(raw, dict):
        return Position(int(raw.get("line", 0)), int(raw.get("column", 0)))
    if isinstance(raw, list | tuple) and raw:
        column = int(raw[1]) if len(raw) > 1 else 0
        return Position(int(raw[0]), column)
    raise ValueError(f"invalid position {raw!r}")


def _constant(raw: Any) -> Constant | None:
    if raw is None:
        return None
    try:
        kind = ConstantKind(raw.get("kind", "other"))
    except ValueError:
        kind = ConstantKind.OTHER
    return Constant(kind=kind, value=raw.get("value"))


def _object(raw: Any) -> Object:
    if isinstance(raw, str):
        # Shorthand: a bare full name denotes a function.
        return Func(name=raw.rsplit(".", 1)[-1], full_name=raw)
    if raw.get("kind") == "func":
        full_name = raw.get("fullName", raw.get("name", ""))
        return Func(name=raw.get("name", full_name.rsplit(".", 1)[-1]), full_name=full_name)
    return Object(name=raw.get("name", ""))


def load_dump_data(data: dict[str, Any], origin: str | Path = "<memory>") -> SourceFile:
    """Decode an already-parsed dump document.

    Args:
        data: The JSON document as a dict.
        origin: Where the document came from, for error messages.

    Returns:
        SourceFile with its tree and fully populated TypeInfo.

    Raises:
        DumpLoadError: If the document is malformed.
    """
    try:
        document = DumpDocument.model_validate(data)
    except ValidationError as e:
        raise DumpLoadError(origin, _summarize_validation(e)) from e

    decoder = _TreeDecoder(_TypeDecoder(document.types))
    try:
        root = decoder.decode(document.root)
    except (ValueError, TypeError, KeyError) as e:
        raise DumpLoadError(origin, str(e)) from e

    if decoder.opaque_kinds:
        logger.debug(
            f"{document.path}: kept unmodelled node kinds as opaque: "
            f"{', '.join(sorted(decoder.opaque_kinds))}"
        )

    return SourceFile(
        path=document.path,
        root=root,
        info=decoder.info,
        package=document.package,
    )


def load_dump(path: Path) -> SourceFile:
    """Read and decode a dump file.

    Raises:
        DumpLoadError: If the file cannot be read or is malformed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DumpLoadError(path, str(e)) from e
    if not isinstance(data, dict):
        raise DumpLoadError(path, "top-level JSON value must be an object")
    return load_dump_data(data, origin=path)


def _summarize_validation(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg', 'invalid')}" if location else err.get("msg", ""))
    return "; ".join(parts)
