"""Interned type identity: every type is an integer handle into a TypeTable."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional, Sequence, Set, Tuple

TypeId = int

INVALID_TYPE_ID: TypeId = 0
"""The zero handle: an unset or erroneous type."""


class TypeKind(enum.IntEnum):
    """The shape of a type entry."""

    UNKNOWN = 0
    UNIT = 1
    BOOL = 2
    CHAR = 3
    INT = 4
    UINT = 5
    FLOAT = 6
    TUPLE = 7
    ARRAY = 8
    SLICE = 9
    PTR = 10
    REF = 11
    MUT_REF = 12
    STRUCT = 13
    ENUM = 14
    FUNC = 15
    GENERIC_PARAM = 16
    NEVER = 17
    CHANNEL = 18

    def __str__(self) -> str:
        return _KIND_LABELS[self]


_KIND_LABELS = {
    TypeKind.UNKNOWN: "Unknown",
    TypeKind.UNIT: "Unit",
    TypeKind.BOOL: "Bool",
    TypeKind.CHAR: "Char",
    TypeKind.INT: "Int",
    TypeKind.UINT: "Uint",
    TypeKind.FLOAT: "Float",
    TypeKind.TUPLE: "Tuple",
    TypeKind.ARRAY: "Array",
    TypeKind.SLICE: "Slice",
    TypeKind.PTR: "Ptr",
    TypeKind.REF: "Ref",
    TypeKind.MUT_REF: "MutRef",
    TypeKind.STRUCT: "Struct",
    TypeKind.ENUM: "Enum",
    TypeKind.FUNC: "Func",
    TypeKind.GENERIC_PARAM: "GenericParam",
    TypeKind.NEVER: "Never",
    TypeKind.CHANNEL: "Channel",
}

_ELEM_KINDS = frozenset(
    {TypeKind.PTR, TypeKind.REF, TypeKind.MUT_REF, TypeKind.SLICE, TypeKind.CHANNEL}
)


@dataclass
class TypeEntry:
    """The interned data for a single type."""

    kind: TypeKind = TypeKind.UNKNOWN
    name: str = ""
    module: str = ""
    bit_size: int = 0
    elem: TypeId = INVALID_TYPE_ID
    array_len: int = 0
    fields: List[TypeId] = field(default_factory=list)
    field_names: List[str] = field(default_factory=list)
    return_type: TypeId = INVALID_TYPE_ID
    type_args: List[TypeId] = field(default_factory=list)


def _intern_key(e: TypeEntry) -> Hashable:
    """A deterministic deduplication key for an entry."""
    kind = e.kind
    if kind in (TypeKind.UNIT, TypeKind.BOOL, TypeKind.CHAR, TypeKind.NEVER, TypeKind.UNKNOWN):
        return ("named", e.name)
    if kind in (TypeKind.INT, TypeKind.UINT, TypeKind.FLOAT):
        return ("num", e.name, e.bit_size)
    if kind in _ELEM_KINDS:
        return (kind, e.elem)
    if kind is TypeKind.ARRAY:
        return (kind, e.elem, e.array_len)
    if kind is TypeKind.TUPLE:
        return (kind, tuple(e.fields))
    if kind in (TypeKind.STRUCT, TypeKind.ENUM):
        return (kind, e.module, e.name, tuple(e.type_args))
    if kind is TypeKind.FUNC:
        return (kind, tuple(e.fields), e.return_type)
    if kind is TypeKind.GENERIC_PARAM:
        return (kind, e.module, e.name)
    return (
        "other", kind, e.name, e.module, e.bit_size, e.elem, e.array_len,
        tuple(e.fields), tuple(e.field_names), e.return_type, tuple(e.type_args),
    )


class TypeTable:
    """The canonical type store; type equality is handle equality."""

    def __init__(self) -> None:
        self._entries: List[TypeEntry] = [TypeEntry()]  # index 0 is the sentinel
        self._intern: Dict[Hashable, TypeId] = {}

        self.unknown = self._insert(TypeEntry(kind=TypeKind.UNKNOWN, name="Unknown"))
        self.unit = self._insert(TypeEntry(kind=TypeKind.UNIT, name="()"))
        self.bool = self._insert(TypeEntry(kind=TypeKind.BOOL, name="Bool"))
        self.char = self._insert(TypeEntry(kind=TypeKind.CHAR, name="Char"))
        self.never = self._insert(TypeEntry(kind=TypeKind.NEVER, name="Never"))

        self.i8 = self._numeric(TypeKind.INT, "I8", 8)
        self.i16 = self._numeric(TypeKind.INT, "I16", 16)
        self.i32 = self._numeric(TypeKind.INT, "I32", 32)
        self.i64 = self._numeric(TypeKind.INT, "I64", 64)
        self.i128 = self._numeric(TypeKind.INT, "I128", 128)
        self.isize = self._numeric(TypeKind.INT, "ISize", 0)

        self.u8 = self._numeric(TypeKind.UINT, "U8", 8)
        self.u16 = self._numeric(TypeKind.UINT, "U16", 16)
        self.u32 = self._numeric(TypeKind.UINT, "U32", 32)
        self.u64 = self._numeric(TypeKind.UINT, "U64", 64)
        self.u128 = self._numeric(TypeKind.UINT, "U128", 128)
        self.usize = self._numeric(TypeKind.UINT, "USize", 0)

        self.f32 = self._numeric(TypeKind.FLOAT, "F32", 32)
        self.f64 = self._numeric(TypeKind.FLOAT, "F64", 64)

        self._primitives: Dict[str, TypeId] = {
            "Bool": self.bool,
            "Char": self.char,
            "I8": self.i8,
            "I16": self.i16,
            "I32": self.i32,
            "I64": self.i64,
            "I128": self.i128,
            "ISize": self.isize,
            "Int": self.isize,
            "U8": self.u8,
            "U16": self.u16,
            "U32": self.u32,
            "U64": self.u64,
            "U128": self.u128,
            "USize": self.usize,
            "F32": self.f32,
            "F64": self.f64,
            "Float": self.f64,
            "Never": self.never,
        }

    def _numeric(self, kind: TypeKind, name: str, bits: int) -> TypeId:
        return self._insert(TypeEntry(kind=kind, name=name, bit_size=bits))

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, type_id: TypeId) -> TypeEntry:
        """Return the entry for a handle; raises IndexError when out of range."""
        if type_id < 0 or type_id >= len(self._entries):
            raise IndexError(f"type id {type_id} out of range")
        return self._entries[type_id]

    # --- interning ---

    def _insert(self, entry: TypeEntry) -> TypeId:
        key = _intern_key(entry)
        existing = self._intern.get(key)
        if existing is not None:
            return existing
        new_id = len(self._entries)
        self._entries.append(entry)
        self._intern[key] = new_id
        return new_id

    def intern(self, entry: TypeEntry) -> TypeId:
        """Intern an arbitrary entry and return its canonical handle."""
        return self._insert(entry)

    def intern_tuple(self, elems: Optional[Sequence[TypeId]]) -> TypeId:
        if not elems:
            return self.unit
        return self._insert(TypeEntry(kind=TypeKind.TUPLE, fields=list(elems)))

    def intern_slice(self, elem: TypeId) -> TypeId:
        return self._insert(TypeEntry(kind=TypeKind.SLICE, elem=elem))

    def intern_array(self, elem: TypeId, length: int) -> TypeId:
        return self._insert(TypeEntry(kind=TypeKind.ARRAY, elem=elem, array_len=length))

    def intern_ptr(self, elem: TypeId) -> TypeId:
        return self._insert(TypeEntry(kind=TypeKind.PTR, elem=elem))

    def intern_ref(self, elem: TypeId) -> TypeId:
        return self._insert(TypeEntry(kind=TypeKind.REF, elem=elem))

    def intern_mut_ref(self, elem: TypeId) -> TypeId:
        return self._insert(TypeEntry(kind=TypeKind.MUT_REF, elem=elem))

    def intern_func(self, params: Optional[Sequence[TypeId]], ret: TypeId) -> TypeId:
        return self._insert(
            TypeEntry(kind=TypeKind.FUNC, fields=list(params or ()), return_type=ret)
        )

    def intern_struct(
        self, module: str, name: str, type_args: Optional[Sequence[TypeId]]
    ) -> TypeId:
        return self._insert(
            TypeEntry(kind=TypeKind.STRUCT, module=module, name=name,
                      type_args=list(type_args or ()))
        )

    def intern_enum(
        self, module: str, name: str, type_args: Optional[Sequence[TypeId]]
    ) -> TypeId:
        return self._insert(
            TypeEntry(kind=TypeKind.ENUM, module=module, name=name,
                      type_args=list(type_args or ()))
        )

    def set_enum_fields(self, type_id: TypeId, fields: Sequence[TypeId]) -> None:
        """Set the payload field types of an existing enum entry."""
        if 0 <= type_id < len(self._entries):
            self._entries[type_id].fields = list(fields)

    def set_struct_fields(
        self, type_id: TypeId, names: Sequence[str], types: Sequence[TypeId]
    ) -> None:
        """Set the named field layout of an existing struct entry."""
        if 0 <= type_id < len(self._entries):
            entry = self._entries[type_id]
            entry.fields = list(types)
            entry.field_names = list(names)

    def intern_generic_param(self, module: str, name: str) -> TypeId:
        return self._insert(TypeEntry(kind=TypeKind.GENERIC_PARAM, module=module, name=name))

    def intern_channel(self, elem: TypeId) -> TypeId:
        return self._insert(TypeEntry(kind=TypeKind.CHANNEL, elem=elem, name="Chan"))

    def register_string_type(self) -> TypeId:
        """Register the String struct (module core.string) with data and len fields."""
        str_ty = self.intern_struct("core.string", "String", None)
        ptr_ty = self.intern_ptr(self.u8)
        self.set_struct_fields(str_ty, ["data", "len"], [ptr_ty, self.usize])
        return str_ty

    # --- queries ---

    def lookup_primitive(self, name: str) -> TypeId:
        """Return the handle of a primitive type name, or INVALID_TYPE_ID."""
        return self._primitives.get(name, INVALID_TYPE_ID)

    def is_numeric(self, type_id: TypeId) -> bool:
        return self.get(type_id).kind in (TypeKind.INT, TypeKind.UINT, TypeKind.FLOAT)

    def is_resolved(self, type_id: TypeId) -> bool:
        """True unless the type is Unknown or a generic parameter."""
        return self.get(type_id).kind not in (TypeKind.UNKNOWN, TypeKind.GENERIC_PARAM)

    def has_generic_param(self, type_id: TypeId) -> bool:
        """True if the type transitively references a generic parameter."""
        return self._has_generic_param(type_id, set())

    def _has_generic_param(self, type_id: TypeId, seen: Set[TypeId]) -> bool:
        if type_id == INVALID_TYPE_ID or type_id in seen:
            return False
        seen.add(type_id)
        e = self.get(type_id)
        if e.kind is TypeKind.GENERIC_PARAM:
            return True
        if e.elem != INVALID_TYPE_ID and self._has_generic_param(e.elem, seen):
            return True
        if any(self._has_generic_param(f, seen) for f in e.fields):
            return True
        if any(self._has_generic_param(a, seen) for a in e.type_args):
            return True
        return e.kind is TypeKind.FUNC and self._has_generic_param(e.return_type, seen)

    def base_of(self, type_id: TypeId) -> TypeId:
        """Return the generic template of a struct/enum specialization, or INVALID_TYPE_ID."""
        if type_id == INVALID_TYPE_ID:
            return INVALID_TYPE_ID
        e = self.get(type_id)
        if e.kind not in (TypeKind.STRUCT, TypeKind.ENUM) or not e.type_args:
            return INVALID_TYPE_ID
        key = _intern_key(TypeEntry(kind=e.kind, module=e.module, name=e.name))
        return self._intern.get(key, INVALID_TYPE_ID)

    def substitute_fields(
        self, base_id: TypeId, type_args: Sequence[TypeId]
    ) -> Tuple[Optional[List[str]], Optional[List[TypeId]]]:
        """Field names and substituted field types of a template for the given type args."""
        if base_id == INVALID_TYPE_ID:
            return None, None
        base = self.get(base_id)
        if not base.fields:
            return None, None
        params = self._collect_param_names(base_id)
        names = list(base.field_names) if base.field_names else None
        if not params:
            return names, list(base.fields)
        memo: Dict[TypeId, TypeId] = {}
        types = [self._substitute(f, params, list(type_args), memo) for f in base.fields]
        return names, types

    def _collect_param_names(self, type_id: TypeId) -> List[str]:
        params: List[str] = []
        seen_ids: Set[TypeId] = set()

        def walk(x: TypeId) -> None:
            if x == INVALID_TYPE_ID or x in seen_ids:
                return
            seen_ids.add(x)
            e = self.get(x)
            if e.kind is TypeKind.GENERIC_PARAM:
                if e.name not in params:
                    params.append(e.name)
                return
            if e.elem != INVALID_TYPE_ID:
                walk(e.elem)
            for f in e.fields:
                walk(f)
            for a in e.type_args:
                walk(a)
            if e.kind is TypeKind.FUNC:
                walk(e.return_type)

        for f in self.get(type_id).fields:
            walk(f)
        return params

    def _substitute(
        self, ty: TypeId, params: List[str], args: List[TypeId], memo: Dict[TypeId, TypeId]
    ) -> TypeId:
        if ty in memo:
            return memo[ty]
        e = self.get(ty)
        out = ty
        if e.kind is TypeKind.GENERIC_PARAM:
            for i, name in enumerate(params):
                if e.name == name and i < len(args):
                    out = args[i]
                    break
        elif e.kind in _ELEM_KINDS or e.kind is TypeKind.ARRAY:
            inner = self._substitute(e.elem, params, args, memo)
            if e.kind is TypeKind.REF:
                out = self.intern_ref(inner)
            elif e.kind is TypeKind.MUT_REF:
                out = self.intern_mut_ref(inner)
            elif e.kind is TypeKind.PTR:
                out = self.intern_ptr(inner)
            elif e.kind is TypeKind.SLICE:
                out = self.intern_slice(inner)
            elif e.kind is TypeKind.CHANNEL:
                out = self.intern_channel(inner)
            else:
                out = self.intern_array(inner, e.array_len)
        elif e.kind is TypeKind.TUPLE:
            out = self.intern_tuple([self._substitute(f, params, args, memo) for f in e.fields])
        elif e.kind is TypeKind.FUNC:
            new_params = [self._substitute(f, params, args, memo) for f in e.fields]
            new_ret = self._substitute(e.return_type, params, args, memo)
            out = self.intern_func(new_params, new_ret)
        elif e.kind in (TypeKind.STRUCT, TypeKind.ENUM) and e.type_args:
            new_args = [self._substitute(a, params, args, memo) for a in e.type_args]
            if e.kind is TypeKind.STRUCT:
                out = self.intern_struct(e.module, e.name, new_args)
            else:
                out = self.intern_enum(e.module, e.name, new_args)
        memo[ty] = out
        return out