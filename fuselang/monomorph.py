"""Collection and identity of concrete generic instantiations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from fuselang.typetable import INVALID_TYPE_ID, TypeId, TypeKind, TypeTable


@dataclass(frozen=True)
class Instantiation:
    """A concrete use of a generic function or type."""

    generic_name: str
    type_args: Tuple[TypeId, ...]
    resolved: TypeId


class Context:
    """Collects and validates the generic instantiations of a program."""

    def __init__(self, types: TypeTable) -> None:
        self.types = types
        self.instantiations: List[Instantiation] = []
        self._seen: Dict[Tuple[str, Tuple[TypeId, ...]], TypeId] = {}

    def record(self, generic_name: str, type_args: Optional[Sequence[TypeId]]) -> TypeId:
        """Register an instantiation and return its concrete type.

        Identical instantiations are deduplicated. Empty or partially
        resolved argument lists give INVALID_TYPE_ID.
        """
        args = tuple(type_args or ())
        if not args:
            return INVALID_TYPE_ID
        key = (generic_name, args)
        if key in self._seen:
            return self._seen[key]
        if not all(self.types.is_resolved(a) for a in args):
            return INVALID_TYPE_ID

        resolved = self.types.intern_struct("__mono", generic_name, args)
        self._seen[key] = resolved
        self.instantiations.append(Instantiation(generic_name, args, resolved))
        return resolved

    def is_generic(self, ty: TypeId) -> bool:
        """True if the type is a generic parameter or has one among its type args."""
        entry = self.types.get(ty)
        if entry.kind is TypeKind.GENERIC_PARAM:
            return True
        return any(self.is_generic(a) for a in entry.type_args)

    def substitute(
        self, ty: TypeId, params: Sequence[str], args: Sequence[TypeId]
    ) -> TypeId:
        """Replace generic parameters named in params by the matching args."""
        tt = self.types
        e = tt.get(ty)
        if e.kind is TypeKind.GENERIC_PARAM:
            for i, name in enumerate(params):
                if e.name == name and i < len(args):
                    return args[i]
            return ty

        def sub(t: TypeId) -> TypeId:
            return self.substitute(t, params, args)

        kind = e.kind
        if kind is TypeKind.REF:
            return tt.intern_ref(sub(e.elem))
        if kind is TypeKind.MUT_REF:
            return tt.intern_mut_ref(sub(e.elem))
        if kind is TypeKind.PTR:
            return tt.intern_ptr(sub(e.elem))
        if kind is TypeKind.SLICE:
            return tt.intern_slice(sub(e.elem))
        if kind is TypeKind.ARRAY:
            return tt.intern_array(sub(e.elem), e.array_len)
        if kind is TypeKind.TUPLE:
            return tt.intern_tuple([sub(f) for f in e.fields])
        if kind is TypeKind.FUNC:
            return tt.intern_func([sub(f) for f in e.fields], sub(e.return_type))
        if kind is TypeKind.STRUCT and e.type_args:
            return tt.intern_struct(e.module, e.name, [sub(a) for a in e.type_args])
        if kind is TypeKind.ENUM and e.type_args:
            return tt.intern_enum(e.module, e.name, [sub(a) for a in e.type_args])
        return ty