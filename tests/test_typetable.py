import pytest

from fuselang.typetable import INVALID_TYPE_ID, TypeEntry, TypeKind, TypeTable


@pytest.fixture
def tt():
    return TypeTable()


def test_new_table_has_primitives(tt):
    prims = [
        tt.unit, tt.bool, tt.char, tt.i8, tt.i16, tt.i32, tt.i64, tt.i128, tt.isize,
        tt.u8, tt.u16, tt.u32, tt.u64, tt.u128, tt.usize, tt.f32, tt.f64,
        tt.never, tt.unknown,
    ]
    assert INVALID_TYPE_ID not in prims
    assert len(set(prims)) == len(prims)
    assert len(tt) == len(prims) + 1


@pytest.mark.parametrize(
    "name,attr",
    [("Bool", "bool"), ("I32", "i32"), ("Int", "isize"), ("Float", "f64"), ("Never", "never")],
)
def test_lookup_primitive(tt, name, attr):
    assert tt.lookup_primitive(name) == getattr(tt, attr)


def test_lookup_primitive_missing(tt):
    assert tt.lookup_primitive("Nonexistent") == INVALID_TYPE_ID


def test_intern_deduplicates(tt):
    size_before = len(tt)
    first = tt.intern_slice(tt.i32)
    size_after_first = len(tt)
    second = tt.intern_slice(tt.i32)
    assert size_after_first == size_before + 1
    assert len(tt) == size_after_first
    assert second == first
    assert first == size_before
    assert tt.get(first).kind is TypeKind.SLICE


def test_different_types_get_different_ids(tt):
    assert tt.intern_slice(tt.i32) != tt.intern_slice(tt.i64)


def test_intern_tuple(tt):
    t1 = tt.intern_tuple([tt.i32, tt.bool])
    t2 = tt.intern_tuple([tt.i32, tt.bool])
    t3 = tt.intern_tuple([tt.bool, tt.i32])
    assert t1 == t2
    assert t1 != t3


def test_empty_tuple_is_unit(tt):
    assert tt.intern_tuple(None) == tt.unit
    assert tt.intern_tuple([]) == tt.unit


def test_intern_array(tt):
    a = tt.intern_array(tt.u8, 256)
    b = tt.intern_array(tt.u8, 256)
    c = tt.intern_array(tt.u8, 128)
    assert a == b
    assert a != c


def test_intern_ptr(tt):
    e = tt.get(tt.intern_ptr(tt.u8))
    assert e.kind is TypeKind.PTR
    assert e.elem == tt.u8


def test_intern_ref_and_mut_ref(tt):
    r = tt.intern_ref(tt.i32)
    m = tt.intern_mut_ref(tt.i32)
    assert r != m
    assert tt.get(r).kind is TypeKind.REF
    assert tt.get(m).kind is TypeKind.MUT_REF


def test_intern_func(tt):
    e = tt.get(tt.intern_func([tt.i32, tt.i32], tt.bool))
    assert e.kind is TypeKind.FUNC
    assert e.fields == [tt.i32, tt.i32]
    assert e.return_type == tt.bool


def test_nominal_identity(tt):
    a = tt.intern_struct("mod_a", "Point", None)
    b = tt.intern_struct("mod_b", "Point", None)
    c = tt.intern_struct("mod_a", "Point", None)
    assert a != b
    assert a == c


def test_generic_instantiations_are_distinct(tt):
    a = tt.intern_struct("core", "Option", [tt.i32])
    b = tt.intern_struct("core", "Option", [tt.i64])
    assert a != b


def test_generic_param(tt):
    e = tt.get(tt.intern_generic_param("core.list", "T"))
    assert e.kind is TypeKind.GENERIC_PARAM
    assert e.name == "T"


def test_is_numeric(tt):
    assert tt.is_numeric(tt.i32)
    assert tt.is_numeric(tt.f64)
    assert not tt.is_numeric(tt.bool)


def test_intern_channel(tt):
    ch = tt.intern_channel(tt.i32)
    assert ch != INVALID_TYPE_ID
    e = tt.get(ch)
    assert e.kind is TypeKind.CHANNEL
    assert e.elem == tt.i32


def test_intern_channel_deduplicates(tt):
    size_before = len(tt)
    first = tt.intern_channel(tt.i32)
    second = tt.intern_channel(tt.i32)
    assert second == first
    assert first == size_before
    assert len(tt) == size_before + 1
    assert tt.get(second).elem == tt.i32


def test_intern_channel_different_elem(tt):
    assert tt.intern_channel(tt.i32) != tt.intern_channel(tt.bool)


def test_is_resolved(tt):
    assert tt.is_resolved(tt.i32)
    assert not tt.is_resolved(tt.unknown)
    assert not tt.is_resolved(tt.intern_generic_param("m", "T"))


def test_base_of_returns_template_for_specialization(tt):
    base = tt.intern_struct("core.list", "List", None)
    pt = tt.intern_generic_param("core.list", "T")
    tt.set_struct_fields(base, ["data", "len"], [tt.intern_ptr(pt), tt.usize])
    spec = tt.intern_struct("core.list", "List", [tt.i32])
    assert tt.base_of(spec) == base


def test_base_of_returns_invalid_for_template(tt):
    base = tt.intern_struct("core.list", "List", None)
    assert tt.base_of(base) == INVALID_TYPE_ID


def test_base_of_returns_invalid_for_primitive(tt):
    assert tt.base_of(tt.i32) == INVALID_TYPE_ID


def test_base_of_returns_invalid_when_template_absent(tt):
    spec = tt.intern_struct("foo", "Ghost", [tt.i32])
    assert tt.base_of(spec) == INVALID_TYPE_ID


def test_substitute_fields_basic(tt):
    base = tt.intern_struct("core.list", "List", None)
    pt = tt.intern_generic_param("core.list", "T")
    tt.set_struct_fields(base, ["data", "len"], [tt.intern_ptr(pt), tt.usize])

    names, types = tt.substitute_fields(base, [tt.i32])
    assert names == ["data", "len"]
    assert len(types) == 2
    first = tt.get(types[0])
    assert first.kind is TypeKind.PTR
    assert first.elem == tt.i32
    assert types[1] == tt.usize


def test_substitute_fields_nested_generic(tt):
    opt = tt.intern_enum("core.option", "Option", None)
    pt = tt.intern_generic_param("core.option", "T")
    tt.set_enum_fields(opt, [pt])

    node = tt.intern_struct("m", "Node", None)
    ntp = tt.intern_generic_param("m", "T")
    opt_of_t = tt.intern_enum("core.option", "Option", [ntp])
    tt.set_struct_fields(node, ["value", "next"], [ntp, opt_of_t])

    _, types = tt.substitute_fields(node, [tt.i32])
    assert types[0] == tt.i32
    nxt = tt.get(types[1])
    assert nxt.kind is TypeKind.ENUM
    assert nxt.name == "Option"
    assert nxt.module == "core.option"
    assert nxt.type_args == [tt.i32]


def test_substitute_fields_invalid_base(tt):
    assert tt.substitute_fields(INVALID_TYPE_ID, [tt.i32]) == (None, None)


def test_substitute_fields_without_params_copies(tt):
    base = tt.intern_struct("m", "Plain", None)
    tt.set_struct_fields(base, ["a"], [tt.i32])
    names, types = tt.substitute_fields(base, [tt.bool])
    assert names == ["a"]
    assert types == [tt.i32]
    types.append(tt.bool)
    assert tt.get(base).fields == [tt.i32]


def test_register_string_type(tt):
    s = tt.register_string_type()
    e = tt.get(s)
    assert e.kind is TypeKind.STRUCT
    assert e.module == "core.string"
    assert e.name == "String"
    assert e.field_names == ["data", "len"]
    assert e.fields == [tt.intern_ptr(tt.u8), tt.usize]
    assert tt.register_string_type() == s


def test_has_generic_param(tt):
    t = tt.intern_generic_param("m", "T")
    assert tt.has_generic_param(t)
    assert tt.has_generic_param(tt.intern_slice(t))
    assert tt.has_generic_param(tt.intern_func([tt.i32], t))
    assert tt.has_generic_param(tt.intern_struct("m", "Box", [t]))
    assert not tt.has_generic_param(tt.intern_struct("m", "Box", [tt.i32]))
    assert not tt.has_generic_param(tt.i32)
    assert not tt.has_generic_param(INVALID_TYPE_ID)


def test_intern_entry_matches_constructor(tt):
    a = tt.intern(TypeEntry(kind=TypeKind.SLICE, elem=tt.u8))
    assert a == tt.intern_slice(tt.u8)


def test_get_out_of_range(tt):
    with pytest.raises(IndexError):
        tt.get(len(tt))
    with pytest.raises(IndexError):
        tt.get(-1)


def test_kind_str(tt):
    mut_ref_kind = tt.get(tt.intern_mut_ref(tt.i32)).kind
    param_kind = tt.get(tt.intern_generic_param("m", "T")).kind
    assert str(mut_ref_kind) == "MutRef"
    assert str(param_kind) == "GenericParam"