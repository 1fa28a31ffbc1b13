import pytest

from fuselang.parser import parse
from fuselang.syntax import (
    ArrayType,
    AssignExpr,
    BinaryExpr,
    BreakExpr,
    CallExpr,
    ClosureExpr,
    ConstDecl,
    ConstructorPat,
    ContinueExpr,
    EnumDecl,
    ExprStmt,
    ExternFnDecl,
    FieldExpr,
    FnDecl,
    ForExpr,
    IdentExpr,
    IfExpr,
    ImplDecl,
    ImportDecl,
    IndexExpr,
    LiteralExpr,
    LoopExpr,
    MatchExpr,
    PathType,
    PtrType,
    QDotExpr,
    QuestionExpr,
    ReturnExpr,
    SliceType,
    SpawnExpr,
    StructDecl,
    StructLitExpr,
    TraitDecl,
    TupleExpr,
    TupleType,
    TypeAliasDecl,
    UnaryExpr,
    VariantKind,
    WhileExpr,
    WildcardPat,
)
from fuselang.tokens import TokenKind


def parse_ok(src):
    file, errs = parse("test.fuse", src)
    assert errs == []
    return file


def first_expr(src):
    f = parse_ok("fn test() { " + src + "; }")
    fn = f.items[0]
    assert fn.body.stmts
    stmt = fn.body.stmts[0]
    assert isinstance(stmt, ExprStmt)
    return stmt.expr


def test_empty_file():
    assert parse_ok("").items == []


def test_accepts_bytes():
    f, errs = parse("test.fuse", b"fn foo() { }")
    assert errs == []
    assert f.items[0].name == "foo"


# --- items ---


def test_import_simple():
    f = parse_ok("import core.result.Result;")
    assert len(f.items) == 1
    imp = f.items[0]
    assert isinstance(imp, ImportDecl)
    assert imp.path == ["core", "result", "Result"]


def test_import_alias():
    imp = parse_ok("import full.chan.Chan as Ch;").items[0]
    assert imp.alias == "Ch"


def test_fn_decl():
    fn = parse_ok("fn foo() { }").items[0]
    assert isinstance(fn, FnDecl)
    assert fn.name == "foo"
    assert fn.public is False


def test_fn_decl_pub_with_return():
    fn = parse_ok("pub fn bar(x: Int) -> Bool { true }").items[0]
    assert fn.public is True
    assert fn.name == "bar"
    assert len(fn.params) == 1
    assert fn.return_type.segments == ["Bool"]


def test_fn_decl_ownership_params():
    fn = parse_ok(
        "fn process(queue: mutref Chan, data: ref String, sink: owned File) { }"
    ).items[0]
    assert [p.ownership for p in fn.params] == [
        TokenKind.KW_MUTREF,
        TokenKind.KW_REF,
        TokenKind.KW_OWNED,
    ]


def test_fn_decl_generic():
    fn = parse_ok("fn map[T, U](items: List, f: Fn) -> List { }").items[0]
    assert [g.name for g in fn.generic_params] == ["T", "U"]


def test_struct_decl():
    s = parse_ok("struct Point { x: F64, y: F64 }").items[0]
    assert isinstance(s, StructDecl)
    assert s.name == "Point"
    assert [f.name for f in s.fields] == ["x", "y"]


def test_struct_decl_decorator():
    s = parse_ok("@value struct WorkItem { id: U64, payload: String }").items[0]
    assert [d.name for d in s.decorators] == ["value"]


def test_struct_decl_generic():
    s = parse_ok("pub struct Pair[A, B] { first: A, second: B }").items[0]
    assert s.public is True
    assert len(s.generic_params) == 2


def test_enum_decl():
    e = parse_ok("enum Color { Red, Green, Blue }").items[0]
    assert isinstance(e, EnumDecl)
    assert e.name == "Color"
    assert [v.name for v in e.variants] == ["Red", "Green", "Blue"]
    assert all(v.kind is VariantKind.UNIT for v in e.variants)


def test_enum_tuple_variants():
    e = parse_ok("enum Shape { Circle(F64), Rect(F64, F64) }").items[0]
    assert e.variants[0].kind is VariantKind.TUPLE
    assert len(e.variants[0].types) == 1
    assert e.variants[1].kind is VariantKind.TUPLE
    assert len(e.variants[1].types) == 2


def test_enum_struct_variant():
    e = parse_ok("enum Msg { Quit, Data { payload: String, len: U64 } }").items[0]
    assert e.variants[0].kind is VariantKind.UNIT
    assert e.variants[1].kind is VariantKind.STRUCT
    assert len(e.variants[1].fields) == 2


def test_enum_generic():
    e = parse_ok("enum Option[T] { Some(T), None }").items[0]
    assert len(e.generic_params) == 1
    assert [v.name for v in e.variants] == ["Some", "None"]


def test_trait_decl():
    tr = parse_ok("trait Display { fn fmt(ref self, f: mutref Formatter); }").items[0]
    assert isinstance(tr, TraitDecl)
    assert tr.name == "Display"
    assert len(tr.items) == 1
    assert tr.items[0].body is None


def test_trait_with_supertrait():
    tr = parse_ok("trait Hashable : Equatable { fn hash(ref self) -> U64; }").items[0]
    assert len(tr.supertraits) == 1


def test_trait_recovers_from_bad_item():
    f, errs = parse("test.fuse", "trait T { pub fn f(); }")
    assert any("expected trait item" in e.message for e in errs)
    assert isinstance(f.items[0], TraitDecl)


def test_impl_decl():
    impl = parse_ok(
        "impl Point { pub fn new(x: F64, y: F64) -> Point { Point { x: x, y: y } } }"
    ).items[0]
    assert isinstance(impl, ImplDecl)
    assert impl.trait is None
    assert len(impl.items) == 1
    assert impl.items[0].public is True


def test_impl_trait_for_type():
    impl = parse_ok("impl Display : Point { fn fmt(ref self, f: mutref Formatter) { } }").items[0]
    assert impl.trait.segments == ["Display"]
    assert impl.target.segments == ["Point"]


def test_const_decl():
    c = parse_ok("const MAX: I32 = 100;").items[0]
    assert isinstance(c, ConstDecl)
    assert c.name == "MAX"


def test_type_alias():
    ta = parse_ok("type Pair = (Int, Int);").items[0]
    assert isinstance(ta, TypeAliasDecl)
    assert ta.name == "Pair"


def test_extern_fn():
    ext = parse_ok("extern fn printf(fmt: Ptr[U8]) -> I32;").items[0]
    assert isinstance(ext, ExternFnDecl)
    assert ext.name == "printf"


# --- expressions ---


@pytest.mark.parametrize("src", ["42", "3.14", '"hello"', 'r"raw"', "true", "false"])
def test_literals(src):
    e = first_expr(src)
    assert isinstance(e, LiteralExpr)
    assert e.token.literal == src


def test_binary_precedence():
    e = first_expr("a + b * c")
    assert e.op.literal == "+"
    assert e.right.op.literal == "*"


def test_binary_left_assoc():
    e = first_expr("a - b - c")
    assert e.op.literal == "-"
    assert isinstance(e.left, BinaryExpr)
    assert e.left.op.literal == "-"


def test_assign_right_assoc():
    e = first_expr("a = b = c")
    assert isinstance(e, AssignExpr)
    assert isinstance(e.value, AssignExpr)


@pytest.mark.parametrize("op", ["+=", "-=", "*=", "/=", "%="])
def test_compound_assign(op):
    e = first_expr("x " + op + " 1")
    assert isinstance(e, AssignExpr)
    assert e.op.literal == op


def test_logical_precedence():
    e = first_expr("a || b && c")
    assert e.op.literal == "||"
    assert e.right.op.literal == "&&"


def test_comparison_precedence():
    e = first_expr("a + 1 == b * 2")
    assert e.op.literal == "=="


@pytest.mark.parametrize(
    "src,op",
    [("!x", "!"), ("-x", "-"), ("~x", "~"), ("ref x", "ref"), ("mutref x", "mutref"), ("move x", "move")],
)
def test_unary_prefix(src, op):
    e = first_expr(src)
    assert isinstance(e, UnaryExpr)
    assert e.op.literal == op


def test_call_expr():
    e = first_expr("foo(1, 2, 3)")
    assert isinstance(e, CallExpr)
    assert len(e.args) == 3


def test_chained_method_calls():
    outer = first_expr("a.b().c()")
    assert isinstance(outer, CallExpr)
    assert outer.callee.name == "c"
    inner = outer.callee.expr
    assert isinstance(inner, CallExpr)
    assert inner.callee.name == "b"


def test_index_expr():
    e = first_expr("arr[0]")
    assert isinstance(e, IndexExpr)
    assert e.expr.name == "arr"
    assert e.index.token.literal == "0"


def test_field_access():
    e = first_expr("obj.field")
    assert isinstance(e, FieldExpr)
    assert e.name == "field"


def test_tuple_field_access():
    e = first_expr("pair.0")
    assert isinstance(e, FieldExpr)
    assert e.name == "0"


def test_postfix_question():
    e = first_expr("result?")
    assert isinstance(e, QuestionExpr)
    assert e.expr.name == "result"


def test_if_expr():
    e = first_expr("if x { 1 } else { 2 }")
    assert isinstance(e, IfExpr)
    assert e.else_ is not None
    assert e.else_.tail.token.literal == "2"


def test_if_else_if_chain():
    e = first_expr("if a { 1 } else if b { 2 } else { 3 }")
    assert isinstance(e.else_, IfExpr)
    assert e.else_.else_.tail.token.literal == "3"


def test_match_expr():
    m = first_expr("match x { Some(v) => v, None => 0 }")
    assert isinstance(m, MatchExpr)
    assert len(m.arms) == 2
    cp = m.arms[0].pattern
    assert isinstance(cp, ConstructorPat)
    assert cp.name == "Some"
    assert len(cp.args) == 1


def test_match_wildcard():
    m = first_expr("match x { _ => 0 }")
    assert isinstance(m.arms[0].pattern, WildcardPat)


def test_for_expr():
    e = first_expr("for item in items { process(item); }")
    assert isinstance(e, ForExpr)
    assert e.binding == "item"


def test_while_expr():
    e = first_expr("while running { tick(); }")
    assert isinstance(e, WhileExpr)
    assert e.cond.name == "running"


def test_loop_expr():
    e = first_expr("loop { break; }")
    assert isinstance(e, LoopExpr)
    assert isinstance(e.body.stmts[0].expr, BreakExpr)


def test_return_expr():
    e = first_expr("return 42")
    assert isinstance(e, ReturnExpr)
    assert e.value.token.literal == "42"


def test_return_void():
    fn = parse_ok("fn test() { return; }").items[0]
    r = fn.body.stmts[0].expr
    assert isinstance(r, ReturnExpr)
    assert r.value is None


def test_break_continue():
    fn = parse_ok("fn test() { loop { break; continue; }; }").items[0]
    loop = fn.body.stmts[0].expr
    assert isinstance(loop, LoopExpr)
    stmts = loop.body.stmts
    assert len(stmts) >= 2
    assert isinstance(stmts[1].expr, ContinueExpr)


def test_spawn_expr():
    e = first_expr("spawn fn() { }")
    assert isinstance(e, SpawnExpr)
    assert isinstance(e.expr, ClosureExpr)


def test_closure_expr():
    c = first_expr("fn(x: Int) -> Int { x + 1 }")
    assert isinstance(c, ClosureExpr)
    assert len(c.params) == 1
    assert c.return_type.segments == ["Int"]


def test_tuple_expr():
    e = first_expr("(1, 2, 3)")
    assert isinstance(e, TupleExpr)
    assert len(e.elems) == 3


def test_unit_expr():
    e = first_expr("()")
    assert isinstance(e, TupleExpr)
    assert e.elems == []


def test_grouped_expr():
    e = first_expr("(a + b) * c")
    assert e.op.literal == "*"
    assert e.left.op.literal == "+"


def test_block_expr_tail():
    fn = parse_ok("fn test() -> Int { let x = 1; x + 1 }").items[0]
    assert isinstance(fn.body.tail, BinaryExpr)


# --- type expressions ---


def param_type(src):
    return parse_ok(src).items[0].params[0].type


def test_path_type():
    pt = param_type("fn test(x: Int) { }")
    assert isinstance(pt, PathType)
    assert pt.segments == ["Int"]


def test_generic_type():
    pt = param_type("fn test(x: List[Int]) { }")
    assert pt.segments == ["List"]
    assert len(pt.type_args) == 1


def test_nested_generic_type():
    pt = param_type("fn test(x: Result[Option[Int], String]) { }")
    assert pt.segments == ["Result"]
    assert len(pt.type_args) == 2
    assert pt.type_args[0].segments == ["Option"]


def test_unit_type():
    fn = parse_ok("fn test() -> () { }").items[0]
    assert isinstance(fn.return_type, TupleType)
    assert fn.return_type.elems == []


def test_tuple_type():
    fn = parse_ok("fn test() -> (Int, Bool) { }").items[0]
    assert isinstance(fn.return_type, TupleType)
    assert len(fn.return_type.elems) == 2


def test_slice_type():
    st = param_type("fn test(x: [U8]) { }")
    assert isinstance(st, SliceType)
    assert st.elem.segments == ["U8"]


def test_array_type():
    at = param_type("fn test(x: [U8; 256]) { }")
    assert isinstance(at, ArrayType)
    assert at.size.token.literal == "256"


def test_ptr_type():
    pt = param_type("fn test(x: Ptr[U8]) { }")
    assert isinstance(pt, PtrType)
    assert pt.elem.segments == ["U8"]


def test_qualified_path_type():
    pt = param_type("fn test(x: core.list.List[Int]) { }")
    assert pt.segments == ["core", "list", "List"]


# --- ambiguity control ---


def test_struct_literal():
    sl = first_expr("Point { x: 1, y: 2 }")
    assert isinstance(sl, StructLitExpr)
    assert sl.name == "Point"
    assert len(sl.fields) == 2


def test_empty_struct_literal():
    sl = first_expr("Empty {}")
    assert isinstance(sl, StructLitExpr)
    assert sl.name == "Empty"
    assert sl.fields == []


def test_ident_followed_by_block_is_not_struct_lit():
    fn = parse_ok("fn test() { x { y; }; }").items[0]
    assert len(fn.body.stmts) >= 1
    first = fn.body.stmts[0].expr
    assert isinstance(first, IdentExpr)
    assert first.name == "x"


def test_optional_chaining():
    outer = first_expr("x?.y?.z")
    assert isinstance(outer, QDotExpr)
    assert outer.name == "z"
    assert isinstance(outer.expr, QDotExpr)
    assert outer.expr.name == "y"


def test_optional_chaining_with_call():
    call = first_expr("obj?.method()")
    assert isinstance(call, CallExpr)
    assert isinstance(call.callee, QDotExpr)
    assert call.callee.name == "method"


def test_question_then_semicolon():
    e = first_expr("x?")
    assert isinstance(e, QuestionExpr)


# --- error recovery ---


@pytest.mark.parametrize(
    "src",
    [
        "fn",
        "fn (",
        "struct {",
        "import ;",
        "fn test() { let = ; }",
        "fn test() { 1 + ; }",
        "}}}",
        "@",
        "fn test() { if { } }",
    ],
)
def test_malformed_input_reports_errors(src):
    _, errs = parse("test.fuse", src)
    assert len(errs) >= 1


def test_unexpected_top_level_token():
    f, errs = parse("test.fuse", "}}} fn ok() { }")
    assert any("expected item declaration" in e.message for e in errs)
    assert [i.name for i in f.items] == ["ok"]


# --- whole program ---


def test_full_program():
    src = """
import core.result.Result;
import full.chan.Chan;

@value struct WorkItem {
    id: U64,
    payload: String,
}

pub fn process(queue: mutref Chan[WorkItem]) -> Result[(), String] {
    let item = queue.recv()?;
    let upper = item.payload.toUpper();
    spawn fn() {
        log(upper);
    };
    return Ok(());
}
"""
    f = parse_ok(src)
    assert len(f.items) == 4
    assert [type(i) for i in f.items] == [ImportDecl, ImportDecl, StructDecl, FnDecl]