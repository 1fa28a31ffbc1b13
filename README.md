# fuselang

The front half of a compiler for the Fuse language, as a plain Python
library with no third-party dependencies.

- **`fuselang.tokens`**: `Span`, `Diagnostic`, `Severity`, `TokenKind`,
  `Token` and `tokenize(filename, src)`, which always ends the token list
  with an end-of-file token and reports bad input as diagnostics.
- **`fuselang.syntax`**: the syntax tree as dataclasses (items, expressions,
  statements, patterns and type expressions).
- **`fuselang.parser`**: `parse(filename, src)` and the `Parser` class, a
  recursive-descent parser with precedence climbing for expressions and error
  recovery. It builds on `fuselang.parser_core.ParserCore` (blocks,
  parameters, fields, generic parameters, where clauses, types) and
  `fuselang.expressions.ExpressionParser` (expressions and match patterns).
- **`fuselang.scope`**, **`fuselang.modules`**, **`fuselang.resolver`**:
  symbols and scopes, the module graph, import resolution (the whole path as
  a module first, then its last segment as an item) and import-cycle
  detection.
- **`fuselang.typetable`**: interned type identities. Two types are equal
  exactly when their integer ids are equal.
- **`fuselang.monomorph`**: records concrete generic instantiations and
  substitutes type parameters.
- **`fuselang.testrunner`**: finds `test_*` functions and `*_test.fuse`
  files, and prints a pass/fail report.

## Parsing

```python
from fuselang.parser import parse

file, diagnostics = parse("point.fuse", b"struct Point { x: F64, y: F64 }")
point = file.items[0]
print(point.name, [f.name for f in point.fields])  # Point ['x', 'y']
```

`parse` accepts `str` or `bytes`. It collects diagnostics instead of
stopping at the first error, so malformed input still gives a partial tree.

## Resolving a set of modules

```python
from fuselang.modules import ModulePath, build_module_graph
from fuselang.parser import parse
from fuselang.resolver import Resolver, resolve_qualified_variant

sources = {
    "core.list": "pub struct List { }",
    "main": "import core.list.List; enum Color { Red, Green }",
}
files = {path: parse(path + ".fuse", src)[0] for path, src in sources.items()}
graph = build_module_graph(files)
errors = Resolver(graph).resolve()

main = graph.lookup(ModulePath(["main"]))
print(main.symbols.lookup("List").kind)  # struct
print(resolve_qualified_variant(main.symbols, "Color", "Red").parent)  # Color
```

Modules are visited in sorted order, so results do not depend on the order
of the input mapping. Enum variants are hoisted into their module's scope.
Duplicate definitions, clashing variants, conflicting or unresolved imports
and import cycles are returned by `resolve()` and kept on `Resolver.errors`.

## Types and generics

```python
from fuselang.monomorph import Context
from fuselang.typetable import TypeTable

types = TypeTable()
t = types.intern_generic_param("core", "T")
vec_t = types.intern_struct("core", "Vec", [t])

ctx = Context(types)
vec_i32 = ctx.substitute(vec_t, ["T"], [types.i32])
assert vec_i32 == types.intern_struct("core", "Vec", [types.i32])
```

`Context.record` deduplicates instantiations and refuses partial ones, whose
type arguments are still unknown or generic parameters. `TypeTable.base_of`
and `TypeTable.substitute_fields` give the template of a specialization and
its field layout with the type arguments filled in.

## Test discovery and reports

```python
import sys
from fuselang.testrunner import RunResult, find_test_functions, format_duration, print_report

src = "fn test_add() -> I32 { return 0; }\npub fn test_sub() -> I32 { return 0; }"
print(find_test_functions(src))  # ['test_add', 'test_sub']
print(format_duration(0.25))     # 250ms

print_report(sys.stdout, [RunResult("test_add", True, duration=0.002)], color=False, verbose=False)
```

`discover_test_files(directory)` lists the `*_test.fuse` files in a
directory, and `file_to_module_path(path)` turns a file path into a dotted
module path.

## What this package does not do

It stops at the front end. There is no type checker, no AST-level
specialization pass, no code generation and no command-line program or REPL.
In particular `fuselang.testrunner` does not compile or run tests: it finds
them and formats results, and the caller fills in each `RunResult`.