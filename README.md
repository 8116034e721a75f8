# eqsat

Building blocks for an equality-saturation rule language, in pure Python
with no third-party dependencies.

## What is in the package

- `eqsat.expr` — literals (`Literal`), expressions (`Lit`, `Var`, `Call`,
  with the helpers `call` and `lit`), flat calls (`NormCall`) and
  s-expressions (`Sexp`). Expressions can be walked, folded, mapped,
  substituted and printed as s-expressions.
- `eqsat.facts` — query facts (`EqFact`, `ExprFact`) and actions
  (`LetAction`, `SetAction`, `DeleteAction`, `UnionAction`,
  `ExtractAction`, `PanicAction`, `ExprAction`).
- `eqsat.decls` — `Rule`, `Rewrite`, `Schema`, `FunctionDecl`
  (including `FunctionDecl.relation`), `Variant`, `IdentSort`, `RunConfig`
  and schedules (`Saturate`, `Repeat`, `Run`, `Sequence`).
- `eqsat.commands` — the top-level commands of a program (`Datatype`,
  `Sort`, `FunctionCommand`, `RuleCommand`, `RewriteCommand`, `Check`,
  `Push`, `Pop`, `Fail` and the rest). Every command prints as an
  s-expression.
- `eqsat.normal` — flattened facts (`NormAssign`, `NormAssignVar`,
  `NormCompute`, `NormAssignLit`, `NormConstrainEq`), flattened actions
  (`NormLet`, `NormSet`, `NormUnion`, …), `NormRule` and
  `NormFunctionDecl`. `NormRule.resugar` turns a flattened rule back into a
  readable surface `Rule`.
- `eqsat.constraint` — a propagation solver over `Eq`, `Assign`, `And`,
  `Xor` and `Impossible` constraints (`Problem.solve`), raising subclasses
  of `ConstraintError` on failure, plus the sort-constraint builders
  `SimpleTypeConstraint` and `AllEqualTypeConstraint`.
- `eqsat.table` — `Table`, an insertion-ordered map from tuples of `Value`
  to `TupleOutput`, kept in timestamp order, where removals only mark
  entries stale until `rehash`; and `binary_search_table_by_key`.
- `eqsat.index` — `ColumnIndex` and `CompositeColumnIndex`, mapping the
  values in a column to table offsets.

## Examples

```python
from eqsat.expr import call, lit, Var

e = call("f", [call("g", [Var("a"), lit(3)]), lit(4.0)])
print(e)               # (f (g a 3) 4.0)
print(e.ast_size())    # 5
print(list(e.vars()))  # ['a']
```

```python
from eqsat.constraint import Assign, Eq, Problem

problem = Problem([Assign("x", "i64"), Eq("y", "x")])
print(problem.solve(["x", "y"]))  # {'x': 'i64', 'y': 'i64'}
```

```python
from eqsat.table import Table, Value

table = Table()
x = Value("i64", 1)
table.insert([x], x, 0)
print(table.get([x]).value)  # Value(tag='i64', bits=1)
```

## What the package does not do

There is no parser for program text, no lowering of surface commands and
rules into the normalized forms, and no engine that runs rules, rebuilds an
e-graph or extracts terms. The package provides the data structures such a
system is built from; programs are constructed directly as Python objects.

## Running the tests

```
pip install .[test]
pytest
```