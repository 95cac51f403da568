# minisql

A small relational query engine that works on in-memory tables.

## What it provides

- `minisql.exprtree`: expression trees for SQL values such as
  `t.price * 2 > 10` (`Identifier`, `IntLiteral`, `DoubleLiteral`,
  `StringLiteral`, `BoolLiteral`, `PlusOp`, `MinusOp`, `TimesOp`,
  `DivideOp`, `GtOp`, `LtOp`, `EqOp`, `NeqOp`, `OrOp`, `NotOp`, `SumOp`,
  `AvgOp`). `to_string()` renders a tree in the prefix computation
  language the operators understand, e.g.
  `> (* ([t_price], int[2]), int[10])`. `check(context)` and
  `get_type(context)` type-check a tree against a `CheckContext`, which
  holds a catalog mapping, the FROM tables and collects problems in
  `messages`.
- `minisql.parser_types`: building blocks for statements. Helper
  functions (`make_identifier`, `make_int`, `make_string`, `plus`, `eq`,
  `or_`, `sum_`, `avg`, `make_from_list`, `make_query`,
  `make_table_regular`, `make_table_bplus_tree`, ...) build `SFWQuery`,
  `CreateTable` and `SQLStatement` objects. `SFWQuery.check(catalog)`
  returns a list of the problems found; `SFWQuery.describe()` gives a
  readable listing; `CreateTable.add_to_catalog(storage_dir, catalog)`
  records a table definition in a catalog mapping.
- `minisql.selection`: `Table` (rows kept in a list; with a
  `sort_att` it answers `range(low, high)`), `compile_computation`, and
  the operators `RegularSelection` and `BPlusSelection`.
- `minisql.aggregate`: `Aggregate`, a hash-based GROUP BY computing
  `AggType.SUM`, `AggType.AVG` and `AggType.CNT`. Grouping columns come
  first in the output, aggregates after them.
- `minisql.joins`: `ScanJoin` (hashes the smaller input) and
  `SortMergeJoin`.
- `minisql.runop`: `RunOp` runs a select statement over a single
  table as a selection or an aggregation and returns the result `Table`
  with columns in select order.
- `minisql.qunit`: `UnitTest`, a check counter with `is_equal`,
  `is_not_equal`, `is_true`, `is_false`, which writes failures (and, at
  `Verbosity.VERBOSE` or above, passes) to a stream and prints a
  summary on `close()` or when leaving a `with` block.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from minisql.selection import Table, RegularSelection
from minisql.aggregate import Aggregate, AggType

suppliers = Table("supplier", [("suppkey", "int"), ("name", "string")],
                  rows=[(1, "alpha"), (2, "beta"), (3, "gamma")])

out = Table("out", [("name", "string")])
RegularSelection(suppliers, out, "> ([suppkey], int[1])", ["[name]"]).run()
print(list(out))   # [('beta',), ('gamma',)]

counts = Table("counts", [("mycnt", "int")])
Aggregate(suppliers, counts, [(AggType.CNT, "int[0]")], [], "bool[true]").run()
print(list(counts))   # [(3,)]
```

Predicates and projections are computation strings: `[att]` names an
attribute, `int[..]`, `double[..]`, `string[..]` and `bool[..]` are
literals, and `+ - * / == != < > && || !` apply to their parenthesised
arguments. Text that does not parse, unknown attributes and mistyped
operands raise `ValueError`.

## What it does not do

- There is no SQL text parser and no interactive shell: statements are
  assembled with the helper functions in `minisql.parser_types`.
- Tables live only in memory; there is no on-disk storage, page
  buffering or real B+-tree. `BPlusSelection` filters and sorts the
  rows of a `Table` by its sort attribute.
- The catalog is a plain mapping supplied by the caller.
- `RunOp` handles queries over exactly one table; a query naming more
  than one table raises `ValueError`.