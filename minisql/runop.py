"""Run a checked SELECT-FROM-WHERE query against in-memory tables."""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping

from .aggregate import Aggregate, AggType
from .exprtree import AvgOp, CheckContext, SumOp
from .parser_types import SQLStatement
from .selection import RegularSelection, Table

_ALWAYS_TRUE = "== (string[T], string[T])"


class RunOp:
    """Plan and execute a single-table query: a selection or an aggregation.

    ``tables`` maps table names to :class:`Table` objects; ``catalog`` is the
    mapping the query's identifiers are checked against.  Problems found by
    the check are kept in ``messages``.
    """

    def __init__(
        self,
        statement: SQLStatement,
        tables: Mapping[str, Table],
        catalog: MutableMapping[str, Any],
    ) -> None:
        if not statement.is_sfw_query():
            raise ValueError("only SELECT-FROM-WHERE statements can be run")
        self.query = statement.query
        self.tables = dict(tables)
        self.catalog = catalog
        self.messages = self.query.check(catalog)

        context = CheckContext(
            catalog=catalog,
            tables=list(self.query.tables_to_process),
            groups=list(self.query.grouping_clauses),
        )

        self.schema_sp: list = []
        self.projection: list = []
        self.groupings: list = []
        self.aggs_to_compute: list = []
        grouping_atts: list = []
        agg_atts: list = []

        for count, value in enumerate(self.query.values_to_select):
            att = value.att_schema(str(count), context)
            self.schema_sp.append(att)
            self.projection.append(value.to_string())
            if isinstance(value, SumOp):
                self.aggs_to_compute.append((AggType.SUM, value.child.to_string()))
                agg_atts.append(att)
            elif isinstance(value, AvgOp):
                self.aggs_to_compute.append((AggType.AVG, value.child.to_string()))
                agg_atts.append(att)
            else:
                self.groupings.append(value.to_string())
                grouping_atts.append(att)

        self.is_agg = bool(self.aggs_to_compute)
        # Aggregates write the grouping attributes first; the select order is
        # restored afterwards by a projection.
        self.sp = self.is_agg and bool(self.groupings)
        if self.is_agg:
            self.schema_out = grouping_atts + agg_atts
        else:
            self.schema_out = list(self.schema_sp)

    def copy_with_alias(self, table: Table, alias: str) -> Table:
        """A table with the same rows whose attributes are prefixed by ``alias_``."""
        schema = [(f"{alias}_{name}", att_type) for name, att_type in table.schema]
        copy = Table(table.name, schema)
        copy.rows = list(table.rows)
        return copy

    def _predicate(self) -> str:
        predicate = ""
        for i, clause in enumerate(self.query.all_disjunctions):
            if i == 0:
                predicate = clause.to_string()
            else:
                predicate = f"&& ({predicate},{clause.to_string()})"
        return predicate or "bool[true]"

    def run(self) -> Table:
        """Execute the query and return the table of results in select order."""
        sources = self.query.tables_to_process
        if len(sources) != 1:
            raise ValueError("queries over more than one table are not supported")
        table_name, alias = sources[0]
        if table_name not in self.tables:
            raise KeyError(f"no table named {table_name!r}")
        final_input = self.copy_with_alias(self.tables[table_name], alias)

        output = Table("output", self.schema_out)
        predicate = self._predicate()

        if self.is_agg:
            Aggregate(
                final_input, output, self.aggs_to_compute, self.groupings, predicate
            ).run()
        else:
            RegularSelection(final_input, output, predicate, self.projection).run()

        if not self.sp:
            return output

        output_sp = Table("outputSp", self.schema_sp)
        projection_sp = [f"[{name}]" for name, _ in self.schema_sp]
        RegularSelection(output, output_sp, _ALWAYS_TRUE, projection_sp).run()
        return output_sp