"""Hash-based aggregation with GROUP BY and a WHERE predicate."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from .exprtree import AttType
from .selection import Table, _coerce, _truth, compile_computation


class AggType(Enum):
    """The aggregate functions."""

    SUM = "sum"
    AVG = "avg"
    CNT = "cnt"


class Aggregate:
    """Aggregate ``input`` into ``output``: grouping columns first, then aggregates."""

    def __init__(
        self,
        input: Table,
        output: Table,
        aggs_to_compute: Iterable,
        groupings: Iterable[str],
        selection_predicate: str,
    ) -> None:
        self.input = input
        self.output = output
        self.aggs_to_compute = [(AggType(kind), expr) for kind, expr in aggs_to_compute]
        self.groupings = list(groupings)
        self.selection_predicate = selection_predicate

    def run(self) -> None:
        """Compute the groups and append one output record per group."""
        out_schema = self.output.schema
        if len(out_schema) != len(self.aggs_to_compute) + len(self.groupings):
            raise ValueError(
                "the output schema needs to have the same number of atts as "
                "(# of aggs to compute + # groups)"
            )

        num_groups = len(self.groupings)
        agg_schema = [
            (f"MyDB_GroupAtt{i}", t) for i, (_, t) in enumerate(out_schema[:num_groups])
        ]
        agg_schema += [
            (f"MyDB_AggAtt{j}", t) for j, (_, t) in enumerate(out_schema[num_groups:])
        ]
        agg_schema.append(("MyDB_CntAtt", AttType.INT))
        combined = list(self.input.schema) + agg_schema

        grouping_comps = [compile_computation(g, self.input.schema) for g in self.groupings]
        group_types = [t for _, t in agg_schema[:num_groups]]

        agg_comps = []
        final_comps = []
        for j, (kind, expr) in enumerate(self.aggs_to_compute):
            if kind is AggType.CNT:
                agg_comps.append(compile_computation(f"+ ( int[1], [MyDB_AggAtt{j}])", combined))
            else:
                agg_comps.append(compile_computation(f"+ ({expr}, [MyDB_AggAtt{j}])", combined))
            if kind is AggType.AVG:
                final_comps.append(
                    compile_computation(f"/ ([MyDB_AggAtt{j}], [MyDB_CntAtt])", agg_schema)
                )
            else:
                final_comps.append(compile_computation(f"[MyDB_AggAtt{j}]", agg_schema))
        agg_comps.append(compile_computation("+ ( int[1], [MyDB_CntAtt])", combined))
        state_types = [t for _, t in agg_schema[num_groups:]]

        predicate = compile_computation(self.selection_predicate, self.input.schema)

        groups: dict = {}
        for row in self.input:
            if not _truth(predicate(row)):
                continue
            key = tuple(_coerce(f(row), t) for f, t in zip(grouping_comps, group_types))
            state = groups.get(key)
            if state is None:
                state = [_coerce(0, t) for t in state_types]
            combined_row = tuple(row) + key + tuple(state)
            groups[key] = [
                _coerce(f(combined_row), t) for f, t in zip(agg_comps, state_types)
            ]

        for key, state in groups.items():
            agg_row = key + tuple(state)
            self.output.append(list(key) + [f(agg_row) for f in final_comps])