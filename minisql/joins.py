"""Hash-based scan joins and sort-merge joins over in-memory tables."""

from __future__ import annotations

from itertools import groupby
from typing import Iterable, Sequence

from .selection import Table, _prepare, _truth, compile_computation


def _combined_schema(left: Table, right: Table) -> list:
    return list(left.schema) + list(right.schema)


def _emit(row: Sequence, final_predicate, computations, output: Table) -> None:
    if _truth(final_predicate(row)):
        output.append([f(row) for f in computations])


class ScanJoin:
    """Hash the smaller table on its join keys, then scan the larger one.

    ``equality_checks`` holds ``(left computation, right computation)`` pairs
    that must match for a pair of records to join.  Records of each input are
    dropped first when their side's selection predicate rejects them, and a
    joined record reaches the output only if ``final_selection_predicate``
    accepts it.  The output records are built from ``projections``.
    """

    def __init__(
        self,
        left_input: Table,
        right_input: Table,
        output: Table,
        final_selection_predicate: str,
        projections: Iterable[str],
        equality_checks: Iterable,
        left_selection_predicate: str,
        right_selection_predicate: str,
    ) -> None:
        self.output = output
        self.final_selection_predicate = final_selection_predicate
        self.projections = list(projections)
        checks = [(first, second) for first, second in equality_checks]

        if len(left_input) < len(right_input):
            self.equality_checks = checks
            self.left_table = left_input
            self.right_table = right_input
            self.left_selection_predicate = left_selection_predicate
            self.right_selection_predicate = right_selection_predicate
            self.swapped = False
        else:
            self.equality_checks = [(second, first) for first, second in checks]
            self.left_table = right_input
            self.right_table = left_input
            self.left_selection_predicate = right_selection_predicate
            self.right_selection_predicate = left_selection_predicate
            self.swapped = True

    def run(self) -> None:
        """Append every accepted, projected joined record to the output."""
        left, right = self.left_table, self.right_table

        left_keys = [compile_computation(first, left.schema) for first, _ in self.equality_checks]
        left_pred = compile_computation(self.left_selection_predicate, left.schema)
        right_keys = [
            compile_computation(second, right.schema) for _, second in self.equality_checks
        ]
        right_pred = compile_computation(self.right_selection_predicate, right.schema)
        final_pred, computations = _prepare(
            _combined_schema(left, right),
            self.output,
            self.final_selection_predicate,
            self.projections,
        )

        table: dict = {}
        for row in left:
            if not _truth(left_pred(row)):
                continue
            key = tuple(f(row) for f in left_keys)
            table.setdefault(key, []).append(tuple(row))

        for row in right:
            if not _truth(right_pred(row)):
                continue
            key = tuple(f(row) for f in right_keys)
            for match in table.get(key, ()):
                _emit(match + tuple(row), final_pred, computations, self.output)


class SortMergeJoin:
    """Sort both inputs on their join key and merge the runs of equal keys.

    ``equality_check`` is the pair ``(left computation, right computation)``
    the inputs are sorted and merged on.
    """

    def __init__(
        self,
        left_input: Table,
        right_input: Table,
        output: Table,
        final_selection_predicate: str,
        projections: Iterable[str],
        equality_check: Sequence[str],
        left_selection_predicate: str,
        right_selection_predicate: str,
    ) -> None:
        first, second = equality_check
        self.left_table = left_input
        self.right_table = right_input
        self.output = output
        self.final_selection_predicate = final_selection_predicate
        self.projections = list(projections)
        self.equality_check = (first, second)
        self.left_selection_predicate = left_selection_predicate
        self.right_selection_predicate = right_selection_predicate

    def run(self) -> None:
        """Append every accepted, projected joined record to the output."""
        left, right = self.left_table, self.right_table
        first, second = self.equality_check
        combined = _combined_schema(left, right)

        left_key = compile_computation(first, left.schema)
        right_key = compile_computation(second, right.schema)
        # The keys must be comparable with each other.
        compile_computation(f" < ({first}, {second})", combined)
        left_pred = compile_computation(self.left_selection_predicate, left.schema)
        right_pred = compile_computation(self.right_selection_predicate, right.schema)
        final_pred, computations = _prepare(
            combined, self.output, self.final_selection_predicate, self.projections
        )

        left_rows = sorted(
            (tuple(r) for r in left if _truth(left_pred(r))), key=left_key
        )
        right_rows = sorted(
            (tuple(r) for r in right if _truth(right_pred(r))), key=right_key
        )

        left_groups = ((k, list(g)) for k, g in groupby(left_rows, key=left_key))
        right_groups = ((k, list(g)) for k, g in groupby(right_rows, key=right_key))

        lgroup = next(left_groups, None)
        rgroup = next(right_groups, None)
        while lgroup is not None and rgroup is not None:
            lkey, lrows = lgroup
            rkey, rrows = rgroup
            if lkey < rkey:
                lgroup = next(left_groups, None)
            elif lkey > rkey:
                rgroup = next(right_groups, None)
            else:
                for rrow in rrows:
                    for lrow in lrows:
                        _emit(lrow + rrow, final_pred, computations, self.output)
                lgroup = next(left_groups, None)
                rgroup = next(right_groups, None)