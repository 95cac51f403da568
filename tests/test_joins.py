import pytest

from minisql.exprtree import AttType
from minisql.joins import ScanJoin, SortMergeJoin
from minisql.selection import Table

LEFT_ROWS = [(1, "a"), (2, "b"), (2, "c"), (3, "d")]
RIGHT_ROWS = [(2, 1.5), (3, 2.5), (4, 3.5), (2, 0.5)]

EXPECTED = sorted(
    [("b", 1.5), ("c", 1.5), ("d", 2.5), ("b", 0.5), ("c", 0.5)]
)


def left_table(rows=LEFT_ROWS):
    return Table("L", [("l_key", AttType.INT), ("l_name", AttType.STRING)], rows)


def right_table(rows=RIGHT_ROWS):
    return Table("R", [("r_key", AttType.INT), ("r_val", AttType.DOUBLE)], rows)


def out_table():
    return Table("O", [("name", AttType.STRING), ("val", AttType.DOUBLE)])


PROJECTIONS = ["[l_name]", "[r_val]"]
FINAL = "== ([l_key], [r_key])"


def scan(left, right, out, final=FINAL, lpred="bool[true]", rpred="bool[true]"):
    op = ScanJoin(left, right, out, final, PROJECTIONS, [("[l_key]", "[r_key]")], lpred, rpred)
    op.run()
    return op


def merge(left, right, out, final=FINAL, lpred="bool[true]", rpred="bool[true]"):
    op = SortMergeJoin(left, right, out, final, PROJECTIONS, ("[l_key]", "[r_key]"), lpred, rpred)
    op.run()
    return op


def test_scan_join_matches_keys():
    out = out_table()
    scan(left_table(), right_table(), out)
    assert sorted(out) == EXPECTED


def test_sort_merge_join_matches_keys():
    out = out_table()
    merge(left_table(), right_table(), out)
    assert sorted(out) == EXPECTED


def test_scan_join_swaps_when_left_not_smaller():
    out = out_table()
    op = scan(left_table(), right_table(RIGHT_ROWS[:1]), out)
    assert op.swapped is True
    assert op.equality_checks == [("[r_key]", "[l_key]")]
    assert sorted(out) == [("b", 1.5), ("c", 1.5)]


def test_scan_join_keeps_order_when_left_smaller():
    out = out_table()
    op = scan(left_table(LEFT_ROWS[:1]), right_table(), out)
    assert op.swapped is False
    assert len(out) == 0


def test_side_predicates_filter_inputs():
    out_scan, out_merge = out_table(), out_table()
    scan(left_table(), right_table(), out_scan, rpred="> ([r_val], double[1.0])")
    merge(left_table(), right_table(), out_merge, rpred="> ([r_val], double[1.0])")
    assert sorted(out_scan) == sorted(out_merge)
    assert all(val > 1.0 for _, val in out_scan)
    assert len(out_scan) == 3


def test_left_predicate_filters_names():
    out = out_table()
    merge(left_table(), right_table(), out, lpred="!= ([l_name], string[b])")
    assert all(name != "b" for name, _ in out)
    assert sorted(out) == sorted([("c", 1.5), ("c", 0.5), ("d", 2.5)])


def test_final_predicate_applied_after_equality():
    final = "&& (== ([l_key], [r_key]), == ([l_name], string[c]))"
    out_scan, out_merge = out_table(), out_table()
    scan(left_table(), right_table(), out_scan, final=final)
    merge(left_table(), right_table(), out_merge, final=final)
    assert sorted(out_scan) == [("c", 0.5), ("c", 1.5)]
    assert sorted(out_merge) == sorted(out_scan)


def test_joins_agree_on_larger_input():
    left_rows = [(i % 5, f"n{i}") for i in range(20)]
    right_rows = [(i % 7, float(i)) for i in range(30)]
    out_scan, out_merge = out_table(), out_table()
    scan(left_table(left_rows), right_table(right_rows), out_scan)
    merge(left_table(left_rows), right_table(right_rows), out_merge)
    assert sorted(out_scan) == sorted(out_merge)
    assert len(out_scan) > 0


def test_empty_input_gives_empty_output():
    out_scan, out_merge = out_table(), out_table()
    scan(left_table([]), right_table(), out_scan)
    merge(left_table([]), right_table(), out_merge)
    assert len(out_scan) == 0
    assert len(out_merge) == 0


def test_projection_count_mismatch_raises():
    out = Table("O", [("name", AttType.STRING)])
    with pytest.raises(ValueError):
        scan(left_table(), right_table(), out)
    with pytest.raises(ValueError):
        merge(left_table(), right_table(), out)


def test_unknown_attribute_raises():
    with pytest.raises(ValueError):
        scan(left_table(), right_table(), out_table(), final="== ([l_key], [missing])")
    with pytest.raises(ValueError):
        merge(left_table(), right_table(), out_table(), lpred="> ([nope], int[1])")


def test_incomparable_merge_keys_raise():
    op = SortMergeJoin(
        left_table(),
        right_table(),
        out_table(),
        FINAL,
        PROJECTIONS,
        ("[l_name]", "[r_key]"),
        "bool[true]",
        "bool[true]",
    )
    with pytest.raises(ValueError):
        op.run()