import pytest

from minisql.aggregate import AggType, Aggregate
from minisql.exprtree import AttType
from minisql.selection import Table

SCHEMA = [("k", AttType.INT), ("name", AttType.STRING), ("bal", AttType.DOUBLE)]


def _nine_groups():
    rows = []
    for k in range(1, 10):
        bal = -283.84 if k == 5 else float(k * 10)
        rows.extend([(k, f"Supplier#{k:09d}", bal)] * 32)
    return Table("supplier", SCHEMA, rows)


def _count_table():
    return Table("cnt", [("mycnt", AttType.INT)])


def test_group_by_with_averages_and_count():
    out = Table(
        "agg",
        [
            ("k", AttType.INT),
            ("name", AttType.STRING),
            ("k_avg", AttType.DOUBLE),
            ("bal_avg", AttType.DOUBLE),
            ("cnt", AttType.INT),
        ],
    )
    Aggregate(
        _nine_groups(),
        out,
        [
            (AggType.AVG, "* ([k], double[1.0])"),
            (AggType.AVG, "[bal]"),
            (AggType.CNT, "int[0]"),
        ],
        ["[k]", "[name]"],
        "< ([k], int[10])",
    ).run()
    rows = list(out)
    assert len(rows) == 9
    assert all(row[4] == 32 for row in rows)
    five = [row for row in rows if row[0] == 5][0]
    assert five[:3] == (5, "Supplier#000000005", 5.0)
    assert five[3] == pytest.approx(-283.84)


def test_count_without_grouping():
    table = _nine_groups()
    out = _count_table()
    Aggregate(table, out, [(AggType.CNT, "int[0]")], [], "bool[true]").run()
    assert list(out) == [(len(table),)]


def test_predicate_and_its_negation_cover_everything():
    table = _nine_groups()
    kept, dropped = _count_table(), _count_table()
    Aggregate(table, kept, [(AggType.CNT, "int[0]")], [], "< ([k], int[5])").run()
    Aggregate(table, dropped, [(AggType.CNT, "int[0]")], [], "!(< ([k], int[5]))").run()
    assert list(kept)[0][0] + list(dropped)[0][0] == len(table)


def test_group_by_division_and_sum_of_counts():
    table = Table("t", [("k", AttType.INT)], [(k,) for k in range(1, 10001)])
    out = Table(
        "agg",
        [("k", AttType.INT), ("k_avg", AttType.DOUBLE), ("cnt", AttType.INT)],
    )
    Aggregate(
        table,
        out,
        [(AggType.AVG, "* ([k], double[1.0])"), (AggType.CNT, "int[0]")],
        ["/ ([k], int[100])"],
        "bool [true]",
    ).run()
    rows = list(out)
    assert len(rows) == 101
    assert rows[0][:2] == (0, 50.0)
    assert rows[-1] == (100, 10000.0, 1)

    final = Table("final", [("final_cnt", AttType.INT)])
    Aggregate(out, final, [(AggType.SUM, "[cnt]")], [], "bool [true]").run()
    assert list(final) == [(len(table),)]


def test_groups_in_first_seen_order():
    table = Table("t", [("key", AttType.STRING)], [("b",), ("a",), ("b",), ("c",)])
    out = Table("agg", [("key", AttType.STRING), ("cnt", AttType.INT)])
    Aggregate(table, out, [(AggType.CNT, "int[0]")], ["[key]"], "bool[true]").run()
    assert [row[0] for row in out] == ["b", "a", "c"]
    assert sum(row[1] for row in out) == len(table)


def test_sum_of_doubles():
    table = Table("t", SCHEMA, [(1, "x", 1.5), (2, "y", 2.25)])
    out = Table("agg", [("total", AttType.DOUBLE)])
    Aggregate(table, out, [(AggType.SUM, "[bal]")], [], "bool[true]").run()
    assert list(out) == [(3.75,)]


def test_output_width_mismatch_raises():
    out = Table("agg", [("a", AttType.INT), ("b", AttType.INT)])
    op = Aggregate(_nine_groups(), out, [(AggType.CNT, "int[0]")], [], "bool[true]")
    with pytest.raises(ValueError):
        op.run()


def test_empty_input_produces_nothing():
    table = Table("t", SCHEMA)
    out = _count_table()
    Aggregate(table, out, [(AggType.CNT, "int[0]")], [], "bool[true]").run()
    assert list(out) == []


def test_agg_type_accepts_names():
    op = Aggregate(_nine_groups(), _count_table(), [("cnt", "int[0]")], [], "bool[true]")
    assert op.aggs_to_compute == [(AggType.CNT, "int[0]")]