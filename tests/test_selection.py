import pytest

from minisql.exprtree import AttType
from minisql.selection import BPlusSelection, RegularSelection, Table, compile_computation

SUPPLIER = [
    ("suppkey", AttType.INT),
    ("name", AttType.STRING),
    ("nationkey", AttType.INT),
    ("acctbal", AttType.DOUBLE),
    ("comment", AttType.STRING),
]

ROWS = [
    (1, "Supplier#000000001", 1, 100.5, "c one"),
    (2, "Supplier#000000002", 3, -283.84, "c two"),
    (3, "Supplier#000000003", 1, 7.0, "c three"),
]


def supplier():
    return Table("supplier", SUPPLIER, ROWS)


def test_attribute_reference():
    fn = compile_computation("[name]", SUPPLIER)
    assert fn(ROWS[1]) == "Supplier#000000002"


def test_double_rendered_with_six_decimals():
    fn = compile_computation("+ ([acctbal], string[ ])", SUPPLIER)
    assert fn(ROWS[1]) == "-283.840000 "


def test_string_literal_with_space_before_bracket():
    fn = compile_computation("> ([name], string [Supplier#000000001])", SUPPLIER)
    assert fn(ROWS[1]) is True
    assert fn(ROWS[0]) is False


def test_integer_division_truncates():
    assert compile_computation("/ (int[10000], int[100])", [])() == 100
    assert compile_computation("/ (int[-7], int[2])", [])() == -3


def test_mixed_division_is_double():
    fn = compile_computation("/ (int[1], double[2.0])", [])
    assert fn.att_type is AttType.DOUBLE
    assert fn() == 0.5


def test_times_double_gives_float():
    fn = compile_computation("* ([suppkey], double[1.0])", SUPPLIER)
    assert fn.att_type is AttType.DOUBLE
    assert fn(ROWS[1]) == 2.0


def test_not_operator():
    fn = compile_computation("!(== ([suppkey], int[1]))", SUPPLIER)
    assert [fn(r) for r in ROWS] == [False, True, True]


def test_unknown_attribute_raises():
    with pytest.raises(ValueError):
        compile_computation("[missing]", SUPPLIER)


@pytest.mark.parametrize(
    "text",
    ["+ (bool[true], int[1])", "&& (int[1], bool[true])", "== ([name], int[1])", "- ([name], int[1])"],
)
def test_type_mismatch_raises(text):
    with pytest.raises(ValueError):
        compile_computation(text, SUPPLIER)


def test_unbalanced_raises():
    with pytest.raises(ValueError):
        compile_computation("== ([suppkey], int[1]", SUPPLIER)


def test_trailing_parenthesis_tolerated():
    fn = compile_computation("== ([suppkey], [suppkey]))", SUPPLIER)
    assert fn(ROWS[0]) is True


def test_regular_selection_projects_accepted_rows():
    out = Table("out", [("name", AttType.STRING), ("stuff", AttType.STRING)])
    op = RegularSelection(
        supplier(),
        out,
        "== ([nationkey], int[1])",
        ["[name]", "+ (+ ([comment], string[ ]), [name])"],
    )
    op.run()
    assert list(out) == [
        ("Supplier#000000001", "c one Supplier#000000001"),
        ("Supplier#000000003", "c three Supplier#000000003"),
    ]


def test_regular_selection_int_into_string_column():
    out = Table("out", [("nation", AttType.STRING)])
    RegularSelection(supplier(), out, "== ([suppkey], int[1])", ["[nationkey]"]).run()
    assert list(out) == [("1",)]


def test_regular_selection_conjunction():
    out = Table("out", [("name", AttType.STRING)])
    RegularSelection(
        supplier(),
        out,
        "&& (== ([nationkey], int[1]), > ([name], string[Supplier#000000001]))",
        ["[name]"],
    ).run()
    assert list(out) == [("Supplier#000000003",)]


def test_regular_selection_projection_count_mismatch():
    out = Table("out", [("name", AttType.STRING)])
    op = RegularSelection(supplier(), out, "bool[true]", ["[name]", "[suppkey]"])
    with pytest.raises(ValueError):
        op.run()


def test_table_append_wrong_length():
    with pytest.raises(ValueError):
        supplier().append((1, "x"))


def test_table_coerces_values():
    table = Table("t", [("n", AttType.INT)], [("42",)])
    assert list(table) == [(42,)]
    assert len(table) == 1


def test_range_needs_sort_attribute():
    with pytest.raises(ValueError):
        supplier().range(1, 2)


def test_unknown_sort_attribute():
    with pytest.raises(ValueError):
        Table("t", SUPPLIER, sort_att="nope")


def _address_table():
    schema = [("name", AttType.STRING), ("address", AttType.STRING)]
    rows = [("n1", "ab"), ("n2", "aa"), ("n3", "aaY,0sd"), ("n4", "b"), ("n5", "a")]
    return Table("addr", schema, rows, sort_att="address")


def test_range_sorted_and_inclusive():
    addresses = [row[1] for row in _address_table().range("aa", "ab")]
    assert addresses == ["aa", "aaY,0sd", "ab"]


def test_bplus_selection_with_predicate():
    out = Table("out", [("name", AttType.STRING), ("address", AttType.STRING)])
    BPlusSelection(
        _address_table(),
        out,
        "aa",
        "ab",
        "> ([address], string[aa])",
        ["[name]", "[address]"],
    ).run()
    assert list(out) == [("n3", "aaY,0sd"), ("n1", "ab")]