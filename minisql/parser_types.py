"""Structures built by the SQL parser: queries, table definitions and their helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, MutableMapping, Optional, Union

from .exprtree import (
    AttType,
    AvgOp,
    BoolLiteral,
    CheckContext,
    DivideOp,
    DoubleLiteral,
    EqOp,
    ExprTree,
    GtOp,
    Identifier,
    IntLiteral,
    LtOp,
    MinusOp,
    NeqOp,
    NotOp,
    OrOp,
    PlusOp,
    StringLiteral,
    SumOp,
    TimesOp,
)

AttList = list  # list of (attribute name, AttType)
FromList = list  # list of (table name, alias)


@dataclass
class CreateTable:
    """A CREATE TABLE statement; a sort attribute makes it a B+-tree table."""

    table_name: str
    atts: list = field(default_factory=list)
    sort_att: Optional[str] = None

    def is_bplus_tree(self) -> bool:
        """Whether the table is organised as a B+-tree."""
        return self.sort_att is not None

    def add_to_catalog(self, storage_dir: str, catalog: MutableMapping[str, Any]) -> str:
        """Record the table in the catalog and return its name.

        Raises ValueError when a B+-tree is asked for on an attribute the
        table does not have; nothing is recorded then.
        """
        att_names = [name for name, _ in self.atts]
        if self.is_bplus_tree() and self.sort_att not in att_names:
            raise ValueError("B+-Tree not created.")

        name = self.table_name
        tables = list(catalog.get("tables", []))
        if name not in tables:
            tables.append(name)
        catalog["tables"] = tables
        catalog[f"{name}.fileName"] = f"{storage_dir}/{name}.bin"
        catalog[f"{name}.fileType"] = "bplustree" if self.is_bplus_tree() else "heap"
        if self.is_bplus_tree():
            catalog[f"{name}.sortAtt"] = self.sort_att
        catalog[f"{name}.attList"] = att_names
        for att_name, att_type in self.atts:
            catalog[f"{name}.{att_name}.type"] = AttType(att_type).value
        return name


@dataclass
class SFWQuery:
    """A SELECT-FROM-WHERE query with optional GROUP BY."""

    values_to_select: list = field(default_factory=list)
    tables_to_process: list = field(default_factory=list)
    all_disjunctions: list = field(default_factory=list)
    grouping_clauses: list = field(default_factory=list)

    def describe(self) -> str:
        """A readable listing of every part of the query."""
        lines = ["Selecting the following:"]
        lines += [f"\t{v.to_string()}" for v in self.values_to_select]
        lines.append("From the following:")
        lines += [f"\t{table} AS {alias}" for table, alias in self.tables_to_process]
        lines.append("Where the following are true:")
        lines += [f"\t{d.to_string()}" for d in self.all_disjunctions]
        lines.append("Group using:")
        lines += [f"\t{g.to_string()}" for g in self.grouping_clauses]
        return "\n".join(lines) + "\n"

    def check(self, catalog: MutableMapping[str, Any]) -> list:
        """Check the query against the catalog; return the problems found."""
        ctx = CheckContext(
            catalog=catalog,
            tables=list(self.tables_to_process),
            groups=list(self.grouping_clauses),
        )

        known = set(catalog.get("tables", []))
        for table, _ in self.tables_to_process:
            if table not in known:
                ctx.report(f"Cannot find table: {table}")

        if self.grouping_clauses:
            grouped = set()
            for g in self.grouping_clauses:
                if not g.check(ctx):
                    ctx.report("Something about grouping triggers errors.")
                grouped.add(g.to_string())
        for v in self.values_to_select:
            if not v.check(ctx):
                ctx.report("Something about select triggers errors.")
        if self.grouping_clauses:
            for v in self.values_to_select:
                text = v.to_string()
                if text[:3] in ("sum", "avg"):
                    continue
                if text not in grouped:
                    ctx.report(f"Cannot match select {text} with grouping.")

        for d in self.all_disjunctions:
            if not d.check(ctx):
                ctx.report("Something about disjunctions triggers errors.")

        return ctx.messages


@dataclass
class SQLStatement:
    """Either a query or a table definition."""

    query: Optional[SFWQuery] = None
    table: Optional[CreateTable] = None

    def is_create_table(self) -> bool:
        return self.table is not None

    def is_sfw_query(self) -> bool:
        return self.query is not None


def make_identifier(table_name: str, att_name: str) -> Identifier:
    return Identifier(table_name, att_name)


def make_double(value: float) -> DoubleLiteral:
    return DoubleLiteral(float(value))


def make_int(value: int) -> IntLiteral:
    return IntLiteral(int(value))


def make_string(quoted: str) -> StringLiteral:
    """Build a string literal from its quoted token, dropping both quotes."""
    return StringLiteral(quoted[1:-1])


def times(lhs: ExprTree, rhs: ExprTree) -> TimesOp:
    return TimesOp(lhs, rhs)


def plus(lhs: ExprTree, rhs: ExprTree) -> PlusOp:
    return PlusOp(lhs, rhs)


def divide(lhs: ExprTree, rhs: ExprTree) -> DivideOp:
    return DivideOp(lhs, rhs)


def minus(lhs: ExprTree, rhs: ExprTree) -> MinusOp:
    return MinusOp(lhs, rhs)


def gt(lhs: ExprTree, rhs: ExprTree) -> GtOp:
    return GtOp(lhs, rhs)


def lt(lhs: ExprTree, rhs: ExprTree) -> LtOp:
    return LtOp(lhs, rhs)


def neq(lhs: ExprTree, rhs: ExprTree) -> NeqOp:
    return NeqOp(lhs, rhs)


def eq(lhs: ExprTree, rhs: ExprTree) -> EqOp:
    return EqOp(lhs, rhs)


def or_(lhs: ExprTree, rhs: ExprTree) -> OrOp:
    return OrOp(lhs, rhs)


def not_(of: ExprTree) -> NotOp:
    return NotOp(of)


def sum_(of: ExprTree) -> SumOp:
    return SumOp(of)


def avg(of: ExprTree) -> AvgOp:
    return AvgOp(of)


def make_att_list(att_name: str, which_type: Union[AttType, str]) -> list:
    """A one-element attribute list; the type is an AttType or its name."""
    try:
        att_type = AttType(which_type)
    except ValueError:
        raise ValueError(f"unknown attribute type: {which_type!r}") from None
    return [(att_name, att_type)]


def append_att_list(append_to: list, append_me: list) -> list:
    append_to.extend(append_me)
    return append_to


def make_from_list(table_name: str, alias_name: str) -> list:
    return [(table_name, alias_name)]


def append_from_list(append_to: list, table_name: str, alias_name: str) -> list:
    append_to.append((table_name, alias_name))
    return append_to


def make_query(
    select_clause: list,
    from_clause: list,
    cnf: Optional[list] = None,
    grouping: Optional[list] = None,
) -> SFWQuery:
    """Build a query; without a WHERE clause the condition is simply true."""
    disjunctions = list(cnf) if cnf is not None else [BoolLiteral(True)]
    return SFWQuery(
        values_to_select=list(select_clause),
        tables_to_process=list(from_clause),
        all_disjunctions=disjunctions,
        grouping_clauses=list(grouping) if grouping is not None else [],
    )


def make_table_regular(table_name: str, atts: list) -> CreateTable:
    return CreateTable(table_name, list(atts))


def make_table_bplus_tree(table_name: str, atts: list, att_name: str) -> CreateTable:
    return CreateTable(table_name, list(atts), att_name)


def make_select_query(query: SFWQuery) -> SQLStatement:
    return SQLStatement(query=query)


def make_create_table(table: CreateTable) -> SQLStatement:
    return SQLStatement(table=table)