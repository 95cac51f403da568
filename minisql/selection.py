"""In-memory tables, the computation language, and scan or B+-tree selections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence

from .exprtree import AttType

_NUMERIC = (AttType.INT, AttType.DOUBLE)


def _normalize_schema(schema: Iterable) -> list:
    return [(str(name), AttType(att_type)) for name, att_type in schema]


def _render(value: Any) -> str:
    """Text of a value as it appears in records and string concatenation."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:f}"
    return str(value)


def _coerce(value: Any, att_type: AttType) -> Any:
    """Convert a value so that it can be stored in an attribute of ``att_type``."""
    if att_type is AttType.STRING:
        return _render(value)
    if att_type is AttType.BOOL:
        if isinstance(value, str):
            text = value.strip().lower()
            if text not in ("true", "false"):
                raise ValueError(f"not a boolean: {value!r}")
            return text == "true"
        return bool(value)
    if att_type is AttType.INT:
        if isinstance(value, str):
            return int(value.strip())
        return int(value)
    if isinstance(value, str):
        return float(value.strip())
    return float(value)


def _truth(value: Any) -> bool:
    return value if isinstance(value, bool) else bool(value)


class Table:
    """A named table of rows; with a sort attribute it answers range queries."""

    def __init__(
        self,
        name: str,
        schema: Iterable,
        rows: Optional[Iterable[Sequence]] = None,
        sort_att: Optional[str] = None,
    ) -> None:
        self.name = name
        self.schema = _normalize_schema(schema)
        if sort_att is not None and sort_att not in [n for n, _ in self.schema]:
            raise ValueError(f"sort attribute {sort_att!r} is not in the schema of {name}")
        self.sort_att = sort_att
        self.rows: list = []
        for row in rows or ():
            self.append(row)

    def append(self, record: Sequence) -> None:
        """Add a record, converting each value to its attribute's type."""
        values = tuple(record)
        if len(values) != len(self.schema):
            raise ValueError(
                f"record has {len(values)} values, table {self.name} has "
                f"{len(self.schema)} attributes"
            )
        self.rows.append(
            tuple(_coerce(v, t) for v, (_, t) in zip(values, self.schema))
        )

    def __iter__(self) -> Iterator[tuple]:
        return iter(list(self.rows))

    def __len__(self) -> int:
        return len(self.rows)

    def range(self, low: Any, high: Any) -> Iterator[tuple]:
        """Records whose sort attribute lies in [low, high], in sorted order."""
        if self.sort_att is None:
            raise ValueError(f"table {self.name} has no sort attribute")
        names = [n for n, _ in self.schema]
        index = names.index(self.sort_att)
        att_type = self.schema[index][1]
        lo, hi = _coerce(low, att_type), _coerce(high, att_type)
        hits = [row for row in self.rows if lo <= row[index] <= hi]
        return iter(sorted(hits, key=lambda row: row[index]))


@dataclass(frozen=True)
class _Computation:
    att_type: AttType
    fn: Callable[[Sequence], Any]

    def __call__(self, row: Sequence = ()) -> Any:
        return self.fn(row)


_OPERATORS = ("==", "!=", "&&", "||", ">", "<", "+", "-", "*", "/", "!")
_LITERAL_TYPES = ("string", "double", "int", "bool")


def _int_div(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError("integer division by zero")
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def _attribute(index: int, att_type: AttType) -> _Computation:
    return _Computation(att_type, lambda row: row[index])


def _constant(value: Any, att_type: AttType) -> _Computation:
    return _Computation(att_type, lambda row: value)


def _not(child: _Computation) -> _Computation:
    if child.att_type is not AttType.BOOL:
        raise ValueError("'!' needs a boolean operand")
    return _Computation(AttType.BOOL, lambda row: not _truth(child(row)))


def _binary(op: str, lhs: _Computation, rhs: _Computation) -> _Computation:
    lt, rt = lhs.att_type, rhs.att_type
    numeric = lt in _NUMERIC and rt in _NUMERIC
    number_type = AttType.INT if lt is rt is AttType.INT else AttType.DOUBLE

    if op == "+":
        if numeric:
            if number_type is AttType.INT:
                return _Computation(AttType.INT, lambda row: lhs(row) + rhs(row))
            return _Computation(AttType.DOUBLE, lambda row: float(lhs(row) + rhs(row)))
        if AttType.STRING in (lt, rt) and AttType.BOOL not in (lt, rt):
            return _Computation(
                AttType.STRING, lambda row: _render(lhs(row)) + _render(rhs(row))
            )
        raise ValueError(f"'+' cannot combine {lt.value} and {rt.value}")

    if op in ("-", "*", "/"):
        if not numeric:
            raise ValueError(f"'{op}' cannot combine {lt.value} and {rt.value}")
        if op == "-":
            fn = lambda a, b: a - b
        elif op == "*":
            fn = lambda a, b: a * b
        elif number_type is AttType.INT:
            fn = _int_div
        else:
            fn = lambda a, b: a / b
        if number_type is AttType.INT:
            return _Computation(AttType.INT, lambda row: fn(lhs(row), rhs(row)))
        return _Computation(
            AttType.DOUBLE, lambda row: float(fn(float(lhs(row)), float(rhs(row))))
        )

    if op in ("==", "!=", ">", "<"):
        if not (numeric or lt is rt):
            raise ValueError(f"'{op}' cannot compare {lt.value} and {rt.value}")
        compare = {
            "==": lambda a, b: a == b,
            "!=": lambda a, b: a != b,
            ">": lambda a, b: a > b,
            "<": lambda a, b: a < b,
        }[op]
        return _Computation(AttType.BOOL, lambda row: compare(lhs(row), rhs(row)))

    if lt is not AttType.BOOL or rt is not AttType.BOOL:
        raise ValueError(f"'{op}' needs boolean operands")
    if op == "&&":
        return _Computation(AttType.BOOL, lambda row: _truth(lhs(row)) and _truth(rhs(row)))
    return _Computation(AttType.BOOL, lambda row: _truth(lhs(row)) or _truth(rhs(row)))


class _Parser:
    def __init__(self, text: str, schema: list) -> None:
        self.text = text
        self.pos = 0
        self.index: dict = {}
        for i, (name, att_type) in enumerate(schema):
            self.index.setdefault(name, (i, att_type))

    def _error(self, message: str) -> ValueError:
        return ValueError(f"{message} at position {self.pos} in {self.text!r}")

    def _skip(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _expect(self, token: str) -> None:
        self._skip()
        if not self.text.startswith(token, self.pos):
            raise self._error(f"expected {token!r}")
        self.pos += len(token)

    def _bracketed(self) -> str:
        depth = 0
        start = self.pos
        for i in range(self.pos, len(self.text)):
            ch = self.text[i]
            if ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth == 0:
                    self.pos = i + 1
                    return self.text[start + 1 : i]
        raise self._error("unterminated '['")

    def _literal(self, kind: str) -> _Computation:
        self._expect("[")
        end = self.text.find("]", self.pos)
        if end < 0:
            raise self._error("unterminated literal")
        content = self.text[self.pos : end]
        self.pos = end + 1
        if kind == "string":
            return _constant(content, AttType.STRING)
        try:
            if kind == "int":
                return _constant(int(content.strip()), AttType.INT)
            if kind == "double":
                return _constant(float(content.strip()), AttType.DOUBLE)
        except ValueError:
            raise self._error(f"bad {kind} literal {content!r}") from None
        word = content.strip().lower()
        if word not in ("true", "false"):
            raise self._error(f"bad bool literal {content!r}")
        return _constant(word == "true", AttType.BOOL)

    def parse(self) -> _Computation:
        result = self.expression()
        self._skip()
        while self.pos < len(self.text) and self.text[self.pos] in ") \t\n":
            self.pos += 1
        if self.pos != len(self.text):
            raise self._error("unexpected text")
        return result

    def expression(self) -> _Computation:
        self._skip()
        if self.pos >= len(self.text):
            raise self._error("unexpected end")
        if self.text[self.pos] == "[":
            name = self._bracketed()
            if name not in self.index:
                raise self._error(f"unknown attribute {name!r}")
            return _attribute(*self.index[name])
        for kind in _LITERAL_TYPES:
            if self.text.startswith(kind, self.pos):
                self.pos += len(kind)
                return self._literal(kind)
        for op in _OPERATORS:
            if self.text.startswith(op, self.pos):
                self.pos += len(op)
                self._expect("(")
                first = self.expression()
                if op == "!":
                    self._expect(")")
                    return _not(first)
                self._expect(",")
                second = self.expression()
                self._expect(")")
                return _binary(op, first, second)
        raise self._error("unrecognised computation")


def compile_computation(text: str, schema: Iterable) -> _Computation:
    """Compile a computation over records of ``schema`` into a callable.

    The result is called with a record (a sequence in schema order) and has an
    ``att_type`` telling the type of what it returns.  Raises ValueError for
    text that does not parse, unknown attributes and mistyped operands.
    """
    return _Parser(text, _normalize_schema(schema)).parse()


def _select(rows: Iterable, predicate: _Computation, computations: list, output: Table) -> None:
    for row in rows:
        if not _truth(predicate(row)):
            continue
        output.append([f(row) for f in computations])


def _prepare(schema: list, output: Table, predicate: str, projections: list):
    computations = [compile_computation(p, schema) for p in projections]
    if len(computations) != len(output.schema):
        raise ValueError(
            f"{len(computations)} projections for an output of {len(output.schema)} attributes"
        )
    return compile_computation(predicate, schema), computations


class RegularSelection:
    """Scan a table, keep the records the predicate accepts, project them."""

    def __init__(self, input: Table, output: Table, selection_predicate: str, projections) -> None:
        self.input = input
        self.output = output
        self.selection_predicate = selection_predicate
        self.projections = list(projections)

    def run(self) -> None:
        """Append the projected accepted records to the output table."""
        pred, comps = _prepare(
            self.input.schema, self.output, self.selection_predicate, self.projections
        )
        _select(iter(self.input), pred, comps, self.output)


class BPlusSelection:
    """A selection over the records of a sorted table between two keys."""

    def __init__(
        self,
        input: Table,
        output: Table,
        low: Any,
        high: Any,
        selection_predicate: str,
        projections,
    ) -> None:
        self.input = input
        self.output = output
        self.low = low
        self.high = high
        self.selection_predicate = selection_predicate
        self.projections = list(projections)

    def run(self) -> None:
        """Append the projected accepted records in [low, high] to the output."""
        pred, comps = _prepare(
            self.input.schema, self.output, self.selection_predicate, self.projections
        )
        _select(self.input.range(self.low, self.high), pred, comps, self.output)