"""Parsed SQL expression trees with type checking against a catalog."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional

BOOLEAN = "boolean"
INT = "int"
DOUBLE = "double"
STRING = "string"
UNKNOWN = "(Unable to recognize this type)"


class AttType(Enum):
    """Storage type of an attribute."""

    BOOL = "bool"
    INT = "int"
    DOUBLE = "double"
    STRING = "string"


@dataclass
class CheckContext:
    """What expressions are checked against: catalog, FROM tables, groupings.

    The catalog maps ``"<table>.attList"`` to a list of attribute names and
    ``"<table>.<att>.type"`` to a type name.  ``tables`` holds
    ``(table name, alias)`` pairs.  Problems found are collected in ``messages``.
    """

    catalog: Mapping[str, Any] = field(default_factory=dict)
    tables: list = field(default_factory=list)
    groups: list = field(default_factory=list)
    messages: list = field(default_factory=list)

    def report(self, message: str) -> None:
        self.messages.append(message)


def _ctx(context: Optional[CheckContext]) -> CheckContext:
    return context if context is not None else CheckContext()


class ExprTree(ABC):
    """A node of a parsed expression."""

    @abstractmethod
    def to_string(self) -> str:
        """The computation text understood by the relational operators."""

    @abstractmethod
    def check(self, context: Optional[CheckContext] = None) -> bool:
        """Check names and types; report problems to the context."""

    @abstractmethod
    def get_type(self, context: Optional[CheckContext] = None) -> str:
        """One of boolean, int, double, string or the unknown marker."""

    @abstractmethod
    def att_schema(self, name: str, context: Optional[CheckContext] = None) -> tuple:
        """The (attribute name, AttType) this expression produces."""

    def __str__(self) -> str:
        return self.to_string()


@dataclass
class BoolLiteral(ExprTree):
    value: bool

    def to_string(self) -> str:
        return "bool[true]" if self.value else "bool[false]"

    def check(self, context=None) -> bool:
        return True

    def get_type(self, context=None) -> str:
        return BOOLEAN

    def att_schema(self, name, context=None):
        return name, AttType.BOOL


@dataclass
class DoubleLiteral(ExprTree):
    value: float

    def to_string(self) -> str:
        return f"double[{self.value:f}]"

    def check(self, context=None) -> bool:
        return True

    def get_type(self, context=None) -> str:
        return DOUBLE

    def att_schema(self, name, context=None):
        return name, AttType.DOUBLE


@dataclass
class IntLiteral(ExprTree):
    value: int

    def to_string(self) -> str:
        return f"int[{self.value}]"

    def check(self, context=None) -> bool:
        return True

    def get_type(self, context=None) -> str:
        return INT

    def att_schema(self, name, context=None):
        return name, AttType.INT


@dataclass
class StringLiteral(ExprTree):
    """A string constant; ``value`` holds the text without its quotes."""

    value: str

    def to_string(self) -> str:
        return f"string[{self.value}]"

    def check(self, context=None) -> bool:
        return True

    def get_type(self, context=None) -> str:
        return STRING

    def att_schema(self, name, context=None):
        return name, AttType.STRING


_TYPE_NAMES = {"bool": BOOLEAN, "int": INT, "double": DOUBLE, "string": STRING}


@dataclass
class Identifier(ExprTree):
    """A reference ``alias.attribute``."""

    table_name: str
    att_name: str
    _att_type: str = field(default="", init=False, compare=False, repr=False)

    def to_string(self) -> str:
        return f"[{self.table_name}_{self.att_name}]"

    def check(self, context=None) -> bool:
        ctx = _ctx(context)
        full_name = None
        for table, alias in ctx.tables:
            if alias == self.table_name:
                full_name = table
        if full_name is None:
            ctx.report(f"The table [{self.table_name}] doesn't exist, please check")
            return False

        attributes = set(ctx.catalog.get(f"{full_name}.attList", []))
        if self.att_name not in attributes:
            ctx.report(f"The attribute [{self.att_name}] doesn't exist, please check")
            return False

        self._att_type = ctx.catalog.get(f"{full_name}.{self.att_name}.type", "")
        return True

    def get_type(self, context=None) -> str:
        if self._att_type == "":
            self.check(context)
        return _TYPE_NAMES.get(self._att_type, UNKNOWN)

    def att_schema(self, name, context=None):
        try:
            att_type = AttType(self._att_type)
        except ValueError:
            att_type = AttType.BOOL
        return f"[{self.att_name}]{name}", att_type


@dataclass
class BinaryOp(ExprTree):
    """An operator with two operands."""

    lhs: ExprTree
    rhs: ExprTree

    SYMBOL: ClassVar[str] = "?"

    def to_string(self) -> str:
        return f"{self.SYMBOL} ({self.lhs.to_string()}, {self.rhs.to_string()})"

    def _children_ok(self, ctx: CheckContext) -> bool:
        return self.lhs.check(ctx) and self.rhs.check(ctx)

    def _both(self, ctx: CheckContext, type_name: str) -> bool:
        return self.lhs.get_type(ctx) == type_name and self.rhs.get_type(ctx) == type_name

    def _mixed_numbers(self, ctx: CheckContext) -> bool:
        pair = (self.lhs.get_type(ctx), self.rhs.get_type(ctx))
        return pair in ((DOUBLE, INT), (INT, DOUBLE))

    def _number_and_string(self, ctx: CheckContext) -> bool:
        left, right = self.lhs.get_type(ctx), self.rhs.get_type(ctx)
        numbers = (DOUBLE, INT)
        return (left == STRING and right in numbers) or (right == STRING and left in numbers)

    def _arith_type(self, ctx: CheckContext) -> str:
        if self._both(ctx, INT):
            return INT
        if self._both(ctx, DOUBLE) or self._mixed_numbers(ctx):
            return DOUBLE
        return UNKNOWN

    def _fail(self, ctx: CheckContext) -> bool:
        ctx.report(
            f"This operator '{self.SYMBOL}' cannot be used between "
            f"{self.lhs.to_string()} and {self.rhs.to_string()}."
        )
        return False

    def check(self, context=None) -> bool:
        return self._children_ok(_ctx(context))

    def att_schema(self, name, context=None):
        return name, AttType.BOOL


class MinusOp(BinaryOp):
    SYMBOL = "-"

    def get_type(self, context=None) -> str:
        return self._arith_type(_ctx(context))

    def att_schema(self, name, context=None):
        if self.get_type(context) == INT:
            return name, AttType.INT
        return name, AttType.DOUBLE


class PlusOp(BinaryOp):
    SYMBOL = "+"

    def check(self, context=None) -> bool:
        ctx = _ctx(context)
        if not self._children_ok(ctx):
            return False
        if not (
            self._both(ctx, INT)
            or self._both(ctx, DOUBLE)
            or self._mixed_numbers(ctx)
            or self._number_and_string(ctx)
            or self._both(ctx, STRING)
        ):
            return self._fail(ctx)
        return True

    def get_type(self, context=None) -> str:
        ctx = _ctx(context)
        arith = self._arith_type(ctx)
        if arith != UNKNOWN:
            return arith
        if self._both(ctx, STRING) or self._number_and_string(ctx):
            return STRING
        return UNKNOWN

    def att_schema(self, name, context=None):
        result = self.get_type(context)
        if result == INT:
            return name, AttType.INT
        if result == DOUBLE:
            return name, AttType.DOUBLE
        return "sp" + name, AttType.STRING


class TimesOp(BinaryOp):
    SYMBOL = "*"

    def get_type(self, context=None) -> str:
        return self._arith_type(_ctx(context))

    def att_schema(self, name, context=None):
        if self.get_type(context) == INT:
            return name, AttType.INT
        return name, AttType.DOUBLE


class DivideOp(TimesOp):
    SYMBOL = "/"


class _OrderingOp(BinaryOp):
    def _comparable(self, ctx: CheckContext) -> bool:
        return (
            self._both(ctx, DOUBLE)
            or self._both(ctx, INT)
            or self._mixed_numbers(ctx)
            or self._both(ctx, STRING)
        )

    def check(self, context=None) -> bool:
        ctx = _ctx(context)
        if not self._children_ok(ctx):
            return False
        if not self._comparable(ctx):
            return self._fail(ctx)
        return True

    def get_type(self, context=None) -> str:
        return BOOLEAN if self._comparable(_ctx(context)) else UNKNOWN


class GtOp(_OrderingOp):
    SYMBOL = ">"


class LtOp(_OrderingOp):
    SYMBOL = "<"


class _EqualityOp(BinaryOp):
    def check(self, context=None) -> bool:
        ctx = _ctx(context)
        if not self._children_ok(ctx):
            return False
        if self.lhs.get_type(ctx) != self.rhs.get_type(ctx):
            if self._mixed_numbers(ctx):
                return True
            return self._fail(ctx)
        return True

    def get_type(self, context=None) -> str:
        ctx = _ctx(context)
        if self._mixed_numbers(ctx) or self.lhs.get_type(ctx) == self.rhs.get_type(ctx):
            return BOOLEAN
        return UNKNOWN


class NeqOp(_EqualityOp):
    SYMBOL = "!="


class EqOp(_EqualityOp):
    SYMBOL = "=="


class OrOp(BinaryOp):
    SYMBOL = "||"

    def check(self, context=None) -> bool:
        ctx = _ctx(context)
        if not self._children_ok(ctx):
            return False
        if not self._both(ctx, BOOLEAN):
            return self._fail(ctx)
        return True

    def get_type(self, context=None) -> str:
        return BOOLEAN if self._both(_ctx(context), BOOLEAN) else UNKNOWN


@dataclass
class UnaryOp(ExprTree):
    """An operator with one operand."""

    child: ExprTree

    PREFIX: ClassVar[str] = "?"
    SYMBOL: ClassVar[str] = "?"

    def to_string(self) -> str:
        return f"{self.PREFIX}({self.child.to_string()})"

    def _fail(self, ctx: CheckContext) -> bool:
        ctx.report(
            f"This operator '{self.SYMBOL}' cannot be used on {self.child.to_string()}."
        )
        return False

    def _numeric_type(self, ctx: CheckContext) -> str:
        child_type = self.child.get_type(ctx)
        return child_type if child_type in (INT, DOUBLE) else UNKNOWN

    def check(self, context=None) -> bool:
        return self.child.check(_ctx(context))

    def get_type(self, context=None) -> str:
        return self._numeric_type(_ctx(context))

    def att_schema(self, name, context=None):
        return name, AttType.BOOL


class NotOp(UnaryOp):
    PREFIX = "!"
    SYMBOL = "!"

    def check(self, context=None) -> bool:
        ctx = _ctx(context)
        if not self.child.check(ctx):
            return False
        if self.child.get_type(ctx) != BOOLEAN:
            return self._fail(ctx)
        return True

    def get_type(self, context=None) -> str:
        return BOOLEAN if self.child.get_type(_ctx(context)) == BOOLEAN else UNKNOWN


class SumOp(UnaryOp):
    PREFIX = "sum"
    SYMBOL = "SUM"

    def att_schema(self, name, context=None):
        if self.get_type(context) == INT:
            return "sum" + name, AttType.INT
        return "sum" + name, AttType.DOUBLE


class AvgOp(UnaryOp):
    PREFIX = "avg"
    SYMBOL = "SUM"

    def check(self, context=None) -> bool:
        ctx = _ctx(context)
        if not self.child.check(ctx):
            return False
        if self._numeric_type(ctx) == UNKNOWN:
            return self._fail(ctx)
        return True

    def att_schema(self, name, context=None):
        return "avg" + name, AttType.DOUBLE