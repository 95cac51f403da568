"""A small assertion counter that reports results to a text stream."""

from __future__ import annotations

import inspect
from enum import IntEnum
from typing import Any, TextIO


class Verbosity(IntEnum):
    """How much a :class:`UnitTest` writes."""

    SILENT = 0
    QUIET = 1
    NORMAL = 2
    VERBOSE = 3
    NOISY = 4


def _stringify(value: Any) -> str:
    """Render a value the way a default text stream with boolalpha would."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:.6g}"
    return str(value)


class UnitTest:
    """Counts checks, reports failures and prints a summary when closed."""

    def __init__(self, out: TextIO, verbose_level: int = Verbosity.NORMAL) -> None:
        self.out = out
        self.verbose_level = verbose_level
        self.errors = 0
        self.tests = 0
        self._closed = False

    def print_status(self) -> None:
        """Write the one-line summary of all checks so far."""
        state = "FAILED" if self.errors else "OK"
        self.out.write(
            f"Testing {state} ({self.tests} tests, {self.tests - self.errors} ok, "
            f"{self.errors} failed)\n"
        )

    def evaluate(
        self,
        compare: bool,
        result: bool,
        val1: str,
        val2: str,
        str1: str,
        str2: str,
        file: str,
        line: int,
        func: str,
    ) -> bool:
        """Record one check of two rendered values; return whether it passed."""
        ok = (val1 == val2) if result else (val1 != val2)
        self.tests += 1
        if not ok:
            self.errors += 1

        if (ok and not self.verbose_level > Verbosity.NORMAL) or (
            self.verbose_level == Verbosity.SILENT
        ):
            return ok

        head = f"{file}{';' if ok else ':'}{line}: {'OK/' if ok else 'FAILED/'}{func}(): "
        if compare:
            cmp = "==" if result else "!="
            body = f'compare {{{str1}}} {cmp} {{{str2}}} got {{"{val1}"}} {cmp} {{"{val2}"}}'
        else:
            body = f"evaluate {{{str1}}} == {val1}"
        self.out.write(head + body + "\n")
        return ok

    def _compare(self, compare: bool, result: bool, expr1: Any, expr2: Any) -> bool:
        frame = inspect.currentframe()
        caller = frame.f_back.f_back if frame and frame.f_back else None
        if caller is not None:
            file, line, func = caller.f_code.co_filename, caller.f_lineno, caller.f_code.co_name
        else:
            file, line, func = "<unknown>", 0, "<unknown>"
        return self.evaluate(
            compare,
            result,
            _stringify(expr1),
            _stringify(expr2),
            repr(expr1),
            repr(expr2),
            file,
            line,
            func,
        )

    def is_equal(self, expr1: Any, expr2: Any) -> bool:
        """Check that both values render to the same text."""
        return self._compare(True, True, expr1, expr2)

    def is_not_equal(self, expr1: Any, expr2: Any) -> bool:
        """Check that the values render to different text."""
        return self._compare(True, False, expr1, expr2)

    def is_true(self, expr: Any) -> bool:
        """Check that a value renders as true."""
        return self._compare(False, True, expr, True)

    def is_false(self, expr: Any) -> bool:
        """Check that a value renders as false."""
        return self._compare(False, True, expr, False)

    def close(self) -> None:
        """Print the summary once, unless the level is quiet or silent."""
        if self._closed:
            return
        self._closed = True
        if self.verbose_level > Verbosity.QUIET:
            self.print_status()

    def __enter__(self) -> "UnitTest":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()