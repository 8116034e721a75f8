"""Literals, expressions and s-expressions of the rule language."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Iterable, Iterator, Mapping, TypeVar, Union

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1

_T = TypeVar("_T")

LiteralValue = Union[int, float, str, bool, None]


def _format_float(x: float) -> str:
    """Render a float without exponent, always showing a decimal point for integral values."""
    if math.isnan(x):
        text = "NaN"
    elif math.isinf(x):
        text = "inf" if x > 0 else "-inf"
    else:
        text = format(Decimal(repr(x)), "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
    try:
        parsed = int(text)
    except ValueError:
        return text
    if _I64_MIN <= parsed <= _I64_MAX:
        return f"{text}.0"
    return text


def _kind_of(value: object) -> str:
    if value is None:
        return "unit"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "f64"
    if isinstance(value, str):
        return "string"
    raise TypeError(f"unsupported literal value: {value!r}")


@dataclass(frozen=True)
class Literal:
    """A constant: an integer, float, string, boolean, or unit (None)."""

    value: LiteralValue = None
    _kind: str = field(init=False, repr=False, compare=True)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_kind", _kind_of(self.value))

    def __str__(self) -> str:
        kind = self._kind
        if kind == "int":
            return str(self.value)
        if kind == "f64":
            return _format_float(self.value)  # type: ignore[arg-type]
        if kind == "bool":
            return "true" if self.value else "false"
        if kind == "string":
            return f'"{self.value}"'
        return "()"


@dataclass(frozen=True)
class Sexp:
    """A symbolic expression: either an atom (a string) or a list of s-expressions."""

    value: Union[str, tuple]

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            object.__setattr__(self, "value", tuple(self.value))

    def __str__(self) -> str:
        if isinstance(self.value, str):
            return self.value
        return "(" + " ".join(str(item) for item in self.value) + ")"


class Expr:
    """Base class of expressions: literals, variables and calls."""

    __slots__ = ()

    def is_var(self) -> bool:
        return isinstance(self, Var)

    def get_var(self) -> str | None:
        return self.name if isinstance(self, Var) else None

    def children(self) -> tuple[Expr, ...]:
        return self.args if isinstance(self, Call) else ()

    def ast_size(self) -> int:
        return sum(1 for _ in self._preorder())

    def _preorder(self) -> Iterator[Expr]:
        yield self
        for child in self.children():
            yield from child._preorder()

    def walk(self, pre: Callable[[Expr], object], post: Callable[[Expr], object]) -> None:
        """Visit every node, calling ``pre`` before and ``post`` after its children."""
        pre(self)
        for child in self.children():
            child.walk(pre, post)
        post(self)

    def fold(self, f: Callable[[Expr, list[_T]], _T]) -> _T:
        return f(self, [child.fold(f) for child in self.children()])

    def map(self, f: Callable[[Expr], Expr]) -> Expr:
        """Rebuild bottom-up, applying ``f`` to every node after its children."""
        if isinstance(self, Call):
            return f(Call(self.op, tuple(child.map(f) for child in self.args)))
        return f(self)

    def to_sexp(self) -> Sexp:
        if isinstance(self, Lit):
            return Sexp(str(self.literal))
        if isinstance(self, Var):
            return Sexp(self.name)
        assert isinstance(self, Call)
        return Sexp((Sexp(self.op), *(child.to_sexp() for child in self.args)))

    def subst(self, canon: Mapping[str, Expr]) -> Expr:
        if isinstance(self, Var):
            return canon.get(self.name, self)
        if isinstance(self, Call):
            return Call(self.op, tuple(child.subst(canon) for child in self.args))
        return self

    def vars(self) -> Iterator[str]:
        """Yield variable names in left-to-right order, with repetitions."""
        if isinstance(self, Var):
            yield self.name
        elif isinstance(self, Call):
            for child in self.args:
                yield from child.vars()

    def __str__(self) -> str:
        return str(self.to_sexp())


@dataclass(frozen=True)
class Lit(Expr):
    literal: Literal


@dataclass(frozen=True)
class Var(Expr):
    name: str


@dataclass(frozen=True)
class Call(Expr):
    op: str
    args: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


def call(op: str, children: Iterable[Expr]) -> Call:
    return Call(op, tuple(children))


def lit(value: Union[Literal, LiteralValue]) -> Lit:
    return Lit(value if isinstance(value, Literal) else Literal(value))


@dataclass(frozen=True)
class NormCall:
    """A flat call whose arguments are all variable names."""

    op: str
    args: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))

    def to_expr(self) -> Call:
        return Call(self.op, tuple(Var(a) for a in self.args))

    def map_def_use(self, fvar: Callable[[str, bool], str], is_def: bool) -> NormCall:
        return NormCall(self.op, tuple(fvar(a, is_def) for a in self.args))

    def __str__(self) -> str:
        return str(self.to_expr())