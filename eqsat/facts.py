"""Facts (rule queries) and actions (rule heads) of the rule language."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Mapping

from eqsat.expr import Expr, Sexp

ExprFn = Callable[[Expr], Expr]


def _atom(x: object) -> Sexp:
    return Sexp(str(x))


def _list(*items: Sexp) -> Sexp:
    return Sexp(tuple(items))


class Fact(ABC):
    """A part of a query: an equality between expressions or a bare expression."""

    __slots__ = ()

    @abstractmethod
    def to_sexp(self) -> Sexp:
        """Render this fact as an s-expression."""

    @abstractmethod
    def map_exprs(self, f: ExprFn) -> Fact:
        """Apply ``f`` to every top-level expression of this fact."""

    def subst(self, subst: Mapping[str, Expr]) -> Fact:
        return self.map_exprs(lambda e: e.subst(subst))

    def __str__(self) -> str:
        return str(self.to_sexp())


@dataclass(frozen=True)
class EqFact(Fact):
    """All the expressions must be equal."""

    exprs: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "exprs", tuple(self.exprs))

    def to_sexp(self) -> Sexp:
        return _list(_atom("="), *(e.to_sexp() for e in self.exprs))

    def map_exprs(self, f: ExprFn) -> EqFact:
        return EqFact(tuple(f(e) for e in self.exprs))


@dataclass(frozen=True)
class ExprFact(Fact):
    """The expression must match something in the database."""

    expr: Expr

    def to_sexp(self) -> Sexp:
        return self.expr.to_sexp()

    def map_exprs(self, f: ExprFn) -> ExprFact:
        return ExprFact(f(self.expr))


class Action(ABC):
    """Something a rule head or a top-level command does to the database."""

    __slots__ = ()

    @abstractmethod
    def to_sexp(self) -> Sexp:
        """Render this action as an s-expression."""

    @abstractmethod
    def map_exprs(self, f: ExprFn) -> Action:
        """Apply ``f`` to every top-level expression of this action."""

    def replace_canon(self, canon: Mapping[str, Expr]) -> Action:
        """Substitute variables according to ``canon`` in every expression."""
        return self.map_exprs(lambda e: e.subst(canon))

    def __str__(self) -> str:
        return str(self.to_sexp())


@dataclass(frozen=True)
class LetAction(Action):
    """Bind a variable to the value of an expression."""

    name: str
    expr: Expr

    def to_sexp(self) -> Sexp:
        return _list(_atom("let"), _atom(self.name), self.expr.to_sexp())

    def map_exprs(self, f: ExprFn) -> LetAction:
        return LetAction(self.name, f(self.expr))


@dataclass(frozen=True)
class SetAction(Action):
    """Set a function's output for the given arguments."""

    name: str
    args: tuple
    rhs: Expr

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))

    def to_sexp(self) -> Sexp:
        return _list(
            _atom("set"),
            _list(_atom(self.name), *(a.to_sexp() for a in self.args)),
            self.rhs.to_sexp(),
        )

    def map_exprs(self, f: ExprFn) -> SetAction:
        right = f(self.rhs)
        return SetAction(self.name, tuple(f(a) for a in self.args), right)


@dataclass(frozen=True)
class DeleteAction(Action):
    """Delete a function's entry for the given arguments."""

    name: str
    args: tuple

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))

    def to_sexp(self) -> Sexp:
        return _list(
            _atom("delete"),
            _list(_atom(self.name), *(a.to_sexp() for a in self.args)),
        )

    def map_exprs(self, f: ExprFn) -> DeleteAction:
        return DeleteAction(self.name, tuple(f(a) for a in self.args))


@dataclass(frozen=True)
class UnionAction(Action):
    """Make two datatype values equal."""

    lhs: Expr
    rhs: Expr

    def to_sexp(self) -> Sexp:
        return _list(_atom("union"), self.lhs.to_sexp(), self.rhs.to_sexp())

    def map_exprs(self, f: ExprFn) -> UnionAction:
        return UnionAction(f(self.lhs), f(self.rhs))


@dataclass(frozen=True)
class ExtractAction(Action):
    """Extract the cheapest term for a value, plus a number of variants."""

    expr: Expr
    variants: Expr

    def to_sexp(self) -> Sexp:
        return _list(_atom("extract"), self.expr.to_sexp(), self.variants.to_sexp())

    def map_exprs(self, f: ExprFn) -> ExtractAction:
        return ExtractAction(f(self.expr), f(self.variants))


@dataclass(frozen=True)
class PanicAction(Action):
    """Abort with a message."""

    message: str

    def to_sexp(self) -> Sexp:
        return _list(_atom("panic"), _atom(f'"{self.message}"'))

    def map_exprs(self, f: ExprFn) -> PanicAction:
        return PanicAction(self.message)


@dataclass(frozen=True)
class ExprAction(Action):
    """Evaluate an expression for its effect of adding to the database."""

    expr: Expr

    def to_sexp(self) -> Sexp:
        return self.expr.to_sexp()

    def map_exprs(self, f: ExprFn) -> ExprAction:
        return ExprAction(f(self.expr))