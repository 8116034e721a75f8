"""Top-level commands of the surface language."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from eqsat.decls import FunctionDecl, Rewrite, Rule, Schedule
from eqsat.expr import Expr, Sexp
from eqsat.facts import Action


def _atom(x: object) -> Sexp:
    return Sexp(str(x))


def _list(*items: Sexp) -> Sexp:
    return Sexp(tuple(items))


def _quoted(text: str) -> Sexp:
    return Sexp(f'"{text}"')


class Command(ABC):
    """A top-level command of a program."""

    __slots__ = ()

    @abstractmethod
    def to_sexp(self) -> Sexp:
        """Render this command as an s-expression."""

    def __str__(self) -> str:
        return str(self.to_sexp())


@dataclass(frozen=True)
class SetOption(Command):
    name: str
    value: Expr

    def to_sexp(self) -> Sexp:
        return _list(_atom("set-option"), _atom(self.name), self.value.to_sexp())


@dataclass(frozen=True)
class Datatype(Command):
    name: str
    variants: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "variants", tuple(self.variants))

    def to_sexp(self) -> Sexp:
        return _list(_atom("datatype"), _atom(self.name), *(v.to_sexp() for v in self.variants))


@dataclass(frozen=True)
class Declare(Command):
    name: str
    sort: str

    def to_sexp(self) -> Sexp:
        return _list(_atom("declare"), _atom(self.name), _atom(self.sort))


@dataclass(frozen=True)
class Sort(Command):
    """A new sort, optionally built by a container sort from arguments."""

    name: str
    params: Optional[tuple] = None

    def __post_init__(self) -> None:
        if self.params is not None:
            container, args = self.params
            object.__setattr__(self, "params", (container, tuple(args)))

    def to_sexp(self) -> Sexp:
        if self.params is None:
            return _list(_atom("sort"), _atom(self.name))
        container, args = self.params
        return _list(
            _atom("sort"),
            _atom(self.name),
            _list(_atom(container), *(a.to_sexp() for a in args)),
        )


@dataclass(frozen=True)
class FunctionCommand(Command):
    decl: FunctionDecl

    def to_sexp(self) -> Sexp:
        return self.decl.to_sexp()


@dataclass(frozen=True)
class Relation(Command):
    constructor: str
    inputs: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(self.inputs))

    def to_sexp(self) -> Sexp:
        return _list(
            _atom("relation"),
            _atom(self.constructor),
            Sexp(tuple(_atom(i) for i in self.inputs)),
        )


@dataclass(frozen=True)
class AddRuleset(Command):
    name: str

    def to_sexp(self) -> Sexp:
        return _list(_atom("ruleset"), _atom(self.name))


@dataclass(frozen=True)
class RuleCommand(Command):
    name: str
    ruleset: str
    rule: Rule

    def to_sexp(self) -> Sexp:
        return self.rule.to_sexp(self.ruleset, self.name)

    def __str__(self) -> str:
        return self.rule.format_with_ruleset(self.ruleset, self.name)


@dataclass(frozen=True)
class RewriteCommand(Command):
    ruleset: str
    rewrite: Rewrite

    def to_sexp(self) -> Sexp:
        return self.rewrite.to_sexp(self.ruleset, False)


@dataclass(frozen=True)
class BiRewriteCommand(Command):
    ruleset: str
    rewrite: Rewrite

    def to_sexp(self) -> Sexp:
        return self.rewrite.to_sexp(self.ruleset, True)


@dataclass(frozen=True)
class ActionCommand(Command):
    action: Action

    def to_sexp(self) -> Sexp:
        return self.action.to_sexp()


@dataclass(frozen=True)
class RunScheduleCommand(Command):
    schedule: Schedule

    def to_sexp(self) -> Sexp:
        return _list(_atom("run-schedule"), self.schedule.to_sexp())


@dataclass(frozen=True)
class PrintOverallStatistics(Command):
    def to_sexp(self) -> Sexp:
        return _list(_atom("print-stats"))


@dataclass(frozen=True)
class Simplify(Command):
    expr: Expr
    schedule: Schedule

    def to_sexp(self) -> Sexp:
        return _list(_atom("simplify"), self.schedule.to_sexp(), self.expr.to_sexp())


@dataclass(frozen=True)
class Calc(Command):
    idents: tuple = ()
    exprs: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "idents", tuple(self.idents))
        object.__setattr__(self, "exprs", tuple(self.exprs))

    def to_sexp(self) -> Sexp:
        return _list(
            _atom("calc"),
            Sexp(tuple(i.to_sexp() for i in self.idents)),
            *(e.to_sexp() for e in self.exprs),
        )


@dataclass(frozen=True)
class QueryExtract(Command):
    variants: int
    expr: Expr

    def to_sexp(self) -> Sexp:
        return _list(
            _atom("query-extract"), _atom(":variants"), _atom(self.variants), self.expr.to_sexp()
        )


@dataclass(frozen=True)
class Check(Command):
    facts: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "facts", tuple(self.facts))

    def to_sexp(self) -> Sexp:
        return _list(_atom("check"), *(f.to_sexp() for f in self.facts))

    def __str__(self) -> str:
        body = "\n".join(str(f) for f in self.facts)
        return f"(check {body})"


@dataclass(frozen=True)
class CheckProof(Command):
    def to_sexp(self) -> Sexp:
        return _list(_atom("check-proof"))


@dataclass(frozen=True)
class PrintFunction(Command):
    name: str
    limit: int

    def to_sexp(self) -> Sexp:
        return _list(_atom("print-function"), _atom(self.name), _atom(self.limit))


@dataclass(frozen=True)
class PrintSize(Command):
    name: Optional[str] = None

    def to_sexp(self) -> Sexp:
        if self.name is None:
            return _list(_atom("print-size"))
        return _list(_atom("print-size"), _atom(self.name))


@dataclass(frozen=True)
class Input(Command):
    name: str
    file: str

    def to_sexp(self) -> Sexp:
        return _list(_atom("input"), _atom(self.name), _quoted(self.file))


@dataclass(frozen=True)
class Output(Command):
    file: str
    exprs: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "exprs", tuple(self.exprs))

    def to_sexp(self) -> Sexp:
        return _list(_atom("output"), _quoted(self.file), *(e.to_sexp() for e in self.exprs))


@dataclass(frozen=True)
class Push(Command):
    count: int = 1

    def to_sexp(self) -> Sexp:
        return _list(_atom("push"), _atom(self.count))


@dataclass(frozen=True)
class Pop(Command):
    count: int = 1

    def to_sexp(self) -> Sexp:
        return _list(_atom("pop"), _atom(self.count))


@dataclass(frozen=True)
class Fail(Command):
    command: Command

    def to_sexp(self) -> Sexp:
        return _list(_atom("fail"), self.command.to_sexp())


@dataclass(frozen=True)
class Include(Command):
    file: str

    def to_sexp(self) -> Sexp:
        return _list(_atom("include"), _quoted(self.file))