"""Rules, rewrites, declarations and schedules of the surface language."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from eqsat.expr import Expr, Lit, Literal, Sexp
from eqsat.facts import Action, Fact

_INDENT = " " * 7


def _atom(x: object) -> Sexp:
    return Sexp(str(x))


def _list(*items: Sexp) -> Sexp:
    return Sexp(tuple(items))


@dataclass(frozen=True)
class Rule:
    """Run the ``head`` actions for every match of the ``body`` facts."""

    head: tuple = ()
    body: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "head", tuple(self.head))
        object.__setattr__(self, "body", tuple(self.body))

    def to_sexp(self, ruleset: str, name: str) -> Sexp:
        items = [
            _atom("rule"),
            Sexp(tuple(f.to_sexp() for f in self.body)),
            Sexp(tuple(a.to_sexp() for a in self.head)),
        ]
        if ruleset:
            items += [_atom(":ruleset"), _atom(ruleset)]
        if name:
            items += [_atom(":name"), _atom(f'"{name}"')]
        return Sexp(tuple(items))

    def map_exprs(self, f: Callable[[Expr], Expr]) -> Rule:
        return Rule(
            tuple(a.map_exprs(f) for a in self.head),
            tuple(fact.map_exprs(f) for fact in self.body),
        )

    def format_with_ruleset(self, ruleset: str, name: str) -> str:
        """Render the rule over several lines, one fact or action per line."""
        sep = "\n" + _INDENT
        body = sep.join(str(f) for f in self.body)
        head = sep.join(str(a) for a in self.head)
        ruleset_part = f":ruleset {ruleset}" if ruleset else ""
        name_part = f':name "{name}"' if name else ""
        return f"(rule ({body})\n      ({head})\n{_INDENT} {ruleset_part} {name_part})"

    def __str__(self) -> str:
        return self.format_with_ruleset("", "")


@dataclass(frozen=True)
class Rewrite:
    """Union ``lhs`` with ``rhs`` wherever ``lhs`` matches and the conditions hold."""

    lhs: Expr
    rhs: Expr
    conditions: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))

    def to_sexp(self, ruleset: str, is_bidirectional: bool) -> Sexp:
        items = [
            _atom("birewrite" if is_bidirectional else "rewrite"),
            self.lhs.to_sexp(),
            self.rhs.to_sexp(),
        ]
        if self.conditions:
            items += [_atom(":when"), Sexp(tuple(f.to_sexp() for f in self.conditions))]
        if ruleset:
            items += [_atom(":ruleset"), _atom(ruleset)]
        return Sexp(tuple(items))

    def __str__(self) -> str:
        return str(self.to_sexp("", False))


@dataclass(frozen=True)
class Schema:
    """Input sort names and the output sort name of a function."""

    input: tuple
    output: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", tuple(self.input))

    def to_sexp(self) -> Sexp:
        return _list(Sexp(tuple(_atom(s) for s in self.input)), _atom(self.output))


@dataclass(frozen=True)
class FunctionDecl:
    """A function declaration as written in source."""

    name: str
    schema: Schema
    default: Optional[Expr] = None
    merge: Optional[Expr] = None
    merge_action: tuple = ()
    cost: Optional[int] = None
    unextractable: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "merge_action", tuple(self.merge_action))

    @classmethod
    def relation(cls, name: str, inputs) -> FunctionDecl:
        """A function to Unit whose default is the unit value."""
        return cls(name=name, schema=Schema(tuple(inputs), "Unit"), default=Lit(Literal(None)))

    def to_sexp(self) -> Sexp:
        items = [_atom("function"), _atom(self.name), *self.schema.to_sexp().value]
        if self.cost is not None:
            items += [_atom(":cost"), _atom(self.cost)]
        if self.unextractable:
            items.append(_atom(":unextractable"))
        if self.merge_action:
            items += [_atom(":on_merge"), Sexp(tuple(a.to_sexp() for a in self.merge_action))]
        if self.merge is not None:
            items += [_atom(":merge"), self.merge.to_sexp()]
        if self.default is not None:
            items += [_atom(":default"), self.default.to_sexp()]
        return Sexp(tuple(items))

    def __str__(self) -> str:
        return str(self.to_sexp())


@dataclass(frozen=True)
class Variant:
    """A constructor of a datatype."""

    name: str
    types: tuple = ()
    cost: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "types", tuple(self.types))

    def to_sexp(self) -> Sexp:
        items = [_atom(self.name), *(_atom(t) for t in self.types)]
        if self.cost is not None:
            items += [_atom(":cost"), _atom(self.cost)]
        return Sexp(tuple(items))

    def __str__(self) -> str:
        return str(self.to_sexp())


@dataclass(frozen=True)
class IdentSort:
    """An identifier together with its sort."""

    ident: str
    sort: str

    def to_sexp(self) -> Sexp:
        return _list(_atom(self.ident), _atom(self.sort))

    def __str__(self) -> str:
        return str(self.to_sexp())


@dataclass(frozen=True)
class RunConfig:
    """Run a ruleset once, optionally stopping when the facts hold."""

    ruleset: str = ""
    until: Optional[tuple] = None

    def __post_init__(self) -> None:
        if self.until is not None:
            object.__setattr__(self, "until", tuple(self.until))

    def to_sexp(self) -> Sexp:
        items = [_atom("run")]
        if self.ruleset:
            items.append(_atom(self.ruleset))
        if self.until is not None:
            items.append(_atom(":until"))
            items.extend(f.to_sexp() for f in self.until)
        return Sexp(tuple(items))


class Schedule(ABC):
    """How rulesets are run: saturated, repeated, once, or in sequence."""

    __slots__ = ()

    def saturate(self) -> Saturate:
        return Saturate(self)

    @abstractmethod
    def to_sexp(self) -> Sexp:
        """Render this schedule as an s-expression."""

    def __str__(self) -> str:
        return str(self.to_sexp())


@dataclass(frozen=True)
class Saturate(Schedule):
    schedule: Schedule

    def to_sexp(self) -> Sexp:
        return _list(_atom("saturate"), self.schedule.to_sexp())


@dataclass(frozen=True)
class Repeat(Schedule):
    times: int
    schedule: Schedule

    def to_sexp(self) -> Sexp:
        return _list(_atom("repeat"), _atom(self.times), self.schedule.to_sexp())


@dataclass(frozen=True)
class Run(Schedule):
    config: RunConfig

    def to_sexp(self) -> Sexp:
        return self.config.to_sexp()


@dataclass(frozen=True)
class Sequence(Schedule):
    schedules: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "schedules", tuple(self.schedules))

    def to_sexp(self) -> Sexp:
        return _list(_atom("seq"), *(s.to_sexp() for s in self.schedules))