"""Normalized facts, actions and rules, and their conversion back to surface syntax."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, MutableMapping, Optional

from eqsat.decls import FunctionDecl, Rule, Schema
from eqsat.expr import Call, Expr, Lit, Literal, NormCall, Var
from eqsat.facts import (
    Action,
    DeleteAction,
    EqFact,
    ExprAction,
    ExtractAction,
    Fact,
    LetAction,
    PanicAction,
    SetAction,
    UnionAction,
)

DefUseFn = Callable[[str, bool], str]
NormExprFn = Callable[[NormCall], NormCall]


class _UnionFind:
    """Disjoint sets over dense integer ids; the first argument's root leads a union."""

    def __init__(self) -> None:
        self._parents: list[int] = []

    def make_set(self) -> int:
        new_id = len(self._parents)
        self._parents.append(new_id)
        return new_id

    def find(self, i: int) -> int:
        while self._parents[i] != i:
            self._parents[i] = self._parents[self._parents[i]]
            i = self._parents[i]
        return i

    def union(self, a: int, b: int) -> int:
        root_a, root_b = self.find(a), self.find(b)
        if root_a != root_b:
            self._parents[root_b] = root_a
        return root_a


class NormFact(ABC):
    """A flattened query fact in which every expression is a single flat call."""

    __slots__ = ()

    @abstractmethod
    def to_fact(self) -> Fact:
        """Convert to a surface fact."""

    @abstractmethod
    def map_exprs(self, f: NormExprFn) -> NormFact:
        """Apply ``f`` to the flat calls of this fact."""

    @abstractmethod
    def map_use(self, fvar: Callable[[str], Expr]) -> Fact:
        """Convert to a surface fact, replacing used variables with ``fvar``'s result."""

    @abstractmethod
    def map_def_use(self, fvar: DefUseFn) -> NormFact:
        """Rename variables; ``fvar`` is told whether each one is defined here."""

    def __str__(self) -> str:
        return str(self.to_fact())


@dataclass(frozen=True)
class NormAssign(NormFact):
    """Bind ``var`` to a row of a table."""

    var: str
    expr: NormCall

    def to_fact(self) -> Fact:
        return EqFact((Var(self.var), self.expr.to_expr()))

    def map_exprs(self, f: NormExprFn) -> NormFact:
        return NormAssign(self.var, f(self.expr))

    def map_use(self, fvar: Callable[[str], Expr]) -> Fact:
        return self.to_fact()

    def map_def_use(self, fvar: DefUseFn) -> NormFact:
        return NormAssign(fvar(self.var, True), self.expr.map_def_use(fvar, True))


@dataclass(frozen=True)
class NormAssignVar(NormFact):
    """Define ``lhs`` as the already-bound ``rhs``."""

    lhs: str
    rhs: str

    def to_fact(self) -> Fact:
        return EqFact((Var(self.lhs), Var(self.rhs)))

    def map_exprs(self, f: NormExprFn) -> NormFact:
        return NormAssignVar(self.lhs, self.rhs)

    def map_use(self, fvar: Callable[[str], Expr]) -> Fact:
        return EqFact((Var(self.lhs), fvar(self.rhs)))

    def map_def_use(self, fvar: DefUseFn) -> NormFact:
        return NormAssignVar(fvar(self.lhs, True), fvar(self.rhs, False))


@dataclass(frozen=True)
class NormCompute(NormFact):
    """Bind ``var`` to the result of a primitive computation."""

    var: str
    expr: NormCall

    def to_fact(self) -> Fact:
        return EqFact((Var(self.var), self.expr.to_expr()))

    def map_exprs(self, f: NormExprFn) -> NormFact:
        return NormAssign(self.var, f(self.expr))

    def map_use(self, fvar: Callable[[str], Expr]) -> Fact:
        return EqFact(
            (fvar(self.var), Call(self.expr.op, tuple(fvar(a) for a in self.expr.args)))
        )

    def map_def_use(self, fvar: DefUseFn) -> NormFact:
        return NormCompute(fvar(self.var, True), self.expr.map_def_use(fvar, False))


@dataclass(frozen=True)
class NormAssignLit(NormFact):
    """Bind ``var`` to a literal."""

    var: str
    literal: Literal

    def to_fact(self) -> Fact:
        return EqFact((Var(self.var), Lit(self.literal)))

    def map_exprs(self, f: NormExprFn) -> NormFact:
        return NormAssignLit(self.var, self.literal)

    def map_use(self, fvar: Callable[[str], Expr]) -> Fact:
        return self.to_fact()

    def map_def_use(self, fvar: DefUseFn) -> NormFact:
        return NormAssignLit(fvar(self.var, True), self.literal)


@dataclass(frozen=True)
class NormConstrainEq(NormFact):
    """Require two bound variables to be equal."""

    lhs: str
    rhs: str

    def to_fact(self) -> Fact:
        return EqFact((Var(self.lhs), Var(self.rhs)))

    def map_exprs(self, f: NormExprFn) -> NormFact:
        return NormConstrainEq(self.lhs, self.rhs)

    def map_use(self, fvar: Callable[[str], Expr]) -> Fact:
        return EqFact((fvar(self.lhs), fvar(self.rhs)))

    def map_def_use(self, fvar: DefUseFn) -> NormFact:
        return NormConstrainEq(fvar(self.lhs, False), fvar(self.rhs, False))


class NormAction(ABC):
    """A flattened action whose operands are all variables."""

    __slots__ = ()

    @abstractmethod
    def to_action(self) -> Action:
        """Convert to a surface action."""

    @abstractmethod
    def map_exprs(self, f: NormExprFn) -> NormAction:
        """Apply ``f`` to the flat calls of this action."""

    @abstractmethod
    def map_def_use(self, fvar: DefUseFn) -> NormAction:
        """Rename variables; ``fvar`` is told whether each one is defined here."""

    def __str__(self) -> str:
        return str(self.to_action())


@dataclass(frozen=True)
class NormLet(NormAction):
    var: str
    expr: NormCall

    def to_action(self) -> Action:
        return LetAction(self.var, self.expr.to_expr())

    def map_exprs(self, f: NormExprFn) -> NormAction:
        return NormLet(self.var, f(self.expr))

    def map_def_use(self, fvar: DefUseFn) -> NormAction:
        return NormLet(fvar(self.var, True), self.expr.map_def_use(fvar, False))


@dataclass(frozen=True)
class NormLetVar(NormAction):
    var: str
    other: str

    def to_action(self) -> Action:
        return LetAction(self.var, Var(self.other))

    def map_exprs(self, f: NormExprFn) -> NormAction:
        return NormLetVar(self.var, self.other)

    def map_def_use(self, fvar: DefUseFn) -> NormAction:
        return NormLetVar(fvar(self.var, True), fvar(self.other, False))


@dataclass(frozen=True)
class NormLetLit(NormAction):
    var: str
    literal: Literal

    def to_action(self) -> Action:
        return LetAction(self.var, Lit(self.literal))

    def map_exprs(self, f: NormExprFn) -> NormAction:
        return NormLetLit(self.var, self.literal)

    def map_def_use(self, fvar: DefUseFn) -> NormAction:
        return NormLetLit(fvar(self.var, True), self.literal)


@dataclass(frozen=True)
class NormExtract(NormAction):
    var: str
    variants: str

    def to_action(self) -> Action:
        return ExtractAction(Var(self.var), Var(self.variants))

    def map_exprs(self, f: NormExprFn) -> NormAction:
        return NormExtract(self.var, self.variants)

    def map_def_use(self, fvar: DefUseFn) -> NormAction:
        return NormExtract(fvar(self.var, False), fvar(self.variants, False))


@dataclass(frozen=True)
class NormSet(NormAction):
    expr: NormCall
    other: str

    def to_action(self) -> Action:
        return SetAction(self.expr.op, tuple(Var(a) for a in self.expr.args), Var(self.other))

    def map_exprs(self, f: NormExprFn) -> NormAction:
        return NormSet(f(self.expr), self.other)

    def map_def_use(self, fvar: DefUseFn) -> NormAction:
        return NormSet(self.expr.map_def_use(fvar, False), fvar(self.other, False))


@dataclass(frozen=True)
class NormDelete(NormAction):
    expr: NormCall

    def to_action(self) -> Action:
        return DeleteAction(self.expr.op, tuple(Var(a) for a in self.expr.args))

    def map_exprs(self, f: NormExprFn) -> NormAction:
        return NormDelete(f(self.expr))

    def map_def_use(self, fvar: DefUseFn) -> NormAction:
        return NormDelete(self.expr.map_def_use(fvar, False))


@dataclass(frozen=True)
class NormUnion(NormAction):
    lhs: str
    rhs: str

    def to_action(self) -> Action:
        return UnionAction(Var(self.lhs), Var(self.rhs))

    def map_exprs(self, f: NormExprFn) -> NormAction:
        return NormUnion(self.lhs, self.rhs)

    def map_def_use(self, fvar: DefUseFn) -> NormAction:
        return NormUnion(fvar(self.lhs, False), fvar(self.rhs, False))


@dataclass(frozen=True)
class NormPanic(NormAction):
    message: str

    def to_action(self) -> Action:
        return PanicAction(self.message)

    def map_exprs(self, f: NormExprFn) -> NormAction:
        return NormPanic(self.message)

    def map_def_use(self, fvar: DefUseFn) -> NormAction:
        return NormPanic(self.message)


def _def_uses(item: NormFact) -> list[tuple[str, bool]]:
    seen: list[tuple[str, bool]] = []

    def record(var: str, is_def: bool) -> str:
        seen.append((var, is_def))
        return var

    item.map_def_use(record)
    return seen


def _unbound_in_order(facts) -> list[str]:
    bound = {var for fact in facts for var, is_def in _def_uses(fact) if is_def}
    unbound: dict[str, None] = {}
    for fact in facts:
        for var, is_def in _def_uses(fact):
            if not is_def and var not in bound:
                unbound[var] = None
    return list(unbound)


@dataclass(frozen=True)
class NormRule:
    """A rule with flattened body facts and flattened head actions."""

    head: tuple = ()
    body: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "head", tuple(self.head))
        object.__setattr__(self, "body", tuple(self.body))

    def to_rule(self) -> Rule:
        return Rule(
            tuple(a.to_action() for a in self.head),
            tuple(f.to_fact() for f in self.body),
        )

    @staticmethod
    def globals_used_in_matcher(facts) -> set[str]:
        """Variables the facts use without defining them."""
        return set(_unbound_in_order(facts))

    @staticmethod
    def resugar_facts(facts, subst: MutableMapping[str, Expr]) -> list[Fact]:
        """Drop equality constraints, recording the implied renamings in ``subst``."""
        facts = tuple(facts)
        unbound = _unbound_in_order(facts)
        uf = _UnionFind()
        var_to_id: dict[str, int] = {}
        id_to_var: dict[int, str] = {}

        def get_id(var: str) -> int:
            if var not in var_to_id:
                new_id = uf.make_set()
                var_to_id[var] = new_id
                id_to_var[new_id] = var
            return var_to_id[var]

        for fact in facts:
            if isinstance(fact, (NormConstrainEq, NormAssignVar)):
                uf.union(get_id(fact.lhs), get_id(fact.rhs))

        for var, var_id in var_to_id.items():
            leader = id_to_var[uf.find(var_id)]
            if leader != var:
                subst[var] = Var(leader)

        result = [
            fact.to_fact().subst(subst)
            for fact in facts
            if not isinstance(fact, (NormConstrainEq, NormAssignVar))
        ]

        # Constraints on variables bound outside the query must be kept.
        for var in unbound:
            var_id = var_to_id.get(var)
            if var_id is not None:
                leader = id_to_var[uf.find(var_id)]
                if leader != var:
                    result.append(EqFact((Var(var), Var(leader))))
        return result

    def resugar_actions(self, subst: MutableMapping[str, Expr]) -> list[Action]:
        """Rebuild nested surface actions, inlining small bindings via ``subst``."""
        used: set[str] = set()
        head: list[Action] = []
        for action in self.head:
            if isinstance(action, NormLet):
                new_expr = action.expr.to_expr()
                used.update(new_expr.vars())
                substituted = new_expr.subst(subst)
                if substituted.ast_size() > 1:
                    head.append(LetAction(action.var, substituted))
                else:
                    subst[action.var] = substituted
            elif isinstance(action, NormLetVar):
                used.add(action.other)
                subst[action.var] = subst.get(action.other, Var(action.other))
            elif isinstance(action, NormExtract):
                expr = subst.get(action.var, Var(action.var))
                used.add(action.var)
                variants = subst.get(action.variants, Var(action.variants))
                used.add(action.variants)
                head.append(ExtractAction(expr, variants))
            elif isinstance(action, NormLetLit):
                subst[action.var] = Lit(action.literal)
            elif isinstance(action, NormSet):
                new_expr = action.expr.to_expr()
                used.update(new_expr.vars())
                other = subst.get(action.other, Var(action.other))
                used.add(action.other)
                substituted = new_expr.subst(subst)
                head.append(SetAction(substituted.op, substituted.args, other))
            elif isinstance(action, NormDelete):
                new_expr = action.expr.to_expr()
                used.update(new_expr.vars())
                substituted = new_expr.subst(subst)
                head.append(DeleteAction(substituted.op, substituted.args))
            elif isinstance(action, NormUnion):
                lhs = subst.get(action.lhs, Var(action.lhs))
                rhs = subst.get(action.rhs, Var(action.rhs))
                used.add(action.lhs)
                used.add(action.rhs)
                head.append(UnionAction(lhs, rhs))
            elif isinstance(action, NormPanic):
                head.append(PanicAction(action.message))
            else:
                raise TypeError(f"unknown normalized action: {action!r}")

        # Unused calls still add to the database, so they must be kept.
        for var, expr in subst.items():
            if var not in used and isinstance(expr, Call):
                head.append(ExprAction(expr))
        return head

    def resugar(self) -> Rule:
        subst: dict[str, Expr] = {}
        body = NormRule.resugar_facts(self.body, subst)
        return Rule(tuple(self.resugar_actions(subst)), tuple(body))

    def map_exprs(self, f: NormExprFn) -> NormRule:
        head = tuple(a.map_exprs(f) for a in self.head)
        body = tuple(fact.map_exprs(f) for fact in self.body)
        return NormRule(head, body)

    def map_def_use(self, fvar: DefUseFn) -> NormRule:
        head = tuple(a.map_def_use(fvar) for a in self.head)
        body = tuple(fact.map_def_use(fvar) for fact in self.body)
        return NormRule(head, body)

    def __str__(self) -> str:
        return str(self.to_rule())


@dataclass(frozen=True)
class NormFunctionDecl:
    """A function declaration whose merge actions are flattened."""

    name: str
    schema: Schema
    default: Optional[Expr] = None
    merge: Optional[Expr] = None
    merge_action: tuple = ()
    cost: Optional[int] = None
    unextractable: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "merge_action", tuple(self.merge_action))

    def to_fdecl(self) -> FunctionDecl:
        return FunctionDecl(
            name=self.name,
            schema=self.schema,
            default=self.default,
            merge=self.merge,
            merge_action=tuple(a.to_action() for a in self.merge_action),
            cost=self.cost,
            unextractable=self.unextractable,
        )