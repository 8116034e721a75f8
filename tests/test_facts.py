import pytest

from eqsat.expr import Call, Sexp, Var, lit
from eqsat.facts import (
    DeleteAction,
    EqFact,
    ExprAction,
    ExprFact,
    ExtractAction,
    LetAction,
    PanicAction,
    SetAction,
    UnionAction,
)

X = Var("x")
Y = Var("y")
FXY = Call("f", (X, Y))


def test_eq_fact_sexp_structure():
    fact = EqFact((X, FXY))
    sexp = fact.to_sexp()
    assert sexp.value[0] == Sexp("=")
    assert sexp.value[1:] == (X.to_sexp(), FXY.to_sexp())
    assert str(fact) == str(sexp)


def test_expr_fact_renders_as_expr():
    assert str(ExprFact(FXY)) == str(FXY)
    assert ExprFact(FXY).to_sexp() == FXY.to_sexp()


def test_fact_subst():
    fact = EqFact((X, Call("g", (Y,))))
    result = fact.subst({"y": Var("z")})
    assert result == EqFact((X, Call("g", (Var("z"),))))


def test_expr_fact_subst():
    assert ExprFact(FXY).subst({"x": lit(1)}) == ExprFact(Call("f", (lit(1), Y)))


def test_fact_map_exprs_visits_each_expr():
    seen = []

    def record(e):
        seen.append(e)
        return e

    fact = EqFact((X, Y, FXY))
    assert fact.map_exprs(record) == fact
    assert seen == [X, Y, FXY]


@pytest.mark.parametrize(
    "action, head",
    [
        (LetAction("a", FXY), "let"),
        (SetAction("f", (X,), Y), "set"),
        (UnionAction(X, Y), "union"),
        (DeleteAction("f", (X, Y)), "delete"),
        (ExtractAction(X, lit(0)), "extract"),
        (PanicAction("oops"), "panic"),
    ],
)
def test_action_sexp_head(action, head):
    sexp = action.to_sexp()
    assert sexp.value[0] == Sexp(head)
    assert str(action) == str(sexp)


def test_set_action_string():
    assert str(SetAction("f", (X,), Y)) == "(set (f x) y)"


def test_panic_action_quotes_message():
    assert str(PanicAction("boom")) == '(panic "boom")'


def test_delete_action_nests_call():
    sexp = DeleteAction("f", (X, Y)).to_sexp()
    assert sexp.value[1] == FXY.to_sexp()


def test_expr_action_renders_as_expr():
    assert str(ExprAction(FXY)) == str(FXY)


def test_set_map_exprs_visits_rhs_first():
    seen = []

    def record(e):
        seen.append(e)
        return e

    action = SetAction("f", (X, Y), FXY)
    assert action.map_exprs(record) == action
    assert seen == [FXY, X, Y]


@pytest.mark.parametrize(
    "action",
    [
        LetAction("a", FXY),
        SetAction("f", (X,), Y),
        UnionAction(X, Y),
        DeleteAction("f", (X, Y)),
        ExtractAction(X, Y),
        ExprAction(FXY),
    ],
)
def test_replace_canon_matches_subst(action):
    canon = {"x": Var("w"), "y": lit(2)}
    result = action.replace_canon(canon)
    assert result == action.map_exprs(lambda e: e.subst(canon))
    assert "x" not in set().union(*(set(e.vars()) for e in _exprs(result)))


def _exprs(action):
    collected = []

    def record(e):
        collected.append(e)
        return e

    action.map_exprs(record)
    return collected


def test_replace_canon_panic_unchanged():
    assert PanicAction("m").replace_canon({"x": Y}) == PanicAction("m")


def test_let_map_keeps_name():
    result = LetAction("a", X).map_exprs(lambda e: Y)
    assert result == LetAction("a", Y)