from eqsat.decls import (
    FunctionDecl,
    IdentSort,
    Repeat,
    Rewrite,
    Rule,
    Run,
    RunConfig,
    Saturate,
    Schema,
    Sequence,
    Variant,
)
from eqsat.expr import Call, Sexp, Var, lit
from eqsat.facts import EqFact, ExprFact, LetAction, UnionAction

A = Var("a")
B = Var("b")
ADD_AB = Call("Add", (A, B))
ADD_BA = Call("Add", (B, A))


def _atoms(sexp):
    return [item.value for item in sexp.value if isinstance(item.value, str)]


def test_relation_matches_documented_desugaring():
    decl = FunctionDecl.relation("path", ["i64", "i64"])
    assert str(decl) == "(function path (i64 i64) Unit :default ())"
    assert decl.schema == Schema(("i64", "i64"), "Unit")


def test_rewrite_matches_documented_form():
    assert str(Rewrite(ADD_AB, ADD_BA)) == "(rewrite (Add a b) (Add b a))"


def test_rewrite_options():
    cond = EqFact((A, Call("Num", (lit(0),))))
    sexp = Rewrite(ADD_AB, ADD_BA, [cond]).to_sexp("rs", True)
    assert sexp.value[0] == Sexp("birewrite")
    assert sexp.value[3] == Sexp(":when")
    assert sexp.value[4] == Sexp((cond.to_sexp(),))
    assert sexp.value[5:] == (Sexp(":ruleset"), Sexp("rs"))


def test_rule_to_sexp_with_ruleset_and_name():
    rule = Rule(head=[UnionAction(A, B)], body=[ExprFact(ADD_AB)])
    sexp = rule.to_sexp("rs", "myrule")
    assert sexp.value[0] == Sexp("rule")
    assert sexp.value[1] == Sexp((ADD_AB.to_sexp(),))
    assert sexp.value[2] == Sexp((UnionAction(A, B).to_sexp(),))
    assert sexp.value[3:] == (Sexp(":ruleset"), Sexp("rs"), Sexp(":name"), Sexp('"myrule"'))


def test_rule_to_sexp_omits_empty_options():
    rule = Rule(head=[UnionAction(A, B)], body=[ExprFact(ADD_AB)])
    assert len(rule.to_sexp("", "").value) == 3


def test_rule_format_layout():
    rule = Rule(
        head=[UnionAction(A, B)],
        body=[ExprFact(ADD_AB), EqFact((A, B))],
    )
    text = str(rule)
    assert text == rule.format_with_ruleset("", "")
    lines = text.splitlines()
    assert len(lines) == 4
    assert lines[0] == "(rule (" + str(ExprFact(ADD_AB))
    assert lines[1].strip() == str(EqFact((A, B))) + ")"
    assert lines[-1].endswith(")")


def test_rule_format_with_ruleset_includes_options():
    rule = Rule(head=[UnionAction(A, B)], body=[ExprFact(ADD_AB)])
    last = rule.format_with_ruleset("rs", "nm").splitlines()[-1]
    assert ":ruleset rs" in last
    assert ':name "nm"' in last


def test_rule_map_exprs():
    rule = Rule(head=[LetAction("c", A)], body=[ExprFact(A)])
    result = rule.map_exprs(lambda e: e.subst({"a": B}))
    assert result == Rule(head=[LetAction("c", B)], body=[ExprFact(B)])


def test_schema_sexp_structure():
    sexp = Schema(["i64", "String"], "Math").to_sexp()
    assert sexp.value == (Sexp((Sexp("i64"), Sexp("String"))), Sexp("Math"))


def test_function_decl_option_order():
    decl = FunctionDecl(
        name="f",
        schema=Schema(["Math"], "i64"),
        default=lit(0),
        merge=Call("max", (Var("old"), Var("new"))),
        merge_action=[LetAction("z", A)],
        cost=5,
        unextractable=True,
    )
    keywords = [a for a in _atoms(decl.to_sexp()) if a.startswith(":")]
    assert keywords == [":cost", ":unextractable", ":on_merge", ":merge", ":default"]


def test_function_decl_plain_has_no_options():
    decl = FunctionDecl("Add", Schema(["Math", "Math"], "Math"))
    assert not any(a.startswith(":") for a in _atoms(decl.to_sexp()))


def test_variant_string():
    assert str(Variant("Num", ["i64"])) == "(Num i64)"


def test_variant_cost():
    sexp = Variant("Num", ["i64"], cost=7).to_sexp()
    assert sexp.value[-2:] == (Sexp(":cost"), Sexp("7"))


def test_ident_sort_string():
    assert str(IdentSort("x", "Math")) == "(x Math)"


def test_run_config_until_spreads_facts():
    fact = EqFact((A, B))
    sexp = RunConfig("rs", [fact]).to_sexp()
    assert sexp.value == (Sexp("run"), Sexp("rs"), Sexp(":until"), fact.to_sexp())


def test_schedule_saturate_and_render():
    run = Run(RunConfig("rs"))
    sat = run.saturate()
    assert sat == Saturate(run)
    assert sat.to_sexp().value == (Sexp("saturate"), run.to_sexp())
    assert str(run) == str(RunConfig("rs").to_sexp())


def test_repeat_and_sequence():
    run = Run(RunConfig("rs"))
    rep = Repeat(3, run)
    assert rep.to_sexp().value == (Sexp("repeat"), Sexp("3"), run.to_sexp())
    seq = Sequence([rep, run])
    assert seq.to_sexp().value == (Sexp("seq"), rep.to_sexp(), run.to_sexp())
    assert str(seq) == str(seq.to_sexp())