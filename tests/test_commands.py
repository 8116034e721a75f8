import pytest

from eqsat.commands import (
    ActionCommand,
    AddRuleset,
    BiRewriteCommand,
    Calc,
    Check,
    CheckProof,
    Datatype,
    Declare,
    Fail,
    FunctionCommand,
    Include,
    Input,
    Output,
    Pop,
    PrintFunction,
    PrintOverallStatistics,
    PrintSize,
    Push,
    QueryExtract,
    Relation,
    RewriteCommand,
    RuleCommand,
    RunScheduleCommand,
    SetOption,
    Simplify,
    Sort,
    Calc as CalcCommand,
)
from eqsat.decls import (
    FunctionDecl,
    IdentSort,
    Rewrite,
    Rule,
    Run,
    RunConfig,
    Schema,
    Variant,
)
from eqsat.expr import Call, Sexp, Var, lit
from eqsat.facts import EqFact, ExprFact, LetAction, UnionAction


def S(x):
    return Sexp(str(x))


def L(*items):
    return Sexp(tuple(items))


def test_datatype_doc_example():
    cmd = Datatype(
        "Math",
        (
            Variant("Num", ("i64",)),
            Variant("Var", ("String",)),
            Variant("Add", ("Math", "Math")),
            Variant("Mul", ("Math", "Math")),
        ),
    )
    assert str(cmd) == "(datatype Math (Num i64) (Var String) (Add Math Math) (Mul Math Math))"


def test_sort_and_declare_doc_examples():
    assert str(Sort("Math")) == "(sort Math)"
    assert str(Declare("True", "Bool")) == "(declare True Bool)"


def test_sort_with_container():
    cmd = Sort("MathVec", ("Vec", [Var("Math")]))
    assert cmd.params == ("Vec", (Var("Math"),))
    assert cmd.to_sexp() == L(S("sort"), S("MathVec"), L(S("Vec"), S("Math")))


def test_function_doc_examples():
    add = FunctionCommand(FunctionDecl("Add", Schema(("Math", "Math"), "Math")))
    assert str(add) == "(function Add (Math Math) Math)"
    lower = FunctionCommand(
        FunctionDecl(
            "LowerBound",
            Schema(("Math",), "i64"),
            merge=Call("max", (Var("old"), Var("new"))),
        )
    )
    assert str(lower) == "(function LowerBound (Math) i64 :merge (max old new))"


def test_relation_doc_example():
    assert str(Relation("path", ("i64", "i64"))) == "(relation path (i64 i64))"


def test_ruleset_and_print_function():
    assert str(AddRuleset("myrules")) == "(ruleset myrules)"
    assert str(PrintFunction("Add", 20)) == "(print-function Add 20)"


def test_rule_command_uses_multiline_format():
    rule = Rule(
        head=(UnionAction(Var("a"), Var("b")),),
        body=(ExprFact(Call("edge", (Var("a"), Var("b")))),),
    )
    cmd = RuleCommand("r", "myrules", rule)
    assert str(cmd) == rule.format_with_ruleset("myrules", "r")
    assert cmd.to_sexp() == rule.to_sexp("myrules", "r")


def test_rewrite_commands():
    rw = Rewrite(Call("Add", (Var("a"), Var("b"))), Call("Add", (Var("b"), Var("a"))))
    assert str(RewriteCommand("", rw)) == "(rewrite (Add a b) (Add b a))"
    assert BiRewriteCommand("rs", rw).to_sexp() == rw.to_sexp("rs", True)


def test_action_command_doc_example():
    expr = Call("Add", (Call("Var", (lit("x"),)), Call("Num", (lit(1),))))
    cmd = ActionCommand(LetAction("xplusone", expr))
    assert str(cmd) == '(let xplusone (Add (Var "x") (Num 1)))'


def test_check_and_fail_doc_examples():
    check = Check((EqFact((Call("+", (lit(1), lit(2))), lit(3))),))
    assert str(check) == "(check (= (+ 1 2) 3))"
    fail = Fail(Check((EqFact((lit(1), lit(2))),)))
    assert str(fail) == "(fail (check (= 1 2)))"


def test_check_display_joins_facts_with_newlines():
    facts = (ExprFact(Call("f", ())), ExprFact(Call("g", ())))
    text = str(Check(facts))
    assert text.splitlines() == [f"(check {facts[0]}", f"{facts[1]})"]
    assert Check(facts).to_sexp() == L(S("check"), *(f.to_sexp() for f in facts))


@pytest.mark.parametrize(
    "cmd, expected",
    [
        (Push(3), L(S("push"), S(3))),
        (Pop(2), L(S("pop"), S(2))),
        (PrintOverallStatistics(), L(S("print-stats"))),
        (CheckProof(), L(S("check-proof"))),
        (PrintSize(), L(S("print-size"))),
        (PrintSize("Add"), L(S("print-size"), S("Add"))),
        (QueryExtract(0, Var("e")), L(S("query-extract"), S(":variants"), S(0), S("e"))),
        (SetOption("node_limit", lit(1000)), L(S("set-option"), S("node_limit"), S(1000))),
    ],
)
def test_simple_commands_sexp(cmd, expected):
    assert cmd.to_sexp() == expected
    assert str(cmd) == str(expected)


def test_file_commands_quote_paths():
    assert Input("edge", "e.csv").to_sexp() == L(S("input"), S("edge"), S('"e.csv"'))
    assert Include("x.egg").to_sexp() == L(S("include"), S('"x.egg"'))
    out = Output("o.txt", (Var("a"), Var("b")))
    assert out.to_sexp() == L(S("output"), S('"o.txt"'), S("a"), S("b"))


def test_run_schedule_and_simplify():
    sched = Run(RunConfig("r"))
    assert RunScheduleCommand(sched).to_sexp() == L(S("run-schedule"), sched.to_sexp())
    simp = Simplify(Var("e"), sched)
    assert simp.to_sexp() == L(S("simplify"), sched.to_sexp(), S("e"))


def test_calc():
    cmd = CalcCommand((IdentSort("a", "Math"),), (Var("a"), Var("b")))
    assert cmd.to_sexp() == L(S("calc"), L(L(S("a"), S("Math"))), S("a"), S("b"))
    assert isinstance(cmd, Calc) and cmd.exprs == (Var("a"), Var("b"))