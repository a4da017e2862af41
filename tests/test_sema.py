"""Type checker tests."""

import pytest

from plc.pipeline import parse_source
from plc.sema import SemanticAnalyzer, SemanticError, check


def errors_for(source: str) -> list[SemanticError]:
    program, syntax_errors = parse_source(source)
    assert not syntax_errors, [str(e) for e in syntax_errors]
    return check(program)


def messages(source: str) -> list[str]:
    return [e.message for e in errors_for(source)]


@pytest.mark.parametrize("source", [
    "int a; float f; f = a; f = 1.5; f = a + f;",
    "int a; a = 7 % 3; a = -a * 2 / 1;",
    'string s; s = "a" . "b" . s;',
    "bool b; b = 1 < 2.5 && !(3 > 4) || 1.0 == 2.0;",
    'bool b; b = "x" == "y"; b = 1 != 2;',
    "int i; for (i = 0; i < 3; i = i + 1) write i;",
    "for (float x = 0; x < 1.0; x = x + 0.5) write x;",
    "int a, b; a = b = 3;",
    "float f; int i; f = i = 2;",
    "int a; read a; write a, 1.5, true, \"s\";",
    "{ int inner; } inner = 1;",
])
def test_well_typed_programs(source):
    assert errors_for(source) == []


@pytest.mark.parametrize("source, expected", [
    ("int x; float x;", "Variable 'x' is already declared."),
    ("x = 1;", "Variable 'x' is not declared."),
    ("write y;", "Variable 'y' is not declared."),
    ("read z;", "Variable 'z' is not declared."),
    ("int i; i = 2.0;", "Cannot assign type 'float' to variable 'i' of type 'int'."),
    ("float f; f = true;", "Cannot assign type 'bool' to variable 'f' of type 'float'."),
    ('write 1 + "a";', "Operator '+' not supported for types 'int' and 'string'."),
    ("write 1 . 2;", "Operator '.' not supported for types 'int' and 'int'."),
    ("write true * 2;", "Operator '*' not supported for types 'bool' and 'int'."),
    ("write 5 % 2.0;", "Modulo '%' is only valid for integers."),
    ('write "a" % "b";', "Modulo '%' is only valid for integers."),
    ('write "a" < "b";', "Comparison '<' not valid for types 'string' and 'string'."),
    ("write true == false;", "Equality operator '==' not valid between 'bool' and 'bool'."),
    ("write 1 != 1.0;", "Equality operator '!=' not valid between 'int' and 'float'."),
    ("write 1 && true;", "Logical AND requires boolean operands."),
    ("write true || 0;", "Logical OR requires boolean operands."),
    ('write -"a";', "Unary operator '-' not applicable to type 'string'."),
    ("write !1.0;", "Unary operator '!' not applicable to type 'float'."),
    ("if (1) ;", "Condition in 'if' must be of type bool, got 'int'."),
    ("while (1.5) ;", "Condition in 'while' must be of type bool, got 'float'."),
    ("int i; for (i = 0; i; i = i + 1) ;", "Condition in 'for' must be of type bool, got 'int'."),
])
def test_single_violation(source, expected):
    assert messages(source) == [expected]


def test_error_carries_position():
    (err,) = errors_for("int a;\nint b;\n  a = \"s\";")
    assert (err.line, err.col) == (3, 3)
    assert str(err) == "[Line 3, Pos 3] Cannot assign type 'string' to variable 'a' of type 'int'."


def test_redeclaration_points_at_second_name():
    (err,) = errors_for("int a, b,\n    a;")
    assert (err.line, err.col) == (2, 5)


def test_analysis_continues_after_errors():
    source = "int a; int a; b = 1; if (a) write c;"
    assert messages(source) == [
        "Variable 'a' is already declared.",
        "Variable 'b' is not declared.",
        "Condition in 'if' must be of type bool, got 'int'.",
        "Variable 'c' is not declared.",
    ]


def test_errors_do_not_cascade_upward():
    # Only the undeclared name is reported, not the addition, the comparison
    # or the condition built on top of it.
    assert messages("if (missing + 1 < 2) write 1;") == ["Variable 'missing' is not declared."]
    assert messages("int a; a = (1 + true) * 2;") == ["Operator '+' not supported for types 'int' and 'bool'."]


def test_for_declares_its_induction_variable():
    assert messages("for (int i = 0; i < 2; i = i + 1) ; write i;") == []
    assert messages("int i; for (int i = 0; i < 2; i = i + 1) ;") == ["Variable 'i' is already declared."]


def test_for_visits_init_step_and_body_when_condition_is_bad():
    source = "for (int i = true; i; i = \"s\") write nope;"
    assert messages(source) == [
        "Cannot assign type 'bool' to variable 'i' of type 'int'.",
        "Condition in 'for' must be of type bool, got 'int'.",
        "Cannot assign type 'string' to variable 'i' of type 'int'.",
        "Variable 'nope' is not declared.",
    ]


def test_if_and_while_bodies_checked_even_with_bad_condition():
    assert messages("if (1) x = 1; else y = 2; while (2) z = 3;") == [
        "Condition in 'if' must be of type bool, got 'int'.",
        "Variable 'x' is not declared.",
        "Variable 'y' is not declared.",
        "Condition in 'while' must be of type bool, got 'int'.",
        "Variable 'z' is not declared.",
    ]


def test_analyzer_owns_its_symbol_table():
    program, _ = parse_source("int a; float b;")
    analyzer = SemanticAnalyzer()
    assert analyzer.analyze(program) == []
    assert [(s.name, str(s.type)) for s in analyzer.symbols] == [("a", "int"), ("b", "float")]


def test_undeclared_target_reported_before_its_value():
    assert messages("x = y;") == ["Variable 'x' is not declared.", "Variable 'y' is not declared."]
    assert messages("x = 1 + true;") == [
        "Variable 'x' is not declared.",
        "Operator '+' not supported for types 'int' and 'bool'.",
    ]
