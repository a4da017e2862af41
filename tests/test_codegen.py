"""Code generator tests: instruction shapes, widening, labels, stack balance."""

import pytest

from plc import ast as A
from plc.bytecode import OpCode, serialize
from plc.codegen_vm import CodeGenVM, LabelAllocator, generate
from plc.pipeline import parse_source
from support import compile_ok, execute


def lines_for(source: str) -> list[str]:
    return serialize(compile_ok(source)).splitlines()


def test_declaration_materializes_defaults():
    assert lines_for("int a; float b; bool c; string d;") == [
        "push I 0", "save a",
        "push F 0.0", "save b",
        "push B false", "save c",
        'push S ""', "save d",
    ]


def test_assignment_statement_reloads_and_discards():
    assert lines_for("int x; x = 3 + 4;")[2:] == [
        "push I 3", "push I 4", "add I", "save x", "load x", "pop",
    ]


def test_nested_assignment_keeps_inner_value():
    assert lines_for("int a, b; a = b = 1;")[4:] == [
        "push I 1", "save b", "load b", "save a", "load a", "pop",
    ]


def test_assignment_widens_int_to_float_target():
    assert lines_for("float f; f = 2;")[2:] == ["push I 2", "itof", "save f", "load f", "pop"]


def test_right_operand_widened_after_its_code():
    assert lines_for("write 2.5 * 2;") == ["push F 2.5", "push I 2", "itof", "mul F", "print 1"]


def test_left_operand_widened_before_right_operand_code():
    assert lines_for("write 1 + 2.5;") == ["push I 1", "itof", "push F 2.5", "add F", "print 1"]


def test_multi_instruction_left_operand_is_widened_at_its_boundary():
    code = lines_for("int a; write (a * 3 - 1) + 0.5;")[2:]
    assert code == [
        "load a", "push I 3", "mul I", "push I 1", "sub I",
        "itof",
        "push F 0.5", "add F", "print 1",
    ]


def test_multi_instruction_right_operand_is_widened_at_its_end():
    code = lines_for("int a; write 0.5 < -(a % 4);")[2:]
    assert code == ["push F 0.5", "load a", "push I 4", "mod", "uminus I", "itof", "lt F", "print 1"]


def test_only_int_side_converted_in_nested_mixed_expression():
    code = lines_for("write (1 + 2.0) * (3 + 4);")
    assert code == [
        "push I 1", "itof", "push F 2.0", "add F",
        "push I 3", "push I 4", "add I", "itof",
        "mul F", "print 1",
    ]


@pytest.mark.parametrize("source, expected", [
    ("write 1 == 2;", ["push I 1", "push I 2", "eq I"]),
    ("write 1.0 != 2.0;", ["push F 1.0", "push F 2.0", "eq F", "not"]),
    ('write "a" == "b";', ['push S "a"', 'push S "b"', "eq S"]),
    ("write 1 > 2;", ["push I 1", "push I 2", "gt I"]),
    ("write 7 % 2;", ["push I 7", "push I 2", "mod"]),
    ('write "a" . "b";', ['push S "a"', 'push S "b"', "concat"]),
    ("write true && false;", ["push B true", "push B false", "and"]),
    ("write true || false;", ["push B true", "push B false", "or"]),
    ("write !true;", ["push B true", "not"]),
    ("write -2.5;", ["push F 2.5", "uminus F"]),
    ("write 6 / 4;", ["push I 6", "push I 4", "div I"]),
])
def test_operator_instructions(source, expected):
    assert lines_for(source) == expected + ["print 1"]


def test_logical_operators_emit_both_operands_without_jumps():
    code = lines_for("bool a, b; b = false && (a = true);")[4:]
    assert code == [
        "push B false", "push B true", "save a", "load a", "and",
        "save b", "load b", "pop",
    ]
    assert not any(line.startswith(("jmp", "fjmp")) for line in code)


def test_read_and_write():
    assert lines_for("int a; string s; read a, s; write a, s, 1;")[4:] == [
        "read I", "save a", "read S", "save s",
        "load a", "load s", "push I 1", "print 3",
    ]


def test_if_else_shape():
    assert lines_for("if (true) write 1; else write 2;") == [
        "push B true", "fjmp 0",
        "push I 1", "print 1", "jmp 1",
        "label 0",
        "push I 2", "print 1",
        "label 1",
    ]


def test_while_shape():
    assert lines_for("while (false) write 1;") == [
        "label 0", "push B false", "fjmp 1",
        "push I 1", "print 1", "jmp 0",
        "label 1",
    ]


def test_for_shape_with_declared_variable():
    assert lines_for("for (int i = 0; i < 2; i = i + 1) write i;") == [
        "push I 0", "save i",
        "push I 0", "save i", "load i", "pop",
        "label 0", "load i", "push I 2", "lt I", "fjmp 1",
        "load i", "print 1",
        "load i", "push I 1", "add I", "save i", "load i", "pop",
        "jmp 0",
        "label 1",
    ]


def test_bare_expression_statement_leaves_value():
    assert lines_for("1 + 2;") == ["push I 1", "push I 2", "add I"]


def test_labels_are_unique_and_all_targets_exist():
    code = compile_ok(
        "int i, j; for (i = 0; i < 3; i = i + 1) { if (i > 1) write i; else "
        "while (j < i) j = j + 1; } while (false) ; if (true) ;"
    )
    defined = [i.arg for i in code if i.op is OpCode.LABEL]
    targets = {i.arg for i in code if i.op in (OpCode.JMP, OpCode.FJMP)}
    assert len(defined) == len(set(defined)) == 10
    assert set(defined) == set(range(10))
    assert targets <= set(defined)


def test_label_allocator_is_per_generator():
    program, _ = parse_source("while (false) ;")
    first = generate(program)
    second = generate(program)
    assert [str(i) for i in first] == [str(i) for i in second]

    labels = LabelAllocator(start=10)
    code = CodeGenVM(labels).generate(program)
    assert [i.arg for i in code if i.op is OpCode.LABEL] == [10, 11]
    assert labels.allocated == 12


def test_generator_builds_its_own_symbol_table():
    program, _ = parse_source("int a; for (float x = 0; x < 1.0; x = x + 1) ;")
    gen = CodeGenVM()
    gen.generate(program)
    assert [(s.name, str(s.type)) for s in gen.symbols] == [("a", "int"), ("x", "float")]


STATEMENT_DELTAS = [
    ("int a, b;", 0),
    ("int a; a = 1;", 0),
    ("int a, b; a = b = 1;", 0),
    ("int a; (a = 1);", 0),
    ("int a, b; ((a = (b = 2)));", 0),
    ("int a; read a;", 0),
    ("write 1, 2, 3;", 0),
    ("if (true) write 1;", 0),
    ("if (false) write 1; else { int a; a = 2; }", 0),
    ("int n; while (n < 3) n = n + 1;", 0),
    ("for (int i = 0; i < 3; i = i + 1) ;", 0),
    ("{ int a; a = 1; write a; }", 0),
    (";", 0),
    ("1 + 2;", 1),
    ("true && false;", 1),
    ('"a" . "b";', 1),
]


@pytest.mark.parametrize("source, delta", STATEMENT_DELTAS)
def test_stack_balance(source, delta):
    vm, _ = execute(compile_ok(source), stdin=["5"])
    assert len(vm.stack) == delta


def test_unknown_statement_node_is_rejected():
    with pytest.raises(TypeError):
        CodeGenVM()._emit_stmt(A.Stmt())


def test_parenthesized_assignment_statement_is_discarded():
    assert lines_for("int a; (a = 1);")[2:] == ["push I 1", "save a", "load a", "pop"]
