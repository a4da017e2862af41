from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from .types import TYPES_BY_TAG, INT_MIN, INT_MAX


class OpCode(Enum):
    # Stack and variables
    PUSH = "push"          # operands: type tag, literal
    POP = "pop"
    LOAD = "load"          # operand: variable name
    SAVE = "save"          # operand: variable name

    # Arithmetic (tag I or F unless noted)
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    MOD = "mod"            # untyped, always int
    UMINUS = "uminus"
    CONCAT = "concat"
    ITOF = "itof"

    # Logic and comparisons (push bool)
    AND = "and"
    OR = "or"
    NOT = "not"
    GT = "gt"
    LT = "lt"
    EQ = "eq"              # tag I, F or S

    # I/O
    PRINT = "print"        # operand: number of values
    READ = "read"          # operand: type tag

    # Control flow
    JMP = "jmp"            # operand: label id
    FJMP = "fjmp"          # operand: label id (pop bool; jump if false)
    LABEL = "label"        # operand: label id

    # Blank or unrecognized line; kept so positions stay line-aligned.
    NOP = ""


TAGGED_OPS = {
    OpCode.ADD, OpCode.SUB, OpCode.MUL, OpCode.DIV, OpCode.UMINUS,
    OpCode.GT, OpCode.LT, OpCode.EQ, OpCode.READ,
}
NAMED_OPS = {OpCode.LOAD, OpCode.SAVE}
LABEL_OPS = {OpCode.JMP, OpCode.FJMP, OpCode.LABEL}

_BY_MNEMONIC: Dict[str, OpCode] = {op.value: op for op in OpCode if op is not OpCode.NOP}

Operand = Union[int, float, bool, str, None]


class BytecodeError(Exception):
    def __init__(self, message: str, line: int):
        super().__init__(message)
        self.line = line

    def __str__(self) -> str:
        return f"Bytecode error at line {self.line}: {self.args[0]}"


@dataclass(frozen=True)
class Instruction:
    op: OpCode
    tag: Optional[str] = None   # I, F, B or S
    arg: Operand = None         # literal, variable name, label id or print count

    def __str__(self) -> str:
        return format_instruction(self)


Bytecode = List[Instruction]


def format_literal(tag: str, value: Operand) -> str:
    if tag == "B":
        return "true" if value else "false"
    if tag == "S":
        return f'"{value}"'
    if tag == "F":
        return repr(float(value))
    return str(int(value))


def format_instruction(instr: Instruction) -> str:
    op = instr.op
    if op is OpCode.NOP:
        # Unrecognized lines keep their source text.
        return "" if instr.arg is None else str(instr.arg)
    if op is OpCode.PUSH:
        return f"push {instr.tag} {format_literal(instr.tag, instr.arg)}"
    parts = [op.value]
    if instr.tag is not None:
        parts.append(instr.tag)
    if instr.arg is not None:
        parts.append(str(instr.arg))
    return " ".join(parts)


def serialize(code: Bytecode) -> str:
    """Render instructions in the line-per-instruction text format."""
    if not code:
        return ""
    return "\n".join(format_instruction(i) for i in code) + "\n"


def _parse_literal(tag: str, text: str, lineno: int) -> Operand:
    try:
        if tag == "I":
            value = int(text)
            if not INT_MIN <= value <= INT_MAX:
                raise BytecodeError(f"I literal '{text}' does not fit in 32 bits", lineno)
            return value
        if tag == "F":
            return float(text)
    except ValueError:
        raise BytecodeError(f"Invalid {tag} literal '{text}'", lineno) from None
    if tag == "B":
        if text not in ("true", "false"):
            raise BytecodeError(f"Invalid B literal '{text}'", lineno)
        return text == "true"
    # S: everything between the first and the last double quote
    first = text.find('"')
    last = text.rfind('"')
    if first < 0 or last <= first:
        raise BytecodeError(f"String literal must be quoted: {text}", lineno)
    return text[first + 1:last]


def _parse_int(text: str, what: str, lineno: int) -> int:
    try:
        return int(text)
    except ValueError:
        raise BytecodeError(f"Invalid {what} '{text}'", lineno) from None


def parse_line(line: str, lineno: int = 0) -> Instruction:
    stripped = line.strip()
    if not stripped:
        return Instruction(OpCode.NOP)
    parts = stripped.split()
    op = _BY_MNEMONIC.get(parts[0])
    if op is None:
        return Instruction(OpCode.NOP, arg=stripped)

    if op is OpCode.PUSH:
        # maxsplit keeps the spacing inside string literals
        fields = stripped.split(None, 2)
        if len(fields) < 3:
            raise BytecodeError("push expects a type tag and a literal", lineno)
        tag = fields[1]
        if tag not in TYPES_BY_TAG:
            raise BytecodeError(f"Unknown type tag '{tag}'", lineno)
        text = fields[2] if tag == "S" else fields[2].split()[0]
        return Instruction(op, tag, _parse_literal(tag, text, lineno))
    if op in TAGGED_OPS:
        if len(parts) < 2:
            raise BytecodeError(f"{op.value} expects a type tag", lineno)
        if op is OpCode.READ and parts[1] not in TYPES_BY_TAG:
            raise BytecodeError(f"Unknown type tag '{parts[1]}'", lineno)
        return Instruction(op, parts[1])
    if op in NAMED_OPS:
        if len(parts) < 2:
            raise BytecodeError(f"{op.value} expects a variable name", lineno)
        return Instruction(op, arg=parts[1])
    if op in LABEL_OPS:
        if len(parts) < 2:
            raise BytecodeError(f"{op.value} expects a label id", lineno)
        return Instruction(op, arg=_parse_int(parts[1], "label id", lineno))
    if op is OpCode.PRINT:
        if len(parts) < 2:
            raise BytecodeError("print expects a value count", lineno)
        count = _parse_int(parts[1], "value count", lineno)
        if count < 0:
            raise BytecodeError(f"Invalid value count '{count}'", lineno)
        return Instruction(op, arg=count)
    return Instruction(op)


def parse(text: str) -> Bytecode:
    """Decode bytecode text; one instruction per line, blank lines included."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [parse_line(line.rstrip("\r"), lineno) for lineno, line in enumerate(lines, 1)]
