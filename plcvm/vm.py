from __future__ import annotations
import logging
import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from plc.bytecode import OpCode, Instruction, Bytecode, parse
from plc.types import Type, Int, Float, Bool, String, type_from_tag
from plcvm.values import (
    Value, ZERO, INT_MAX, make_value, int_value, float_value, bool_value, string_value, wrap_int,
)

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class VMError(Exception):
    """Fatal runtime fault; execution cannot continue."""

    def __init__(self, message: str, ip: int = -1):
        super().__init__(message)
        self.ip = ip

    def __str__(self) -> str:
        if self.ip < 0:
            return self.args[0]
        return f"{self.args[0]} (at instruction {self.ip})"


class ExecutionStopped(Exception):
    """Raised when execution is stopped externally."""
    pass


@dataclass(frozen=True)
class VMConfig:
    """Which runtime anomalies are fatal.

    Lenient by default: an unresolved jump falls through, unparsable ``read``
    input becomes the type's zero value and ``pop`` on an empty stack does
    nothing. Each flag turns its anomaly into a :class:`VMError`.
    """
    strict_jumps: bool = False
    strict_reads: bool = False
    strict_pop: bool = False
    max_steps: Optional[int] = None

    @classmethod
    def strict(cls, max_steps: Optional[int] = None) -> "VMConfig":
        return cls(strict_jumps=True, strict_reads=True, strict_pop=True, max_steps=max_steps)


def _stdin_readline() -> Optional[str]:
    line = sys.stdin.readline()
    if line == "":
        return None
    return line.rstrip("\r\n")


class PLCVM:
    def __init__(
        self,
        code: Union[Bytecode, str],
        input_callback: Optional[Callable[[], Optional[str]]] = None,
        output_callback: Optional[Callable[[str], None]] = None,
        config: Optional[VMConfig] = None,
    ):
        self.code: Bytecode = parse(code) if isinstance(code, str) else list(code)
        self.config = config or VMConfig()
        self._input_callback = input_callback or _stdin_readline
        self._output_callback = output_callback
        self._stop_requested = False

        self.stack: List[Value] = []
        self.variables: Dict[str, Value] = {}
        self.labels: Dict[int, int] = {}
        self.ip: int = 0
        self.steps: int = 0

    def request_stop(self):
        """Request the VM to stop execution."""
        self._stop_requested = True

    def _output(self, text: str):
        """Output text via callback or print."""
        if self._output_callback:
            self._output_callback(text)
        else:
            print(text, end="")

    def _resolve_labels(self):
        self.labels = {}
        for pos, instr in enumerate(self.code):
            if instr.op is OpCode.LABEL:
                self.labels[int(instr.arg)] = pos
        logger.debug("resolved %d label(s) in %d instruction(s)", len(self.labels), len(self.code))

    def run(self) -> "PLCVM":
        # Every run starts from a clean machine.
        self.stack = []
        self.variables = {}
        self.ip = 0
        self.steps = 0
        self._stop_requested = False
        self._resolve_labels()
        code = self.code
        while 0 <= self.ip < len(code):
            if self._stop_requested:
                raise ExecutionStopped("Execution stopped by user")
            if self.config.max_steps is not None and self.steps >= self.config.max_steps:
                raise VMError(f"Step limit of {self.config.max_steps} exceeded", self.ip)
            self.steps += 1
            if not self._execute(code[self.ip]):
                self.ip += 1
        logger.debug("program finished after %d step(s)", self.steps)
        return self

    # Stack helpers

    def _fail(self, message: str):
        raise VMError(message, self.ip)

    def _pop(self, what: str) -> Value:
        if not self.stack:
            self._fail(f"Stack underflow in '{what}'")
        return self.stack.pop()

    def _pop_as(self, type_: Type, what: str) -> Value:
        v = self._pop(what)
        if v.type != type_:
            self._fail(f"'{what}' expects {type_}, got {v.type}")
        return v

    def _pop_pair(self, type_: Type, what: str):
        # The right operand was pushed last.
        right = self._pop_as(type_, what)
        left = self._pop_as(type_, what)
        return left.data, right.data

    def _numeric_tag(self, instr: Instruction) -> Type:
        if instr.tag == "I":
            return Int
        if instr.tag == "F":
            return Float
        self._fail(f"'{instr.op.value}' expects type tag I or F, got {instr.tag}")

    def _jump(self, label: int) -> bool:
        target = self.labels.get(label)
        if target is None:
            if self.config.strict_jumps:
                self._fail(f"Jump to unknown label {label}")
            return False
        self.ip = target
        return True

    # Execution

    def _execute(self, instr: Instruction) -> bool:
        """Run one instruction; returns True when it moved ``ip`` itself."""
        op = instr.op
        name = op.value

        if op is OpCode.NOP or op is OpCode.LABEL:
            return False

        if op is OpCode.PUSH:
            t = type_from_tag(instr.tag)
            if t is None:
                self._fail(f"Unknown type tag '{instr.tag}'")
            self.stack.append(make_value(t, instr.arg))

        elif op is OpCode.POP:
            if self.stack:
                self.stack.pop()
            elif self.config.strict_pop:
                self._fail("'pop' on empty stack")

        elif op is OpCode.LOAD:
            self.stack.append(self.variables.get(instr.arg, ZERO[Int]))

        elif op is OpCode.SAVE:
            self.variables[instr.arg] = self._pop(name)

        elif op in (OpCode.ADD, OpCode.SUB, OpCode.MUL):
            t = self._numeric_tag(instr)
            a, b = self._pop_pair(t, name)
            if op is OpCode.ADD:
                res = a + b
            elif op is OpCode.SUB:
                res = a - b
            else:
                res = a * b
            self.stack.append(int_value(res) if t == Int else float_value(res))

        elif op is OpCode.DIV:
            t = self._numeric_tag(instr)
            a, b = self._pop_pair(t, name)
            if b == 0:
                self._fail("Division by zero")
            if t == Int:
                # truncate toward zero
                q = abs(a) // abs(b)
                self.stack.append(int_value(q if (a < 0) == (b < 0) else -q))
            else:
                self.stack.append(float_value(a / b))

        elif op is OpCode.MOD:
            a, b = self._pop_pair(Int, name)
            if b == 0:
                self._fail("Modulo by zero")
            # remainder takes the sign of the dividend
            r = abs(a) % abs(b)
            self.stack.append(int_value(r if a >= 0 else -r))

        elif op is OpCode.UMINUS:
            t = self._numeric_tag(instr)
            a = self._pop_as(t, name).data
            self.stack.append(int_value(-a) if t == Int else float_value(-a))

        elif op is OpCode.CONCAT:
            right = self._pop(name)
            left = self._pop(name)
            self.stack.append(string_value(left.display() + right.display()))

        elif op is OpCode.AND:
            a, b = self._pop_pair(Bool, name)
            self.stack.append(bool_value(a and b))

        elif op is OpCode.OR:
            a, b = self._pop_pair(Bool, name)
            self.stack.append(bool_value(a or b))

        elif op is OpCode.NOT:
            a = self._pop_as(Bool, name).data
            self.stack.append(bool_value(not a))

        elif op in (OpCode.GT, OpCode.LT):
            t = self._numeric_tag(instr)
            a, b = self._pop_pair(t, name)
            self.stack.append(bool_value(a > b if op is OpCode.GT else a < b))

        elif op is OpCode.EQ:
            t = type_from_tag(instr.tag)
            if t in (Int, Float, String):
                a, b = self._pop_pair(t, name)
                self.stack.append(bool_value(a == b))
            else:
                right = self._pop(name)
                left = self._pop(name)
                self.stack.append(bool_value(left == right))

        elif op is OpCode.ITOF:
            a = self._pop_as(Int, name).data
            self.stack.append(float_value(a))

        elif op is OpCode.PRINT:
            count = int(instr.arg)
            if count > len(self.stack):
                self._fail(f"Stack underflow in 'print {count}'")
            values = self.stack[len(self.stack) - count:]
            del self.stack[len(self.stack) - count:]
            self._output("".join(v.display() for v in values) + "\n")

        elif op is OpCode.READ:
            t = type_from_tag(instr.tag)
            if t is None:
                self._fail(f"Unknown type tag '{instr.tag}'")
            self.stack.append(self._read(t))

        elif op is OpCode.JMP:
            return self._jump(int(instr.arg))

        elif op is OpCode.FJMP:
            cond = self._pop_as(Bool, name).data
            if not cond:
                return self._jump(int(instr.arg))

        else:
            self._fail(f"Unknown opcode {op}")

        return False

    def _read(self, t: Type) -> Value:
        line = self._input_callback()
        if line is None:
            if self.config.strict_reads:
                self._fail("Unexpected end of input")
            return ZERO[t]
        if t == String:
            return string_value(line)
        text = line.strip()
        if t == Bool:
            lowered = text.lower()
            if lowered not in ("true", "false") and self.config.strict_reads:
                self._fail(f"Cannot read bool from '{line}'")
            return bool_value(lowered == "true")
        try:
            if t == Int:
                n = int(text)
                if wrap_int(n) != n:
                    raise ValueError(f"{n} out of range (max {INT_MAX})")
                return int_value(n)
            return float_value(float(text))
        except ValueError:
            if self.config.strict_reads:
                self._fail(f"Cannot read {t} from '{line}'")
            return ZERO[t]


def run(
    code: Union[Bytecode, str],
    input_callback: Optional[Callable[[], Optional[str]]] = None,
    output_callback: Optional[Callable[[str], None]] = None,
    config: Optional[VMConfig] = None,
) -> PLCVM:
    """Execute instructions (or their text form) and return the finished VM."""
    return PLCVM(code, input_callback, output_callback, config).run()
