from __future__ import annotations
import logging
from typing import Dict
from . import ast as A
from .bytecode import OpCode, Instruction, Bytecode
from .symbols import SymbolTable
from .types import Type, Int, Float, Bool, String, type_from_name, widen

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Value each declared variable starts with.
DEFAULTS: Dict[Type, object] = {
    Int: 0,
    Float: 0.0,
    Bool: False,
    String: "",
}

_ARITH_OPS = {
    '+': OpCode.ADD,
    '-': OpCode.SUB,
    '*': OpCode.MUL,
    '/': OpCode.DIV,
}


class LabelAllocator:
    """Hands out label ids; ids are never reused within one generator."""

    def __init__(self, start: int = 0):
        self._next = start

    def fresh(self) -> int:
        label = self._next
        self._next += 1
        return label

    @property
    def allocated(self) -> int:
        return self._next


class CodeGenVM:
    """Lowers a type-checked program to stack-machine instructions.

    Keeps its own symbol table, rebuilt from declarations in tree order, so it
    shares no state with the checker. Expression emitters return the static
    type of the value they leave on the stack.
    """

    def __init__(self, labels: LabelAllocator = None):
        self.code: Bytecode = []
        self.symbols = SymbolTable()
        self.labels = labels if labels is not None else LabelAllocator()

    def generate(self, program: A.Program) -> Bytecode:
        for st in program.stmts:
            self._emit_stmt(st)
        logger.debug("generated %d instruction(s), %d label(s)", len(self.code), self.labels.allocated)
        return self.code

    def _emit(self, op: OpCode, tag: str = None, arg=None):
        self.code.append(Instruction(op, tag, arg))

    def _declare(self, name: str, type_name: str):
        t = type_from_name(type_name)
        self.symbols.define(name, t)
        self._emit(OpCode.PUSH, t.tag, DEFAULTS[t])
        self._emit(OpCode.SAVE, arg=name)

    def _type_of(self, name: str) -> Type:
        return self.symbols.resolve(name).type

    def _emit_discarded(self, e: A.Expr):
        self._emit_expr(e)
        self._emit(OpCode.POP)

    def _emit_stmt(self, st: A.Stmt):
        if isinstance(st, A.Declaration):
            for ident in st.names:
                self._declare(ident.name, st.type_name)
        elif isinstance(st, A.ExprStmt):
            # An assignment statement drops the value it reloads; any other
            # expression statement leaves its value on the stack.
            expr = st.expr
            while isinstance(expr, A.Grouping):
                expr = expr.expr
            if isinstance(expr, A.Assign):
                self._emit_discarded(st.expr)
            else:
                self._emit_expr(st.expr)
        elif isinstance(st, A.Read):
            for ident in st.names:
                self._emit(OpCode.READ, self._type_of(ident.name).tag)
                self._emit(OpCode.SAVE, arg=ident.name)
        elif isinstance(st, A.Write):
            for value in st.values:
                self._emit_expr(value)
            self._emit(OpCode.PRINT, arg=len(st.values))
        elif isinstance(st, A.Block):
            for s in st.stmts:
                self._emit_stmt(s)
        elif isinstance(st, A.If):
            self._emit_if(st)
        elif isinstance(st, A.While):
            self._emit_while(st)
        elif isinstance(st, A.For):
            self._emit_for(st)
        elif isinstance(st, A.Empty):
            pass
        else:
            raise TypeError(f"Unhandled statement {type(st).__name__}")

    def _emit_if(self, st: A.If):
        self._emit_expr(st.cond)
        else_label = self.labels.fresh()
        end_label = self.labels.fresh()
        self._emit(OpCode.FJMP, arg=else_label)
        self._emit_stmt(st.then_branch)
        self._emit(OpCode.JMP, arg=end_label)
        self._emit(OpCode.LABEL, arg=else_label)
        if st.else_branch is not None:
            self._emit_stmt(st.else_branch)
        self._emit(OpCode.LABEL, arg=end_label)

    def _emit_while(self, st: A.While):
        start_label = self.labels.fresh()
        end_label = self.labels.fresh()
        self._emit(OpCode.LABEL, arg=start_label)
        self._emit_expr(st.cond)
        self._emit(OpCode.FJMP, arg=end_label)
        self._emit_stmt(st.body)
        self._emit(OpCode.JMP, arg=start_label)
        self._emit(OpCode.LABEL, arg=end_label)

    def _emit_for(self, st: A.For):
        if st.var is not None:
            self._declare(st.var.name, st.var_type)
        self._emit_discarded(st.init)
        start_label = self.labels.fresh()
        end_label = self.labels.fresh()
        self._emit(OpCode.LABEL, arg=start_label)
        self._emit_expr(st.cond)
        self._emit(OpCode.FJMP, arg=end_label)
        self._emit_stmt(st.body)
        self._emit_discarded(st.step)
        self._emit(OpCode.JMP, arg=start_label)
        self._emit(OpCode.LABEL, arg=end_label)

    def _emit_expr(self, e: A.Expr) -> Type:
        if isinstance(e, A.Literal):
            if isinstance(e.value, bool):
                t = Bool
            elif isinstance(e.value, int):
                t = Int
            elif isinstance(e.value, float):
                t = Float
            else:
                t = String
            self._emit(OpCode.PUSH, t.tag, e.value)
            return t
        if isinstance(e, A.Identifier):
            self._emit(OpCode.LOAD, arg=e.name)
            return self._type_of(e.name)
        if isinstance(e, A.Grouping):
            return self._emit_expr(e.expr)
        if isinstance(e, A.Assign):
            target_t = self._type_of(e.target.name)
            value_t = self._emit_expr(e.value)
            if target_t == Float and value_t == Int:
                self._emit(OpCode.ITOF)
            self._emit(OpCode.SAVE, arg=e.target.name)
            self._emit(OpCode.LOAD, arg=e.target.name)
            return target_t
        if isinstance(e, A.Unary):
            t = self._emit_expr(e.right)
            if e.op == '!':
                self._emit(OpCode.NOT)
                return Bool
            self._emit(OpCode.UMINUS, t.tag)
            return t
        if isinstance(e, A.Binary):
            return self._emit_binary(e)
        raise TypeError(f"Unhandled expression {type(e).__name__}")

    def _emit_operands(self, e: A.Binary, widen_mixed: bool):
        """Emit both operands left to right.

        With ``widen_mixed``, an int operand facing a float one gets an
        ``itof`` placed directly after its own code: for the left operand that
        is the boundary recorded before the right operand was emitted.
        """
        lt = self._emit_expr(e.left)
        boundary = len(self.code)
        rt = self._emit_expr(e.right)
        if widen_mixed and lt != rt and lt.is_numeric and rt.is_numeric:
            if lt == Int:
                self.code.insert(boundary, Instruction(OpCode.ITOF))
                lt = Float
            else:
                self._emit(OpCode.ITOF)
                rt = Float
        return lt, rt

    def _emit_binary(self, e: A.Binary) -> Type:
        if isinstance(e, (A.LogicAnd, A.LogicOr)):
            # Both sides are always evaluated; there is no short circuit.
            self._emit_operands(e, widen_mixed=False)
            self._emit(OpCode.AND if isinstance(e, A.LogicAnd) else OpCode.OR)
            return Bool
        if isinstance(e, A.Addition) and e.op == '.':
            self._emit_operands(e, widen_mixed=False)
            self._emit(OpCode.CONCAT)
            return String
        if isinstance(e, A.Multiplication) and e.op == '%':
            self._emit_operands(e, widen_mixed=False)
            self._emit(OpCode.MOD)
            return Int
        if isinstance(e, (A.Addition, A.Multiplication)):
            lt, rt = self._emit_operands(e, widen_mixed=True)
            t = widen(lt, rt)
            self._emit(_ARITH_OPS[e.op], t.tag)
            return t
        if isinstance(e, A.Comparison):
            lt, rt = self._emit_operands(e, widen_mixed=True)
            self._emit(OpCode.LT if e.op == '<' else OpCode.GT, widen(lt, rt).tag)
            return Bool
        if isinstance(e, A.Equality):
            lt, _ = self._emit_operands(e, widen_mixed=True)
            self._emit(OpCode.EQ, lt.tag)
            if e.op == '!=':
                self._emit(OpCode.NOT)
            return Bool
        raise TypeError(f"Unhandled binary expression {type(e).__name__}")


def generate(program: A.Program) -> Bytecode:
    """Generate bytecode for a program that already passed type checking."""
    return CodeGenVM().generate(program)
