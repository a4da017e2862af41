from __future__ import annotations
import logging
from typing import List
from . import ast as A
from .symbols import SymbolTable
from .types import Type, Int, Float, Bool, String, Error, type_from_name, widen

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class SemanticError(Exception):
    def __init__(self, message: str, line: int, col: int):
        super().__init__(message)
        self.message = message
        self.line = line
        self.col = col

    def __str__(self) -> str:
        return f"[Line {self.line}, Pos {self.col}] {self.message}"


class SemanticAnalyzer:
    """Type checker over a parsed program.

    Errors are collected, never raised, so a single pass reports every
    violation. Expression visitors return the inferred type, or ``Error``
    once a violation has been reported for that node; enclosing nodes that
    see an ``Error`` operand stay quiet instead of reporting a follow-up.
    """

    def __init__(self):
        self.symbols = SymbolTable()
        self.errors: List[SemanticError] = []

    def analyze(self, program: A.Program) -> List[SemanticError]:
        for st in program.stmts:
            self._analyze_stmt(st)
        logger.debug("type check finished: %d symbol(s), %d error(s)", len(self.symbols), len(self.errors))
        return self.errors

    def _error(self, node: A.Node, message: str):
        self.errors.append(SemanticError(message, node.line, node.col))

    def _declare(self, ident: A.Identifier, type_: Type):
        if not self.symbols.define(ident.name, type_):
            self._error(ident, f"Variable '{ident.name}' is already declared.")

    def _lookup(self, ident: A.Identifier) -> Type:
        sym = self.symbols.resolve(ident.name)
        if sym is None:
            self._error(ident, f"Variable '{ident.name}' is not declared.")
            return Error
        return sym.type

    def _check_condition(self, cond: A.Expr, construct: str):
        t = self._analyze_expr(cond)
        if t != Bool and t != Error:
            self._error(cond, f"Condition in '{construct}' must be of type bool, got '{t}'.")

    def _analyze_stmt(self, st: A.Stmt):
        if isinstance(st, A.Declaration):
            var_type = type_from_name(st.type_name)
            for ident in st.names:
                self._declare(ident, var_type)
        elif isinstance(st, A.ExprStmt):
            self._analyze_expr(st.expr)
        elif isinstance(st, A.Read):
            for ident in st.names:
                self._lookup(ident)
        elif isinstance(st, A.Write):
            for value in st.values:
                self._analyze_expr(value)
        elif isinstance(st, A.Block):
            for s in st.stmts:
                self._analyze_stmt(s)
        elif isinstance(st, A.If):
            self._check_condition(st.cond, "if")
            self._analyze_stmt(st.then_branch)
            if st.else_branch is not None:
                self._analyze_stmt(st.else_branch)
        elif isinstance(st, A.While):
            self._check_condition(st.cond, "while")
            self._analyze_stmt(st.body)
        elif isinstance(st, A.For):
            if st.var is not None:
                self._declare(st.var, type_from_name(st.var_type))
            self._analyze_expr(st.init)
            self._check_condition(st.cond, "for")
            self._analyze_expr(st.step)
            self._analyze_stmt(st.body)
        elif isinstance(st, A.Empty):
            pass
        else:
            raise TypeError(f"Unhandled statement {type(st).__name__}")

    def _analyze_expr(self, e: A.Expr) -> Type:
        if isinstance(e, A.Literal):
            # Order matters: in Python, bool is a subclass of int, so check bool first.
            if isinstance(e.value, bool):
                return Bool
            if isinstance(e.value, int):
                return Int
            if isinstance(e.value, float):
                return Float
            return String
        if isinstance(e, A.Identifier):
            return self._lookup(e)
        if isinstance(e, A.Grouping):
            return self._analyze_expr(e.expr)
        if isinstance(e, A.Assign):
            return self._analyze_assign(e)
        if isinstance(e, A.Unary):
            t = self._analyze_expr(e.right)
            if t == Error:
                return Error
            if e.op == '-' and t.is_numeric:
                return t
            if e.op == '!' and t == Bool:
                return Bool
            self._error(e, f"Unary operator '{e.op}' not applicable to type '{t}'.")
            return Error
        if isinstance(e, A.Binary):
            lt = self._analyze_expr(e.left)
            rt = self._analyze_expr(e.right)
            if lt == Error or rt == Error:
                return Error
            return self._analyze_binary(e, lt, rt)
        raise TypeError(f"Unhandled expression {type(e).__name__}")

    def _analyze_assign(self, e: A.Assign) -> Type:
        sym = self.symbols.resolve(e.target.name)
        if sym is None:
            self._error(e.target, f"Variable '{e.target.name}' is not declared.")
            self._analyze_expr(e.value)
            return Error
        val_t = self._analyze_expr(e.value)
        if val_t == Error:
            return Error
        if val_t == sym.type or (sym.type == Float and val_t == Int):
            return sym.type
        self._error(e, f"Cannot assign type '{val_t}' to variable '{e.target.name}' of type '{sym.type}'.")
        return Error

    def _analyze_binary(self, e: A.Binary, lt: Type, rt: Type) -> Type:
        op = e.op
        if isinstance(e, A.Addition):
            if op == '.':
                if lt == String and rt == String:
                    return String
            elif lt.is_numeric and rt.is_numeric:
                return widen(lt, rt)
            self._error(e, f"Operator '{op}' not supported for types '{lt}' and '{rt}'.")
            return Error
        if isinstance(e, A.Multiplication):
            if op == '%':
                if lt == Int and rt == Int:
                    return Int
                self._error(e, "Modulo '%' is only valid for integers.")
                return Error
            if lt.is_numeric and rt.is_numeric:
                return widen(lt, rt)
            self._error(e, f"Operator '{op}' not supported for types '{lt}' and '{rt}'.")
            return Error
        if isinstance(e, A.Comparison):
            if lt.is_numeric and rt.is_numeric:
                return Bool
            self._error(e, f"Comparison '{op}' not valid for types '{lt}' and '{rt}'.")
            return Error
        if isinstance(e, A.Equality):
            # bool operands are rejected.
            if lt == rt and lt in (Int, Float, String):
                return Bool
            self._error(e, f"Equality operator '{op}' not valid between '{lt}' and '{rt}'.")
            return Error
        if isinstance(e, (A.LogicAnd, A.LogicOr)):
            if lt == Bool and rt == Bool:
                return Bool
            name = "AND" if isinstance(e, A.LogicAnd) else "OR"
            self._error(e, f"Logical {name} requires boolean operands.")
            return Error
        raise TypeError(f"Unhandled binary expression {type(e).__name__}")


def check(program: A.Program) -> List[SemanticError]:
    """Type-check ``program`` and return every semantic error found."""
    return SemanticAnalyzer().analyze(program)
