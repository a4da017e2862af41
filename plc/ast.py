from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Union

# Every node remembers where it started in the source for diagnostics.
@dataclass
class Node:
    line: int = field(default=0, kw_only=True)
    col: int = field(default=0, kw_only=True)

# Expressions
@dataclass
class Expr(Node):
    pass

@dataclass
class Literal(Expr):
    value: Union[int, float, str, bool]

@dataclass
class Identifier(Expr):
    name: str

@dataclass
class Grouping(Expr):
    expr: Expr

@dataclass
class Assign(Expr):
    target: Identifier
    value: Expr

@dataclass
class Unary(Expr):
    op: str
    right: Expr

@dataclass
class Binary(Expr):
    left: Expr
    op: str
    right: Expr

# One subclass per precedence level of the grammar.
@dataclass
class LogicOr(Binary):
    pass

@dataclass
class LogicAnd(Binary):
    pass

@dataclass
class Equality(Binary):
    pass

@dataclass
class Comparison(Binary):
    pass

@dataclass
class Addition(Binary):
    pass

@dataclass
class Multiplication(Binary):
    pass

# Statements
@dataclass
class Stmt(Node):
    pass

@dataclass
class Empty(Stmt):
    pass

@dataclass
class ExprStmt(Stmt):
    expr: Expr

@dataclass
class Declaration(Stmt):
    type_name: str
    names: List[Identifier]

@dataclass
class Read(Stmt):
    names: List[Identifier]

@dataclass
class Write(Stmt):
    values: List[Expr]

@dataclass
class If(Stmt):
    cond: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None

@dataclass
class While(Stmt):
    cond: Expr
    body: Stmt

@dataclass
class For(Stmt):
    init: Expr
    cond: Expr
    step: Expr
    body: Stmt
    # Set when the header declares its own induction variable: `for (int i = 0; ...)`.
    var_type: Optional[str] = None
    var: Optional[Identifier] = None

@dataclass
class Block(Stmt):
    stmts: List[Stmt] = field(default_factory=list)

@dataclass
class Program(Node):
    stmts: List[Stmt] = field(default_factory=list)
