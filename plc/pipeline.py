"""
Source-to-bytecode pipeline: parse, type-check, generate.

Each phase runs only when the previous one reported no errors.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Tuple

from . import ast as A
from .bytecode import Bytecode
from .codegen_vm import CodeGenVM
from .lexer import Lexer
from .parser import Parser, ParseError
from .sema import SemanticAnalyzer, SemanticError

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class CompileStage(Enum):
    SYNTAX = auto()     # stopped on syntax errors
    SEMANTIC = auto()   # stopped on semantic errors
    DONE = auto()


@dataclass
class CompileResult:
    stage: CompileStage
    program: Optional[A.Program] = None
    code: Optional[Bytecode] = None
    syntax_errors: List[ParseError] = field(default_factory=list)
    semantic_errors: List[SemanticError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.stage is CompileStage.DONE

    @property
    def errors(self) -> List[Exception]:
        return [*self.syntax_errors, *self.semantic_errors]


def parse_source(source: str) -> Tuple[A.Program, List[ParseError]]:
    lexer = Lexer(source)
    tokens = lexer.tokenize()
    parser = Parser(tokens)
    program = parser.parse()
    errors = sorted(lexer.errors + parser.errors, key=lambda e: (e.line, e.col))
    return program, errors


def compile_source(source: str) -> CompileResult:
    program, syntax_errors = parse_source(source)
    if syntax_errors:
        logger.debug("parse failed with %d error(s)", len(syntax_errors))
        return CompileResult(CompileStage.SYNTAX, program, syntax_errors=syntax_errors)

    semantic_errors = SemanticAnalyzer().analyze(program)
    if semantic_errors:
        return CompileResult(CompileStage.SEMANTIC, program, semantic_errors=semantic_errors)

    code = CodeGenVM().generate(program)
    return CompileResult(CompileStage.DONE, program, code)
