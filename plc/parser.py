from typing import List
from .lexer import ParseError
from .tokens import Token, TokenType, STATEMENT_STARTS
from . import ast as A

__all__ = ["Parser", "ParseError"]


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.current = 0
        self.errors: List[ParseError] = []

    def parse(self) -> A.Program:
        stmts: List[A.Stmt] = []
        while not self._is_at_end():
            try:
                stmts.append(self._statement())
            except ParseError as e:
                self.errors.append(e)
                self._synchronize()
        return A.Program(stmts, line=1, col=1)

    # Helpers
    def _match(self, *types: TokenType) -> bool:
        for t in types:
            if self._check(t):
                self._advance()
                return True
        return False

    def _consume(self, type_: TokenType, msg: str) -> Token:
        if self._check(type_):
            return self._advance()
        tok = self._peek()
        found = tok.lexeme if tok.type is not TokenType.EOF else "end of input"
        raise ParseError(f"{msg} (found '{found}')", tok.line, tok.col)

    def _check(self, type_: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._peek().type == type_

    def _check_next(self, type_: TokenType) -> bool:
        if self.current + 1 >= len(self.tokens):
            return False
        return self.tokens[self.current + 1].type == type_

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]

    def _synchronize(self):
        # Skip to the next statement boundary so one mistake yields one error.
        self._advance()
        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._peek().type in STATEMENT_STARTS or self._peek().type == TokenType.RIGHT_BRACE:
                return
            self._advance()

    # Grammar
    def _statement(self) -> A.Stmt:
        tok = self._peek()
        pos = dict(line=tok.line, col=tok.col)
        if self._match(TokenType.SEMICOLON):
            return A.Empty(**pos)
        if self._match(TokenType.TYPE):
            names = self._identifier_list("Expected variable name after type")
            self._consume(TokenType.SEMICOLON, "Expected ';' after declaration")
            return A.Declaration(tok.lexeme, names, **pos)
        if self._match(TokenType.LEFT_BRACE):
            stmts: List[A.Stmt] = []
            while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
                try:
                    stmts.append(self._statement())
                except ParseError as e:
                    self.errors.append(e)
                    self._synchronize()
            self._consume(TokenType.RIGHT_BRACE, "Expected '}' after block")
            return A.Block(stmts, **pos)
        if self._match(TokenType.READ):
            names = self._identifier_list("Expected variable name after 'read'")
            self._consume(TokenType.SEMICOLON, "Expected ';' after read statement")
            return A.Read(names, **pos)
        if self._match(TokenType.WRITE):
            values = [self._expression()]
            while self._match(TokenType.COMMA):
                values.append(self._expression())
            self._consume(TokenType.SEMICOLON, "Expected ';' after write statement")
            return A.Write(values, **pos)
        if self._match(TokenType.IF):
            self._consume(TokenType.LEFT_PAREN, "Expected '(' after 'if'")
            cond = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expected ')' after condition")
            then_branch = self._statement()
            else_branch = None
            if self._match(TokenType.ELSE):
                else_branch = self._statement()
            return A.If(cond, then_branch, else_branch, **pos)
        if self._match(TokenType.WHILE):
            self._consume(TokenType.LEFT_PAREN, "Expected '(' after 'while'")
            cond = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expected ')' after condition")
            body = self._statement()
            return A.While(cond, body, **pos)
        if self._match(TokenType.FOR):
            return self._for(pos)
        expr = self._expression()
        self._consume(TokenType.SEMICOLON, "Expected ';' after expression")
        return A.ExprStmt(expr, **pos)

    def _for(self, pos) -> A.For:
        self._consume(TokenType.LEFT_PAREN, "Expected '(' after 'for'")
        var_type = None
        var = None
        if self._match(TokenType.TYPE):
            var_type = self._previous().lexeme
            name_tok = self._consume(TokenType.IDENTIFIER, "Expected loop variable name")
            var = A.Identifier(name_tok.lexeme, line=name_tok.line, col=name_tok.col)
            self._consume(TokenType.EQUAL, "Expected '=' after loop variable")
            init: A.Expr = A.Assign(var, self._expression(), line=var.line, col=var.col)
        else:
            init = self._expression()
        self._consume(TokenType.SEMICOLON, "Expected ';' after loop initializer")
        cond = self._expression()
        self._consume(TokenType.SEMICOLON, "Expected ';' after loop condition")
        step = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expected ')' after for clauses")
        body = self._statement()
        return A.For(init, cond, step, body, var_type=var_type, var=var, **pos)

    def _identifier_list(self, msg: str) -> List[A.Identifier]:
        names: List[A.Identifier] = []
        while True:
            tok = self._consume(TokenType.IDENTIFIER, msg)
            names.append(A.Identifier(tok.lexeme, line=tok.line, col=tok.col))
            if not self._match(TokenType.COMMA):
                break
        return names

    def _expression(self) -> A.Expr:
        return self._assignment()

    def _assignment(self) -> A.Expr:
        # Right-associative: a = b = 1
        if self._check(TokenType.IDENTIFIER) and self._check_next(TokenType.EQUAL):
            name_tok = self._advance()
            self._advance()  # '='
            target = A.Identifier(name_tok.lexeme, line=name_tok.line, col=name_tok.col)
            value = self._assignment()
            return A.Assign(target, value, line=name_tok.line, col=name_tok.col)
        return self._or()

    def _binary_level(self, node_cls, operand, *ops: TokenType) -> A.Expr:
        expr = operand()
        while self._match(*ops):
            op_tok = self._previous()
            right = operand()
            expr = node_cls(expr, op_tok.lexeme, right, line=expr.line, col=expr.col)
        return expr

    def _or(self) -> A.Expr:
        return self._binary_level(A.LogicOr, self._and, TokenType.OR_OR)

    def _and(self) -> A.Expr:
        return self._binary_level(A.LogicAnd, self._equality, TokenType.AND_AND)

    def _equality(self) -> A.Expr:
        return self._binary_level(A.Equality, self._comparison, TokenType.EQUAL_EQUAL, TokenType.BANG_EQUAL)

    def _comparison(self) -> A.Expr:
        return self._binary_level(A.Comparison, self._addition, TokenType.LESS, TokenType.GREATER)

    def _addition(self) -> A.Expr:
        return self._binary_level(A.Addition, self._multiplication, TokenType.PLUS, TokenType.MINUS, TokenType.DOT)

    def _multiplication(self) -> A.Expr:
        return self._binary_level(A.Multiplication, self._unary, TokenType.STAR, TokenType.SLASH, TokenType.PERCENT)

    def _unary(self) -> A.Expr:
        if self._match(TokenType.BANG, TokenType.MINUS):
            op_tok = self._previous()
            right = self._unary()
            return A.Unary(op_tok.lexeme, right, line=op_tok.line, col=op_tok.col)
        return self._primary()

    def _primary(self) -> A.Expr:
        tok = self._peek()
        pos = dict(line=tok.line, col=tok.col)
        if self._match(TokenType.FALSE):
            return A.Literal(False, **pos)
        if self._match(TokenType.TRUE):
            return A.Literal(True, **pos)
        if self._match(TokenType.INT_NUMBER, TokenType.FLOAT_NUMBER, TokenType.STRING):
            return A.Literal(tok.literal, **pos)
        if self._match(TokenType.IDENTIFIER):
            return A.Identifier(tok.lexeme, **pos)
        if self._match(TokenType.LEFT_PAREN):
            expr = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expected ')' after expression")
            return A.Grouping(expr, **pos)
        found = tok.lexeme if tok.type is not TokenType.EOF else "end of input"
        raise ParseError(f"Expected expression (found '{found}')", tok.line, tok.col)
