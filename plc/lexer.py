from typing import List
from .tokens import Token, TokenType, KEYWORDS
from .types import INT_MAX


def _is_alpha(ch: str) -> bool:
    return "a" <= ch <= "z" or "A" <= ch <= "Z" or ch == "_"


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


class ParseError(Exception):
    def __init__(self, message: str, line: int, col: int):
        super().__init__(message)
        self.line = line
        self.col = col

    def __str__(self) -> str:
        return f"Syntax error at line {self.line}:{self.col} - {self.args[0]}"


class Lexer:
    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []
        self.errors: List[ParseError] = []
        self.start = 0
        self.current = 0
        self.line = 1
        self.col = 1

    def tokenize(self) -> List[Token]:
        while not self._is_at_end():
            self.start = self.current
            self._start_line = self.line
            self._start_col = self.col
            self._scan_token()
        self.tokens.append(Token(TokenType.EOF, "", self.line, self.col))
        return self.tokens

    def _is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def _advance(self) -> str:
        ch = self.source[self.current]
        self.current += 1
        if ch == '\n':
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _peek(self) -> str:
        if self._is_at_end():
            return "\0"
        return self.source[self.current]

    def _peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return "\0"
        return self.source[self.current + 1]

    def _match(self, expected: str) -> bool:
        if self._is_at_end():
            return False
        if self.source[self.current] != expected:
            return False
        self._advance()
        return True

    def _add_token(self, type_: TokenType, literal=None):
        text = self.source[self.start:self.current]
        self.tokens.append(Token(type_, text, self._start_line, self._start_col, literal))

    def _error(self, message: str):
        self.errors.append(ParseError(message, self._start_line, self._start_col))

    def _scan_token(self):
        c = self._advance()
        if c in ' \r\t\n':
            return

        if c == '(':
            self._add_token(TokenType.LEFT_PAREN); return
        if c == ')':
            self._add_token(TokenType.RIGHT_PAREN); return
        if c == '{':
            self._add_token(TokenType.LEFT_BRACE); return
        if c == '}':
            self._add_token(TokenType.RIGHT_BRACE); return
        if c == ',':
            self._add_token(TokenType.COMMA); return
        if c == '.':
            self._add_token(TokenType.DOT); return
        if c == '-':
            self._add_token(TokenType.MINUS); return
        if c == '+':
            self._add_token(TokenType.PLUS); return
        if c == ';':
            self._add_token(TokenType.SEMICOLON); return
        if c == '*':
            self._add_token(TokenType.STAR); return
        if c == '%':
            self._add_token(TokenType.PERCENT); return
        if c == '<':
            self._add_token(TokenType.LESS); return
        if c == '>':
            self._add_token(TokenType.GREATER); return
        if c == '|':
            if self._match('|'):
                self._add_token(TokenType.OR_OR); return
            self._error("Unexpected character '|' (did you mean '||'?)"); return
        if c == '&':
            if self._match('&'):
                self._add_token(TokenType.AND_AND); return
            self._error("Unexpected character '&' (did you mean '&&'?)"); return
        if c == '/':
            if self._match('/'):
                # comment until end of line
                while self._peek() != '\n' and not self._is_at_end():
                    self._advance()
                return
            if self._match('*'):
                self._block_comment(); return
            self._add_token(TokenType.SLASH); return
        if c == '!':
            self._add_token(TokenType.BANG_EQUAL if self._match('=') else TokenType.BANG); return
        if c == '=':
            self._add_token(TokenType.EQUAL_EQUAL if self._match('=') else TokenType.EQUAL); return
        if c == '"':
            self._string(); return
        if _is_digit(c):
            self._number(); return
        if _is_alpha(c):
            self._identifier(); return

        self._error(f"Unexpected character '{c}'")

    def _block_comment(self):
        while not self._is_at_end():
            if self._peek() == '*' and self._peek_next() == '/':
                self._advance()
                self._advance()
                return
            self._advance()
        self._error("Unterminated block comment")

    def _string(self):
        # Strings may not span lines so that every bytecode push stays on one line.
        while self._peek() != '"' and self._peek() != '\n' and not self._is_at_end():
            self._advance()
        if self._peek() != '"':
            self._error("Unterminated string literal")
            return
        self._advance()  # closing quote
        value = self.source[self.start + 1:self.current - 1]
        self._add_token(TokenType.STRING, value)

    def _number(self):
        while _is_digit(self._peek()):
            self._advance()
        if self._peek() == '.' and _is_digit(self._peek_next()):
            self._advance()  # the dot
            while _is_digit(self._peek()):
                self._advance()
            text = self.source[self.start:self.current]
            self._add_token(TokenType.FLOAT_NUMBER, float(text))
            return
        text = self.source[self.start:self.current]
        value = int(text)
        if value > INT_MAX:
            self._error(f"Integer literal {text} does not fit in 32 bits")
            value = 0
        self._add_token(TokenType.INT_NUMBER, value)

    def _identifier(self):
        while _is_alpha(self._peek()) or _is_digit(self._peek()):
            self._advance()
        text = self.source[self.start:self.current]
        type_ = KEYWORDS.get(text, TokenType.IDENTIFIER)
        self._add_token(type_)
