'''
Lua lexer

Turns script text into a flat token list terminated by an EOF token.
Lexing is fail-soft: characters that start no known token are skipped.
Comments are consumed here and never reach the parser.
'''

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

__all__ = ['TokenType', 'Token', 'LuaLexer', 'tokenize', 'KEYWORDS']


class TokenType(Enum):
    '''Token categories'''
    KEYWORD = 'keyword'
    IDENTIFIER = 'identifier'
    STRING = 'string'
    NUMBER = 'number'
    OPERATOR = 'operator'
    PUNCTUATION = 'punctuation'
    EOF = 'eof'


@dataclass
class Token:
    '''A lexed token

    For strings `value` holds the decoded contents, `raw` the text between
    the delimiters exactly as written and `quote` the delimiter the source
    used, so the literal can be reproduced faithfully.
    '''
    type: TokenType
    value: str
    line: int
    column: int
    quote: str = ''
    raw: Optional[str] = None

    def __str__(self) -> str:
        return f'{self.type.name}({self.value!r}) @ {self.line}:{self.column}'


KEYWORDS = frozenset({
    'and', 'break', 'do', 'else', 'elseif', 'end', 'false', 'for',
    'function', 'if', 'in', 'local', 'nil', 'not', 'or', 'repeat',
    'return', 'then', 'true', 'until', 'while',
})

# Longest first, so that greedy matching never splits a multi-character operator
MULTI_CHAR_OPERATORS = ('==', '~=', '<=', '>=', '..', '+=', '-=', '*=', '/=')

SINGLE_CHAR_OPERATORS = '+-*/%^#=<>'
PUNCTUATION = '(){}[],;:.'

ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'a': '\a',
    'b': '\b',
    'f': '\f',
    'v': '\v',
}

DECIMAL_DIGITS = '0123456789'
HEX_DIGITS = DECIMAL_DIGITS + 'abcdefABCDEF'


class LuaLexer:
    '''Character-level scanner for the supported Lua dialect'''

    def __init__(self, text: str, start_line: int = 1):
        self.text = text
        self.position = 0
        self.line = start_line
        self.column = 1

    def peek(self, offset: int = 0) -> str:
        index = self.position + offset
        if index < len(self.text):
            return self.text[index]

        return ''

    def advance(self) -> str:
        char = self.text[self.position]
        self.position += 1
        if char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1

        return char

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []

        while True:
            self._skip_whitespace()
            if self.position >= len(self.text):
                break

            char = self.peek()

            if char == '-' and self.peek(1) == '-':
                self._skip_comment()
                continue

            if char in ('"', "'"):
                tokens.append(self._read_string(char))
                continue

            if char.isdigit() or (char == '.' and self.peek(1).isdigit()):
                tokens.append(self._read_number())
                continue

            if char.isalpha() or char == '_':
                tokens.append(self._read_identifier())
                continue

            token = self._read_operator()
            if token is not None:
                tokens.append(token)
                continue

            # Unknown character
            self.advance()

        tokens.append(Token(TokenType.EOF, '', self.line, self.column))
        return tokens

    def _skip_whitespace(self):
        while self.position < len(self.text) and self.peek().isspace():
            self.advance()

    def _skip_comment(self):
        # '--'
        self.advance()
        self.advance()

        if self.peek() == '[' and self.peek(1) == '[':
            self.advance()
            self.advance()
            while self.position < len(self.text):
                if self.peek() == ']' and self.peek(1) == ']':
                    self.advance()
                    self.advance()
                    return

                self.advance()

            return

        while self.position < len(self.text) and self.peek() != '\n':
            self.advance()

    def _read_string(self, quote: str) -> Token:
        line, column = self.line, self.column
        chars = []

        # opening quote
        self.advance()
        start = end = self.position

        while self.position < len(self.text) and self.peek() != quote:
            char = self.advance()
            if char == '\\' and self.position < len(self.text):
                chars.append(self._read_escape())
            elif char == '\n':
                # unterminated string, stop at the end of the line
                break
            else:
                chars.append(char)

            end = self.position

        if self.peek() == quote:
            self.advance()

        return Token(TokenType.STRING, ''.join(chars), line, column, quote, self.text[start:end])

    def _read_escape(self) -> str:
        '''Decode the escape sequence after a backslash'''
        escaped = self.advance()

        if escaped in ESCAPES:
            return ESCAPES[escaped]

        # \ddd, at most three decimal digits
        if escaped in DECIMAL_DIGITS:
            digits = escaped
            while len(digits) < 3 and self.peek() and self.peek() in DECIMAL_DIGITS:
                digits += self.advance()

            return chr(int(digits) & 0xFF)

        # \xhh, exactly two hex digits
        if escaped == 'x' and self.peek() and self.peek() in HEX_DIGITS and self.peek(1) and self.peek(1) in HEX_DIGITS:
            return chr(int(self.advance() + self.advance(), 16))

        # \u{XXX}
        if escaped == 'u' and self.peek() == '{':
            close = self.text.find('}', self.position)
            digits = self.text[self.position + 1:close] if close > 0 else ''
            if digits and all(c in HEX_DIGITS for c in digits):
                while self.position <= close:
                    self.advance()

                return chr(min(int(digits, 16), 0x10FFFF))

        # \z skips the following whitespace, line breaks included
        if escaped == 'z':
            self._skip_whitespace()
            return ''

        # \\, \', \", an escaped line break, or an unknown escape kept as its character
        return escaped

    def _read_number(self) -> Token:
        line, column = self.line, self.column
        start = self.position

        if self.peek() == '0' and self.peek(1) in ('x', 'X'):
            self.advance()
            self.advance()
            while self.peek() and self.peek() in HEX_DIGITS:
                self.advance()

            return Token(TokenType.NUMBER, self.text[start:self.position], line, column)

        while self.peek().isdigit():
            self.advance()

        # A '..' after digits is the concat operator, not a fraction
        if self.peek() == '.' and self.peek(1) != '.':
            self.advance()
            while self.peek().isdigit():
                self.advance()

        if self.peek() in ('e', 'E'):
            sign = 1 if self.peek(1) in ('+', '-') else 0
            if self.peek(1 + sign).isdigit():
                for _ in range(1 + sign):
                    self.advance()

                while self.peek().isdigit():
                    self.advance()

        return Token(TokenType.NUMBER, self.text[start:self.position], line, column)

    def _read_identifier(self) -> Token:
        line, column = self.line, self.column
        start = self.position

        while self.peek() and (self.peek().isalnum() or self.peek() == '_'):
            self.advance()

        value = self.text[start:self.position]
        token_type = TokenType.KEYWORD if value in KEYWORDS else TokenType.IDENTIFIER
        return Token(token_type, value, line, column)

    def _read_operator(self) -> Token | None:
        line, column = self.line, self.column

        for op in MULTI_CHAR_OPERATORS:
            if self.text.startswith(op, self.position):
                for _ in op:
                    self.advance()

                return Token(TokenType.OPERATOR, op, line, column)

        char = self.peek()
        if char in SINGLE_CHAR_OPERATORS:
            self.advance()
            return Token(TokenType.OPERATOR, char, line, column)

        if char in PUNCTUATION:
            self.advance()
            return Token(TokenType.PUNCTUATION, char, line, column)

        return None


def tokenize(text: str, start_line: int = 1) -> List[Token]:
    '''Lex `text` into tokens; `start_line` numbers the first line'''
    return LuaLexer(text, start_line).tokenize()
