'''
Lua parser

Recursive-descent parser over the token list produced by the lexer.
Statements are dispatched on their leading keyword; expressions are parsed
by precedence climbing:

    assignment > or > and > comparison > concat > additive
    > multiplicative > unary > power > postfix > primary

`LuaParser.parse()` raises a ParseError on the first unexpected token.
`parse_with_recovery()` is the statement-level recovering caller.
'''

import logging
from typing import List, Optional, Tuple

from ..common import get_config
from .ast import *
from .lexer import Token, TokenType

__all__ = ['ParseError', 'LuaParser', 'parse', 'parse_with_recovery']

logger = logging.getLogger(__name__)

COMPARISON_OPERATORS = ('==', '~=', '<', '>', '<=', '>=')
ASSIGNMENT_OPERATORS = ('=', '+=', '-=', '*=', '/=')
UNARY_OPERATORS = ('not', '-', '#')

# Tokens a recovering parse skips forward to
SYNC_TOKENS = (';', 'end', 'local', 'function')

# Tokens that close a block and so cannot start a statement
BLOCK_END_TOKENS = ('end', 'else', 'elseif', 'until')


class ParseError(Exception):
    '''Unexpected token; carries the line it was found on'''

    def __init__(self, message: str, line: int):
        super().__init__(f'{message} at line {line}')
        self.line = line


class LuaParser:
    '''Parses a token list into a Program'''

    def __init__(self, tokens: List[Token]):
        if not tokens or tokens[-1].type != TokenType.EOF:
            line = tokens[-1].line if tokens else 1
            tokens = list(tokens) + [Token(TokenType.EOF, '', line, 1)]

        self.tokens = tokens
        self.position = 0

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def peek(self, offset: int = 0) -> Token:
        index = self.position + offset
        if index < len(self.tokens):
            return self.tokens[index]

        return self.tokens[-1]

    def advance(self) -> Token:
        token = self.peek()
        if token.type != TokenType.EOF:
            self.position += 1

        return token

    def at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def match(self, *values: str) -> bool:
        '''True if the next token is a non-string token spelled as one of `values`'''
        token = self.peek()
        return token.type not in (TokenType.STRING, TokenType.EOF) and token.value in values

    def expect(self, value: str) -> Token:
        token = self.peek()
        if not self.match(value):
            raise ParseError(f"Expected '{value}' but got {self._describe(token)}", token.line)

        return self.advance()

    def expect_identifier(self) -> Token:
        token = self.peek()
        if token.type != TokenType.IDENTIFIER:
            raise ParseError(f'Expected identifier but got {self._describe(token)}', token.line)

        return self.advance()

    @classmethod
    def _describe(cls, token: Token) -> str:
        if token.type == TokenType.EOF:
            return 'end of input'

        if token.type == TokenType.STRING:
            return f'string {token.quote}{token.value}{token.quote}'

        return f"'{token.value}'"

    # ------------------------------------------------------------------
    # Program and blocks
    # ------------------------------------------------------------------

    def parse(self) -> Program:
        '''Parse the whole token list, raising ParseError on the first error'''
        statements = []
        while not self.at_end():
            stmt = self.parse_statement()
            if stmt is not None:
                statements.append(stmt)

        return Program(statements)

    def _parse_block(self, *terminators: str) -> List[Statement]:
        '''Parse statements until one of `terminators` or end of input'''
        statements = []
        while not self.at_end() and not self.match(*terminators):
            stmt = self.parse_statement()
            if stmt is not None:
                statements.append(stmt)

        return statements

    def _consume_end(self):
        # An unterminated block at end of input is accepted as is
        if self.match('end'):
            self.advance()

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def parse_statement(self) -> Optional[Statement]:
        token = self.peek()

        if token.type == TokenType.KEYWORD:
            match token.value:
                case 'local':
                    return self._parse_local()

                case 'function':
                    return self._parse_function_declaration()

                case 'if':
                    return self._parse_if()

                case 'while':
                    return self._parse_while()

                case 'repeat':
                    return self._parse_repeat()

                case 'for':
                    return self._parse_for()

                case 'do':
                    return self._parse_do()

                case 'return':
                    return self._parse_return()

                case 'break':
                    self.advance()
                    return BreakStatement(line = token.line)

        if self.match(';'):
            self.advance()
            return None

        return self._parse_expression_statement()

    def _parse_local(self) -> Statement:
        start = self.advance()  # 'local'

        if self.match('function'):
            self.advance()
            name = self.expect_identifier().value
            params, body = self._parse_function_body()
            return FunctionDeclaration(name, params, body, is_local = True, line = start.line)

        name = self.expect_identifier().value
        value = None
        if self.match('='):
            self.advance()
            value = self.parse_expression()

        return LocalDeclaration(name, value, line = start.line)

    def _parse_function_declaration(self) -> FunctionDeclaration:
        start = self.advance()  # 'function'

        # name, a.b.c or a.b:c
        name = self.expect_identifier().value
        while self.match('.'):
            self.advance()
            name += '.' + self.expect_identifier().value

        if self.match(':'):
            self.advance()
            name += ':' + self.expect_identifier().value

        params, body = self._parse_function_body()
        return FunctionDeclaration(name, params, body, line = start.line)

    def _parse_function_body(self) -> Tuple[List[str], List[Statement]]:
        '''Parse '(params) body end' shared by declarations and anonymous functions'''
        self.expect('(')
        params = []
        if not self.match(')'):
            params.append(self.expect_identifier().value)
            while self.match(','):
                self.advance()
                params.append(self.expect_identifier().value)

        self.expect(')')

        body = self._parse_block('end')
        self._consume_end()
        return params, body

    def _parse_if(self) -> IfStatement:
        start = self.advance()  # 'if' or 'elseif'
        condition = self.parse_expression()
        self.expect('then')

        consequent = self._parse_block('else', 'elseif', 'end')
        stmt = IfStatement(condition, consequent, line = start.line)

        if self.match('elseif'):
            chained = self._parse_if()
            chained.is_elseif = True
            stmt.alternate = [chained]
            # the chained branch consumed the shared 'end'
            return stmt

        if self.match('else'):
            self.advance()
            stmt.alternate = self._parse_block('end')

        self._consume_end()
        return stmt

    def _parse_while(self) -> WhileLoop:
        start = self.advance()  # 'while'
        condition = self.parse_expression()
        self.expect('do')

        body = self._parse_block('end')
        self._consume_end()
        return WhileLoop(condition, body, line = start.line)

    def _parse_repeat(self) -> RepeatLoop:
        start = self.advance()  # 'repeat'
        body = self._parse_block('until')
        self.expect('until')
        condition = self.parse_expression()
        return RepeatLoop(body, condition, line = start.line)

    def _parse_for(self) -> Statement:
        start = self.advance()  # 'for'
        first = self.expect_identifier().value

        # Numeric for: for i = 1, 10[, step] do
        if self.match('='):
            self.advance()
            start_expr = self.parse_expression()
            self.expect(',')
            end_expr = self.parse_expression()

            step = None
            if self.match(','):
                self.advance()
                step = self.parse_expression()

            self.expect('do')
            body = self._parse_block('end')
            self._consume_end()
            return ForLoop(first, start_expr, end_expr, step, body, line = start.line)

        # Generic for: for k, v in pairs(t) do
        variables = [first]
        while self.match(','):
            self.advance()
            variables.append(self.expect_identifier().value)

        self.expect('in')
        iterable = self.parse_expression()
        self.expect('do')

        body = self._parse_block('end')
        self._consume_end()
        return ForInLoop(variables, iterable, body, line = start.line)

    def _parse_do(self) -> DoBlock:
        start = self.advance()  # 'do'
        body = self._parse_block('end')
        self._consume_end()
        return DoBlock(body, line = start.line)

    def _parse_return(self) -> ReturnStatement:
        start = self.advance()  # 'return'

        value = None
        if not self.at_end() and not self.match(';', *BLOCK_END_TOKENS):
            value = self.parse_expression()

        return ReturnStatement(value, line = start.line)

    def _parse_expression_statement(self) -> Statement:
        token = self.peek()
        if self.match(*BLOCK_END_TOKENS):
            raise ParseError(f'Unexpected {self._describe(token)}', token.line)

        expr = self._parse_assignment()
        if isinstance(expr, Assignment):
            return expr

        return ExpressionStatement(expr, line = token.line)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self) -> Expression:
        return self._parse_or()

    def _parse_assignment(self) -> Expression | Assignment:
        target = self._parse_or()

        if self.match(*ASSIGNMENT_OPERATORS):
            op_token = self.advance()
            if not isinstance(target, (Identifier, MemberExpression, IndexExpression)):
                raise ParseError('Invalid assignment target', op_token.line)

            value = self.parse_expression()
            return Assignment(target, value, op_token.value, line = target.line)

        return target

    def _parse_binary_level(self, operators: Tuple[str, ...], operand) -> Expression:
        '''Left-associative binary level'''
        left = operand()

        while self.match(*operators):
            op = self.advance().value
            right = operand()
            left = BinaryExpression(op, left, right, line = left.line)

        return left

    def _parse_or(self) -> Expression:
        return self._parse_binary_level(('or',), self._parse_and)

    def _parse_and(self) -> Expression:
        return self._parse_binary_level(('and',), self._parse_comparison)

    def _parse_comparison(self) -> Expression:
        return self._parse_binary_level(COMPARISON_OPERATORS, self._parse_concat)

    def _parse_concat(self) -> Expression:
        left = self._parse_additive()

        # right associative
        if self.match('..'):
            self.advance()
            right = self._parse_concat()
            return BinaryExpression('..', left, right, line = left.line)

        return left

    def _parse_additive(self) -> Expression:
        return self._parse_binary_level(('+', '-'), self._parse_multiplicative)

    def _parse_multiplicative(self) -> Expression:
        return self._parse_binary_level(('*', '/', '%'), self._parse_unary)

    def _parse_unary(self) -> Expression:
        if self.match(*UNARY_OPERATORS):
            token = self.advance()
            operand = self._parse_unary()
            return UnaryExpression(token.value, operand, line = token.line)

        return self._parse_power()

    def _parse_power(self) -> Expression:
        base = self._parse_postfix()

        # right associative, binds tighter than a unary operator on its left
        if self.match('^'):
            self.advance()
            exponent = self._parse_unary()
            return BinaryExpression('^', base, exponent, line = base.line)

        return base

    def _parse_postfix(self) -> Expression:
        expr = self._parse_primary()

        while True:
            if self.match('('):
                args = self._parse_arguments()
                expr = FunctionCall(expr, args, line = expr.line)

            elif self.match(':'):
                self.advance()
                method = self.expect_identifier().value
                args = self._parse_arguments()
                expr = MethodCall(expr, method, args, line = expr.line)

            elif self.match('.'):
                self.advance()
                prop = self.expect_identifier().value
                expr = MemberExpression(expr, prop, line = expr.line)

            elif self.match('['):
                self.advance()
                index = self.parse_expression()
                self.expect(']')
                expr = IndexExpression(expr, index, line = expr.line)

            else:
                return expr

    def _parse_arguments(self) -> List[Expression]:
        self.expect('(')
        args = []
        if not self.match(')'):
            args.append(self.parse_expression())
            while self.match(','):
                self.advance()
                args.append(self.parse_expression())

        self.expect(')')
        return args

    def _parse_primary(self) -> Expression:
        token = self.peek()

        match token.type:
            case TokenType.STRING:
                self.advance()
                return StringLiteral(token.value, token.quote, line = token.line, raw = token.raw)

            case TokenType.NUMBER:
                self.advance()
                return NumberLiteral(token.value, line = token.line)

            case TokenType.IDENTIFIER:
                self.advance()
                return Identifier(token.value, line = token.line)

        if self.match('true', 'false'):
            self.advance()
            return BooleanLiteral(token.value == 'true', line = token.line)

        if self.match('nil'):
            self.advance()
            return NilLiteral(line = token.line)

        if self.match('('):
            self.advance()
            expr = self.parse_expression()
            self.expect(')')
            return expr

        if self.match('{'):
            return self._parse_table()

        if self.match('function'):
            self.advance()
            params, body = self._parse_function_body()
            return AnonymousFunction(params, body, line = token.line)

        raise ParseError(f'Unexpected token {self._describe(token)}', token.line)

    def _parse_table(self) -> TableConstructor:
        start = self.expect('{')
        fields = []

        while not self.match('}'):
            if self.at_end():
                raise ParseError("Expected '}' but got end of input", self.peek().line)

            if self.match('['):
                self.advance()
                key = self.parse_expression()
                self.expect(']')
                self.expect('=')
                fields.append(TableField(self.parse_expression(), key, 'bracket'))

            elif self.peek().type == TokenType.IDENTIFIER and self.peek(1).value == '=' \
                    and self.peek(1).type == TokenType.OPERATOR:
                key_token = self.advance()
                self.advance()  # '='
                key = Identifier(key_token.value, line = key_token.line)
                fields.append(TableField(self.parse_expression(), key, 'name'))

            else:
                fields.append(TableField(self.parse_expression()))

            if self.match(',', ';'):
                self.advance()
            elif not self.match('}'):
                token = self.peek()
                raise ParseError(f"Expected '}}' but got {self._describe(token)}", token.line)

        self.expect('}')
        return TableConstructor(fields, line = start.line)


def parse(tokens: List[Token]) -> Program:
    '''Parse tokens into a Program, raising ParseError on the first error'''
    return LuaParser(tokens).parse()


def parse_with_recovery(tokens: List[Token], max_steps: Optional[int] = None) -> Tuple[Program, List[ParseError]]:
    '''Parse with statement-level recovery

    A failing statement is dropped and tokens are discarded up to the next
    synchronization token. Returns the statements that did parse together
    with every recovered error. Raises ParseError once more than `max_steps`
    recoveries were needed.
    '''
    if max_steps is None:
        max_steps = get_config().max_recovery_steps

    parser = LuaParser(tokens)
    statements = []
    errors: List[ParseError] = []

    while not parser.at_end():
        start = parser.position
        try:
            stmt = parser.parse_statement()
            if stmt is not None:
                statements.append(stmt)

            continue

        except ParseError as e:
            logger.warning('Recovered from parse error: %s', e)
            errors.append(e)

        if len(errors) > max_steps:
            raise ParseError(f'Too many parse errors ({len(errors)})', parser.peek().line)

        while not parser.at_end() and not parser.match(*SYNC_TOKENS):
            parser.advance()

        # ';' and 'end' cannot start a statement, step over them
        if parser.match(';', 'end'):
            parser.advance()

        if parser.position == start:
            parser.advance()

    return Program(statements), errors
