'''Lua front end - lexer, AST, parser and formatter'''

from .lexer import *
from .ast import *
from .formatter import *
from .parser import *

__all__ = [
    # Lexer
    'TokenType',
    'Token',
    'LuaLexer',
    'tokenize',

    # AST
    'ASTNode',
    'Statement',
    'Expression',
    'Identifier',
    'StringLiteral',
    'NumberLiteral',
    'BooleanLiteral',
    'NilLiteral',
    'BinaryExpression',
    'UnaryExpression',
    'MemberExpression',
    'IndexExpression',
    'FunctionCall',
    'MethodCall',
    'TableField',
    'TableConstructor',
    'AnonymousFunction',
    'LocalDeclaration',
    'Assignment',
    'FunctionDeclaration',
    'IfStatement',
    'WhileLoop',
    'RepeatLoop',
    'ForLoop',
    'ForInLoop',
    'DoBlock',
    'ReturnStatement',
    'BreakStatement',
    'ExpressionStatement',
    'Program',

    # Formatter
    'LuaFormatter',
    'quote_string',

    # Parser
    'ParseError',
    'LuaParser',
    'parse',
    'parse_with_recovery',
]
