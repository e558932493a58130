'''Lua AST - statements and expressions produced by the parser'''

from dataclasses import dataclass, field
from typing import List, Optional

__all__ = [
    # Base classes
    'ASTNode',
    'Statement',
    'Expression',

    # Expressions
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

    # Statements
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
]


class ASTNode:
    '''Base class for all AST nodes'''

    def __str__(self) -> str:
        from .formatter import LuaFormatter
        return LuaFormatter.format_node(self)


class Statement(ASTNode):
    '''Base class for statements; every statement records its source line'''
    line: int


class Expression(ASTNode):
    '''Base class for expressions'''
    line: int


# ============================================================================
# Expressions
# ============================================================================

@dataclass
class Identifier(Expression):
    name: str
    line: int = 0


@dataclass
class StringLiteral(Expression):
    '''String literal; `value` is decoded, `quote` is the source delimiter

    `raw` keeps the source text between the delimiters, so parsed literals
    are written back exactly as they were spelled.
    '''
    value: str
    quote: str = '"'
    line: int = 0
    raw: Optional[str] = field(default = None, compare = False)


@dataclass
class NumberLiteral(Expression):
    '''Numeric literal, kept as its source spelling'''
    text: str
    line: int = 0


@dataclass
class BooleanLiteral(Expression):
    value: bool
    line: int = 0


@dataclass
class NilLiteral(Expression):
    line: int = 0


@dataclass
class BinaryExpression(Expression):
    op: str
    left: Expression
    right: Expression
    line: int = 0


@dataclass
class UnaryExpression(Expression):
    op: str
    operand: Expression
    line: int = 0


@dataclass
class MemberExpression(Expression):
    '''obj.property'''
    object: Expression
    property: str
    line: int = 0


@dataclass
class IndexExpression(Expression):
    '''obj[index]'''
    object: Expression
    index: Expression
    line: int = 0


@dataclass
class FunctionCall(Expression):
    callee: Expression
    args: List[Expression] = field(default_factory = list)
    line: int = 0


@dataclass
class MethodCall(Expression):
    '''obj:method(args)'''
    object: Expression
    method: str
    args: List[Expression] = field(default_factory = list)
    line: int = 0


@dataclass
class TableField(ASTNode):
    '''One table constructor entry

    style is 'positional' (value), 'name' (key = value) or 'bracket' ([key] = value).
    For 'name' the key is an Identifier.
    '''
    value: Expression
    key: Optional[Expression] = None
    style: str = 'positional'


@dataclass
class TableConstructor(Expression):
    fields: List[TableField] = field(default_factory = list)
    line: int = 0


@dataclass
class AnonymousFunction(Expression):
    params: List[str] = field(default_factory = list)
    body: List[Statement] = field(default_factory = list)
    line: int = 0


# ============================================================================
# Statements
# ============================================================================

@dataclass
class LocalDeclaration(Statement):
    name: str
    value: Optional[Expression] = None
    line: int = 0


@dataclass
class Assignment(Statement):
    '''target op value, where op is '=' or a compound form such as '+=' '''
    target: Expression
    value: Expression
    op: str = '='
    line: int = 0


@dataclass
class FunctionDeclaration(Statement):
    name: str
    params: List[str] = field(default_factory = list)
    body: List[Statement] = field(default_factory = list)
    is_local: bool = False
    line: int = 0

    @property
    def is_method(self) -> bool:
        return ':' in self.name


@dataclass
class IfStatement(Statement):
    '''if/elseif/else; an elseif is an IfStatement alone in `alternate` with is_elseif set'''
    condition: Expression
    consequent: List[Statement] = field(default_factory = list)
    alternate: Optional[List[Statement]] = None
    is_elseif: bool = False
    line: int = 0


@dataclass
class WhileLoop(Statement):
    condition: Expression
    body: List[Statement] = field(default_factory = list)
    line: int = 0


@dataclass
class RepeatLoop(Statement):
    body: List[Statement]
    condition: Expression
    line: int = 0


@dataclass
class ForLoop(Statement):
    '''Numeric for'''
    variable: str
    start: Expression
    end: Expression
    step: Optional[Expression] = None
    body: List[Statement] = field(default_factory = list)
    line: int = 0


@dataclass
class ForInLoop(Statement):
    '''Generic for'''
    variables: List[str]
    iterable: Expression
    body: List[Statement] = field(default_factory = list)
    line: int = 0


@dataclass
class DoBlock(Statement):
    body: List[Statement] = field(default_factory = list)
    line: int = 0


@dataclass
class ReturnStatement(Statement):
    value: Optional[Expression] = None
    line: int = 0


@dataclass
class BreakStatement(Statement):
    line: int = 0


@dataclass
class ExpressionStatement(Statement):
    expression: Expression
    line: int = 0


@dataclass
class Program(ASTNode):
    body: List[Statement] = field(default_factory = list)

