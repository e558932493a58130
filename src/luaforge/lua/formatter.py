'''Lua Formatter - deterministic AST to source text'''

from typing import List

from ..common import default_indent
from .ast import *

__all__ = ['LuaFormatter', 'quote_string', 'PRECEDENCE']


# Binary operator precedence (lower number = lower precedence)
PRECEDENCE = {
    'or': 1,
    'and': 2,
    '<': 3, '>': 3, '<=': 3, '>=': 3, '~=': 3, '==': 3,
    '..': 5,
    '+': 6, '-': 6,
    '*': 7, '/': 7, '%': 7,
    '^': 9,
}

UNARY_PRECEDENCE = 8

RIGHT_ASSOCIATIVE = frozenset({'..', '^'})

STRING_ESCAPES = {
    '\\': '\\\\',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
}


def _escape(char: str) -> str:
    if char in STRING_ESCAPES:
        return STRING_ESCAPES[char]

    if char.isprintable():
        return char

    # three digits, so a following digit cannot extend the escape
    if ord(char) < 256:
        return f'\\{ord(char):03d}'

    return f'\\u{{{ord(char):X}}}'


def quote_string(value: str, quote: str = "'") -> str:
    '''Render `value` as a Lua string literal delimited by `quote`'''
    chars = []
    for char in str(value):
        if char == quote:
            chars.append('\\' + char)
        else:
            chars.append(_escape(char))

    return quote + ''.join(chars) + quote


class LuaFormatter:
    '''Format AST nodes as Lua source'''

    @classmethod
    def _precedence(cls, expr: Expression) -> int:
        if isinstance(expr, BinaryExpression):
            return PRECEDENCE.get(expr.op, 100)

        elif isinstance(expr, UnaryExpression):
            return UNARY_PRECEDENCE

        return 100

    @classmethod
    def _needs_parentheses(cls, child: Expression, parent_op: str, is_left: bool) -> bool:
        '''Check if child expression needs parentheses based on operator precedence'''
        child_prec = cls._precedence(child)
        parent_prec = PRECEDENCE.get(parent_op, 100)

        # Need parentheses if child has lower precedence
        if child_prec < parent_prec:
            return True

        # Same precedence: the operand on the non-associative side keeps its grouping
        if child_prec == parent_prec:
            if parent_op in RIGHT_ASSOCIATIVE:
                return is_left

            return not is_left

        return False

    @classmethod
    def format_prefix(cls, expr: Expression, indent: int) -> str:
        '''Format the base of a call, member or index access'''
        text = cls.format_expr(expr, indent)
        if isinstance(expr, (Identifier, MemberExpression, IndexExpression, FunctionCall, MethodCall)):
            return text

        return f'({text})'

    @classmethod
    def _format_args(cls, args: List[Expression], indent: int) -> str:
        return ', '.join(cls.format_expr(arg, indent) for arg in args)

    @classmethod
    def format_expr(cls, expr: Expression, indent: int = 0) -> str:
        '''Format an expression; `indent` is the level of the line it starts on'''
        match expr:
            case Identifier(name = name):
                return name

            case StringLiteral(quote = quote, raw = raw) if raw is not None and quote:
                return quote + raw + quote

            case StringLiteral(value = value, quote = quote):
                return quote_string(value, quote or '"')

            case NumberLiteral(text = text):
                return text

            case BooleanLiteral(value = value):
                return 'true' if value else 'false'

            case NilLiteral():
                return 'nil'

            case BinaryExpression(op = op, left = left, right = right):
                lhs = cls.format_expr(left, indent)
                rhs = cls.format_expr(right, indent)

                if cls._needs_parentheses(left, op, True):
                    lhs = f'({lhs})'

                if cls._needs_parentheses(right, op, False):
                    rhs = f'({rhs})'

                return f'{lhs} {op} {rhs}'

            case UnaryExpression(op = op, operand = operand):
                text = cls.format_expr(operand, indent)
                if cls._precedence(operand) < UNARY_PRECEDENCE:
                    text = f'({text})'

                if op == 'not' or (op == '-' and text.startswith('-')):
                    return f'{op} {text}'

                return f'{op}{text}'

            case MemberExpression(object = obj, property = prop):
                return f'{cls.format_prefix(obj, indent)}.{prop}'

            case IndexExpression(object = obj, index = index):
                return f'{cls.format_prefix(obj, indent)}[{cls.format_expr(index, indent)}]'

            case FunctionCall(callee = callee, args = args):
                return f'{cls.format_prefix(callee, indent)}({cls._format_args(args, indent)})'

            case MethodCall(object = obj, method = method, args = args):
                return f'{cls.format_prefix(obj, indent)}:{method}({cls._format_args(args, indent)})'

            case TableConstructor(fields = fields):
                return '{' + ', '.join(cls.format_field(f, indent) for f in fields) + '}'

            case AnonymousFunction(params = params, body = body):
                lines = [f'function({", ".join(params)})']
                lines.extend(cls.format_block(body, indent + 1))
                lines.append(default_indent() * indent + 'end')
                return '\n'.join(lines)

            case _:
                raise TypeError(f'Cannot format expression {type(expr).__name__}')

    @classmethod
    def format_field(cls, table_field: TableField, indent: int = 0) -> str:
        value = cls.format_expr(table_field.value, indent)

        if table_field.style == 'name' and table_field.key is not None:
            return f'{cls.format_expr(table_field.key, indent)} = {value}'

        if table_field.key is not None:
            return f'[{cls.format_expr(table_field.key, indent)}] = {value}'

        return value

    @classmethod
    def format_block(cls, statements: List[Statement], indent: int) -> List[str]:
        lines = []
        for stmt in statements:
            lines.extend(cls.format_statement(stmt, indent))

        return lines

    @classmethod
    def format_statement(cls, stmt: Statement, indent: int = 0) -> List[str]:
        '''Format a statement as indented lines'''
        pad = default_indent() * indent

        match stmt:
            case LocalDeclaration(name = name, value = None):
                return [f'{pad}local {name}']

            case LocalDeclaration(name = name, value = value):
                return [f'{pad}local {name} = {cls.format_expr(value, indent)}']

            case Assignment(target = target, value = value, op = op):
                return [f'{pad}{cls.format_expr(target, indent)} {op} {cls.format_expr(value, indent)}']

            case FunctionDeclaration(name = name, params = params, body = body, is_local = is_local):
                prefix = 'local function' if is_local else 'function'
                lines = [f'{pad}{prefix} {name}({", ".join(params)})']
                lines.extend(cls.format_block(body, indent + 1))
                lines.append(f'{pad}end')
                return lines

            case IfStatement():
                return cls._format_if(stmt, indent)

            case WhileLoop(condition = condition, body = body):
                lines = [f'{pad}while {cls.format_expr(condition, indent)} do']
                lines.extend(cls.format_block(body, indent + 1))
                lines.append(f'{pad}end')
                return lines

            case RepeatLoop(body = body, condition = condition):
                lines = [f'{pad}repeat']
                lines.extend(cls.format_block(body, indent + 1))
                lines.append(f'{pad}until {cls.format_expr(condition, indent)}')
                return lines

            case ForLoop(variable = variable, start = start, end = end, step = step, body = body):
                bounds = [cls.format_expr(start, indent), cls.format_expr(end, indent)]
                if step is not None:
                    bounds.append(cls.format_expr(step, indent))

                lines = [f'{pad}for {variable} = {", ".join(bounds)} do']
                lines.extend(cls.format_block(body, indent + 1))
                lines.append(f'{pad}end')
                return lines

            case ForInLoop(variables = variables, iterable = iterable, body = body):
                lines = [f'{pad}for {", ".join(variables)} in {cls.format_expr(iterable, indent)} do']
                lines.extend(cls.format_block(body, indent + 1))
                lines.append(f'{pad}end')
                return lines

            case DoBlock(body = body):
                return [f'{pad}do', *cls.format_block(body, indent + 1), f'{pad}end']

            case ReturnStatement(value = None):
                return [f'{pad}return']

            case ReturnStatement(value = value):
                return [f'{pad}return {cls.format_expr(value, indent)}']

            case BreakStatement():
                return [f'{pad}break']

            case ExpressionStatement(expression = expression):
                return [pad + cls.format_expr(expression, indent)]

            case _:
                raise TypeError(f'Cannot format statement {type(stmt).__name__}')

    @classmethod
    def _format_if(cls, stmt: IfStatement, indent: int) -> List[str]:
        pad = default_indent() * indent
        lines = [f'{pad}if {cls.format_expr(stmt.condition, indent)} then']
        lines.extend(cls.format_block(stmt.consequent, indent + 1))

        alternate = stmt.alternate
        while alternate:
            if len(alternate) == 1 and isinstance(alternate[0], IfStatement) and alternate[0].is_elseif:
                chained = alternate[0]
                lines.append(f'{pad}elseif {cls.format_expr(chained.condition, indent)} then')
                lines.extend(cls.format_block(chained.consequent, indent + 1))
                alternate = chained.alternate
                continue

            lines.append(f'{pad}else')
            lines.extend(cls.format_block(alternate, indent + 1))
            break

        lines.append(f'{pad}end')
        return lines

    @classmethod
    def format_source(cls, node: ASTNode) -> str:
        '''Format a statement or expression as unindented source text'''
        if isinstance(node, Statement):
            return '\n'.join(cls.format_statement(node, 0))

        return cls.format_expr(node, 0)

    @classmethod
    def format_node(cls, node: ASTNode) -> str:
        if isinstance(node, Program):
            return '\n'.join(cls.format_block(node.body, 0))

        if isinstance(node, TableField):
            return cls.format_field(node)

        return cls.format_source(node)
