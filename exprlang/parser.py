import enum
import logging
from dataclasses import dataclass
from typing import Callable

from exprlang.tokenizer import Token, TokenType, untokenize
from exprlang.utils import ErrorKind, LangError, PrintableEnum

logger = logging.getLogger(__name__)


@dataclass
class ParserError(LangError):
    errmsg: str
    tokens: list[Token]
    error_token_idx: int

    kind = ErrorKind.PARSE

    def __str__(self) -> str:
        parsed_tokens = self.tokens[: self.error_token_idx]
        filler_whitespace = " " * len(untokenize(parsed_tokens)) + " "
        return "\n".join([f"Parser error: {self.errmsg}", untokenize(self.tokens), filler_whitespace + "^"])


class BinaryOperator(PrintableEnum):
    ADD = enum.auto()
    SUB = enum.auto()
    MUL = enum.auto()
    DIV = enum.auto()
    MOD = enum.auto()


@dataclass
class NumberLiteral:
    value: float


@dataclass
class Variable:
    name: str


@dataclass
class BinaryOperation:
    operator: BinaryOperator
    left: "Expression"
    right: "Expression"


@dataclass
class Assignment:
    name: str
    value: "Expression"


@dataclass
class Declaration:
    is_immutable: bool
    name: str
    value: "Expression"


@dataclass
class PrintStatement:
    value: "Expression"


@dataclass
class Block:
    expressions: list["Expression"]


Expression = NumberLiteral | Variable | BinaryOperation | Assignment | Declaration | PrintStatement | Block


EXPR_OPERATORS: dict[TokenType, BinaryOperator] = {
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUB,
}

TERM_OPERATORS: dict[TokenType, BinaryOperator] = {
    TokenType.STAR: BinaryOperator.MUL,
    TokenType.SLASH: BinaryOperator.DIV,
    TokenType.PERCENT: BinaryOperator.MOD,
}

DECLARATION_KEYWORDS = {
    TokenType.CONST: True,
    TokenType.MUTATE: False,
}


def parse(tokens: list[Token]) -> Block:
    if not tokens or tokens[-1].type is not TokenType.EOF:
        tokens = tokens + [Token(type=TokenType.EOF, lexeme="")]
    statements: list[Expression] = []
    i = 0
    while tokens[i].type is not TokenType.EOF:
        statement, i = _consume_statement(tokens, i)
        statements.append(statement)
        if tokens[i].type is TokenType.SEMICOLON:
            i += 1
    logger.debug("Parsed %d statements", len(statements))
    return Block(statements)


def _consume_statement(tokens: list[Token], i: int) -> tuple[Expression, int]:
    first = tokens[i]
    if first.type in DECLARATION_KEYWORDS:
        return _consume_declaration(tokens, i)
    elif first.type is TokenType.PRINT:
        return _consume_print(tokens, i)
    else:
        return _consume_assignment_or_expression(tokens, i)


def _consume_declaration(tokens: list[Token], i: int) -> tuple[Expression, int]:
    is_immutable = DECLARATION_KEYWORDS[tokens[i].type]
    i += 1
    name_token = tokens[i]
    if name_token.type is not TokenType.IDENTIFIER:
        raise ParserError("Expected identifier after 'const' or 'mutate'", tokens=tokens, error_token_idx=i)
    i += 1
    if tokens[i].type is not TokenType.EQUAL:
        raise ParserError("Expected '=' after variable name in declaration", tokens=tokens, error_token_idx=i)
    value, i = _consume_expression(tokens, i + 1)
    return Declaration(is_immutable=is_immutable, name=name_token.lexeme, value=value), i


def _consume_print(tokens: list[Token], i: int) -> tuple[Expression, int]:
    i += 1
    if tokens[i].type is not TokenType.BRACKET_OPEN:
        raise ParserError("Expected '(' after 'print'", tokens=tokens, error_token_idx=i)
    value, i = _consume_expression(tokens, i + 1)
    if tokens[i].type is not TokenType.BRACKET_CLOSE:
        raise ParserError("Expected ')' after expression in print statement", tokens=tokens, error_token_idx=i)
    return PrintStatement(value), i + 1


def _consume_assignment_or_expression(tokens: list[Token], i: int) -> tuple[Expression, int]:
    target_idx = i
    expr, i = _consume_expression(tokens, i)
    if tokens[i].type is not TokenType.EQUAL:
        return expr, i
    if not isinstance(expr, Variable):
        raise ParserError("Invalid assignment target", tokens=tokens, error_token_idx=target_idx)
    value, i = _consume_expression(tokens, i + 1)
    return Assignment(name=expr.name, value=value), i


def _consume_expression(tokens: list[Token], i: int) -> tuple[Expression, int]:
    return _consume_binary_chain(tokens, i, EXPR_OPERATORS, _consume_term)


def _consume_term(tokens: list[Token], i: int) -> tuple[Expression, int]:
    return _consume_binary_chain(tokens, i, TERM_OPERATORS, _consume_primary)


def _consume_binary_chain(
    tokens: list[Token],
    i: int,
    operators: dict[TokenType, BinaryOperator],
    consume_operand: Callable[[list[Token], int], tuple[Expression, int]],
) -> tuple[Expression, int]:
    """Left-associative chain of same-precedence operators"""
    left, i = consume_operand(tokens, i)
    while tokens[i].type in operators:
        operator = operators[tokens[i].type]
        right, i = consume_operand(tokens, i + 1)
        left = BinaryOperation(operator=operator, left=left, right=right)
    return left, i


def _consume_primary(tokens: list[Token], i: int) -> tuple[Expression, int]:
    token = tokens[i]
    if token.type is TokenType.NUMBER:
        return NumberLiteral(token.literal), i + 1  # type: ignore
    elif token.type is TokenType.IDENTIFIER:
        return Variable(token.lexeme), i + 1
    elif token.type is TokenType.EOF:
        raise ParserError("Unexpected end of input", tokens=tokens, error_token_idx=i)
    else:
        raise ParserError(f"Unexpected token: {token.type}", tokens=tokens, error_token_idx=i)
