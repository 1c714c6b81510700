import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional

from exprlang.utils import ErrorKind, LangError, PrintableEnum

logger = logging.getLogger(__name__)


@dataclass
class TokenizerError(LangError):
    errmsg: str
    code: str
    error_char_idx: int

    kind = ErrorKind.SCAN

    def __str__(self) -> str:
        print_start_idx = max(0, self.error_char_idx - 10)
        print_ellipsis_pre = print_start_idx > 0
        print_end_idx = min(len(self.code), self.error_char_idx + 10)
        print_ellipsis_post = print_end_idx < len(self.code)
        return "\n".join(
            [
                f"[Tokenizer error] {self.errmsg}",
                (
                    ("..." if print_ellipsis_pre else "")
                    + f"{self.code[print_start_idx:print_end_idx]}"
                    + ("..." if print_ellipsis_post else "")
                ),
                " " * (self.error_char_idx - print_start_idx + (3 if print_ellipsis_pre else 0)) + "^",
            ]
        )


class TokenType(PrintableEnum):
    # literals
    NUMBER = enum.auto()
    STRING = enum.auto()
    BOOLEAN = enum.auto()
    IDENTIFIER = enum.auto()

    # keywords
    CONST = enum.auto()
    MUTATE = enum.auto()
    WHETHER = enum.auto()
    OTHERWISE = enum.auto()
    COMPARE = enum.auto()
    FN = enum.auto()
    FOREACH = enum.auto()
    FOREVER = enum.auto()
    RETURN = enum.auto()
    BREAK = enum.auto()
    CONTINUE = enum.auto()
    CHANGE = enum.auto()
    IMPORT = enum.auto()
    EXPORT = enum.auto()
    NULLIFY = enum.auto()
    PRINT = enum.auto()
    MAP = enum.auto()
    FILTER = enum.auto()
    REDUCE = enum.auto()
    FOLD = enum.auto()
    ZIP = enum.auto()
    LAZY = enum.auto()
    MEMOIZE = enum.auto()
    LAMBDA = enum.auto()
    COMPOSE = enum.auto()
    PIPE = enum.auto()
    PARTIAL = enum.auto()
    LET_REC = enum.auto()
    MATCH = enum.auto()
    AWAIT = enum.auto()
    YIELD = enum.auto()
    DEFER = enum.auto()
    CATCH = enum.auto()

    # single char
    PLUS = enum.auto()
    MINUS = enum.auto()
    STAR = enum.auto()
    SLASH = enum.auto()
    PERCENT = enum.auto()
    SEMICOLON = enum.auto()
    COMMA = enum.auto()
    BRACKET_OPEN = enum.auto()
    BRACKET_CLOSE = enum.auto()
    SQUARE_BRACKET_OPEN = enum.auto()
    SQUARE_BRACKET_CLOSE = enum.auto()
    CURLY_BRACKET_OPEN = enum.auto()
    CURLY_BRACKET_CLOSE = enum.auto()
    CARET = enum.auto()
    DOT = enum.auto()
    HASH = enum.auto()
    TYPE_DECLARATION = enum.auto()
    BACKTICK = enum.auto()
    BANG = enum.auto()
    GREATER = enum.auto()
    LESS = enum.auto()
    EQUAL = enum.auto()
    VERTICAL_BAR = enum.auto()

    # two chars
    LAMBDA_ARROW = enum.auto()
    EXPONENT = enum.auto()
    SLASH_EQUAL = enum.auto()
    PERCENT_EQUAL = enum.auto()
    EQUAL_EQUAL = enum.auto()
    EQUAL_GREATER = enum.auto()
    AND = enum.auto()
    OR = enum.auto()
    BANG_EQUAL = enum.auto()
    GREATER_EQUAL = enum.auto()
    LESS_EQUAL = enum.auto()
    COMPOSE_RIGHT = enum.auto()
    COMPOSE_LEFT = enum.auto()
    BIND = enum.auto()
    PIPE_FORWARD = enum.auto()
    MAYBE_ASSIGN = enum.auto()
    NULL_COALESCE = enum.auto()
    ASSIGN = enum.auto()
    CONCAT = enum.auto()

    EOF = enum.auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    literal: float | str | bool | None = None

    def __str__(self) -> str:
        return f"<{self.type}>{self.lexeme}"


# Scanned but inert: only const, mutate and print have a grammar production
KEYWORDS: dict[str, TokenType] = {
    "const": TokenType.CONST,
    "mutate": TokenType.MUTATE,
    "whether": TokenType.WHETHER,
    "otherwise": TokenType.OTHERWISE,
    "compare": TokenType.COMPARE,
    "fn": TokenType.FN,
    "foreach": TokenType.FOREACH,
    "forever": TokenType.FOREVER,
    "return": TokenType.RETURN,
    "break": TokenType.BREAK,
    "continue": TokenType.CONTINUE,
    "change": TokenType.CHANGE,
    "import": TokenType.IMPORT,
    "export": TokenType.EXPORT,
    "nullify": TokenType.NULLIFY,
    "print": TokenType.PRINT,
    "map": TokenType.MAP,
    "filter": TokenType.FILTER,
    "reduce": TokenType.REDUCE,
    "fold": TokenType.FOLD,
    "zip": TokenType.ZIP,
    "lazy": TokenType.LAZY,
    "memoize": TokenType.MEMOIZE,
    "lambda": TokenType.LAMBDA,
    "compose": TokenType.COMPOSE,
    "pipe": TokenType.PIPE,
    "partial": TokenType.PARTIAL,
    "letRec": TokenType.LET_REC,
    "match": TokenType.MATCH,
    "await": TokenType.AWAIT,
    "yield": TokenType.YIELD,
    "defer": TokenType.DEFER,
    "catch": TokenType.CATCH,
}

BOOLEAN_LITERALS = {"true": True, "false": False}

# first char -> second char -> token; tried before SINGLE_CHAR_TOKENS
TWO_CHAR_TOKENS: dict[str, dict[str, TokenType]] = {
    "-": {">": TokenType.LAMBDA_ARROW},
    "*": {"*": TokenType.EXPONENT},
    "/": {"=": TokenType.SLASH_EQUAL},
    "%": {"=": TokenType.PERCENT_EQUAL},
    "+": {"+": TokenType.CONCAT},
    "=": {"=": TokenType.EQUAL_EQUAL, ">": TokenType.EQUAL_GREATER},
    ":": {"=": TokenType.ASSIGN},
    "!": {"=": TokenType.BANG_EQUAL},
    ">": {"=": TokenType.GREATER_EQUAL, ">": TokenType.COMPOSE_RIGHT},
    "<": {"=": TokenType.LESS_EQUAL, "-": TokenType.BIND, "<": TokenType.COMPOSE_LEFT},
    "|": {">": TokenType.PIPE_FORWARD, "|": TokenType.OR},
    "&": {"&": TokenType.AND},
    "?": {"?": TokenType.NULL_COALESCE, "=": TokenType.MAYBE_ASSIGN},
}

SINGLE_CHAR_TOKENS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    ";": TokenType.SEMICOLON,
    ",": TokenType.COMMA,
    "(": TokenType.BRACKET_OPEN,
    ")": TokenType.BRACKET_CLOSE,
    "[": TokenType.SQUARE_BRACKET_OPEN,
    "]": TokenType.SQUARE_BRACKET_CLOSE,
    "{": TokenType.CURLY_BRACKET_OPEN,
    "}": TokenType.CURLY_BRACKET_CLOSE,
    "^": TokenType.CARET,
    ".": TokenType.DOT,
    "#": TokenType.HASH,
    ":": TokenType.TYPE_DECLARATION,
    "`": TokenType.BACKTICK,
    "!": TokenType.BANG,
    ">": TokenType.GREATER,
    "<": TokenType.LESS,
    "=": TokenType.EQUAL,
    "|": TokenType.VERTICAL_BAR,
}

WHITESPACE = " \t\n\r"


def _is_number_start(s: str) -> bool:
    return "0" <= s <= "9"


def _is_identifier_start(s: str) -> bool:
    return ("a" <= s <= "z") or ("A" <= s <= "Z") or s == "_"


def _is_valid_in_identifier(s: str) -> bool:
    return s.isalnum() or s == "_"


def _peek(code: str, i: int) -> Optional[str]:
    return code[i] if i < len(code) else None


def tokenize(code: str) -> list[Token]:
    i = 0
    tokens: list[Token] = []
    while i < len(code):
        char = code[i]
        if _is_number_start(char):
            number_end_idx = i + 1
            while number_end_idx < len(code) and code[number_end_idx].isnumeric():
                number_end_idx += 1
            lexeme = code[i:number_end_idx]
            try:
                value = float(lexeme)
            except ValueError:
                raise TokenizerError(f"Malformed number: {lexeme!r}", code=code, error_char_idx=i) from None
            tokens.append(Token(type=TokenType.NUMBER, lexeme=lexeme, literal=value))
            i = number_end_idx
        elif _is_identifier_start(char):
            ident_end_idx = i + 1
            while ident_end_idx < len(code) and _is_valid_in_identifier(code[ident_end_idx]):
                ident_end_idx += 1
            word = code[i:ident_end_idx]
            if word in BOOLEAN_LITERALS:
                tokens.append(Token(type=TokenType.BOOLEAN, lexeme=word, literal=BOOLEAN_LITERALS[word]))
            else:
                tokens.append(Token(type=KEYWORDS.get(word, TokenType.IDENTIFIER), lexeme=word))
            i = ident_end_idx
        elif char == '"':
            string_end_idx = code.find('"', i + 1)
            if string_end_idx == -1:
                raise TokenizerError("Unterminated string literal", code=code, error_char_idx=i)
            tokens.append(
                Token(
                    type=TokenType.STRING,
                    lexeme=code[i : string_end_idx + 1],
                    literal=code[i + 1 : string_end_idx],
                )
            )
            i = string_end_idx + 1
        elif char in WHITESPACE:
            i += 1
        else:
            two_char_type = TWO_CHAR_TOKENS.get(char, {}).get(_peek(code, i + 1) or "")
            if two_char_type is not None:
                tokens.append(Token(type=two_char_type, lexeme=code[i : i + 2]))
                i += 2
            elif char in SINGLE_CHAR_TOKENS:
                tokens.append(Token(type=SINGLE_CHAR_TOKENS[char], lexeme=char))
                i += 1
            else:
                raise TokenizerError(f"Unexpected character: {char!r}", code=code, error_char_idx=i)

    tokens.append(Token(type=TokenType.EOF, lexeme=""))
    logger.debug("Scanned %d tokens", len(tokens))
    return tokens


def untokenize(tokens: list[Token]) -> str:
    result = " ".join(t.lexeme for t in tokens if t.type is not TokenType.EOF)

    result = re.sub(r"\s+;", ";", result)

    # print ( 1 + 2 ) => print(1 + 2)
    result = re.sub(r"\s+\(\s*", "(", result)
    result = re.sub(r"\(\s+", "(", result)
    result = re.sub(r"\s+\)", ")", result)
    return result
