import logging
import math
from dataclasses import dataclass
from typing import Optional, TextIO, Type

from exprlang.parser import (
    Assignment,
    BinaryOperation,
    BinaryOperator,
    Block,
    Declaration,
    Expression,
    NumberLiteral,
    PrintStatement,
    Variable,
)
from exprlang.utils import ErrorKind, LangError
from exprlang.value import BinaryOperationImpl, Number, Value

logger = logging.getLogger(__name__)


@dataclass
class EvaluationError(LangError):
    errmsg: str

    kind = ErrorKind.EVALUATION

    def __str__(self) -> str:
        return f"[Runtime error] {self.errmsg}"


@dataclass
class Binding:
    is_immutable: bool
    value: Value


class Environment:
    """Name -> binding table owned by a single interpreter"""

    def __init__(self) -> None:
        self._bindings: dict[str, Binding] = dict()

    def __contains__(self, name: str) -> bool:
        return name in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def lookup(self, name: str) -> Value:
        if name not in self._bindings:
            raise EvaluationError(f"Undefined variable: {name}")
        return self._bindings[name].value

    def get_binding(self, name: str) -> Optional[Binding]:
        return self._bindings.get(name)

    def check_declarable(self, name: str) -> None:
        if name in self._bindings:
            raise EvaluationError(f"Variable already declared: {name}")

    def check_assignable(self, name: str) -> None:
        binding = self._bindings.get(name)
        if binding is None:
            raise EvaluationError(f"Variable not declared: {name}")
        if binding.is_immutable:
            raise EvaluationError(f"Cannot assign to constant variable: {name}")

    # declare and assign expect the matching check_* call to have passed
    def declare(self, name: str, value: Value, is_immutable: bool) -> None:
        self._bindings[name] = Binding(is_immutable=is_immutable, value=value)

    def assign(self, name: str, value: Value) -> None:
        self._bindings[name] = Binding(is_immutable=False, value=value)


class Interpreter:
    def __init__(self, output: Optional[TextIO] = None) -> None:
        self.env = Environment()
        self.output = output

    def interpret(self, expression: Expression) -> Value:
        if isinstance(expression, NumberLiteral):
            return Number(expression.value)
        elif isinstance(expression, Variable):
            return self.env.lookup(expression.name)
        elif isinstance(expression, BinaryOperation):
            left_res = self.interpret(expression.left)
            right_res = self.interpret(expression.right)
            table, op_name = BINARY_OPERATION_TABLES[expression.operator]
            return eval_binary_operation(table=table, a=left_res, b=right_res, op_name=op_name)
        elif isinstance(expression, Assignment):
            self.env.check_assignable(expression.name)
            value = self.interpret(expression.value)
            self.env.assign(expression.name, value)
            logger.debug("Assigned %s = %s", expression.name, value)
            return value
        elif isinstance(expression, Declaration):
            self.env.check_declarable(expression.name)
            value = self.interpret(expression.value)
            self.env.declare(expression.name, value, is_immutable=expression.is_immutable)
            logger.debug("Declared %s %s = %s", "const" if expression.is_immutable else "mutate", expression.name, value)
            return value
        elif isinstance(expression, Block):
            result: Value = Number(0.0)
            for sub_expression in expression.expressions:
                result = self.interpret(sub_expression)
            return result
        elif isinstance(expression, PrintStatement):
            value = self.interpret(expression.value)
            print(value.to_text(), file=self.output)
            return value
        else:
            raise TypeError(f"Unexpected expression type: {expression}")


BinaryOperationImplTable = list[tuple[tuple[Type[Value], Type[Value]], BinaryOperationImpl]]


def eval_binary_operation(table: BinaryOperationImplTable, a: Value, b: Value, op_name: str) -> Value:
    for (type_a, type_b), impl in table:
        if isinstance(a, type_a) and isinstance(b, type_b):
            return impl(a, b)
    else:
        raise EvaluationError(f"{op_name} is not defined for {a.type_name()} and {b.type_name()}")


def _truncated_mod(a: Number, b: Number) -> Number:
    if b.v == 0:
        return a
    if math.isinf(a.v):
        # fmod raises on an infinite dividend
        return Number(math.nan)
    return Number(math.fmod(a.v, b.v))


# x / 0 and x % 0 yield x unchanged
add_impls: BinaryOperationImplTable = [((Number, Number), lambda a, b: Number(a.v + b.v))]  # type: ignore
sub_impls: BinaryOperationImplTable = [((Number, Number), lambda a, b: Number(a.v - b.v))]  # type: ignore
mul_impls: BinaryOperationImplTable = [((Number, Number), lambda a, b: Number(a.v * b.v))]  # type: ignore
div_impls: BinaryOperationImplTable = [
    ((Number, Number), lambda a, b: a if b.v == 0 else Number(a.v / b.v))  # type: ignore
]
mod_impls: BinaryOperationImplTable = [((Number, Number), _truncated_mod)]  # type: ignore

BINARY_OPERATION_TABLES: dict[BinaryOperator, tuple[BinaryOperationImplTable, str]] = {
    BinaryOperator.ADD: (add_impls, "Addition"),
    BinaryOperator.SUB: (sub_impls, "Subtraction"),
    BinaryOperator.MUL: (mul_impls, "Multiplication"),
    BinaryOperator.DIV: (div_impls, "Division"),
    BinaryOperator.MOD: (mod_impls, "Modulo"),
}
