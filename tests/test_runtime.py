import io
import math

import pytest

from exprlang.parser import Block, Declaration, NumberLiteral, parse
from exprlang.runtime import EvaluationError, Interpreter
from exprlang.tokenizer import tokenize
from exprlang.utils import ErrorKind
from exprlang.value import Number, Value


def run(code: str, interpreter: Interpreter | None = None) -> Value:
    return (interpreter or Interpreter()).interpret(parse(tokenize(code)))


@pytest.mark.parametrize(
    "code, expected_ret_val",
    [
        pytest.param("", Number(0.0)),
        pytest.param("1", Number(1.0)),
        pytest.param("1+2", Number(3.0)),
        pytest.param("1 * 4 + 5", Number(9.0)),
        pytest.param("1 + 4 * 5", Number(21.0)),
        pytest.param("10 / 5 / 2 / 2", Number(0.5)),
        pytest.param("10 - 2 - 3", Number(5.0)),
        pytest.param("7 % 4", Number(3.0)),
        pytest.param("1 - 8 % 3", Number(-1.0)),
        pytest.param("100/3", Number(100 / 3)),
        # division and modulo by zero return the left operand
        pytest.param("5 / 0", Number(5.0)),
        pytest.param("5 % 0", Number(5.0)),
        pytest.param("2 + 6 / 0 * 2", Number(14.0)),
        # variables
        pytest.param("const a = 1; a", Number(1.0)),
        pytest.param("const a = 1; const b = 2; a + b", Number(3.0)),
        pytest.param("mutate a = 1; a = a + 1; a = a * 10", Number(20.0)),
        pytest.param("mutate a = 1; a = 5", Number(5.0)),
        pytest.param("const a = 4; mutate b = a; b = b / 0; b", Number(4.0)),
    ],
)
def test_eval_arithmetic(code: str, expected_ret_val: Value) -> None:
    assert run(code) == expected_ret_val


def test_negative_modulo_keeps_dividend_sign() -> None:
    interpreter = Interpreter()
    run("mutate a = 0; a = a - 7", interpreter)
    assert run("a % 3", interpreter) == Number(-1.0)


@pytest.mark.parametrize(
    "code, errmsg",
    [
        pytest.param("a", "Undefined variable: a"),
        pytest.param("const a = 1; a + b", "Undefined variable: b"),
        pytest.param("const a = 1; a = 2;", "Cannot assign to constant variable: a"),
        pytest.param("a = 2", "Variable not declared: a"),
        pytest.param("const x = 1; const x = 2;", "Variable already declared: x"),
        pytest.param("mutate x = 1; const x = 2;", "Variable already declared: x"),
        pytest.param("const x = y", "Undefined variable: y"),
        # the target is checked before the value is evaluated
        pytest.param("const x = 1; const x = y", "Variable already declared: x"),
        pytest.param("const a = 1; a = nope", "Cannot assign to constant variable: a"),
        pytest.param("b = nope", "Variable not declared: b"),
    ],
)
def test_evaluation_error(code: str, errmsg: str) -> None:
    with pytest.raises(EvaluationError) as exc_info:
        run(code)
    assert exc_info.value.errmsg == errmsg
    assert exc_info.value.kind is ErrorKind.EVALUATION
    assert str(exc_info.value) == f"[Runtime error] {errmsg}"


def test_constant_is_not_overwritten() -> None:
    interpreter = Interpreter()
    with pytest.raises(EvaluationError):
        run("const a = 1; a = 2;", interpreter)
    assert interpreter.env.lookup("a") == Number(1.0)


def test_redeclaration_keeps_original_value() -> None:
    interpreter = Interpreter()
    program = Block(
        [
            Declaration(is_immutable=True, name="x", value=NumberLiteral(1.0)),
            Declaration(is_immutable=True, name="x", value=NumberLiteral(2.0)),
        ]
    )
    with pytest.raises(EvaluationError, match="already declared"):
        interpreter.interpret(program)
    assert interpreter.env.lookup("x") == Number(1.0)
    assert len(interpreter.env) == 1


def test_failed_block_stops_at_first_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(EvaluationError):
        run("print(1); print(nope); print(3)")
    assert capsys.readouterr().out == "1\n"


def test_assignment_makes_binding_mutable() -> None:
    interpreter = Interpreter()
    run("mutate a = 1; a = 2", interpreter)
    binding = interpreter.env.get_binding("a")
    assert binding is not None
    assert binding.is_immutable is False
    assert binding.value == Number(2.0)


def test_bindings_persist_across_calls() -> None:
    interpreter = Interpreter()
    run("mutate counter = 1", interpreter)
    run("counter = counter + 1", interpreter)
    assert run("counter", interpreter) == Number(2.0)


def test_interpreters_are_isolated() -> None:
    first = Interpreter()
    second = Interpreter()
    run("const a = 1", first)
    run("const a = 2", second)
    assert run("a", first) == Number(1.0)
    assert run("a", second) == Number(2.0)


def test_print_division(capsys: pytest.CaptureFixture[str]) -> None:
    result = run("print(100/3)")
    assert capsys.readouterr().out == "33.333333333333336\n"
    assert result == Number(33.333333333333336)


def test_print_division_and_modulo_by_zero(capsys: pytest.CaptureFixture[str]) -> None:
    run("const a = 5; print(a/0); print(a%0);")
    assert capsys.readouterr().out == "5\n5\n"


def test_print_returns_value_and_writes_to_output() -> None:
    output = io.StringIO()
    interpreter = Interpreter(output=output)
    result = run("mutate a = 2; print(a * 3); a = 1; print(a / 4)", interpreter)
    assert output.getvalue() == "6\n0.25\n"
    assert result == Number(0.25)


def test_evaluation_is_deterministic() -> None:
    code = "mutate a = 10; const b = 3; a = a / b; print(a); print(a % b); a * b - 1"
    outputs = []
    for _ in range(3):
        output = io.StringIO()
        result = Interpreter(output=output).interpret(parse(tokenize(code)))
        outputs.append((output.getvalue(), result))
    assert outputs[0] == outputs[1] == outputs[2]


@pytest.mark.parametrize(
    "value, text",
    [
        pytest.param(5.0, "5"),
        pytest.param(-3.0, "-3"),
        pytest.param(0.0, "0"),
        pytest.param(-0.0, "-0"),
        pytest.param(0.25, "0.25"),
        pytest.param(100 / 3, "33.333333333333336"),
        pytest.param(1e21, "1000000000000000000000"),
        pytest.param(1e23, "100000000000000000000000"),
        pytest.param(1e-07, "0.0000001"),
        pytest.param(-2.5e-10, "-0.00000000025"),
        pytest.param(math.inf, "inf"),
        pytest.param(-math.inf, "-inf"),
        pytest.param(math.nan, "NaN"),
    ],
)
def test_number_to_text(value: float, text: str) -> None:
    assert Number(value).to_text() == text


def test_overflowing_numeral_modulo_is_nan(capsys: pytest.CaptureFixture[str]) -> None:
    result = run(f"print({'1' * 400} % 2)")
    assert isinstance(result, Number)
    assert math.isnan(result.v)
    assert capsys.readouterr().out == "NaN\n"


@pytest.mark.parametrize(
    "code, expected_text",
    [
        pytest.param("big % 3", "NaN"),
        pytest.param("big * 2 % 3", "NaN"),
        pytest.param("7 % big", "7"),
        pytest.param("big % 0", "inf"),
    ],
)
def test_modulo_with_infinite_operands(code: str, expected_text: str) -> None:
    interpreter = Interpreter()
    run(f"const big = {'9' * 400}", interpreter)
    assert run(code, interpreter).to_text() == expected_text


def test_print_small_fraction_without_exponent(capsys: pytest.CaptureFixture[str]) -> None:
    run("print(1 / 10000000); print(100000000000000000000000)")
    assert capsys.readouterr().out == "0.0000001\n100000000000000000000000\n"


def test_unknown_expression_type() -> None:
    with pytest.raises(TypeError):
        Interpreter().interpret("not an expression")  # type: ignore
