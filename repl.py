from exprlang.cli import run_source
from exprlang.runtime import Interpreter
from exprlang.utils import LangError


if __name__ == "__main__":
    interpreter = Interpreter()

    while True:
        try:
            code = input("> ")
        except EOFError:
            break

        try:
            result = run_source(code, interpreter)
        except LangError as e:
            print(e)
            continue

        print(result.to_text())
