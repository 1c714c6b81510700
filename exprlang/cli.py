import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from exprlang.parser import parse
from exprlang.runtime import Interpreter
from exprlang.tokenizer import tokenize
from exprlang.utils import LangError
from exprlang.value import Value


def run_source(code: str, interpreter: Optional[Interpreter] = None) -> Value:
    """Tokenize, parse and interpret ``code``; pass an interpreter to keep its bindings"""
    if interpreter is None:
        interpreter = Interpreter()
    return interpreter.interpret(parse(tokenize(code)))


def create_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exprlang",
        description="Scan, parse and evaluate exprlang programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s script.xl                    # run a script
  %(prog)s -c "const a = 1; print(a)"   # run inline code
  %(prog)s --ast script.xl              # show the parsed AST
  %(prog)s --tokens script.xl           # show the scanned tokens
        """,
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("script", nargs="?", help="source file; stdin is read when neither this nor -c is given")
    source.add_argument("-c", "--code", help="program passed as a string")
    parser.add_argument("--tokens", action="store_true", help="print tokens and exit")
    parser.add_argument("--ast", action="store_true", help="print the AST and exit")
    parser.add_argument("--debug", action="store_true", help="log pipeline stages to stderr")
    return parser


def _read_source(args: argparse.Namespace) -> str:
    if args.code is not None:
        return args.code
    if args.script is not None:
        return Path(args.script).read_text(encoding="utf-8")
    return sys.stdin.read()


def main(argv: Optional[list[str]] = None) -> int:
    args = create_arg_parser().parse_args(argv)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        code = _read_source(args)
    except OSError as e:
        print(f"Error: cannot read {args.script!r}: {e.strerror}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        source_name = args.script if args.script is not None else "<stdin>"
        print(f"Error: {source_name!r} is not valid UTF-8: {e.reason} at byte {e.start}", file=sys.stderr)
        return 1

    try:
        tokens = tokenize(code)
        if args.tokens:
            for token in tokens:
                print(token)
            return 0

        ast = parse(tokens)
        if args.ast:
            print(ast)
            return 0

        result = Interpreter().interpret(ast)
    except LangError as e:
        print(e, file=sys.stderr)
        return 1

    print(f"=> {result.to_text()}")
    return 0
