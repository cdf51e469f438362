from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from .config import BARE_EXCEPT_POLICIES, EvalConfig
from .diagnostics import Diagnostic
from .driver import compile_source, run_source
from .errors import CheckError, ConfigError, ParseError

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="catchexpr", description="Run programs using `expr except Class: fallback` expressions")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--bare-except",
        choices=BARE_EXCEPT_POLICIES,
        default=None,
        help="How to treat a bare 'except:' clause (default: $CATCHEXPR_BARE_EXCEPT or 'warn')",
    )
    common.add_argument("--dump-ast", action="store_true", default=None, help="Print the parsed statements before running")
    common.add_argument("-v", "--verbose", action="count", default=0, help="Log pipeline stages to stderr (-vv for debug)")

    sub = p.add_subparsers(dest="cmd", required=True)
    run = sub.add_parser("run", parents=[common], help="Execute a program file")
    run.add_argument("source", type=Path, help="Program file")

    ev = sub.add_parser("eval", parents=[common], help="Execute source text and print the last expression's value")
    ev.add_argument("text", help="Program source")

    check = sub.add_parser("check", parents=[common], help="Parse and check a program file without running it")
    check.add_argument("source", type=Path, help="Program file")
    return p


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def _print_diagnostics(diagnostics: List[Diagnostic]) -> None:
    for diag in diagnostics:
        print(diag.format(), file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    try:
        config = EvalConfig.from_env().with_overrides(bare_except=args.bare_except, dump_ast=args.dump_ast)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    if args.cmd == "eval":
        source, filename = args.text, "<eval>"
    else:
        try:
            source, filename = args.source.read_text(), str(args.source)
        except OSError as exc:
            print(f"error: cannot read {args.source}: {exc.strerror}", file=sys.stderr)
            return EXIT_USAGE

    try:
        if args.cmd == "check":
            compile_source(source, filename=filename, config=config, on_warning=_print_diagnostics)
            print(f"[ok] {filename}")
            return EXIT_OK
        value = run_source(source, filename=filename, config=config, stdout=sys.stdout, on_warning=_print_diagnostics)
    except ParseError as exc:
        print(exc.format(), file=sys.stderr)
        return EXIT_USAGE
    except CheckError as exc:
        _print_diagnostics(exc.diagnostics)
        return EXIT_USAGE
    except BaseException as exc:
        # Program failures may derive from BaseException only (KeyboardInterrupt, user classes).
        print(f"error: {type(exc).__name__}: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    if args.cmd == "eval":
        print(repr(value))
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
