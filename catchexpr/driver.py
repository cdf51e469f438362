from __future__ import annotations

import logging
import pprint
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .checker import CheckedProgram, check_program
from .config import EvalConfig
from .diagnostics import Diagnostic
from .errors import CheckError
from .interp import Interpreter
from .parser import parse_program

logger = logging.getLogger(__name__)

WarningSink = Callable[[List[Diagnostic]], None]


def compile_source(
    source: str,
    filename: str | None = None,
    config: Optional[EvalConfig] = None,
    on_warning: Optional[WarningSink] = None,
) -> CheckedProgram:
    """Parse and check `source`; raises CheckError when the checker reports errors."""
    config = config or EvalConfig()
    program = parse_program(source, filename=filename)
    logger.debug("parsed %s: %d statement(s)", filename or "<source>", len(program.statements))
    checked = check_program(program, config)
    if checked.errors:
        raise CheckError(checked.diagnostics)
    if checked.warnings:
        logger.info("%s: %d checker warning(s)", filename or "<source>", len(checked.warnings))
        if on_warning is not None:
            on_warning(checked.warnings)
    return checked


def run_source(
    source: str,
    filename: str | None = None,
    config: Optional[EvalConfig] = None,
    stdout=None,
    on_warning: Optional[WarningSink] = None,
) -> object:
    """Compile and execute `source`; returns the value of its last expression statement."""
    config = config or EvalConfig()
    checked = compile_source(source, filename=filename, config=config, on_warning=on_warning)
    out = stdout or sys.stdout
    if config.dump_ast:
        out.write(pprint.pformat(checked.program.statements) + "\n")
    logger.debug("running %s", filename or "<source>")
    return Interpreter(checked, stdout=out).run()


def run_file(path: Path, config: Optional[EvalConfig] = None, stdout=None) -> object:
    return run_source(path.read_text(), filename=str(path), config=config, stdout=stdout)
