from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .errors import ConfigError

BARE_EXCEPT_POLICIES = ("allow", "warn", "error")

ENV_BARE_EXCEPT = "CATCHEXPR_BARE_EXCEPT"
ENV_DUMP_AST = "CATCHEXPR_DUMP_AST"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class EvalConfig:
    """Settings for one parse/check/run pipeline."""

    # How the checker treats a bare `except:` clause.
    bare_except: str = "warn"
    dump_ast: bool = False

    def __post_init__(self) -> None:
        if self.bare_except not in BARE_EXCEPT_POLICIES:
            raise ConfigError(
                f"bare_except must be one of {', '.join(BARE_EXCEPT_POLICIES)}; got {self.bare_except!r}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EvalConfig":
        env = os.environ if environ is None else environ
        config = cls()
        if ENV_BARE_EXCEPT in env:
            config = replace(config, bare_except=env[ENV_BARE_EXCEPT].strip().lower())
        if ENV_DUMP_AST in env:
            config = replace(config, dump_ast=_parse_flag(ENV_DUMP_AST, env[ENV_DUMP_AST]))
        return config

    def with_overrides(self, bare_except: Optional[str] = None, dump_ast: Optional[bool] = None) -> "EvalConfig":
        config = self
        if bare_except is not None:
            config = replace(config, bare_except=bare_except)
        if dump_ast is not None:
            config = replace(config, dump_ast=dump_ast)
        return config


def _parse_flag(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean flag; got {raw!r}")
