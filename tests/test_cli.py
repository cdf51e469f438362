from __future__ import annotations

from pathlib import Path

import pytest

from catchexpr.cli import main


def _write(tmp_path: Path, text: str, name: str = "prog.cx") -> Path:
    src = tmp_path / name
    src.write_text(text)
    return src


def test_run_prints_program_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = _write(tmp_path, 'values = [1, 2]\nprint(values[2] except IndexError: "No value")\n')
    assert main(["run", str(src)]) == 0
    assert capsys.readouterr().out == "No value\n"


def test_eval_prints_repr_of_last_value(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["eval", '{"a": 1}["b"] except KeyError: "default"']) == 0
    assert capsys.readouterr().out == "'default'\n"


def test_uncaught_failure_exits_one(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["eval", "1/0 except IndexError: 0"]) == 1
    assert "error: ZeroDivisionError: division by zero" in capsys.readouterr().err


def test_parse_error_exits_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = _write(tmp_path, "x except KeyError 0\n")
    assert main(["run", str(src)]) == 2
    assert "parse error" in capsys.readouterr().err


def test_bare_except_flag_overrides_environment(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CATCHEXPR_BARE_EXCEPT", "allow")
    src = _write(tmp_path, "x = f() except: 0\n")
    assert main(["check", str(src)]) == 0
    assert capsys.readouterr().err == ""
    assert main(["check", "--bare-except", "error", str(src)]) == 2
    assert "error[E103]" in capsys.readouterr().err


def test_check_reports_warnings(tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CATCHEXPR_BARE_EXCEPT", raising=False)
    src = _write(tmp_path, "x = f() except: 0\n")
    assert main(["check", str(src)]) == 0
    captured = capsys.readouterr()
    assert "warning[W103]" in captured.err
    assert f"[ok] {src}" in captured.out


def test_invalid_environment_config_exits_two(capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATCHEXPR_BARE_EXCEPT", "sometimes")
    assert main(["eval", "1"]) == 2
    assert "bare_except" in capsys.readouterr().err


def test_missing_file_exits_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["run", str(tmp_path / "absent.cx")]) == 2
    assert "cannot read" in capsys.readouterr().err


def test_dump_ast(capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CATCHEXPR_DUMP_AST", raising=False)
    assert main(["eval", "--dump-ast", "1 except KeyError: 2"]) == 0
    out = capsys.readouterr().out
    assert "ExceptExpr" in out
    assert out.endswith("1\n")


def test_base_exception_failure_exits_one(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["eval", "exception Stop(BaseException)\nraise Stop('halt')"]) == 1
    assert "error: Stop: halt" in capsys.readouterr().err
    assert main(["eval", "raise KeyboardInterrupt('stop')"]) == 1
    assert "error: KeyboardInterrupt: stop" in capsys.readouterr().err
