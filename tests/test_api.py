#!/usr/bin/env python3
"""
Test the file-based entry points and the command line.
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

import io

import pytest

from bfi import Engine, ResourceError, RunConfig, UnbalancedBracketsError, run, run_file
from bfi.api import open_streams
from bfi.cli import main

CAT = ",[.,]"
EXAMPLES = os.path.join(os.path.dirname(__file__), '..', 'examples')


@pytest.fixture
def program(tmp_path):
    def write(code, name="prog.bf"):
        path = tmp_path / name
        path.write_text(code)
        return path
    return write


def test_run_file_with_redirection(tmp_path, program):
    src = program("read and echo: " + CAT)
    inp = tmp_path / "in.txt"
    inp.write_bytes(b"echo me")
    out = tmp_path / "out.txt"
    result = run_file(src, input_path=inp, output_path=out)
    assert result.halted
    assert out.read_bytes() == b"echo me"


def test_run_file_with_streams(program):
    output = io.BytesIO()
    run_file(program(CAT), input=io.BytesIO(b"abc"), output=output)
    assert output.getvalue() == b"abc"


def test_missing_program_never_runs(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(Engine, "run", lambda self, **kw: calls.append(self))
    with pytest.raises(ResourceError) as info:
        run_file(tmp_path / "nope.bf")
    assert info.value.role == "program"
    assert calls == []


def test_missing_input_never_runs(tmp_path, program, monkeypatch):
    calls = []
    monkeypatch.setattr(Engine, "run", lambda self, **kw: calls.append(self))
    with pytest.raises(ResourceError) as info:
        run_file(program(CAT), input_path=tmp_path / "missing.txt")
    assert info.value.role == "input"
    assert "failed to open input file" in str(info.value)
    assert calls == []


def test_streams_closed_after_failure(tmp_path, program):
    src = program("+.-[")
    inp = tmp_path / "in.txt"
    inp.write_bytes(b"")
    out = tmp_path / "out.txt"
    opened = []
    with pytest.raises(UnbalancedBracketsError):
        with open_streams(src, input_path=inp, output_path=out) as streams:
            opened.extend(s for s in streams if s is not None)
            run(streams[0].read(), RunConfig(input=streams[1], output=streams[2]))
    assert len(opened) == 3
    assert all(f.closed for f in opened)
    assert out.read_bytes() == b"\x01"


@pytest.mark.parametrize("name,data,expected", [
    ("hello.bf", b"", b"Hello World!\n"),
    ("add.bf", b"", b"7"),
    ("cat.bf", b"meow\n", b"meow\n"),
    ("reverse.bf", b"stressed", b"desserts"),
])
def test_example_programs(name, data, expected):
    output = io.BytesIO()
    run_file(os.path.join(EXAMPLES, name), input=io.BytesIO(data), output=output)
    assert output.getvalue() == expected


def test_cli_runs_program(tmp_path, program):
    out = tmp_path / "out.txt"
    code = main([str(program("++++++++[>++++++++<-]>+.")), "-o", str(out)])
    assert code == 0
    assert out.read_bytes() == b"A"


def test_cli_reports_bracket_error(program, capsys):
    code = main([str(program("[")), "-o", os.devnull])
    assert code == 1
    assert "no matching bracket" in capsys.readouterr().err


def test_cli_missing_file(tmp_path, capsys):
    code = main([str(tmp_path / "missing.bf")])
    assert code == 1
    assert "failed to open program file" in capsys.readouterr().err


def test_cli_verbose_dump_and_jit(tmp_path, program, capsys):
    out = tmp_path / "out.txt"
    src = str(program("+++>++"))
    assert main([src, "-o", str(out), "-v", "--dump", "4", "--time"]) == 0
    err = capsys.readouterr().err
    assert "load: program is" in err
    assert "eval: increase pointer by one" in err
    assert "Execution took" in err
    assert "0:   3   2" in err

    assert main([src, "-o", str(out), "--jit", "--dump", "2"]) == 0
    err = capsys.readouterr().err
    assert "0:   3   2" in err
    assert "eval:" not in err


def main_tests():
    print("=== API Tests ===\n")
    test_example_programs("hello.bf", b"", b"Hello World!\n")
    test_example_programs("add.bf", b"", b"7")
    test_example_programs("cat.bf", b"meow\n", b"meow\n")
    test_example_programs("reverse.bf", b"stressed", b"desserts")
    print("✓ API tests passed")


if __name__ == "__main__":
    main_tests()
