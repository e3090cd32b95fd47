import os
import pathlib
import subprocess
import sys
import tempfile

import pytest

import descent_parser as dp

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
SCRIPT = os.path.join(REPO_ROOT, "descent_parser.py")


def _write_temp(data):
    with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False, encoding="utf-8") as f:
        f.write(data)
        return f.name


def test_cli_valid_file_prints_ok(capsys):
    fname = _write_temp("[1,2,3]")
    try:
        assert dp.main([fname]) == 0
        assert capsys.readouterr().out.strip() == "OK"
    finally:
        pathlib.Path(fname).unlink(missing_ok=True)


def test_cli_invalid_file_reports_position(capsys):
    fname = _write_temp('{\n  "a": [1, 2,]\n}')
    try:
        assert dp.main([fname]) == 1
        err = capsys.readouterr().err
        assert "SyntaxError: trailing comma before ']' at offset 14" in err
        assert "(line 2, column 13)" in err
    finally:
        pathlib.Path(fname).unlink(missing_ok=True)


def test_cli_trailing_content_exits_1(capsys):
    fname = _write_temp("{} {}")
    try:
        assert dp.main([fname]) == 1
        assert "extra data after root value" in capsys.readouterr().err
    finally:
        pathlib.Path(fname).unlink(missing_ok=True)


def test_cli_reject_dup_keys(capsys):
    fname = _write_temp('{"a": 1, "a": 2}')
    try:
        assert dp.main([fname]) == 0
        assert dp.main([fname, "--reject-dup-keys"]) == 1
        assert "duplicate key 'a'" in capsys.readouterr().err
    finally:
        pathlib.Path(fname).unlink(missing_ok=True)


def test_cli_max_depth(capsys):
    fname = _write_temp("[[[0]]]")
    try:
        assert dp.main([fname, "--max-depth", "3"]) == 0
        assert dp.main([fname, "--max-depth", "2"]) == 1
        assert "depth limit exceeded" in capsys.readouterr().err
    finally:
        pathlib.Path(fname).unlink(missing_ok=True)


def test_cli_print_reformats(capsys):
    fname = _write_temp('{"b": [1, 2], "a": null}')
    try:
        assert dp.main([fname, "--print", "--sort-keys"]) == 0
        assert capsys.readouterr().out.strip() == '{"a":null,"b":[1,2]}'

        assert dp.main([fname, "--print", "--indent", "2"]) == 0
        assert capsys.readouterr().out == '{\n  "b": [\n    1,\n    2\n  ],\n  "a": null\n}\n'
    finally:
        pathlib.Path(fname).unlink(missing_ok=True)


def test_cli_missing_file(capsys, tmp_path):
    missing = str(tmp_path / "nope.json")
    assert dp.main([missing]) == 1
    assert "cannot read" in capsys.readouterr().err


def test_cli_reads_stdin():
    cp = subprocess.run(
        [sys.executable, SCRIPT, "-", "--print"],
        input='[true, "x"]',
        capture_output=True,
        text=True,
    )
    assert cp.returncode == 0
    assert cp.stdout.strip() == '[true,"x"]'


def test_cli_verbose_logs_to_stderr():
    cp = subprocess.run(
        [sys.executable, SCRIPT, "-", "--verbose"],
        input="{}",
        capture_output=True,
        text=True,
    )
    assert cp.returncode == 0
    assert "OK" in cp.stdout
    assert "DEBUG" in cp.stderr
    assert "parsed 2 characters into dict" in cp.stderr


def test_cli_usage_error_exits_2():
    cp = subprocess.run([sys.executable, SCRIPT], capture_output=True, text=True)
    assert cp.returncode == 2


@pytest.mark.skipif(not hasattr(sys, "set_int_max_str_digits"), reason="no int digit limit before 3.11")
def test_cli_oversized_integer_exits_1():
    cp = subprocess.run(
        [sys.executable, SCRIPT, "-"],
        input="[" + "9" * 5000 + "]",
        capture_output=True,
        text=True,
    )
    assert cp.returncode == 1
    assert cp.stderr.startswith("SyntaxError: number too large at offset 1")
    assert "Traceback" not in cp.stderr


def test_cli_overflowing_float_exits_1_with_print():
    cp = subprocess.run(
        [sys.executable, SCRIPT, "-", "--print"],
        input="[1e400]",
        capture_output=True,
        text=True,
    )
    assert cp.returncode == 1
    assert cp.stderr.startswith("SyntaxError: number out of range at offset 1")
    assert "Traceback" not in cp.stderr
