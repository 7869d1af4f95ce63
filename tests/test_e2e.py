"""End-to-end tests of fmtools."""

import pathlib

import pytest

from fmtools import TemplateSyntaxError
from fmtools.__main__ import main

DATA = pathlib.Path(__file__).parent / "data"
GOLDEN = DATA / "golden"
VARS = ["-v", "name=ada lovelace", "-v", "items=engine, notes,poems"]


@pytest.mark.parametrize(
    ["args", "golden_file"],
    [
        ([*VARS, "-p", "fmtools_test_data.report"], "report.txt"),
        ([*VARS, str(DATA / "report.fmt")], "report.txt"),
    ],
)
def test_golden_file(args, golden_file, capsys):
    with open(str(GOLDEN / golden_file)) as f:
        golden_data = f.read()

    main(args)

    captured = capsys.readouterr()
    assert captured.out == golden_data
    assert captured.err == ""


def test_file_not_found():
    with pytest.raises(IOError):
        main(["/does/not/exist.fmt"])


def test_syntax_error_names_file(tmp_path):
    tmpfile = tmp_path / "broken.fmt"
    tmpfile.write_text('"ok"\nfor x in xs\n')

    with pytest.raises(TemplateSyntaxError, match="broken.fmt:2"):
        main([str(tmpfile)])


def test_output_file(tmp_path):
    tmpfile = tmp_path / "loop.fmt"
    tmpfile.write_text('for i in range(int(n)) {\n    {i} "\\n"\n}\n')
    output = tmp_path / "out.txt"

    main(["-v", "n=3", str(tmpfile), str(output)])

    assert output.read_text() == "0\n1\n2\n"


def test_literal_variables(tmp_path, capsys):
    tmpfile = tmp_path / "hex.fmt"
    tmpfile.write_text('for n in values { {n:#04x} " " } {flag}\n')

    main(["-l", "-v", "values=[10, 255]", "-v", "flag=True", str(tmpfile)])

    assert capsys.readouterr().out == "0x0a 0xff True"


def test_encoding(tmp_path, capsys):
    tmpfile = tmp_path / "latin.fmt"
    tmpfile.write_bytes('"café " {name}\n'.encode("latin-1"))

    main(["-e", "latin-1", "-v", "name=x", str(tmpfile)])

    assert capsys.readouterr().out == "café x"
