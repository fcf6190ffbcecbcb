"""Tests for the per-language structural extractors."""

import subprocess
import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from lazydocs.errors import ParseFatal
from lazydocs.extractors import (
    PythonSubprocessExtractor,
    TreeSitterExtractor,
    default_extractors,
)


@pytest.fixture
def js():
    return TreeSitterExtractor("javascript")


@pytest.fixture
def ts():
    return TreeSitterExtractor("typescript")


class TestJavaScriptExtractor:
    def test_declarations_and_weights(self, js):
        source = """
function anotherFunction() {
  return 42;
}

class AnotherClass {
  method() {}
}

const arrowFunc = () => {
  return 'arrow';
};
"""
        result = js.extract(Path("test.js"), source)
        assert result.functions == ["anotherFunction", "arrowFunc"]
        assert result.classes == ["AnotherClass"]
        assert result.complexity == 5
        assert not result.has_errors

    def test_function_expressions_and_var(self, js):
        source = (
            "var legacy = function () {};\n"
            "let gen = function* () {};\n"
            "const value = 42;\n"
            "const { a, b } = () => {};\n"
        )
        result = js.extract(Path("a.js"), source)
        assert result.functions == ["legacy", "gen"]

    def test_top_level_branches_only(self, js):
        source = """
if (ready) { start(); }
for (let i = 0; i < 3; i++) {}
for (const k in obj) {}
while (false) {}
do { x++; } while (x < 3);
function nested() {
  if (a) { if (b) {} }
  for (;;) { break; }
}
"""
        result = js.extract(Path("a.js"), source)
        # base 1 + five top-level statements + one function
        assert result.complexity == 7

    def test_exports_are_unwrapped(self, js):
        source = (
            "export function exported() {}\n"
            "export class Exported {}\n"
            "export const handler = async (req) => req;\n"
            "export default function () {}\n"
        )
        result = js.extract(Path("a.js"), source)
        assert result.functions == ["exported", "handler", "anonymous"]
        assert result.classes == ["Exported"]

    def test_anonymous_default_class(self, js):
        result = js.extract(Path("a.js"), "export default class {}\n")
        assert result.classes == ["anonymous"]
        assert result.complexity == 3

    def test_nested_declarations_ignored(self, js):
        source = "function outer() {\n  function inner() {}\n  class Local {}\n}\n"
        result = js.extract(Path("a.js"), source)
        assert result.functions == ["outer"]
        assert result.classes == []

    def test_jsx(self, js):
        source = "const App = () => <div className=\"app\">hi</div>;\n"
        result = js.extract(Path("App.jsx"), source)
        assert result.functions == ["App"]

    def test_recovers_from_syntax_errors(self, js):
        source = "function good() { return 1; }\n\nconst = ;\n"
        result = js.extract(Path("broken.js"), source)
        assert result.has_errors
        assert "good" in result.functions


class TestTypeScriptExtractor:
    def test_typed_declarations(self, ts):
        source = """
interface Options { verbose: boolean }
type Id = string;

export abstract class Base {
  abstract run(): void;
}

export class Service extends Base {
  run(): void {}
}

function typed(a: string): number {
  return a.length;
}

export const handler = async (x: number): Promise<void> => {};
"""
        result = ts.extract(Path("svc.ts"), source)
        assert result.classes == ["Base", "Service"]
        assert result.functions == ["typed", "handler"]
        assert result.complexity == 1 + 2 * 2 + 2

    def test_tsx(self):
        tsx = TreeSitterExtractor("tsx")
        source = "export default function App(): JSX.Element {\n  return <main />;\n}\n"
        result = tsx.extract(Path("App.tsx"), source)
        assert result.functions == ["App"]

    def test_unknown_language(self):
        with pytest.raises(ValueError, match="Unsupported"):
            TreeSitterExtractor("cobol")


PYTHON_SOURCE = '''
import os


def top(x):
    if x:
        for i in range(3):
            pass
    return x


async def fetch():
    pass


class Widget:
    def method(self):
        while False:
            pass


square = lambda n: n * n
'''


@pytest.fixture
def scratch_tempdir(tmp_path, monkeypatch):
    """Route tempfile output somewhere we can inspect."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch


class TestPythonSubprocessExtractor:
    def test_extracts_via_delegate(self, tmp_path, scratch_tempdir):
        source = tmp_path / "widget.py"
        source.write_text(PYTHON_SOURCE)
        result = PythonSubprocessExtractor().extract(source, PYTHON_SOURCE)

        assert result.functions == ["top", "fetch", "square"]
        assert result.classes == ["Widget"]
        # if + for + while, three functions, one class
        assert result.complexity == 3 + 3 + 2
        assert list(scratch_tempdir.iterdir()) == []

    def test_syntax_error_is_fatal(self, tmp_path, scratch_tempdir):
        source = tmp_path / "broken.py"
        source.write_text("def broken(:\n    pass\n")
        with pytest.raises(ParseFatal, match="SyntaxError"):
            PythonSubprocessExtractor().extract(source, "")
        assert list(scratch_tempdir.iterdir()) == []

    def test_timeout_cleans_up(self, tmp_path, scratch_tempdir):
        source = tmp_path / "slow.py"
        source.write_text("x = 1\n")
        with patch(
            "lazydocs.extractors.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="python", timeout=0.1),
        ):
            with pytest.raises(ParseFatal, match="timed out"):
                PythonSubprocessExtractor(timeout=0.1).extract(source, "")
        assert list(scratch_tempdir.iterdir()) == []

    def test_missing_interpreter(self, tmp_path, scratch_tempdir):
        source = tmp_path / "a.py"
        source.write_text("x = 1\n")
        extractor = PythonSubprocessExtractor(interpreter=str(tmp_path / "no-such-python"))
        with pytest.raises(ParseFatal, match="could not start"):
            extractor.extract(source, "")
        assert list(scratch_tempdir.iterdir()) == []

    def test_invalid_json(self, tmp_path, scratch_tempdir):
        source = tmp_path / "a.py"
        source.write_text("x = 1\n")
        fake = subprocess.CompletedProcess(args=[], returncode=0, stdout="not json", stderr="")
        with patch("lazydocs.extractors.subprocess.run", return_value=fake):
            with pytest.raises(ParseFatal, match="invalid JSON"):
                PythonSubprocessExtractor().extract(source, "")

    def test_passes_absolute_path(self, tmp_path, monkeypatch, scratch_tempdir):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "rel.py").write_text("def f():\n    pass\n")
        fake = subprocess.CompletedProcess(
            args=[], returncode=0,
            stdout='{"functions": ["f"], "classes": [], "complexity": 1}', stderr="",
        )
        with patch("lazydocs.extractors.subprocess.run", return_value=fake) as run:
            result = PythonSubprocessExtractor(timeout=2).extract(Path("rel.py"), "")
        cmd = run.call_args.args[0]
        assert cmd[0] == sys.executable
        assert cmd[2] == str((tmp_path / "rel.py").resolve())
        assert run.call_args.kwargs["timeout"] == 2
        assert result.functions == ["f"]


def test_default_registry_covers_extensions():
    registry = default_extractors()
    assert set(registry) == {".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".py"}
    assert isinstance(registry[".py"], PythonSubprocessExtractor)
    assert registry[".js"] is registry[".jsx"]
