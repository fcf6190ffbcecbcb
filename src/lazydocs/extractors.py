"""Structural extractors - one per language family.

JavaScript/TypeScript are parsed in-process with tree-sitter. Python is
handed to a short-lived interpreter running a standalone ``ast`` script,
so a pathological file can only ever cost one bounded subprocess.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .errors import ParseFatal

ANONYMOUS = "anonymous"
DELEGATE_TIMEOUT = 5.0  # seconds per file

FUNCTION_WEIGHT = 1
CLASS_WEIGHT = 2
BRANCH_WEIGHT = 1
BASE_COMPLEXITY = 1


@dataclass
class FileAnalysis:
    """Declarations and complexity extracted from one file."""

    functions: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)
    complexity: int = BASE_COMPLEXITY
    has_errors: bool = False


class StructuralExtractor(Protocol):
    """Anything that can pull top-level declarations out of a source file."""

    def extract(self, path: Path, content: str) -> FileAnalysis: ...


# --- tree-sitter (JavaScript / TypeScript) ---

FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration"}
CLASS_DECLARATIONS = {"class_declaration", "abstract_class_declaration"}
VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}
FUNCTION_VALUES = {"arrow_function", "function_expression", "function", "generator_function"}
CLASS_VALUES = {"class"}
BRANCH_STATEMENTS = {
    "if_statement", "for_statement", "for_in_statement",
    "while_statement", "do_statement",
}

_LANGUAGE_LOADERS = {
    "javascript": tree_sitter_javascript.language,
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
}


def _node_name(node: Node | None) -> str:
    if node is None or node.text is None:
        return ANONYMOUS
    return node.text.decode("utf-8", errors="replace") or ANONYMOUS


class TreeSitterExtractor:
    """Top-level declaration scan over a tree-sitter syntax tree.

    tree-sitter always returns a tree: unparseable regions become ERROR
    nodes and everything around them is still extracted.
    """

    def __init__(self, language: str):
        if language not in _LANGUAGE_LOADERS:
            raise ValueError(f"Unsupported tree-sitter language: {language}")
        self.language = language
        self._parser: Parser | None = None

    @property
    def parser(self) -> Parser:
        if self._parser is None:
            self._parser = Parser(Language(_LANGUAGE_LOADERS[self.language]()))
        return self._parser

    def extract(self, path: Path, content: str) -> FileAnalysis:
        tree = self.parser.parse(content.encode("utf-8"))
        root = tree.root_node
        result = FileAnalysis(has_errors=root.has_error)
        for node in root.children:
            self._visit_top_level(node, result)
        return result

    def _visit_top_level(self, node: Node, result: FileAnalysis) -> None:
        kind = node.type

        if kind == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is not None:
                self._visit_top_level(declaration, result)
                return
            value = node.child_by_field_name("value")
            if value is not None and value.type in FUNCTION_VALUES:
                self._add_function(result, _node_name(value.child_by_field_name("name")))
            elif value is not None and value.type in CLASS_VALUES:
                self._add_class(result, _node_name(value.child_by_field_name("name")))
            return

        if kind in FUNCTION_DECLARATIONS:
            self._add_function(result, _node_name(node.child_by_field_name("name")))
        elif kind in CLASS_DECLARATIONS:
            self._add_class(result, _node_name(node.child_by_field_name("name")))
        elif kind in VARIABLE_DECLARATIONS:
            for declarator in node.named_children:
                if declarator.type != "variable_declarator":
                    continue
                target = declarator.child_by_field_name("name")
                value = declarator.child_by_field_name("value")
                if (
                    target is not None
                    and target.type == "identifier"
                    and value is not None
                    and value.type in FUNCTION_VALUES
                ):
                    self._add_function(result, _node_name(target))
        elif kind in BRANCH_STATEMENTS:
            result.complexity += BRANCH_WEIGHT

    @staticmethod
    def _add_function(result: FileAnalysis, name: str) -> None:
        result.functions.append(name)
        result.complexity += FUNCTION_WEIGHT

    @staticmethod
    def _add_class(result: FileAnalysis, name: str) -> None:
        result.classes.append(name)
        result.complexity += CLASS_WEIGHT


# --- subprocess delegate (Python) ---

PYTHON_AST_SCRIPT = '''\
import ast
import json
import sys

path = sys.argv[1]
with open(path, encoding="utf-8", errors="replace") as fh:
    tree = ast.parse(fh.read(), filename=path)

functions = []
classes = []
for node in tree.body:
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        functions.append(node.name)
    elif isinstance(node, ast.ClassDef):
        classes.append(node.name)
    elif isinstance(node, ast.Assign) and isinstance(node.value, ast.Lambda):
        functions.extend(t.id for t in node.targets if isinstance(t, ast.Name))

branches = sum(
    isinstance(n, (ast.If, ast.For, ast.AsyncFor, ast.While)) for n in ast.walk(tree)
)
json.dump(
    {
        "functions": functions,
        "classes": classes,
        "complexity": branches + len(functions) + 2 * len(classes),
    },
    sys.stdout,
)
'''


class PythonSubprocessExtractor:
    """Runs the ``ast`` script above under a separate interpreter.

    The script is written to a temporary file for each call and removed
    again whatever happens to the child process.
    """

    def __init__(self, interpreter: str | None = None, timeout: float = DELEGATE_TIMEOUT):
        self.interpreter = interpreter or sys.executable
        self.timeout = timeout

    def extract(self, path: Path, content: str) -> FileAnalysis:
        target = str(Path(path).resolve())
        fd, script_path = tempfile.mkstemp(prefix="lazydocs-ast-", suffix=".py")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(PYTHON_AST_SCRIPT)
            proc = subprocess.run(
                [self.interpreter, script_path, target],
                capture_output=True, text=True, timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise ParseFatal(target, f"AST delegate timed out after {self.timeout}s")
        except OSError as e:
            raise ParseFatal(target, f"AST delegate could not start: {e}")
        finally:
            try:
                os.unlink(script_path)
            except FileNotFoundError:
                pass

        if proc.returncode != 0:
            stderr = proc.stderr.strip().splitlines()
            message = stderr[-1] if stderr else f"exit status {proc.returncode}"
            raise ParseFatal(target, message)

        try:
            data = json.loads(proc.stdout)
        except json.JSONDecodeError:
            raise ParseFatal(target, f"AST delegate returned invalid JSON: {proc.stdout[:200]}")

        return FileAnalysis(
            functions=[str(n) for n in data.get("functions", [])],
            classes=[str(n) for n in data.get("classes", [])],
            complexity=int(data.get("complexity", 0)),
        )


def default_extractors(
    python_interpreter: str | None = None,
    delegate_timeout: float = DELEGATE_TIMEOUT,
) -> dict[str, StructuralExtractor]:
    """Extension -> extractor registry used when the caller supplies none."""
    javascript = TreeSitterExtractor("javascript")
    return {
        ".js": javascript,
        ".jsx": javascript,
        ".mjs": javascript,
        ".cjs": javascript,
        ".ts": TreeSitterExtractor("typescript"),
        ".tsx": TreeSitterExtractor("tsx"),
        ".py": PythonSubprocessExtractor(python_interpreter, delegate_timeout),
    }
