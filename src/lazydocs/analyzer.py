"""Static code analyzer. No model needed.

Walks a source tree, extracts top-level declarations per file, folds them
into run-wide totals, and builds the two texts handed to the prompt
builder: a budget-limited blob of source excerpts and a compact summary.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Mapping

from .config import ProjectSettings, load_project_settings
from .errors import LazyDocsError, ParseFailure, ParseFatal, PathNotFound, UnreadableFile
from .extractors import ANONYMOUS, FileAnalysis, StructuralExtractor, default_extractors

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_BUDGET = 6000
EXCERPT_CHARS = 2000  # per file
SNIPPET_CHAR_LIMIT = 8000  # whole blob, applied after traversal
CHARS_PER_TOKEN = 4
TOP_FILES = 15

EXCLUDED_DIRS = frozenset({
    "node_modules", ".git", "dist", "build", "coverage", ".next",
    "__pycache__", ".venv", "venv", ".pytest_cache", ".mypy_cache",
    ".tox", ".nuxt", ".turbo",
})

DEFAULT_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".py")


@dataclass(frozen=True)
class ExclusionSet:
    """Directories never entered and file extensions admitted."""

    excluded_dirs: frozenset[str] = EXCLUDED_DIRS
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS

    @classmethod
    def from_settings(cls, settings: ProjectSettings) -> ExclusionSet:
        if settings.extensions is None:
            return cls()
        return cls(extensions=tuple(settings.extensions))

    def admits_dir(self, name: str) -> bool:
        return name not in self.excluded_dirs

    def admits_file(self, name: str) -> bool:
        return os.path.splitext(name)[1] in self.extensions


@dataclass(frozen=True)
class FileRecord:
    """Per-file statistics. Zero counts when extraction failed."""

    path: str
    line_count: int
    byte_size: int
    function_count: int = 0
    class_count: int = 0
    complexity: int | None = None

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "line_count": self.line_count,
            "byte_size": self.byte_size,
            "function_count": self.function_count,
            "class_count": self.class_count,
            "complexity": self.complexity,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Complete analysis of one source tree."""

    root: str
    function_names: frozenset[str] = frozenset()
    class_names: frozenset[str] = frozenset()
    file_count: int = 0
    total_lines: int = 0
    total_size_bytes: int = 0
    complexity_score: float = 0.0
    file_records: tuple[FileRecord, ...] = ()
    combined_snippet: str = ""
    compact_summary: str = ""

    def to_dict(self) -> dict:
        return {
            "root": self.root,
            "function_names": sorted(self.function_names),
            "class_names": sorted(self.class_names),
            "file_count": self.file_count,
            "total_lines": self.total_lines,
            "total_size_bytes": self.total_size_bytes,
            "complexity_score": round(self.complexity_score, 2),
            "file_records": [r.to_dict() for r in self.file_records],
            "compact_summary": self.compact_summary,
        }

    def summary_for_prompt(self, snippet_chars: int = 4000) -> str:
        """Compact summary followed by the head of the source excerpts."""
        return f"{self.compact_summary}\n\nCode samples:\n{self.combined_snippet[:snippet_chars]}"


def estimate_tokens(text: str) -> int:
    """Rough token count: four characters per token, rounded up."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def _report(log: logging.Logger, error: LazyDocsError) -> None:
    log.warning("%s: %s", type(error).__name__, error)


# --- Walker ---

def walk(
    root: str | Path,
    exclusions: ExclusionSet | None = None,
    log: logging.Logger | None = None,
) -> Iterator[Path]:
    """Yield admitted source files under root, skipping excluded dirs."""
    exclusions = exclusions or ExclusionSet()
    log = log or logger
    root = Path(root)
    if not root.is_dir():
        _report(log, PathNotFound(f"Directory not found: {root}"))
        return

    def on_error(err: OSError) -> None:
        _report(log, PathNotFound(f"Cannot list {err.filename}: {err.strerror}"))

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames[:] = [d for d in dirnames if exclusions.admits_dir(d)]
        for fname in filenames:
            if exclusions.admits_file(fname):
                yield Path(dirpath) / fname


# --- Parser ---

def parse_file(path: Path, content: str, extractor: StructuralExtractor) -> FileAnalysis:
    """Run one extractor, normalising any failure into ParseFailure."""
    try:
        return extractor.extract(path, content)
    except ParseFailure:
        raise
    except Exception as e:
        raise ParseFatal(str(path), str(e) or type(e).__name__)


# --- Aggregator ---

class Aggregator:
    """Running totals for one analysis run."""

    def __init__(self) -> None:
        self.function_names: set[str] = set()
        self.class_names: set[str] = set()
        self.total_lines = 0
        self.total_size_bytes = 0
        self.complexity_sum = 0
        self.complexity_count = 0
        self.records: list[FileRecord] = []

    def add(
        self,
        path: str,
        line_count: int,
        byte_size: int,
        analysis: FileAnalysis | None = None,
    ) -> FileRecord:
        if analysis is None:
            record = FileRecord(path=path, line_count=line_count, byte_size=byte_size)
        else:
            self.function_names.update(n for n in analysis.functions if n != ANONYMOUS)
            self.class_names.update(n for n in analysis.classes if n != ANONYMOUS)
            self.complexity_sum += analysis.complexity
            self.complexity_count += 1
            record = FileRecord(
                path=path,
                line_count=line_count,
                byte_size=byte_size,
                function_count=len(analysis.functions),
                class_count=len(analysis.classes),
                complexity=analysis.complexity,
            )

        self.records.append(record)
        self.total_lines += line_count
        self.total_size_bytes += byte_size
        return record

    @property
    def complexity_score(self) -> float:
        if not self.complexity_count:
            return 0.0
        return self.complexity_sum / self.complexity_count

    def build(self, root: str, combined_snippet: str = "") -> AnalysisResult:
        return AnalysisResult(
            root=root,
            function_names=frozenset(self.function_names),
            class_names=frozenset(self.class_names),
            file_count=len(self.records),
            total_lines=self.total_lines,
            total_size_bytes=self.total_size_bytes,
            complexity_score=self.complexity_score,
            file_records=tuple(self.records),
            combined_snippet=combined_snippet,
            compact_summary=render_compact_summary(
                self.records, len(self.function_names), len(self.class_names)
            ),
        )


# --- Snippet budgeter ---

@dataclass
class SnippetBudgeter:
    """Collects file excerpts until the token estimate reaches the budget."""

    max_tokens: int = DEFAULT_TOKEN_BUDGET
    excerpt_chars: int = EXCERPT_CHARS
    max_chars: int = SNIPPET_CHAR_LIMIT
    parts: list[str] = field(default_factory=list)
    length: int = 0

    def add(self, rel_path: str, content: str) -> bool:
        """Append one file's excerpt. Returns False once over budget."""
        if math.ceil(self.length / CHARS_PER_TOKEN) >= self.max_tokens:
            return False
        block = f"\n// File: {rel_path}\n{content[:self.excerpt_chars]}\n"
        self.parts.append(block)
        self.length += len(block)
        return True

    def snippet(self) -> str:
        return "".join(self.parts)[:self.max_chars]


# --- Compact summary ---

def _plural(count: int, noun: str) -> str:
    suffix = "es" if noun.endswith("s") else "s"
    return f"{count:,} {noun}" if count == 1 else f"{count:,} {noun}{suffix}"


def render_compact_summary(
    records: list[FileRecord] | tuple[FileRecord, ...],
    function_count: int,
    class_count: int,
    top_n: int = TOP_FILES,
) -> str:
    """Aggregate counts plus the largest files by line count."""
    total_lines = sum(r.line_count for r in records)
    total_size = sum(r.byte_size for r in records)
    lines = [
        f"Files: {len(records)}",
        f"Lines: {total_lines:,}",
        f"Size: {total_size / 1024:.1f} KB",
        f"Functions: {function_count}",
        f"Classes: {class_count}",
    ]

    if records:
        # sorted() is stable, so equal line counts keep traversal order
        ranked = sorted(records, key=lambda r: -r.line_count)
        lines.append("")
        lines.append("Top files by size:")
        for record in ranked[:top_n]:
            details = [_plural(record.line_count, "line")]
            if record.function_count:
                details.append(_plural(record.function_count, "function"))
            if record.class_count:
                details.append(_plural(record.class_count, "class"))
            lines.append(f"- {record.path} ({', '.join(details)})")
        remaining = len(ranked) - top_n
        if remaining > 0:
            lines.append(f"... and {remaining} more {'file' if remaining == 1 else 'files'}")

    return "\n".join(lines)


# --- Entry point ---

def analyze(
    root: str | Path,
    max_token_budget: int = DEFAULT_TOKEN_BUDGET,
    *,
    exclusions: ExclusionSet | None = None,
    extractors: Mapping[str, StructuralExtractor] | None = None,
    logger: logging.Logger | None = None,
) -> AnalysisResult:
    """Analyze every admitted source file under root.

    Never raises for a missing, empty or unreadable tree; problems with
    individual files are reported through ``logger`` and the file is
    counted as far as its content could be read.
    """
    log = logger if logger is not None else logging.getLogger(__name__)
    root_path = Path(root)

    if exclusions is None:
        settings = load_project_settings(root_path, log) if root_path.is_dir() else ProjectSettings()
        exclusions = ExclusionSet.from_settings(settings)
    if extractors is None:
        extractors = default_extractors()

    aggregator = Aggregator()
    budgeter = SnippetBudgeter(max_tokens=max_token_budget)

    for path in walk(root_path, exclusions, log):
        rel_path = path.relative_to(root_path).as_posix()
        try:
            content = path.read_bytes().decode("utf-8", errors="replace")
            byte_size = path.stat().st_size
        except OSError as e:
            _report(log, UnreadableFile(f"{rel_path}: {e.strerror or e}"))
            continue

        budgeter.add(rel_path, content)

        analysis: FileAnalysis | None = None
        extractor = extractors.get(path.suffix)
        if extractor is None:
            log.debug("No extractor for %s, recording stats only", rel_path)
        else:
            try:
                analysis = parse_file(path, content, extractor)
            except ParseFailure as e:
                _report(log, e)
            else:
                if analysis.has_errors:
                    log.debug("Recovered from syntax errors in %s", rel_path)

        aggregator.add(rel_path, content.count("\n") + 1, byte_size, analysis)

    return aggregator.build(str(root_path), budgeter.snippet())
