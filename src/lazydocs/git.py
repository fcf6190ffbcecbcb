"""Git metadata for PR descriptions and changelogs."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from .errors import GitError

GIT_TIMEOUT = 30  # seconds
DIFF_PREVIEW_CHARS = 5000


@dataclass
class FileChange:
    path: str
    insertions: int = 0
    deletions: int = 0
    binary: bool = False


@dataclass
class DiffSummary:
    """Working-tree changes: per-file counts plus the unified diff."""

    files: list[FileChange] = field(default_factory=list)
    diff_text: str = ""

    @property
    def insertions(self) -> int:
        return sum(f.insertions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    def compact(self) -> str:
        changes = "\n".join(
            f"- {f.path} (+{f.insertions}/-{f.deletions})" for f in self.files
        )
        return (
            f"Files changed: {len(self.files)}\n"
            f"Insertions: {self.insertions}\n"
            f"Deletions: {self.deletions}\n\n"
            f"Changed files:\n{changes}"
        )

    def preview(self, limit: int = DIFF_PREVIEW_CHARS) -> str:
        if len(self.diff_text) <= limit:
            return self.diff_text
        return self.diff_text[:limit] + "\n\n... (diff truncated for brevity)"


@dataclass
class Commit:
    hash: str
    author: str
    date: str
    message: str


def _run_git(repo: str | Path, *args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=repo, capture_output=True, text=True, timeout=GIT_TIMEOUT,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git {args[0]} timed out after {GIT_TIMEOUT}s")

    if result.returncode != 0:
        stderr = result.stderr.strip()
        if "not a git repository" in stderr.lower():
            raise GitError(
                "Not a git repository. Please run this command in a git repository."
            )
        raise GitError(f"git {args[0]} failed: {stderr[:200]}")
    return result.stdout


def parse_numstat(output: str) -> list[FileChange]:
    """Parse ``git diff --numstat`` lines (``-`` counts mark binary files)."""
    changes = []
    for line in output.splitlines():
        parts = line.split("\t", 2)
        if len(parts) != 3:
            continue
        added, removed, path = parts
        binary = added == "-" or removed == "-"
        changes.append(FileChange(
            path=path,
            insertions=0 if binary else int(added),
            deletions=0 if binary else int(removed),
            binary=binary,
        ))
    return changes


def get_diff(repo: str | Path, base: str | None = None) -> DiffSummary:
    """Changes against base (default: uncommitted changes against HEAD)."""
    ref = [base] if base else ["HEAD"]
    numstat = _run_git(repo, "diff", "--numstat", *ref)
    diff_text = _run_git(repo, "diff", *ref)
    return DiffSummary(files=parse_numstat(numstat), diff_text=diff_text)


def get_commits(repo: str | Path, limit: int = 50, since: str | None = None) -> list[Commit]:
    """Recent commits, newest first. ``since`` is a tag or commit to stop at."""
    args = ["log", "--no-decorate", f"-{limit}", "--format=%H|%an|%ad|%s", "--date=short"]
    if since:
        args.append(f"{since}..HEAD")
    commits = []
    for line in _run_git(repo, *args).strip().split("\n"):
        parts = line.split("|", 3)
        if len(parts) < 4:
            continue
        commits.append(Commit(
            hash=parts[0][:8],
            author=parts[1],
            date=parts[2],
            message=parts[3][:200],
        ))
    return commits


def format_commits(commits: list[Commit]) -> str:
    return "\n".join(f"- {c.date} {c.hash} {c.author}: {c.message}" for c in commits)
