"""Tests for the git diff/log provider."""

import shutil
import subprocess
from unittest.mock import patch

import pytest

from lazydocs.errors import GitError
from lazydocs.git import (
    DiffSummary,
    FileChange,
    format_commits,
    get_commits,
    get_diff,
    parse_numstat,
)

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(repo, *args):
    subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=repo, check=True, capture_output=True,
    )


@pytest.fixture
def git_repo(tmp_path):
    _git(tmp_path, "init", "-q")
    (tmp_path / "app.js").write_text("function a() {}\n")
    _git(tmp_path, "add", ".")
    _git(tmp_path, "commit", "-q", "-m", "feat: initial parser")
    (tmp_path / "app.js").write_text("function a() {}\nfunction b() {}\n")
    _git(tmp_path, "commit", "-q", "-am", "fix: add b")
    return tmp_path


class TestParsing:
    def test_parse_numstat(self):
        output = "10\t2\tsrc/a.js\n-\t-\tlogo.png\n0\t5\tdocs/old.md\n"
        changes = parse_numstat(output)
        assert changes == [
            FileChange("src/a.js", 10, 2),
            FileChange("logo.png", 0, 0, binary=True),
            FileChange("docs/old.md", 0, 5),
        ]

    def test_compact_summary(self):
        diff = DiffSummary(files=[FileChange("a.js", 3, 1), FileChange("b.js", 2, 0)])
        text = diff.compact()
        assert text.startswith("Files changed: 2\nInsertions: 5\nDeletions: 1")
        assert "- a.js (+3/-1)" in text

    def test_preview_truncates(self):
        diff = DiffSummary(diff_text="x" * 6000)
        preview = diff.preview()
        assert preview.startswith("x" * 5000)
        assert preview.endswith("(diff truncated for brevity)")
        assert DiffSummary(diff_text="short").preview() == "short"

    def test_format_commits(self):
        from lazydocs.git import Commit

        text = format_commits([Commit("abc12345", "Ada", "2026-01-02", "feat: x")])
        assert text == "- 2026-01-02 abc12345 Ada: feat: x"


class TestGitCommands:
    @needs_git
    def test_get_commits(self, git_repo):
        commits = get_commits(git_repo)
        assert [c.message for c in commits] == ["fix: add b", "feat: initial parser"]
        assert all(len(c.hash) == 8 for c in commits)
        assert commits[0].author == "Test"

    @needs_git
    def test_get_commits_since(self, git_repo):
        first = subprocess.run(
            ["git", "rev-list", "--max-parents=0", "HEAD"],
            cwd=git_repo, capture_output=True, text=True, check=True,
        ).stdout.strip()
        commits = get_commits(git_repo, since=first)
        assert [c.message for c in commits] == ["fix: add b"]

    @needs_git
    def test_get_diff(self, git_repo):
        (git_repo / "app.js").write_text("function a() {}\n")
        diff = get_diff(git_repo)
        assert diff.files == [FileChange("app.js", 0, 1)]
        assert "-function b() {}" in diff.diff_text

    @needs_git
    def test_not_a_repository(self, tmp_path):
        with pytest.raises(GitError, match="Not a git repository"):
            get_diff(tmp_path)

    def test_git_missing(self, tmp_path):
        with patch("lazydocs.git.subprocess.run", side_effect=FileNotFoundError):
            with pytest.raises(GitError, match="not installed"):
                get_commits(tmp_path)

    def test_git_timeout(self, tmp_path):
        with patch(
            "lazydocs.git.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="git", timeout=30),
        ):
            with pytest.raises(GitError, match="timed out"):
                get_diff(tmp_path)
