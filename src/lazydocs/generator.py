"""Documentation generator - combines analysis, prompts and the model.

Takes the analyzer's condensed context (or git changes), feeds it into a
prompt template, calls the chat model with retries, and renders the final
document.
"""

from __future__ import annotations

import datetime
import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from jinja2 import Environment, FileSystemLoader

try:
    import tomllib
except ModuleNotFoundError:  # Python 3.10
    import tomli as tomllib

from .analyzer import AnalysisResult
from .config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE
from .errors import AuthenticationError, ModelError, RateLimitError
from .git import Commit, DiffSummary, format_commits
from .model import GroqClient
from .prompts import SYSTEM_PROMPT, USAGE_INSTRUCTION, build_prompt

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
README_TEMPLATE = "readme.md.j2"
TOP_API_ITEMS = 8

DEFAULT_OUTPUTS = {
    "readme": "README.md",
    "pr": "PR_DESCRIPTION.md",
    "changelog": "CHANGELOG.md",
}


@dataclass
class GenerationOptions:
    """Model parameters and retry policy for one generation run."""

    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    retries: int = 3
    backoff_seconds: float = 1.0


@dataclass
class GeneratedDoc:
    """A rendered document plus how it was produced."""

    doc_type: str
    content: str
    model_used: str
    generation_time_seconds: float = 0.0
    sections: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "doc_type": self.doc_type,
            "content": self.content,
            "model_used": self.model_used,
            "generation_time_seconds": round(self.generation_time_seconds, 1),
        }


class DocGenerator:
    """Generates README, PR description and changelog documents."""

    def __init__(
        self,
        client: GroqClient,
        options: GenerationOptions | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self.client = client
        self.options = options or GenerationOptions()
        self._sleep = sleep or time.sleep
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def generate_section(
        self,
        context: str,
        doc_type: str,
        custom_prompt: str | None = None,
    ) -> str:
        """One model call, retried with linear backoff."""
        prompt = build_prompt(doc_type, context, custom_prompt)
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        retries = max(1, self.options.retries)

        for attempt in range(1, retries + 1):
            try:
                return self.client.complete(
                    messages,
                    model=self.options.model,
                    temperature=self.options.temperature,
                    max_tokens=self.options.max_tokens,
                )
            except ModelError as e:
                if attempt == retries:
                    if isinstance(e, (AuthenticationError, RateLimitError)):
                        raise
                    raise ModelError(f"AI generation failed: {e}") from e
                logger.warning("Attempt %d/%d failed, retrying: %s", attempt, retries, e)
                self._sleep(self.options.backoff_seconds * attempt)

        raise ModelError("AI generation failed after multiple attempts")

    def generate_readme(
        self,
        analysis: AnalysisResult,
        project_name: str,
        description: str = "",
        features: list[str] | None = None,
    ) -> GeneratedDoc:
        start = time.time()
        context = analysis.summary_for_prompt()

        overview_context = context
        if features:
            overview_context = f"{context}\n\nSections to cover: {', '.join(features)}"
        overview = self.generate_section(overview_context, "readme")
        usage = self.generate_section(context, "readme", USAGE_INSTRUCTION)

        names = sorted(analysis.function_names) + sorted(analysis.class_names)
        apis = [
            {"name": name, "desc": f"{name} - Core functionality (see code for details)"}
            for name in names[:TOP_API_ITEMS]
        ]

        template = self._env.get_template(README_TEMPLATE)
        content = template.render(
            project_name=project_name,
            description=description,
            overview=overview.strip(),
            usage=usage.strip(),
            apis=apis,
            stats={
                "file_count": analysis.file_count,
                "total_lines": f"{analysis.total_lines:,}",
                "functions": len(analysis.function_names),
                "classes": len(analysis.class_names),
                "total_size": f"{analysis.total_size_bytes / 1024:.1f}",
                "complexity": f"{analysis.complexity_score:.1f}",
            },
            generated_on=datetime.date.today().isoformat(),
        )
        return GeneratedDoc(
            doc_type="readme",
            content=content,
            model_used=self.options.model,
            generation_time_seconds=time.time() - start,
            sections={"overview": overview, "usage": usage},
        )

    def generate_pr_description(self, diff: DiffSummary) -> GeneratedDoc:
        start = time.time()
        context = f"{diff.compact()}\n\nDiff preview:\n{diff.preview()}"
        content = self.generate_section(context, "pr")
        return GeneratedDoc(
            doc_type="pr",
            content=content,
            model_used=self.options.model,
            generation_time_seconds=time.time() - start,
        )

    def generate_changelog(self, commits: list[Commit]) -> GeneratedDoc:
        start = time.time()
        if not commits:
            raise ModelError("No commits found to build a changelog from")
        content = self.generate_section(format_commits(commits), "changelog")
        return GeneratedDoc(
            doc_type="changelog",
            content=content,
            model_used=self.options.model,
            generation_time_seconds=time.time() - start,
        )


def detect_project_name(root: str | Path) -> str:
    """Project name from package.json or pyproject.toml, else the dir name."""
    root = Path(root).resolve()
    for candidate in (root, root.parent):
        package_json = candidate / "package.json"
        if package_json.is_file():
            try:
                name = json.loads(package_json.read_text()).get("name")
            except (OSError, ValueError, AttributeError):
                name = None
            if name:
                return name

        pyproject = candidate / "pyproject.toml"
        if pyproject.is_file():
            try:
                data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
                data = {}
            project = data.get("project")
            name = project.get("name") if isinstance(project, dict) else None
            if isinstance(name, str) and name:
                return name

    return root.name
