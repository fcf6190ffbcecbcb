"""Prompt templates for README, PR description and changelog generation.

Each template takes the analyzer's (or git provider's) condensed context
and produces a single user message for the chat model.
"""

from __future__ import annotations

SYSTEM_PROMPT = """You are a senior software engineer writing developer documentation.
Write precise, professional Markdown.
Use concrete details from the provided code and statistics.
Do not invent features that are not visible in the input."""

DOC_TYPES = ("readme", "pr", "changelog")


def readme_prompt(context: str) -> str:
    """Prompt for the README overview section."""
    return f"""You are a technical documentation expert. Analyze this codebase and generate a comprehensive README section in professional Markdown format.

Code:
{context}

Generate:
- Clear project overview and purpose
- Key features and functionality
- Installation instructions
- Usage examples with code snippets
- API documentation if applicable

Keep it concise, professional, and developer-friendly."""


USAGE_INSTRUCTION = """Generate practical usage examples with code snippets showing how to use this project.
Show the most common tasks first. Every example must be runnable as written
against the functions and classes listed below."""


def pr_prompt(context: str) -> str:
    """Prompt for a pull request description."""
    return f"""You are a code review expert. Analyze these code changes and generate a clear Pull Request description.

Changes:
{context}

Include:
- **Summary**: What was changed and why
- **Changes Made**: Bullet points of key modifications
- **Impact**: How this affects the codebase
- **Testing**: What should be tested
- **Breaking Changes**: Any breaking changes (if applicable)

Format in professional Markdown."""


def changelog_prompt(context: str) -> str:
    """Prompt for a changelog entry built from commit messages."""
    return f"""You are a release notes expert. Analyze these commit messages and generate a changelog entry.

Commits:
{context}

Categorize changes as:
- **Features**: New functionality
- **Bug Fixes**: Fixed issues
- **Documentation**: Documentation updates
- **Maintenance**: Code improvements, refactoring
- **Breaking Changes**: API changes that break compatibility

Format in Markdown with proper versioning and dates."""


_BUILDERS = {
    "readme": readme_prompt,
    "pr": pr_prompt,
    "changelog": changelog_prompt,
}


def build_prompt(doc_type: str, context: str, custom_prompt: str | None = None) -> str:
    """Pick the template for doc_type; a custom prompt gets the context appended."""
    if doc_type not in _BUILDERS:
        raise ValueError(f"Invalid doc type: {doc_type}")
    if custom_prompt:
        return f"{custom_prompt}\n\nCode:\n{context}"
    return _BUILDERS[doc_type](context)
