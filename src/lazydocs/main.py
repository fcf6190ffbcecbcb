"""lazydocs - AI-powered documentation generator using Groq.

Usage:
    lazydocs generate -i ./src -t readme
    lazydocs generate -t pr -o PR_DESCRIPTION.md
    lazydocs analyze ./src
    lazydocs config set GROQ_API_KEY=gsk_...
"""

from __future__ import annotations

import json
import time
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .analyzer import DEFAULT_TOKEN_BUDGET, AnalysisResult, analyze as analyze_tree
from .config import (
    CONFIG_PARSERS,
    DEFAULT_MODEL,
    ProjectSettings,
    config_path,
    delete_config,
    get_config,
    get_config_value,
    list_config,
    load_project_settings,
    mask_value,
    set_config,
    write_project_settings,
)
from .errors import ConfigError, GitError, ModelError
from .generator import DEFAULT_OUTPUTS, DocGenerator, GenerationOptions, detect_project_name
from .git import get_commits, get_diff
from .log import default_log_file, setup_logging
from .model import FALLBACK_MODELS, GroqClient

console = Console()

README_FEATURES = [
    "Installation guide",
    "Usage examples",
    "API documentation",
    "Contributing guidelines",
    "License information",
]


def _resolve_api_key(interactive_save: bool = True) -> str:
    """API key from environment/config, prompting (and offering to save) if absent."""
    try:
        key = get_config(require_api_key=False)["GROQ_API_KEY"]
    except ConfigError as e:
        raise click.ClickException(str(e))
    if key:
        return key

    key = click.prompt("Enter your Groq API key (from console.groq.com)", hide_input=True)
    if interactive_save and click.confirm("Save API key to config?", default=True):
        try:
            set_config("GROQ_API_KEY", key)
        except ConfigError as e:
            raise click.ClickException(str(e))
        console.print(f"[green]Saved API key to {config_path()}[/]")
    return key


@click.group()
@click.version_option(version=__version__)
@click.option("--log-file", default=None, help="Append log output to this file")
@click.pass_context
def cli(ctx: click.Context, log_file: str | None):
    """lazydocs - AI-powered documentation generator using Groq.

    Analyzes a source tree and writes a README, pull request description,
    or changelog with a hosted language model.
    """
    ctx.ensure_object(dict)
    ctx.obj["log_file"] = log_file or default_log_file()


@cli.command()
@click.option("--input", "-i", "input_dir", default="./src", help="Input code directory")
@click.option("--output", "-o", default=None, help="Output file")
@click.option("--type", "-t", "doc_type", type=click.Choice(["readme", "pr", "changelog"]), default="readme", help="Document type")
@click.option("--model", "-m", default=None, help="AI model to use")
@click.option("--temperature", type=float, default=None, help="AI temperature (0-2)")
@click.option("--max-tokens", type=int, default=None, help="Maximum tokens to generate")
@click.option("--budget", type=int, default=DEFAULT_TOKEN_BUDGET, show_default=True, help="Token budget for code excerpts")
@click.option("--since", default=None, help="Changelog: only commits after this tag or commit")
@click.option("--interactive", is_flag=True, help="Interactive mode")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def generate(
    ctx: click.Context,
    input_dir: str,
    output: str | None,
    doc_type: str,
    model: str | None,
    temperature: float | None,
    max_tokens: int | None,
    budget: int,
    since: str | None,
    interactive: bool,
    verbose: bool,
):
    """Generate documentation for a project.

    Examples:

        lazydocs generate -i ./src

        lazydocs generate -t pr -o PR.md

        lazydocs generate -t changelog --since v1.0.0
    """
    logger = setup_logging(verbose=verbose, log_file=ctx.obj["log_file"])
    start = time.time()

    api_key = _resolve_api_key()
    client = GroqClient(api_key)

    if interactive:
        doc_type = click.prompt(
            "What would you like to generate?",
            type=click.Choice(["readme", "pr", "changelog"]),
            default=doc_type,
        )
        input_dir = click.prompt("Input directory", default=input_dir)
        console.print("Fetching available models...", style="dim")
        models = client.list_models()
        model = click.prompt(
            "Select AI model",
            type=click.Choice(models),
            default=model or (DEFAULT_MODEL if DEFAULT_MODEL in models else models[0]),
            show_choices=False,
        )

    try:
        config = get_config(
            {"DEFAULT_MODEL": model, "TEMPERATURE": temperature, "MAX_TOKENS": max_tokens},
            require_api_key=False,
        )
    except ConfigError as e:
        raise click.ClickException(str(e))

    client.timeout = config["TIMEOUT"] / 1000
    options = GenerationOptions(
        model=config["DEFAULT_MODEL"],
        temperature=config["TEMPERATURE"],
        max_tokens=config["MAX_TOKENS"],
    )
    output = output or DEFAULT_OUTPUTS[doc_type]

    if verbose:
        table = Table(title="Configuration", show_header=False, border_style="dim")
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for key, value in (
            ("Type", doc_type), ("Input", input_dir), ("Output", output),
            ("Model", options.model), ("Temperature", options.temperature),
            ("Max tokens", options.max_tokens), ("Budget", budget),
        ):
            table.add_row(key, str(value))
        console.print(table)

    console.print(f"Generating [bold]{doc_type}[/] from {input_dir}...", style="cyan")
    generator = DocGenerator(client, options)

    try:
        if doc_type == "readme":
            console.print("Analyzing codebase...", style="dim")
            analysis = analyze_tree(input_dir, budget, logger=logger)
            _print_analysis_summary(analysis)
            settings = load_project_settings(input_dir, logger)
            name = settings.project_name or detect_project_name(input_dir)
            with console.status("Generating documentation..."):
                doc = generator.generate_readme(
                    analysis, name, settings.description, settings.features
                )
        elif doc_type == "pr":
            console.print("Analyzing git changes...", style="dim")
            diff = get_diff(input_dir)
            console.print(
                f"  {len(diff.files)} files changed "
                f"({diff.insertions} insertions, {diff.deletions} deletions)"
            )
            with console.status("Generating PR description..."):
                doc = generator.generate_pr_description(diff)
        else:
            console.print("Reading commit history...", style="dim")
            commits = get_commits(input_dir, since=since)
            console.print(f"  {len(commits)} commits")
            with console.status("Generating changelog..."):
                doc = generator.generate_changelog(commits)
    except (ModelError, GitError) as e:
        logger.error("Generation failed: %s", e)
        raise click.ClickException(str(e))
    finally:
        client.close()

    out_path = Path(output)
    out_path.write_text(doc.content)
    logger.info("Wrote %s (%s, model %s)", out_path, doc_type, doc.model_used)

    console.print()
    console.print(Panel.fit(
        f"[bold green]Generated {doc_type} at {out_path}[/]\n"
        f"Model: {doc.model_used} | Time: {time.time() - start:.1f}s | "
        f"Size: {out_path.stat().st_size / 1024:.1f} KB",
        border_style="green",
    ))


@cli.command()
@click.argument("target", default="./src")
@click.option("--budget", type=int, default=DEFAULT_TOKEN_BUDGET, show_default=True, help="Token budget for code excerpts")
@click.option("--json", "json_only", is_flag=True, help="Output raw JSON to stdout (for piping)")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def analyze(ctx: click.Context, target: str, budget: int, json_only: bool, verbose: bool):
    """Analyze a source tree without calling the model."""
    logger = setup_logging(verbose=verbose, log_file=ctx.obj["log_file"])
    analysis = analyze_tree(target, budget, logger=logger)
    if json_only:
        click.echo(json.dumps(analysis.to_dict(), indent=2))
        return
    _print_analysis_summary(analysis)
    console.print()
    console.print(analysis.compact_summary)


@cli.group()
def config():
    """Manage user configuration."""


@config.command("set")
@click.argument("assignment", metavar="KEY=VALUE")
def config_set(assignment: str):
    """Set a config value (e.g. GROQ_API_KEY=gsk_...)."""
    key, sep, value = assignment.partition("=")
    if not sep or not key or not value:
        raise click.ClickException("Invalid format. Use: KEY=VALUE")
    try:
        set_config(key, value)
    except ConfigError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]Set {key}[/]")


@config.command("get")
@click.argument("key")
def config_get(key: str):
    """Print a config value."""
    value = get_config_value(key)
    if value is None:
        console.print("[yellow]Not set[/]")
    else:
        click.echo(value)


@config.command("list")
def config_list():
    """List all configuration."""
    data = list_config()
    if not data:
        console.print("[dim](empty)[/]")
        return
    table = Table(title="Current Configuration", show_header=False, border_style="dim")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key, mask_value(key, value))
    console.print(table)


@config.command("unset")
@click.argument("key")
def config_unset(key: str):
    """Remove a config value."""
    if key not in CONFIG_PARSERS:
        raise click.ClickException(f"Invalid config property: {key}")
    if delete_config(key):
        console.print(f"[green]Removed {key}[/]")
    else:
        console.print(f"[yellow]{key} was not set[/]")


@cli.command()
@click.argument("target", default=".")
def init(target: str):
    """Initialize lazydocs in a project (writes .lazydocs.json)."""
    root = Path(target)
    project_name = click.prompt("Project name", default=root.resolve().name)
    description = click.prompt("Project description", default="", show_default=False)

    console.print("Features to document:")
    for i, feature in enumerate(README_FEATURES, 1):
        console.print(f"  {i}. {feature}")
    picked = click.prompt(
        "Select features (comma-separated numbers)",
        default=",".join(str(i) for i in range(1, len(README_FEATURES) + 1)),
    )
    features = []
    for part in picked.split(","):
        part = part.strip()
        if part.isdigit() and 1 <= int(part) <= len(README_FEATURES):
            features.append(README_FEATURES[int(part) - 1])

    path = write_project_settings(
        root,
        ProjectSettings(project_name=project_name, description=description, features=features),
    )
    console.print(f"[green]Initialized lazydocs configuration at {path}[/]")


@cli.command()
@click.option("--refresh", is_flag=True, help="Fetch latest models from the API")
def models(refresh: bool):
    """List available AI models."""
    if refresh:
        try:
            api_key = get_config(require_api_key=False)["GROQ_API_KEY"]
        except ConfigError as e:
            raise click.ClickException(str(e))
        if not api_key:
            raise click.ClickException(
                "API key required. Set with: lazydocs config set GROQ_API_KEY=your_key"
            )
        console.print("Fetching latest models from Groq API...", style="dim")
        client = GroqClient(api_key)
        try:
            names = client.list_models()
        finally:
            client.close()
        title = "Available Models"
    else:
        names = list(FALLBACK_MODELS)
        title = "Available Models (fallback list)"

    table = Table(title=title, show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Model", style="bold")
    for i, name in enumerate(names, 1):
        label = f"{name} (default)" if name == DEFAULT_MODEL else name
        table.add_row(str(i), label, style="green" if name == DEFAULT_MODEL else None)
    console.print(table)

    if not refresh:
        console.print("Use [bold]--refresh[/] to fetch the latest models from the API")


def _print_analysis_summary(analysis: AnalysisResult) -> None:
    """Print a compact table of the analysis counts."""
    table = Table(title="Codebase Analysis", show_header=False, border_style="dim")
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Files", f"{analysis.file_count:,}")
    table.add_row("Lines", f"{analysis.total_lines:,}")
    table.add_row("Size", f"{analysis.total_size_bytes / 1024:.1f} KB")
    table.add_row("Functions", str(len(analysis.function_names)))
    table.add_row("Classes", str(len(analysis.class_names)))
    table.add_row("Complexity", f"{analysis.complexity_score:.1f}")

    console.print(table)


if __name__ == "__main__":
    cli()
