"""CLI entry point for codestory -- explain code as a story."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .config import CodeStoryConfig, load_dotenv

app = typer.Typer(
    name="codestory",
    help="Explain source code with an LLM-written walkthrough.",
    add_completion=False,
)

console = Console()


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _load_config() -> CodeStoryConfig:
    load_dotenv(Path.cwd())
    try:
        return CodeStoryConfig.from_env()
    except ValidationError as exc:
        console.print(f"[red]Error:[/red] invalid configuration: {escape(str(exc))}")
        raise typer.Exit(code=1)


def _build_llm_client(cfg: CodeStoryConfig, model: str | None = None, *, quiet: bool = False):
    """Build an LLM client (or None) from config + flags."""
    from .llm import LLMClient

    if cfg.api_key:
        return LLMClient(
            api_key=cfg.api_key,
            model=model or cfg.model,
            base_url=cfg.base_url,
            timeout=cfg.timeout,
        )
    if not quiet:
        console.print("[yellow]OPENAI_API_KEY not set. Analysis is disabled.[/yellow]")
        console.print("[dim]Set OPENAI_API_KEY in the environment or a .env file.[/dim]")
    return None


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Explain source code with an LLM-written walkthrough."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port number."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Default OpenAI model."),
    no_browser: bool = typer.Option(False, "--no-browser", help="Don't auto-open browser."),
) -> None:
    """Launch the web UI and analysis API."""
    cfg = _load_config()
    effective_host = host or cfg.host
    effective_port = port or cfg.port
    llm_client = _build_llm_client(cfg, model)

    from .web.server import start_server

    url = f"http://{effective_host}:{effective_port}"
    console.print("[bold cyan]Serving[/bold cyan] codestory")
    console.print(f"  {url}")

    if not no_browser:
        import threading
        import webbrowser
        threading.Timer(1.0, webbrowser.open, args=(url,)).start()

    start_server(host=effective_host, port=effective_port, llm_client=llm_client)


@app.command()
def explain(
    file: Path = typer.Argument(..., help="Source file to explain."),
    language: str = typer.Option("auto", "--language", "-l", help="Language name or 'auto'."),
    skill: str = typer.Option("beginner", "--skill", "-s", help="beginner | intermediate | expert."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="OpenAI model."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON result."),
) -> None:
    """Explain a source file in the terminal."""
    from .aligner import align
    from .analyzer import analyze_code
    from .errors import CodeStoryError

    if not file.is_file():
        console.print(f"[red]Error:[/red] {escape(str(file))} is not a file.")
        raise typer.Exit(code=1)
    try:
        code = file.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    if not code:
        console.print(f"[red]Error:[/red] {escape(str(file))} is empty.")
        raise typer.Exit(code=1)

    cfg = _load_config()
    llm_client = _build_llm_client(cfg, model)
    if llm_client is None:
        raise typer.Exit(code=1)

    try:
        with console.status("Analyzing..."):
            analysis = asyncio.run(analyze_code(
                code,
                llm_client=llm_client,
                language=language,
                skill_level=skill,
                model=model,
            ))
    except CodeStoryError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    alignment = align(code, len(analysis.walkthrough), analysis.annotations)

    if as_json:
        payload = analysis.model_dump()
        payload["alignment"] = alignment.to_payload()
        console.print_json(json.dumps(payload))
        return

    _print_analysis(analysis, alignment)


_SEVERITY_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "green",
}


def _print_analysis(analysis, alignment) -> None:
    console.print("[bold]Summary[/bold]")
    console.print(analysis.summary, markup=False)
    console.print()
    console.print("[bold]Risk overview[/bold]")
    console.print(analysis.risk_overview, markup=False)
    console.print()

    console.print("[bold]Walkthrough[/bold]")
    for i, step in enumerate(analysis.walkthrough):
        rng = alignment.highlight_range_for_step(i)
        if rng is None:
            where = ""
        elif rng.start_line == rng.end_line:
            where = f"[dim](line {rng.start_line})[/dim] "
        else:
            where = f"[dim](lines {rng.start_line}-{rng.end_line})[/dim] "
        console.print(f"  {i + 1}. {where}", end="")
        console.print(step, markup=False)
    console.print()

    console.print("[bold]Issues[/bold]")
    any_issues = False
    for category, items in analysis.issues.by_category().items():
        for item in items:
            any_issues = True
            style = _SEVERITY_STYLES.get(item.severity, "yellow")
            console.print(f"  [{style}]{item.severity.upper():>8}[/{style}] {category}: ", end="")
            console.print(item.message, markup=False)
            if item.explanation:
                console.print(f"           {item.explanation}", markup=False, style="dim")
    if not any_issues:
        console.print("  [dim](none)[/dim]")
    console.print()

    console.print("[bold]Suggestions[/bold]")
    for s in analysis.suggestions:
        console.print(f"  - {s}", markup=False)
