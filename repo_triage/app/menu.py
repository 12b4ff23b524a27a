from __future__ import annotations

from typing import List, Tuple

from rich.console import Console
from rich.prompt import Prompt

from repo_triage.app.config import DEFAULT_LLM_TIMEOUT_SECONDS, DEFAULT_MODEL


MODEL_CHOICES: List[Tuple[str, str]] = [
    ("phi-3.5-mini", "recommended for speed"),
    ("phi-4", "default, more capable"),
    ("Phi-4-trtrtx-gpu:1", "GPU-optimized"),
]

TIMEOUT_CHOICES: List[Tuple[float, str]] = [
    (60.0, "1 minute"),
    (120.0, "2 minutes"),
    (300.0, "5 minutes"),
    (600.0, "10 minutes"),
    (900.0, "15 minutes"),
]


def _format_seconds(seconds: float) -> str:
    return f"{seconds:g}"


def select_model(console: Console, *, default: str = DEFAULT_MODEL) -> str:
    """Ask for the model; ``default`` is the configured model."""
    if not console.is_interactive:
        console.print(
            f"[yellow]⚠️  Non-interactive terminal detected. Using default model: {default}[/]"
        )
        return default

    console.print()
    console.print("[bold cyan]Select Foundry Local Model:[/]")
    for index, (name, note) in enumerate(MODEL_CHOICES, start=1):
        marker = " [green](configured)[/]" if name == default else ""
        console.print(f"  {index}. {name} [dim]({note})[/]{marker}")
    custom_index = len(MODEL_CHOICES) + 1
    console.print(f"  {custom_index}. Custom (enter model name)")

    choices = [str(index) for index in range(1, custom_index + 1)]
    default_index = next(
        (index for index, (name, _) in enumerate(MODEL_CHOICES, start=1) if name == default),
        custom_index,
    )
    choice = Prompt.ask("Model", choices=choices, default=str(default_index), console=console)

    selected = int(choice)
    if selected <= len(MODEL_CHOICES):
        return MODEL_CHOICES[selected - 1][0]

    console.print()
    custom = Prompt.ask("[cyan]Enter custom model name[/]", default=default, console=console)
    return custom.strip() or default


def select_timeout(console: Console, *, default: float = DEFAULT_LLM_TIMEOUT_SECONDS) -> float:
    """Ask for the LLM timeout; ``default`` is the configured timeout."""
    if not console.is_interactive:
        console.print(
            "[yellow]⚠️  Non-interactive terminal detected. "
            f"Using default timeout: {_format_seconds(default)} seconds[/]"
        )
        return default

    options = list(TIMEOUT_CHOICES)
    if all(seconds != default for seconds, _ in options):
        options.append((default, "configured"))
        options.sort()

    console.print()
    console.print("[bold cyan]Select HTTP Timeout:[/]")
    for seconds, note in options:
        marker = " [green](configured)[/]" if seconds == default and note != "configured" else ""
        console.print(f"  {_format_seconds(seconds)} seconds [dim]({note})[/]{marker}")

    choice = Prompt.ask(
        "Timeout",
        choices=[_format_seconds(seconds) for seconds, _ in options],
        default=_format_seconds(default),
        console=console,
    )
    return float(choice)
