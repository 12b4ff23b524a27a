from __future__ import annotations

import threading
from typing import Dict

from rich import box
from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from repo_triage.domains.triage.models import ChangeInput, TriageResult
from repo_triage.domains.triage.steps import AgentKind, StepChunk, StepProgress, TriageStep
from repo_triage.domains.triage.workflow import TriageWorkflow
from repo_triage.shared.cancellation import CancellationToken


PENDING = "[dim]Pending[/]"
WORKING = "[yellow]Working…[/]"
DONE = "[green]Done[/]"

_AGENT_ICONS = {
    AgentKind.SOURCE_CONTROL: "🤖",
    AgentKind.INFERENCE: "🧠",
}


def build_step_table(states: Dict[TriageStep, str]) -> Table:
    table = Table(box=box.ROUNDED)
    table.add_column("[bold]Agent[/]")
    table.add_column("[bold]Step[/]")
    table.add_column("[bold]Status[/]")

    for step in TriageStep:
        table.add_row(
            f"{_AGENT_ICONS[step.agent]} [bold]{escape(step.agent.label)}[/]",
            escape(step.label),
            states.get(step, PENDING),
        )
    return table


class ConsoleUI:
    """Terminal rendering for the triage run."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_header(self) -> None:
        self.console.print(Rule("[bold blue]🔍 Repo Triage Agent[/]", style="blue"))
        self.console.print("[dim]Powered by Copilot Agent + Foundry Local Agent[/]")
        self.console.print()

    def render_info(self, label: str, value: str) -> None:
        self.console.print(f"[dim]{escape(label)}:[/] {escape(value)}")

    def run_with_progress(
        self,
        workflow: TriageWorkflow,
        change: ChangeInput,
        *,
        cancel_token: CancellationToken,
        stream: bool = False,
    ) -> TriageResult:
        """Run the workflow inside a live status table."""
        states: Dict[TriageStep, str] = {step: PENDING for step in TriageStep}
        lock = threading.Lock()

        with Live(build_step_table(states), console=self.console, refresh_per_second=8) as live:

            def on_progress(progress: StepProgress) -> None:
                with lock:
                    states[progress.step] = DONE if progress.complete else WORKING
                    live.update(build_step_table(states))

            def on_chunk(chunk: StepChunk) -> None:
                with lock:
                    live.console.print(Text(chunk.text, style="dim"), end="")

            result = workflow.run(
                change,
                progress=on_progress,
                cancel_token=cancel_token,
                on_chunk=on_chunk if stream else None,
            )
            live.update(build_step_table(states))

        return result

    def render_result(self, result: TriageResult) -> None:
        self.console.print()
        self.console.print(Rule("[bold green]Triage Complete[/]", style="green"))
        self.console.print()

        self.console.print(
            Panel(escape(result.summary), title="[bold blue]📋 Summary[/]", box=box.ROUNDED, expand=True)
        )
        self.console.print()

        if result.risks:
            risks_content = "\n".join(f"⚠️  {escape(risk)}" for risk in result.risks)
        else:
            risks_content = "[green]No significant risks identified.[/]"
        self.console.print(
            Panel(risks_content, title="[bold yellow]⚠️ Risks[/]", box=box.ROUNDED, expand=True)
        )
        self.console.print()

        checklist_content = "\n".join(f"☐ {escape(item)}" for item in result.checklist)
        self.console.print(
            Panel(
                checklist_content,
                title="[bold cyan]✅ Review Checklist[/]",
                box=box.ROUNDED,
                expand=True,
            )
        )
        self.console.print()

        self.console.print(
            Panel(
                escape(result.suggested_comment),
                title="[bold magenta]💬 Suggested PR Comment (Markdown)[/]",
                box=box.DOUBLE,
                expand=True,
            )
        )

    def render_error(self, message: str) -> None:
        self.console.print()
        self.console.print(
            Panel(f"[red]{escape(message)}[/]", title="[bold red]❌ Error[/]", box=box.ROUNDED, expand=True)
        )

    def render_cancelled(self) -> None:
        self.console.print()
        self.console.print("[yellow]Triage cancelled.[/]")
