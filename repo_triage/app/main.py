from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from repo_triage.app.config import AppSettings
from repo_triage.app.console import ConsoleUI
from repo_triage.app.menu import select_model, select_timeout
from repo_triage.domains.triage.diff_source import load_local_diff
from repo_triage.domains.triage.models import ChangeInput
from repo_triage.domains.triage.workflow import TriageWorkflow
from repo_triage.infra.clients.github import (
    GitHubClient,
    GitHubClientConfig,
    parse_pull_request_reference,
)
from repo_triage.infra.clients.llm import LLMClient, LLMClientConfig
from repo_triage.infra.clients.mock import MockInferenceAgent, MockSourceControlAgent
from repo_triage.shared.cancellation import CancellationToken
from repo_triage.shared.errors import CancellationError, ConfigurationError, ValidationError
from repo_triage.shared.retry import RetryPolicy, call_with_retry


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130

app = typer.Typer(add_completion=False, help="Triage a pull request or local diff.")


@dataclass(frozen=True)
class CliOptions:
    diff_path: Path | None = None
    pr_url: str | None = None
    mock: bool = False
    model: str | None = None
    timeout_seconds: float | None = None
    no_menu: bool = False
    stream: bool = False
    parallel: bool = False


def _setup_logging(log_level_name: str, console: Console) -> None:
    handler = RichHandler(console=console, show_path=False)
    level = getattr(logging, log_level_name.upper(), None)
    if not isinstance(level, int):
        logging.basicConfig(level=logging.INFO, handlers=[handler], format="%(message)s")
        logging.getLogger(__name__).warning(
            "Invalid LOG_LEVEL '%s', defaulting to INFO",
            log_level_name,
        )
        return

    logging.basicConfig(level=level, handlers=[handler], format="%(message)s")


def _apply_overrides(settings: AppSettings, options: CliOptions, console: Console) -> AppSettings:
    model = options.model
    timeout_seconds = options.timeout_seconds

    if not options.no_menu and not options.mock:
        if model is None:
            model = select_model(console, default=settings.llm_model)
        if timeout_seconds is None:
            timeout_seconds = select_timeout(console, default=settings.llm_timeout_seconds)

    return replace(
        settings,
        llm_model=model or settings.llm_model,
        llm_timeout_seconds=timeout_seconds or settings.llm_timeout_seconds,
        parallel_analysis=options.parallel or settings.parallel_analysis,
    )


def _build_agents(
    settings: AppSettings, *, mock: bool
) -> Tuple[GitHubClient | MockSourceControlAgent, LLMClient | MockInferenceAgent]:
    if mock:
        return MockSourceControlAgent(), MockInferenceAgent()

    github_client = GitHubClient(
        GitHubClientConfig(
            api_base_url=settings.github_api_url,
            access_token=settings.github_token,
            timeout_seconds=settings.github_request_timeout_seconds,
        )
    )
    llm_client = LLMClient(
        LLMClientConfig(
            provider=settings.llm_provider,
            model=settings.llm_model,
            timeout_seconds=settings.llm_timeout_seconds,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            foundry_endpoint=settings.foundry_endpoint,
            foundry_api_key=settings.foundry_api_key,
            openai_api_key=settings.openai_api_key,
            ollama_base_url=settings.ollama_base_url,
        )
    )
    return github_client, llm_client


def _load_change(
    options: CliOptions,
    settings: AppSettings,
    source_control: GitHubClient | MockSourceControlAgent,
    *,
    policy: RetryPolicy,
    cancel_token: CancellationToken,
    ui: ConsoleUI,
) -> ChangeInput:
    if options.pr_url is None:
        if options.diff_path is None:
            raise ValidationError("Either --diff or --pr is required.")
        ui.render_info("Loading diff from", str(options.diff_path))
        return load_local_diff(options.diff_path)

    reference = parse_pull_request_reference(options.pr_url)
    if not settings.github_token and not options.mock:
        raise ConfigurationError(
            "GitHub PR mode requires GITHUB_TOKEN. Set it as an environment variable, "
            "in .env, or use --diff mode instead."
        )

    ui.render_info("Fetching PR from", options.pr_url)
    return call_with_retry(
        lambda: source_control.fetch_pull_request(reference, cancel_token=cancel_token),
        policy=policy,
        cancel_token=cancel_token,
        description="fetch_pull_request",
    )


def run_triage(
    options: CliOptions,
    *,
    console: Console | None = None,
    cancel_token: CancellationToken | None = None,
) -> int:
    """Run one triage from CLI options and return the process exit code."""
    ui = ConsoleUI(console)

    if (options.diff_path is None) == (options.pr_url is None):
        ui.console.print("[red]Usage:[/] repo-triage --diff <path> [--mock]")
        ui.console.print("       repo-triage --pr <github-pr-url> [--mock]")
        return EXIT_FAILURE

    try:
        settings = AppSettings.from_env()
    except ConfigurationError as exc:
        ui.render_error(str(exc))
        return EXIT_FAILURE

    _setup_logging(settings.log_level, ui.console)
    ui.render_header()

    token = cancel_token or CancellationToken()
    try:
        settings = _apply_overrides(settings, options, ui.console)
        source_control, inference = _build_agents(settings, mock=options.mock)
        policy = RetryPolicy(
            max_attempts=settings.max_attempts,
            backoff_base_seconds=settings.backoff_base_seconds,
        )

        if options.mock:
            ui.render_info("Mode", "mock (no network calls)")
        else:
            ui.render_info("Foundry Local endpoint", inference.endpoint)
            ui.render_info("Foundry Local model", inference.model_name)
        ui.console.print()

        change = _load_change(
            options,
            settings,
            source_control,
            policy=policy,
            cancel_token=token,
            ui=ui,
        )

        workflow = TriageWorkflow(
            source_control=source_control,
            inference=inference,
            retry_policy=policy,
            parallel_analysis=settings.parallel_analysis,
        )
        result = ui.run_with_progress(workflow, change, cancel_token=token, stream=options.stream)
    except KeyboardInterrupt:
        token.cancel()
        ui.render_cancelled()
        return EXIT_CANCELLED
    except CancellationError:
        ui.render_cancelled()
        return EXIT_CANCELLED
    except ValidationError as exc:
        ui.render_error(str(exc))
        return EXIT_FAILURE
    except Exception as exc:  # noqa: BLE001 - rendered for the user
        logger.debug("Triage failed", exc_info=True)
        ui.render_error(str(exc) or type(exc).__name__)
        return EXIT_FAILURE

    ui.render_result(result)
    return EXIT_OK


@app.command()
def triage(
    diff: Optional[Path] = typer.Option(None, "--diff", help="Path to a local diff/patch file."),
    pr: Optional[str] = typer.Option(None, "--pr", help="GitHub pull request URL."),
    mock: bool = typer.Option(False, "--mock", help="Use deterministic sample output, no network."),
    model: Optional[str] = typer.Option(None, "--model", help="Model name or alias override."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=1, help="LLM HTTP timeout in seconds."
    ),
    no_menu: bool = typer.Option(False, "--no-menu", help="Skip the interactive startup menu."),
    stream: bool = typer.Option(False, "--stream", help="Stream model tokens while analyzing."),
    parallel: bool = typer.Option(
        False, "--parallel", help="Run summary, risk and checklist steps concurrently."
    ),
) -> None:
    load_dotenv(override=False)
    exit_code = run_triage(
        CliOptions(
            diff_path=diff,
            pr_url=pr,
            mock=mock,
            model=model,
            timeout_seconds=timeout,
            no_menu=no_menu,
            stream=stream,
            parallel=parallel,
        )
    )
    raise typer.Exit(code=exit_code)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
