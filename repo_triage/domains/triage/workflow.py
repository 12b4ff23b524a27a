from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, TypeVar

from repo_triage.domains.triage.bullets import parse_bullets
from repo_triage.domains.triage.models import ChangeInput, PromptPair, TriageResult
from repo_triage.domains.triage.ports import InferenceAgent, SourceControlAgent
from repo_triage.domains.triage.prompts import (
    build_checklist_prompt,
    build_diff_context,
    build_risks_prompt,
    build_summarize_prompt,
)
from repo_triage.domains.triage.steps import (
    STEP_STATES,
    StepChunk,
    StepProgress,
    TriageStep,
    WorkflowState,
)
from repo_triage.shared.cancellation import CancellationToken
from repo_triage.shared.errors import CancellationError
from repo_triage.shared.retry import RetryPolicy, call_with_retry


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[StepProgress], None]
ChunkCallback = Callable[[StepChunk], None]

T = TypeVar("T")

ANALYSIS_STEPS = (
    TriageStep.SUMMARIZE,
    TriageStep.IDENTIFY_RISKS,
    TriageStep.GENERATE_CHECKLIST,
)

_PROMPT_BUILDERS: Dict[TriageStep, Callable[[str], PromptPair]] = {
    TriageStep.SUMMARIZE: build_summarize_prompt,
    TriageStep.IDENTIFY_RISKS: build_risks_prompt,
    TriageStep.GENERATE_CHECKLIST: build_checklist_prompt,
}


def _ignore_progress(progress: StepProgress) -> None:
    return None


class TriageWorkflow:
    """Five-step triage pipeline over a source-control agent and an inference agent."""

    def __init__(
        self,
        *,
        source_control: SourceControlAgent,
        inference: InferenceAgent,
        retry_policy: RetryPolicy | None = None,
        parallel_analysis: bool = False,
    ) -> None:
        self._source_control = source_control
        self._inference = inference
        self._retry_policy = retry_policy or RetryPolicy()
        self._parallel_analysis = parallel_analysis

    def create_run(
        self,
        change: ChangeInput,
        *,
        progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
        on_chunk: ChunkCallback | None = None,
    ) -> "TriageRun":
        return TriageRun(
            change=change,
            source_control=self._source_control,
            inference=self._inference,
            retry_policy=self._retry_policy,
            parallel_analysis=self._parallel_analysis,
            progress=progress or _ignore_progress,
            cancel_token=cancel_token or CancellationToken(),
            on_chunk=on_chunk,
        )

    def run(
        self,
        change: ChangeInput,
        *,
        progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
        on_chunk: ChunkCallback | None = None,
    ) -> TriageResult:
        return self.create_run(
            change,
            progress=progress,
            cancel_token=cancel_token,
            on_chunk=on_chunk,
        ).execute()


class TriageRun:
    """State of a single workflow execution. Not reusable."""

    def __init__(
        self,
        *,
        change: ChangeInput,
        source_control: SourceControlAgent,
        inference: InferenceAgent,
        retry_policy: RetryPolicy,
        parallel_analysis: bool,
        progress: ProgressCallback,
        cancel_token: CancellationToken,
        on_chunk: ChunkCallback | None,
    ) -> None:
        self._change = change
        self._source_control = source_control
        self._inference = inference
        self._retry_policy = retry_policy
        self._parallel_analysis = parallel_analysis
        self._progress = progress
        self._cancel_token = cancel_token
        self._on_chunk = on_chunk
        self.state = WorkflowState.IDLE

    def execute(self) -> TriageResult:
        if self.state is not WorkflowState.IDLE:
            raise RuntimeError(f"Triage run already executed: state={self.state.value}")

        try:
            result = self._execute()
        except BaseException as exc:
            failed_in = self.state
            self.state = WorkflowState.FAILED
            if isinstance(exc, CancellationError):
                logger.info("Triage run cancelled: state=%s", failed_in.value)
            else:
                logger.error(
                    "Triage run failed: state=%s, error=%s",
                    failed_in.value,
                    exc,
                )
            raise

        self.state = WorkflowState.COMPLETE
        logger.info(
            "Triage run complete: risks=%s, checklist=%s",
            len(result.risks),
            len(result.checklist),
        )
        return result

    def _execute(self) -> TriageResult:
        change = self._change

        self._enter(TriageStep.FETCH_CONTEXT)
        diff_text = self._call(
            TriageStep.FETCH_CONTEXT,
            lambda: self._source_control.get_diff(change, cancel_token=self._cancel_token),
        )
        self._finish(TriageStep.FETCH_CONTEXT)

        diff_context = build_diff_context(change, diff_text)
        if self._parallel_analysis:
            outputs = self._analyze_parallel(diff_context)
        else:
            outputs = self._analyze_sequential(diff_context)

        summary = outputs[TriageStep.SUMMARIZE].strip()
        risks = parse_bullets(outputs[TriageStep.IDENTIFY_RISKS])
        checklist = parse_bullets(outputs[TriageStep.GENERATE_CHECKLIST])

        self._enter(TriageStep.DRAFT_COMMENT)
        comment = self._call(
            TriageStep.DRAFT_COMMENT,
            lambda: self._source_control.draft_comment(
                summary,
                risks,
                checklist,
                change.title,
                cancel_token=self._cancel_token,
            ),
        )
        self._finish(TriageStep.DRAFT_COMMENT)

        return TriageResult(
            summary=summary,
            risks=risks,
            checklist=checklist,
            suggested_comment=comment,
        )

    def _enter(self, step: TriageStep) -> None:
        self._cancel_token.raise_if_cancelled()
        self.state = STEP_STATES[step]
        logger.debug("Entering step: step=%s", step.key)
        self._progress(StepProgress.working(step))

    def _finish(self, step: TriageStep) -> None:
        self._progress(StepProgress.done(step))

    def _call(
        self,
        step: TriageStep,
        operation: Callable[[], T],
        cancel_token: CancellationToken | None = None,
    ) -> T:
        return call_with_retry(
            operation,
            policy=self._retry_policy,
            cancel_token=cancel_token or self._cancel_token,
            description=step.key,
        )

    def _complete(self, step: TriageStep, diff_context: str, cancel_token: CancellationToken) -> str:
        prompt = _PROMPT_BUILDERS[step](diff_context)

        if self._on_chunk is None:
            return self._call(
                step,
                lambda: self._inference.complete(
                    prompt.system_instruction,
                    prompt.user_prompt,
                    cancel_token=cancel_token,
                ),
                cancel_token,
            )

        on_chunk = self._on_chunk

        def consume_stream() -> str:
            chunks = []
            for chunk in self._inference.complete_streaming(
                prompt.system_instruction,
                prompt.user_prompt,
                cancel_token=cancel_token,
            ):
                chunks.append(chunk)
                on_chunk(StepChunk(step=step, text=chunk))
            return "".join(chunks)

        return self._call(step, consume_stream, cancel_token)

    def _analyze_sequential(self, diff_context: str) -> Dict[TriageStep, str]:
        outputs: Dict[TriageStep, str] = {}
        for step in ANALYSIS_STEPS:
            self._enter(step)
            outputs[step] = self._complete(step, diff_context, self._cancel_token)
            self._finish(step)
        return outputs

    def _analyze_parallel(self, diff_context: str) -> Dict[TriageStep, str]:
        fan_out_token = self._cancel_token.child()
        failures: List[BaseException] = []
        failures_lock = threading.Lock()

        def run_step(step: TriageStep) -> str:
            try:
                output = self._complete(step, diff_context, fan_out_token)
            except BaseException as exc:
                with failures_lock:
                    failures.append(exc)
                fan_out_token.cancel()
                raise
            self._finish(step)
            return output

        futures: Dict[TriageStep, Future[str]] = {}
        with ThreadPoolExecutor(
            max_workers=len(ANALYSIS_STEPS),
            thread_name_prefix="triage-analysis",
        ) as executor:
            try:
                for step in ANALYSIS_STEPS:
                    self._enter(step)
                    futures[step] = executor.submit(run_step, step)
                wait(futures.values(), return_when=FIRST_EXCEPTION)
            except BaseException:
                fan_out_token.cancel()
                raise

        # Failures are kept in the order they happened; siblings stopped by the
        # fan-out token only report CancellationError.
        root_cause = next(
            (error for error in failures if not isinstance(error, CancellationError)),
            failures[0] if failures else None,
        )
        if root_cause is not None:
            raise root_cause

        self._cancel_token.raise_if_cancelled()
        return {step: futures[step].result() for step in ANALYSIS_STEPS}
