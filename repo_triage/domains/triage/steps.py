from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AgentKind(str, Enum):
    SOURCE_CONTROL = "source_control"
    INFERENCE = "inference"

    @property
    def label(self) -> str:
        if self is AgentKind.SOURCE_CONTROL:
            return "Copilot Agent"
        return "Foundry Local Agent"


class TriageStep(Enum):
    """Pipeline steps in execution order."""

    FETCH_CONTEXT = ("fetch_context", "Fetch PR context / Load diff", AgentKind.SOURCE_CONTROL)
    SUMMARIZE = ("summarize", "Summarize the change set", AgentKind.INFERENCE)
    IDENTIFY_RISKS = ("identify_risks", "Identify risks", AgentKind.INFERENCE)
    GENERATE_CHECKLIST = ("generate_checklist", "Generate review checklist", AgentKind.INFERENCE)
    DRAFT_COMMENT = ("draft_comment", "Draft PR comment", AgentKind.SOURCE_CONTROL)

    def __init__(self, key: str, label: str, agent: AgentKind) -> None:
        self.key = key
        self.label = label
        self.agent = agent


class WorkflowState(str, Enum):
    IDLE = "idle"
    FETCHING_CONTEXT = "fetching_context"
    SUMMARIZING = "summarizing"
    IDENTIFYING_RISKS = "identifying_risks"
    GENERATING_CHECKLIST = "generating_checklist"
    DRAFTING_COMMENT = "drafting_comment"
    COMPLETE = "complete"
    FAILED = "failed"


STEP_STATES = {
    TriageStep.FETCH_CONTEXT: WorkflowState.FETCHING_CONTEXT,
    TriageStep.SUMMARIZE: WorkflowState.SUMMARIZING,
    TriageStep.IDENTIFY_RISKS: WorkflowState.IDENTIFYING_RISKS,
    TriageStep.GENERATE_CHECKLIST: WorkflowState.GENERATING_CHECKLIST,
    TriageStep.DRAFT_COMMENT: WorkflowState.DRAFTING_COMMENT,
}


@dataclass(frozen=True)
class StepProgress:
    step: TriageStep
    complete: bool

    @classmethod
    def working(cls, step: TriageStep) -> "StepProgress":
        return cls(step=step, complete=False)

    @classmethod
    def done(cls, step: TriageStep) -> "StepProgress":
        return cls(step=step, complete=True)


@dataclass(frozen=True)
class StepChunk:
    """A streamed piece of model output for one step."""

    step: TriageStep
    text: str
