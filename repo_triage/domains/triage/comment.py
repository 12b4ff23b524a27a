from typing import List, Sequence


NO_RISKS_LINE = "- No significant risks identified."
COMMENT_FOOTER = "> _Generated by Repo Triage Agent_"


def _risks_section(risks: Sequence[str]) -> str:
    if not risks:
        return NO_RISKS_LINE
    return "\n".join(f"- {risk}" for risk in risks)


def _checklist_section(checklist: Sequence[str]) -> str:
    return "\n".join(f"- [ ] {item}" for item in checklist)


def format_comment(
    summary: str,
    risks: Sequence[str],
    checklist: Sequence[str],
    title: str,
) -> str:
    """Render the Markdown review comment posted back to the pull request."""

    lines: List[str] = [
        f"## {title}",
        "",
        "### Summary",
        summary,
        "",
        "### Risks / Questions",
        _risks_section(risks),
        "",
        "### Review Checklist",
        _checklist_section(checklist),
        "",
        "---",
        COMMENT_FOOTER,
    ]
    return "\n".join(lines)
