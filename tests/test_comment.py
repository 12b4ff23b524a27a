from repo_triage.domains.triage.comment import NO_RISKS_LINE, format_comment


def _risk_lines(comment: str) -> list[str]:
    lines = comment.splitlines()
    start = lines.index("### Risks / Questions") + 1
    end = lines.index("### Review Checklist")
    return [line for line in lines[start:end] if line.startswith("- ")]


def test_format_comment_without_risks_uses_fallback_line() -> None:
    comment = format_comment("summary", [], ["item"], "Title")

    assert _risk_lines(comment) == [NO_RISKS_LINE]
    assert "- No significant risks identified." in comment.splitlines()


def test_format_comment_lists_risks_in_order() -> None:
    comment = format_comment("summary", ["r1", "r2"], ["c1"], "Title")

    assert _risk_lines(comment) == ["- r1", "- r2"]


def test_format_comment_full_template() -> None:
    comment = format_comment("Adds login.", ["No tests"], ["Run tests", "Check docs"], "feat: auth")

    assert comment == (
        "## feat: auth\n"
        "\n"
        "### Summary\n"
        "Adds login.\n"
        "\n"
        "### Risks / Questions\n"
        "- No tests\n"
        "\n"
        "### Review Checklist\n"
        "- [ ] Run tests\n"
        "- [ ] Check docs\n"
        "\n"
        "---\n"
        "> _Generated by Repo Triage Agent_"
    )
