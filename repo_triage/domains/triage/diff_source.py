from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

from repo_triage.domains.triage.models import ChangeInput
from repo_triage.shared.errors import ValidationError


logger = logging.getLogger(__name__)

LOCAL_DIFF_TITLE = "Local Diff"
LOCAL_DIFF_BODY = "Loaded from local file"

_NEW_FILE_PREFIX = "+++ b/"


def parse_files_from_diff(diff_text: str) -> Tuple[str, ...]:
    return tuple(
        line[len(_NEW_FILE_PREFIX):].rstrip("\r")
        for line in diff_text.split("\n")
        if line.startswith(_NEW_FILE_PREFIX)
    )


def change_from_diff_text(diff_text: str) -> ChangeInput:
    return ChangeInput(
        title=LOCAL_DIFF_TITLE,
        body=LOCAL_DIFF_BODY,
        diff_text=diff_text,
        files_changed=parse_files_from_diff(diff_text),
    )


def load_local_diff(path: str | Path) -> ChangeInput:
    diff_path = Path(path)
    if not diff_path.is_file():
        raise ValidationError(f"Diff file not found: {diff_path}")

    diff_text = diff_path.read_text(encoding="utf-8")
    change = change_from_diff_text(diff_text)
    logger.info(
        "Loaded local diff: path=%s, files=%s, chars=%s",
        diff_path,
        len(change.files_changed),
        len(diff_text),
    )
    return change
