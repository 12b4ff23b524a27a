from typing import Tuple


_BULLET_MARKERS = "-* \t"


def parse_bullets(raw: str) -> Tuple[str, ...]:
    """Normalize free-form model output into bullet strings.

    Lenient on purpose: only ``-``, ``*`` and leading whitespace are stripped,
    so numbered items keep their digits.
    """
    if not raw:
        return ()

    bullets = []
    for line in raw.split("\n"):
        item = line.strip().lstrip(_BULLET_MARKERS)
        if item:
            bullets.append(item)
    return tuple(bullets)
