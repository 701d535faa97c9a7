from __future__ import annotations

from studynotes.config import settings


def review_xp(correct: bool) -> int:
    """Experience points awarded for one flashcard review."""
    return settings.xp_correct if correct else settings.xp_incorrect
