from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from studynotes.models.flashcard import Difficulty, Flashcard, FlashcardStats
from studynotes.services.scheduler import as_utc

STREAK_WINDOW_DAYS = 30


def _utc_date(ts: datetime) -> date:
    return as_utc(ts).date()


def compute_overview(
    cards: Iterable[Flashcard],
    now: datetime,
    streak_window_days: int = STREAK_WINDOW_DAYS,
    zero_fill: bool = False,
) -> FlashcardStats:
    """
    Summarise one owner's cards: total, per-difficulty counts, due count, streak.

    The streak is the number of distinct calendar dates (UTC) on which a card was
    last reviewed within the trailing window. Days need not be consecutive.
    """
    cards = list(cards)
    now = as_utc(now)
    window_start = now - timedelta(days=streak_window_days)

    by_difficulty: Counter[Difficulty] = Counter(c.difficulty for c in cards)
    if zero_fill:
        for level in Difficulty:
            by_difficulty.setdefault(level, 0)

    due = sum(1 for c in cards if c.next_review is None or as_utc(c.next_review) <= now)
    active_days = {
        _utc_date(c.last_reviewed)
        for c in cards
        if c.last_reviewed is not None and as_utc(c.last_reviewed) >= window_start
    }

    return FlashcardStats(
        total_flashcards=len(cards),
        cards_by_difficulty=dict(by_difficulty),
        cards_due_for_review=due,
        study_streak=len(active_days),
    )
