"""
Review scheduling for flashcards.

Interval policy (not SM-2):
  correct   -> tier = correct_count_after // 3, interval = min(2 ** tier, cap) days
  incorrect -> interval = 1 day, whatever the history

Study order:
  rank 1: never scheduled (next_review is None)
  rank 2: due (next_review <= now)
  rank 3: not yet due
  then oldest created_at first, then id.

All functions are pure: "now" is passed in and cards are never mutated.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from studynotes.models.flashcard import Difficulty, Flashcard

MAX_INTERVAL_DAYS = 30
CORRECT_PER_TIER = 3

RANK_UNSCHEDULED = 1
RANK_DUE = 2
RANK_SCHEDULED = 3


class SchedulerError(Exception):
    pass


class InvalidStateError(SchedulerError):
    """Raised when a card's counters violate their invariants."""


class InvalidArgumentError(SchedulerError):
    """Raised when an input is rejected before any computation."""


def as_utc(ts: datetime) -> datetime:
    """Timezone-aware UTC view of a timestamp; naive values are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def compute_interval_days(
    correct_count: int,
    correct: bool,
    max_interval_days: int = MAX_INTERVAL_DAYS,
) -> int:
    """Days until the next review, given the post-review correct count."""
    if not correct:
        return 1
    tier = correct_count // CORRECT_PER_TIER
    return min(2**tier, max_interval_days)


def _check_counters(card: Flashcard) -> None:
    review_count = getattr(card, "review_count", None)
    correct_count = getattr(card, "correct_count", None)
    if not isinstance(review_count, int) or not isinstance(correct_count, int):
        raise InvalidStateError(f"Flashcard {card.id} is missing review counters")
    if review_count < 0 or correct_count < 0:
        raise InvalidStateError(f"Flashcard {card.id} has negative review counters")
    if correct_count > review_count:
        raise InvalidStateError(
            f"Flashcard {card.id} has correct_count {correct_count} "
            f"> review_count {review_count}"
        )


def record_review(
    card: Flashcard,
    correct: bool,
    now: datetime,
    max_interval_days: int = MAX_INTERVAL_DAYS,
) -> Flashcard:
    """
    Apply one review outcome to a card.

    Returns a new Flashcard with counters incremented, last_reviewed = now and
    next_review = now + interval. Persisting it is up to the caller.
    """
    if not isinstance(correct, bool):
        raise InvalidArgumentError("correct must be a boolean")
    _check_counters(card)
    now = as_utc(now)

    review_count = card.review_count + 1
    correct_count = card.correct_count + (1 if correct else 0)
    days = compute_interval_days(correct_count, correct, max_interval_days)

    return card.model_copy(
        update={
            "review_count": review_count,
            "correct_count": correct_count,
            "last_reviewed": now,
            "next_review": now + timedelta(days=days),
        }
    )


def review_rank(card: Flashcard, now: datetime) -> int:
    if card.next_review is None:
        return RANK_UNSCHEDULED
    if as_utc(card.next_review) <= as_utc(now):
        return RANK_DUE
    return RANK_SCHEDULED


def parse_difficulty(value: Difficulty | str | None) -> Difficulty | None:
    if value is None or isinstance(value, Difficulty):
        return value
    try:
        return Difficulty(value)
    except ValueError:
        raise InvalidArgumentError(f"Unknown difficulty: {value!r}") from None


def select_study_batch(
    cards: Iterable[Flashcard],
    limit: int,
    now: datetime,
    difficulty: Difficulty | str | None = None,
) -> list[Flashcard]:
    """Pick up to `limit` cards for a study session, most urgent first."""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidArgumentError("limit must be a positive integer")
    wanted = parse_difficulty(difficulty)
    now = as_utc(now)

    candidates = [c for c in cards if wanted is None or c.difficulty == wanted]
    candidates.sort(key=lambda c: (review_rank(c, now), as_utc(c.created_at), c.id))
    return candidates[:limit]
