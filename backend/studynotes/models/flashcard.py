from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, StrictBool


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Flashcard(BaseModel):
    id: str
    owner_id: str
    source_note_id: str | None = None  # weak reference; cleared when the note is deleted
    front: str
    back: str
    difficulty: Difficulty = Difficulty.MEDIUM
    review_count: int = 0
    correct_count: int = 0
    last_reviewed: datetime | None = None
    next_review: datetime | None = None  # None = due now
    created_at: datetime
    updated_at: datetime
    note_title: str | None = None


class FlashcardList(BaseModel):
    items: list[Flashcard]
    total: int
    offset: int = 0
    limit: int


class FlashcardCreate(BaseModel):
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)
    difficulty: Difficulty = Difficulty.MEDIUM
    source_note_id: str | None = None


class FlashcardUpdate(BaseModel):
    front: str | None = Field(default=None, min_length=1)
    back: str | None = Field(default=None, min_length=1)
    difficulty: Difficulty | None = None


class GeneratedPair(BaseModel):
    front: str
    back: str


class GeneratedCards(BaseModel):
    """Front/back pairs accepted from AI generation for one note."""

    source_note_id: str
    cards: list[GeneratedPair]


class ReviewRequest(BaseModel):
    correct: StrictBool


class ReviewResult(BaseModel):
    id: str
    next_review: datetime
    review_count: int
    correct_count: int
    xp_earned: int
    total_xp: int


class FlashcardStats(BaseModel):
    total_flashcards: int
    cards_by_difficulty: dict[Difficulty, int]
    cards_due_for_review: int
    study_streak: int  # distinct active days in the trailing window, not consecutive
