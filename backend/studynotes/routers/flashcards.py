"""
Flashcards & spaced repetition router.

Endpoints:
  GET    /flashcards                  — list cards (filters: difficulty, note_id)
  GET    /flashcards/study            — study batch, most urgent first
  GET    /flashcards/stats/overview   — total, due, per-difficulty, streak
  POST   /flashcards                  — create a card
  POST   /flashcards/batch            — store accepted generated cards for a note
  GET    /flashcards/{id}             — single card
  PUT    /flashcards/{id}             — edit front / back / difficulty
  POST   /flashcards/{id}/review      — submit correct/incorrect, reschedule, award XP
  DELETE /flashcards/{id}             — delete card
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from studynotes.config import settings
from studynotes.db.sqlite import (
    commit_review,
    create_flashcard,
    delete_flashcard,
    get_db,
    get_flashcard,
    get_note,
    get_total_xp,
    insert_flashcards,
    list_flashcards,
    list_owner_flashcards,
    update_flashcard_content,
)
from studynotes.deps import get_owner_id
from studynotes.models.flashcard import (
    Difficulty,
    Flashcard,
    FlashcardCreate,
    FlashcardList,
    FlashcardStats,
    FlashcardUpdate,
    GeneratedCards,
    ReviewRequest,
    ReviewResult,
)
from studynotes.services.rewards import review_xp
from studynotes.services.scheduler import (
    parse_difficulty,
    record_review,
    select_study_batch,
)
from studynotes.services.stats import compute_overview

logger = logging.getLogger(__name__)
router = APIRouter()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@router.get("", response_model=FlashcardList)
async def list_cards(
    difficulty: Difficulty | None = Query(default=None),
    note_id: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=settings.list_page_max),
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardList:
    """List the caller's flashcards, newest first."""
    items, total = await list_flashcards(
        db, owner_id, difficulty=difficulty, note_id=note_id, offset=offset, limit=limit
    )
    return FlashcardList(items=items, total=total, offset=offset, limit=limit)


@router.get("/study", response_model=FlashcardList)
async def study_batch(
    limit: int = Query(default=settings.study_batch_default, le=settings.study_batch_max),
    difficulty: str | None = Query(default=None),
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardList:
    """Cards for a study session: unscheduled, then due, then upcoming."""
    wanted = parse_difficulty(difficulty)
    candidates = await list_owner_flashcards(db, owner_id, difficulty=wanted)
    items = select_study_batch(candidates, limit, _utcnow(), difficulty=wanted)
    return FlashcardList(items=items, total=len(items), limit=limit)


@router.get("/stats/overview", response_model=FlashcardStats)
async def stats_overview(
    zero_fill: bool = Query(default=False),
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardStats:
    cards = await list_owner_flashcards(db, owner_id)
    return compute_overview(
        cards,
        _utcnow(),
        streak_window_days=settings.streak_window_days,
        zero_fill=zero_fill,
    )


@router.post("", response_model=Flashcard, status_code=201)
async def create_card(
    body: FlashcardCreate,
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    if body.source_note_id and not await get_note(db, owner_id, body.source_note_id):
        raise HTTPException(status_code=404, detail="Note not found")
    return await create_flashcard(db, owner_id, body)


@router.post("/batch", response_model=list[Flashcard], status_code=201)
async def create_generated_cards(
    body: GeneratedCards,
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> list[Flashcard]:
    """Store front/back pairs produced by AI generation for one of the caller's notes."""
    if not await get_note(db, owner_id, body.source_note_id):
        raise HTTPException(status_code=404, detail="Note not found")
    items = await insert_flashcards(db, owner_id, body.source_note_id, body.cards)
    logger.info(
        "Stored %d of %d generated flashcards for note %s",
        len(items),
        len(body.cards),
        body.source_note_id,
    )
    return items


@router.get("/{card_id}", response_model=Flashcard)
async def get_card(
    card_id: str,
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    card = await get_flashcard(db, owner_id, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return card


@router.put("/{card_id}", response_model=Flashcard)
async def edit_card(
    card_id: str,
    body: FlashcardUpdate,
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    if not body.model_dump(exclude_none=True):
        raise HTTPException(status_code=400, detail="No fields to update")
    updated = await update_flashcard_content(db, owner_id, card_id, body)
    if not updated:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return updated


@router.post("/{card_id}/review", response_model=ReviewResult)
async def review_card(
    card_id: str,
    body: ReviewRequest,
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewResult:
    """Submit a review outcome. The card is rescheduled and XP is awarded."""
    xp_earned = review_xp(body.correct)
    attempts = settings.review_max_attempts
    for attempt in range(1, attempts + 1):
        card = await get_flashcard(db, owner_id, card_id)
        if not card:
            raise HTTPException(status_code=404, detail="Flashcard not found")

        reviewed = record_review(
            card, body.correct, _utcnow(), max_interval_days=settings.max_interval_days
        )
        if await commit_review(
            db, reviewed, expected_review_count=card.review_count, xp_earned=xp_earned
        ):
            break
        logger.warning(
            "Concurrent review on flashcard %s (attempt %d/%d)", card_id, attempt, attempts
        )
    else:
        raise HTTPException(
            status_code=409, detail="Flashcard was reviewed concurrently, retry"
        )

    logger.info(
        "Reviewed flashcard %s (correct=%s), next review %s",
        card_id,
        body.correct,
        reviewed.next_review,
    )

    return ReviewResult(
        id=card_id,
        next_review=reviewed.next_review,
        review_count=reviewed.review_count,
        correct_count=reviewed.correct_count,
        xp_earned=xp_earned,
        total_xp=await get_total_xp(db, owner_id),
    )


@router.delete("/{card_id}", status_code=204)
async def remove_card(
    card_id: str,
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    deleted = await delete_flashcard(db, owner_id, card_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Flashcard not found")
