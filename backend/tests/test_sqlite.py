import asyncio

import pytest

from studynotes.db.sqlite import (
    commit_review,
    create_flashcard,
    create_note,
    delete_note,
    get_db,
    get_flashcard,
    get_total_xp,
    init_sqlite,
    insert_flashcards,
    list_owner_flashcards,
)
from studynotes.models.flashcard import FlashcardCreate, GeneratedPair
from studynotes.models.note import NoteCreate
from studynotes.services.scheduler import record_review


def _run(tmp_path, scenario):
    async def main():
        await init_sqlite(tmp_path)
        async for db in get_db():
            await scenario(db)

    asyncio.run(main())


def test_commit_review_rejects_stale_write(tmp_path, now):
    async def scenario(db):
        card = await create_flashcard(db, "alice", FlashcardCreate(front="Q", back="A"))

        first = record_review(card, True, now)
        second = record_review(card, False, now)
        assert await commit_review(db, first, expected_review_count=card.review_count)
        # second was computed from the same stale read
        assert not await commit_review(db, second, expected_review_count=card.review_count)

        stored = await get_flashcard(db, "alice", card.id)
        assert stored.review_count == 1
        assert stored.correct_count == 1
        assert stored.last_reviewed == now
        assert stored.next_review == first.next_review

    _run(tmp_path, scenario)


def test_commit_review_scoped_to_owner(tmp_path, now):
    async def scenario(db):
        card = await create_flashcard(db, "alice", FlashcardCreate(front="Q", back="A"))
        foreign = record_review(card, True, now).model_copy(update={"owner_id": "bob"})
        assert not await commit_review(db, foreign, expected_review_count=0)
        assert (await get_flashcard(db, "alice", card.id)).review_count == 0

    _run(tmp_path, scenario)


def test_delete_note_detaches_cards(tmp_path):
    async def scenario(db):
        note = await create_note(db, "alice", NoteCreate(title="Cells", content="..."))
        cards = await insert_flashcards(
            db,
            "alice",
            note.id,
            [GeneratedPair(front="Q1", back="A1"), GeneratedPair(front=" ", back="A2")],
        )
        assert len(cards) == 1
        assert cards[0].note_title == "Cells"

        assert await delete_note(db, "bob", note.id) == (False, 0)
        assert await delete_note(db, "alice", note.id) == (True, 1)

        remaining = await list_owner_flashcards(db, "alice")
        assert [c.id for c in remaining] == [cards[0].id]
        assert remaining[0].source_note_id is None
        assert remaining[0].note_title is None

    _run(tmp_path, scenario)


def test_commit_review_logs_xp_only_when_applied(tmp_path, now):
    async def scenario(db):
        card = await create_flashcard(db, "alice", FlashcardCreate(front="Q", back="A"))
        reviewed = record_review(card, True, now)

        assert await commit_review(db, reviewed, expected_review_count=0, xp_earned=2)
        assert not await commit_review(db, reviewed, expected_review_count=0, xp_earned=2)
        assert await get_total_xp(db, "alice") == 2

    _run(tmp_path, scenario)


def test_commit_review_requires_reviewed_card(tmp_path):
    async def scenario(db):
        card = await create_flashcard(db, "alice", FlashcardCreate(front="Q", back="A"))
        with pytest.raises(ValueError):
            await commit_review(db, card, expected_review_count=0)

    _run(tmp_path, scenario)
