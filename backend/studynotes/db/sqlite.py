import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from studynotes.config import settings
from studynotes.models.flashcard import (
    Difficulty,
    Flashcard,
    FlashcardCreate,
    FlashcardUpdate,
    GeneratedPair,
)
from studynotes.models.note import Note, NoteCreate

_db_path: Path | None = None

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS notes (
    id          TEXT PRIMARY KEY,
    owner_id    TEXT NOT NULL,
    title       TEXT NOT NULL,
    content     TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_notes_owner ON notes(owner_id);

CREATE TABLE IF NOT EXISTS flashcards (
    id             TEXT PRIMARY KEY,
    owner_id       TEXT NOT NULL,
    source_note_id TEXT REFERENCES notes(id) ON DELETE SET NULL,
    front          TEXT NOT NULL,
    back           TEXT NOT NULL,
    difficulty     TEXT NOT NULL DEFAULT 'medium'
                   CHECK (difficulty IN ('easy', 'medium', 'hard')),
    review_count   INTEGER NOT NULL DEFAULT 0,
    correct_count  INTEGER NOT NULL DEFAULT 0,
    last_reviewed  TEXT,
    next_review    TEXT,
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_flashcards_owner ON flashcards(owner_id);
CREATE INDEX IF NOT EXISTS idx_flashcards_review ON flashcards(next_review);

CREATE TABLE IF NOT EXISTS study_sessions (
    id           TEXT PRIMARY KEY,
    owner_id     TEXT NOT NULL,
    session_type TEXT NOT NULL
                 CHECK (session_type IN ('flashcard', 'review', 'upload')),
    xp_earned    INTEGER NOT NULL DEFAULT 0,
    created_at   TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_sessions_owner ON study_sessions(owner_id);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    data_dir.mkdir(parents=True, exist_ok=True)
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    assert _db_path is not None, "SQLite not initialized"
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


def _ts(value: datetime) -> str:
    """Serialize a timestamp as ISO-8601 UTC so text order matches time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _now() -> str:
    return _ts(datetime.now(timezone.utc))


# --- Notes ---


def _row_to_note(row: aiosqlite.Row) -> Note:
    return Note(**dict(row))


async def create_note(db: aiosqlite.Connection, owner_id: str, note: NoteCreate) -> Note:
    note_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        """INSERT INTO notes (id, owner_id, title, content, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (note_id, owner_id, note.title, note.content, now, now),
    )
    await db.commit()
    return await get_note(db, owner_id, note_id)  # type: ignore[return-value]


async def get_note(db: aiosqlite.Connection, owner_id: str, note_id: str) -> Note | None:
    cursor = await db.execute(
        "SELECT * FROM notes WHERE id = ? AND owner_id = ?", (note_id, owner_id)
    )
    row = await cursor.fetchone()
    return _row_to_note(row) if row else None


async def list_notes(
    db: aiosqlite.Connection, owner_id: str, offset: int = 0, limit: int = 50
) -> tuple[list[Note], int]:
    cursor = await db.execute(
        "SELECT COUNT(*) FROM notes WHERE owner_id = ?", (owner_id,)
    )
    total = (await cursor.fetchone())[0]

    cursor = await db.execute(
        "SELECT * FROM notes WHERE owner_id = ? ORDER BY created_at DESC LIMIT ? OFFSET ?",
        (owner_id, limit, offset),
    )
    rows = await cursor.fetchall()
    return [_row_to_note(r) for r in rows], total


async def delete_note(
    db: aiosqlite.Connection, owner_id: str, note_id: str
) -> tuple[bool, int]:
    """Delete a note and detach its flashcards. Returns (deleted, cards_detached)."""
    cursor = await db.execute(
        "UPDATE flashcards SET source_note_id = NULL, updated_at = ? "
        "WHERE source_note_id = ? AND owner_id = ?",
        (_now(), note_id, owner_id),
    )
    detached = cursor.rowcount or 0
    cursor = await db.execute(
        "DELETE FROM notes WHERE id = ? AND owner_id = ?", (note_id, owner_id)
    )
    deleted = (cursor.rowcount or 0) > 0
    if not deleted:
        await db.rollback()
        return False, 0
    await db.commit()
    return True, detached


# --- Flashcards ---

_FLASHCARD_SELECT = """
    SELECT f.*, n.title AS note_title
    FROM flashcards f
    LEFT JOIN notes n ON n.id = f.source_note_id
"""


def _row_to_flashcard(row: aiosqlite.Row) -> Flashcard:
    return Flashcard(**dict(row))


async def create_flashcard(
    db: aiosqlite.Connection, owner_id: str, card: FlashcardCreate
) -> Flashcard:
    card_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        """INSERT INTO flashcards
           (id, owner_id, source_note_id, front, back, difficulty, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            card_id,
            owner_id,
            card.source_note_id,
            card.front,
            card.back,
            card.difficulty.value,
            now,
            now,
        ),
    )
    await db.commit()
    return await get_flashcard(db, owner_id, card_id)  # type: ignore[return-value]


async def insert_flashcards(
    db: aiosqlite.Connection,
    owner_id: str,
    note_id: str,
    pairs: list[GeneratedPair],
) -> list[Flashcard]:
    """Insert generated front/back pairs for a note. Blank pairs are skipped."""
    now = _now()
    card_ids: list[str] = []
    for pair in pairs:
        front, back = pair.front.strip(), pair.back.strip()
        if not front or not back:
            continue
        card_id = str(uuid.uuid4())
        card_ids.append(card_id)
        await db.execute(
            """INSERT INTO flashcards
               (id, owner_id, source_note_id, front, back, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (card_id, owner_id, note_id, front, back, now, now),
        )
    await db.commit()
    cards = [await get_flashcard(db, owner_id, card_id) for card_id in card_ids]
    return [c for c in cards if c is not None]


async def get_flashcard(
    db: aiosqlite.Connection, owner_id: str, card_id: str
) -> Flashcard | None:
    cursor = await db.execute(
        _FLASHCARD_SELECT + " WHERE f.id = ? AND f.owner_id = ?",
        (card_id, owner_id),
    )
    row = await cursor.fetchone()
    return _row_to_flashcard(row) if row else None


async def list_flashcards(
    db: aiosqlite.Connection,
    owner_id: str,
    difficulty: Difficulty | None = None,
    note_id: str | None = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Flashcard], int]:
    where = "WHERE f.owner_id = ?"
    params: list = [owner_id]
    if difficulty:
        where += " AND f.difficulty = ?"
        params.append(difficulty.value)
    if note_id:
        where += " AND f.source_note_id = ?"
        params.append(note_id)

    count_cursor = await db.execute(
        f"SELECT COUNT(*) FROM flashcards f {where}",  # noqa: S608
        params,
    )
    total = (await count_cursor.fetchone())[0]

    cursor = await db.execute(
        _FLASHCARD_SELECT + f" {where} ORDER BY f.created_at DESC, f.id LIMIT ? OFFSET ?",
        params + [limit, offset],
    )
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows], total


async def list_owner_flashcards(
    db: aiosqlite.Connection,
    owner_id: str,
    difficulty: Difficulty | None = None,
) -> list[Flashcard]:
    """Every card of one owner: the candidate set for scheduling and stats."""
    if difficulty:
        cursor = await db.execute(
            _FLASHCARD_SELECT + " WHERE f.owner_id = ? AND f.difficulty = ?",
            (owner_id, difficulty.value),
        )
    else:
        cursor = await db.execute(
            _FLASHCARD_SELECT + " WHERE f.owner_id = ?", (owner_id,)
        )
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows]


async def update_flashcard_content(
    db: aiosqlite.Connection,
    owner_id: str,
    card_id: str,
    updates: FlashcardUpdate,
) -> Flashcard | None:
    fields = updates.model_dump(exclude_none=True)
    if not fields:
        return await get_flashcard(db, owner_id, card_id)

    for key, val in fields.items():
        if hasattr(val, "value"):
            fields[key] = val.value

    fields["updated_at"] = _now()
    set_clause = ", ".join(f"{k} = ?" for k in fields)
    values = list(fields.values()) + [card_id, owner_id]

    cursor = await db.execute(
        f"UPDATE flashcards SET {set_clause} WHERE id = ? AND owner_id = ?",  # noqa: S608
        values,
    )
    await db.commit()
    if not cursor.rowcount:
        return None
    return await get_flashcard(db, owner_id, card_id)


async def commit_review(
    db: aiosqlite.Connection,
    reviewed: Flashcard,
    expected_review_count: int,
    xp_earned: int | None = None,
) -> bool:
    """
    Write a reviewed card if nobody else reviewed it since it was read.

    review_count only ever grows by one per review, so it doubles as a row
    version. Returns False when the row moved on (or vanished); nothing is written.
    With xp_earned, the flashcard study session is logged in the same transaction.
    """
    if reviewed.last_reviewed is None or reviewed.next_review is None:
        raise ValueError(f"Flashcard {reviewed.id} has not been reviewed")
    cursor = await db.execute(
        """UPDATE flashcards
           SET review_count = ?, correct_count = ?, last_reviewed = ?,
               next_review = ?, updated_at = ?
           WHERE id = ? AND owner_id = ? AND review_count = ?""",
        (
            reviewed.review_count,
            reviewed.correct_count,
            _ts(reviewed.last_reviewed),
            _ts(reviewed.next_review),
            _now(),
            reviewed.id,
            reviewed.owner_id,
            expected_review_count,
        ),
    )
    if not cursor.rowcount:
        await db.rollback()
        return False
    if xp_earned is not None:
        await record_study_session(
            db, reviewed.owner_id, "flashcard", xp_earned, commit=False
        )
    await db.commit()
    return True


async def delete_flashcard(db: aiosqlite.Connection, owner_id: str, card_id: str) -> bool:
    cursor = await db.execute(
        "DELETE FROM flashcards WHERE id = ? AND owner_id = ?", (card_id, owner_id)
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


# --- Study sessions ---


async def record_study_session(
    db: aiosqlite.Connection,
    owner_id: str,
    session_type: str,
    xp_earned: int,
    commit: bool = True,
) -> None:
    await db.execute(
        """INSERT INTO study_sessions (id, owner_id, session_type, xp_earned, created_at)
           VALUES (?, ?, ?, ?, ?)""",
        (str(uuid.uuid4()), owner_id, session_type, xp_earned, _now()),
    )
    if commit:
        await db.commit()


async def get_total_xp(db: aiosqlite.Connection, owner_id: str) -> int:
    cursor = await db.execute(
        "SELECT COALESCE(SUM(xp_earned), 0) FROM study_sessions WHERE owner_id = ?",
        (owner_id,),
    )
    row = await cursor.fetchone()
    return int(row[0]) if row else 0
