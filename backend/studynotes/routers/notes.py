import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from studynotes.config import settings
from studynotes.db.sqlite import create_note, delete_note, get_db, get_note, list_notes
from studynotes.deps import get_owner_id
from studynotes.models.note import Note, NoteCreate, NoteList

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=Note, status_code=201)
async def create(
    body: NoteCreate,
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    return await create_note(db, owner_id, body)


@router.get("", response_model=NoteList)
async def list_all(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=settings.list_page_max),
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    items, total = await list_notes(db, owner_id, offset, limit)
    return NoteList(items=items, total=total, offset=offset, limit=limit)


@router.get("/{note_id}", response_model=Note)
async def get_one(
    note_id: str,
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    note = await get_note(db, owner_id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.delete("/{note_id}", status_code=204)
async def delete(
    note_id: str,
    owner_id: str = Depends(get_owner_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    deleted, detached = await delete_note(db, owner_id, note_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Note not found")
    # Flashcards outlive their note; only the reference is cleared
    logger.info("Deleted note %s, detached %d flashcards", note_id, detached)
