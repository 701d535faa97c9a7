from datetime import datetime

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = ""


class Note(BaseModel):
    id: str
    owner_id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime


class NoteList(BaseModel):
    items: list[Note]
    total: int
    offset: int
    limit: int
