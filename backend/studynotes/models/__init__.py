from studynotes.models.flashcard import (
    Difficulty,
    Flashcard,
    FlashcardCreate,
    FlashcardList,
    FlashcardStats,
    FlashcardUpdate,
    GeneratedCards,
    GeneratedPair,
    ReviewRequest,
    ReviewResult,
)
from studynotes.models.note import Note, NoteCreate, NoteList

__all__ = [
    "Difficulty",
    "Flashcard",
    "FlashcardCreate",
    "FlashcardList",
    "FlashcardStats",
    "FlashcardUpdate",
    "GeneratedCards",
    "GeneratedPair",
    "Note",
    "NoteCreate",
    "NoteList",
    "ReviewRequest",
    "ReviewResult",
]
