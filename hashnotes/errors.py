from __future__ import annotations


class NoteError(Exception):
    """Base class for note domain errors."""


class NoteNotFoundError(NoteError, LookupError):
    def __init__(self, note_id: str):
        super().__init__(f"Note '{note_id}' not found")
        self.note_id = note_id


class DuplicateNoteError(NoteError):
    def __init__(self, note_id: str):
        super().__init__(f"Note '{note_id}' already exists")
        self.note_id = note_id


class SearchError(NoteError):
    def __init__(self, message: str = "search failed"):
        super().__init__(message)


class InvalidPrefixError(NoteError, ValueError):
    pass


class IDGenerationError(NoteError):
    pass
