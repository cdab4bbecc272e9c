from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional
import logging
import time

from sqlalchemy import case, func, literal
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from .db import session_scope
from .errors import DuplicateNoteError, NoteNotFoundError, SearchError
from .ids import generate_id
from .models import Note, SearchQuery, TagSummary
from .tags import extract_tags

logger = logging.getLogger(__name__)

NOTE_ID_PREFIX = "n"


def _utc(value: Optional[datetime]) -> datetime:
    """Normalise to UTC; naive values are taken as UTC already."""
    if value is None:
        return datetime.now(UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _derive_title(title: Optional[str], body: str) -> str:
    title = (title or "").strip()
    if not title:
        title = body.strip().split("\n", 1)[0].strip() if body.strip() else ""
    if not title:
        raise ValueError("title is required")
    return title


def _require_body(body: Optional[str]) -> str:
    if body is None or not body.strip():
        raise ValueError("note content is required")
    return body


def create_note(
    title: Optional[str],
    note: str,
    *,
    favorite: bool = False,
    archive: bool = False,
    created_at: Optional[datetime] = None,
) -> Note:
    """Create a note. A blank title is taken from the first line of the body."""
    body = _require_body(note)
    with session_scope() as s:
        n = Note(
            id=generate_id(NOTE_ID_PREFIX),
            title=_derive_title(title, body),
            note=body,
            favorite=favorite,
            archive=archive,
            created_at=_utc(created_at),
        )
        n.set_tags(extract_tags(body))
        n.touch()
        logger.debug("creating note id=%s tags=%s", n.id, n.tags)
        s.add(n)
        s.flush()
        s.refresh(n)
        return n


def get_note(note_id: str) -> Optional[Note]:
    with session_scope() as s:
        return s.get(Note, note_id)


def update_note(
    note_id: str,
    *,
    title: Optional[str] = None,
    note: Optional[str] = None,
    archive: Optional[bool] = None,
    favorite: Optional[bool] = None,
    created_at: Optional[datetime] = None,
) -> Note:
    """
    Update fields, recompute tags from the body and bump modified_at.
    Fields left as None keep their stored value.
    """
    with session_scope() as s:
        n = s.get(Note, note_id)
        if n is None:
            raise NoteNotFoundError(note_id)

        if note is not None:
            n.note = _require_body(note)
        if title is not None:
            n.title = _derive_title(title, n.note)
        if archive is not None:
            n.archive = archive
        if favorite is not None:
            n.favorite = favorite
        if created_at is not None:
            n.created_at = _utc(created_at)

        # tags always follow the body, even when only flags changed
        n.set_tags(extract_tags(n.note))
        n.touch()
        s.add(n)
        s.flush()
        s.refresh(n)
        return n


def import_note(
    note_id: str,
    title: str,
    note: str,
    *,
    archive: bool = False,
    favorite: bool = False,
    created_at: datetime,
    modified_at: datetime,
) -> Note:
    """Insert a note from another system, keeping its id and both timestamps."""
    if not note_id or not note_id.strip():
        raise ValueError("missing note_id")
    if not title or not title.strip():
        raise ValueError("missing title")
    body = _require_body(note)
    with session_scope() as s:
        if s.get(Note, note_id) is not None:
            raise DuplicateNoteError(note_id)
        n = Note(
            id=note_id,
            title=title,
            note=body,
            archive=archive,
            favorite=favorite,
            created_at=_utc(created_at),
            modified_at=_utc(modified_at),
        )
        # never trust tags from the source system
        n.set_tags(extract_tags(body))
        s.add(n)
        s.flush()
        s.refresh(n)
        return n


def delete_note(note_id: str) -> None:
    """Remove the row for good; there is no trash."""
    with session_scope() as s:
        n = s.get(Note, note_id)
        if n is None:
            raise NoteNotFoundError(note_id)
        s.delete(n)


def random_note() -> Optional[Note]:
    with session_scope() as s:
        return s.exec(select(Note).order_by(func.random()).limit(1)).first()


def _contains_folded(expr, needle: str):
    """Unicode case-insensitive substring test; `casefold` is registered in db.py."""
    return func.instr(func.casefold(expr), needle) > 0


def search_notes(query: SearchQuery) -> list[Note]:
    """
    Return the notes matching `query`, most relevant first.

    Filters:
    - query: case-insensitive substring of "id title note"
    - tag: the note carries exactly this tag
    - archived: False hides archived notes, True shows them too
    - favorites: True keeps favorites only

    Order: relevance tier when there is a text query (0 id match, 1 title
    match, 2 body match), then modified_at newest first, then id.
    """
    q = query.query
    if "," in query.tag:
        # stored tags never contain commas
        return []
    needle = q.casefold()
    stmt = select(Note)
    if q:
        haystack = Note.id + literal(" ") + Note.title + literal(" ") + Note.note
        stmt = stmt.where(_contains_folded(haystack, needle))
    if query.tag:
        # instr is case sensitive and has no wildcards
        padded = literal(",") + Note.tags_csv + literal(",")
        stmt = stmt.where(func.instr(padded, f",{query.tag},") > 0)
    if not query.archived:
        stmt = stmt.where(Note.archive == False)  # noqa: E712
    if query.favorites:
        stmt = stmt.where(Note.favorite == True)  # noqa: E712

    order = []
    if q:
        order.append(
            case(
                (_contains_folded(Note.id, needle), 0),
                (_contains_folded(Note.title, needle), 1),
                else_=2,
            )
        )
    order += [Note.modified_at.desc(), Note.id.asc()]
    stmt = stmt.order_by(*order)

    logger.debug("search params %s", query)
    try:
        with session_scope() as s:
            notes = list(s.exec(stmt))
    except SQLAlchemyError as e:
        logger.error("search failed: %s", e)
        raise SearchError() from e
    logger.debug("search returned %d notes", len(notes))
    return notes


def tag_summary() -> list[TagSummary]:
    """Every tag in use with the number of notes carrying it, alphabetical."""
    with session_scope() as s:
        rows = s.exec(select(Note.tags_csv).where(Note.tags_csv != "")).all()
    counts: Counter[str] = Counter()
    for csv in rows:
        counts.update(t for t in csv.split(",") if t)
    return [TagSummary(tag_name=t, note_count=counts[t]) for t in sorted(counts)]


@dataclass
class RefreshResult:
    updated: int = 0
    failed: int = 0
    timed_out: bool = False

    @property
    def total(self) -> int:
        return self.updated + self.failed


def refresh_tags(*, timeout: float = 120.0) -> RefreshResult:
    """
    Re-run tag extraction over every note and store the result.

    Each note is its own transaction: a failure is logged with the note id
    and counted, and the pass moves on. Failing to list the notes at the
    start propagates. After `timeout` seconds the pass stops where it is.
    """
    deadline = time.monotonic() + timeout
    with session_scope() as s:
        note_ids = list(s.exec(select(Note.id).order_by(Note.modified_at.desc())))

    result = RefreshResult()
    processed = 0
    for note_id in note_ids:
        if time.monotonic() > deadline:
            result.timed_out = True
            logger.warning(
                "tag refresh timed out after %.0fs, %d of %d notes left",
                timeout, len(note_ids) - processed, len(note_ids),
            )
            break
        processed += 1
        try:
            with session_scope() as s:
                n = s.get(Note, note_id)
                if n is None:
                    # deleted since the pass started
                    continue
                n.set_tags(extract_tags(n.note))
                s.add(n)
        except Exception:
            result.failed += 1
            logger.exception("update note tags error note_id=%s", note_id)
        else:
            result.updated += 1
            logger.debug("updated note tags note_id=%s", note_id)

    logger.info(
        "tag refresh finished: %d updated, %d failed%s",
        result.updated, result.failed, " (timed out)" if result.timed_out else "",
    )
    return result


def run_tag_refresh(timeout: float = 120.0) -> Optional[RefreshResult]:
    """Background entry point: the caller is gone, so errors end up in the log."""
    try:
        return refresh_tags(timeout=timeout)
    except Exception:
        logger.exception("tag refresh task failed")
        return None
