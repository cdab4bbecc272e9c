from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Iterable, Optional
from sqlmodel import Field, SQLModel


class Note(SQLModel, table=True):
    __tablename__ = "notes"

    id: str = Field(primary_key=True)
    title: str
    note: str = ""
    archive: bool = Field(default=False, index=True)
    favorite: bool = Field(default=False, index=True)
    # logical creation time of the content, editable by the user
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    # server-set on every write
    modified_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    # tags in first-seen order, comma joined; tags never contain commas
    tags_csv: str = ""

    @property
    def tags(self) -> list[str]:
        if not self.tags_csv:
            return []
        return [t for t in self.tags_csv.split(",") if t]

    def set_tags(self, tags: Optional[Iterable[str]]) -> None:
        if not tags:
            self.tags_csv = ""
            return
        self.tags_csv = ",".join(dict.fromkeys(t for t in tags if t))

    def touch(self) -> None:
        self.modified_at = datetime.now(UTC)


@dataclass(frozen=True)
class TagSummary:
    tag_name: str
    note_count: int


@dataclass(frozen=True)
class SearchQuery:
    query: str = ""
    tag: str = ""
    archived: bool = False
    favorites: bool = False

    @classmethod
    def from_params(
        cls,
        q: Optional[str] = None,
        tag: Optional[str] = None,
        archived: Optional[str] = None,
        favorites: Optional[str] = None,
    ) -> "SearchQuery":
        """Build from raw request values; a non-empty archived/favorites value means on."""
        return cls(
            query=(q or "").strip(),
            tag=(tag or "").strip(),
            archived=bool(archived),
            favorites=bool(favorites),
        )
