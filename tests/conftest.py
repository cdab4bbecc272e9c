from datetime import datetime, timedelta, UTC

import pytest

from hashnotes.db import init_db, reset_engine
from hashnotes.services import import_note


@pytest.fixture()
def db(tmp_path, monkeypatch):
    monkeypatch.setenv("HASHNOTES_DB_PATH", str(tmp_path / "notes.sqlite"))
    reset_engine()
    init_db()
    yield
    reset_engine()


@pytest.fixture()
def add_note():
    """Import a note whose modified_at is `age` minutes in the past."""
    base = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def _add(note_id, title, note, *, age=0, archive=False, favorite=False):
        when = base - timedelta(minutes=age)
        return import_note(
            note_id, title, note,
            archive=archive, favorite=favorite,
            created_at=when, modified_at=when,
        )

    return _add
