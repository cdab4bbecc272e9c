from contextlib import contextmanager
from sqlalchemy import event
from sqlmodel import SQLModel, Session, create_engine

from .config import get_settings

_ENGINE = None
_ENGINE_URL = None  # current engine's URL, so a changed HASHNOTES_DB_PATH swaps it

def _compute_url() -> str:
    db_path = get_settings().db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"

def _casefold(value):
    return None if value is None else str(value).casefold()

def _register_functions(dbapi_conn, _record):
    # SQLite lower() only folds ASCII
    dbapi_conn.create_function("casefold", 1, _casefold, deterministic=True)

def get_engine():
    global _ENGINE, _ENGINE_URL
    url = _compute_url()
    if _ENGINE is None or _ENGINE_URL != url:
        if _ENGINE is not None:
            _ENGINE.dispose()
        # the refresh pass runs on a worker thread
        _ENGINE = create_engine(url, echo=False, connect_args={"check_same_thread": False})
        event.listen(_ENGINE, "connect", _register_functions)
        _ENGINE_URL = url
    return _ENGINE

def reset_engine():
    """For tests: drop the cached engine so a new HASHNOTES_DB_PATH is picked up."""
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None

def init_db():
    from . import models  # noqa: F401  registers the notes table
    SQLModel.metadata.create_all(get_engine())

def get_session():
    # keep objects usable after commit so services can return them
    return Session(get_engine(), expire_on_commit=False)


@contextmanager
def session_scope():
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
